"""
tokenledger TOML Configuration Loader

Loads config.toml at startup with environment variable overrides.
Each [section] maps onto a dataclass with ``from_dict`` / ``apply_env``.

Environment variable mapping:
    [token] name      → TOKENLEDGER_TOKEN_NAME
    [token] symbol    → TOKENLEDGER_TOKEN_SYMBOL
    [token] owner     → TOKENLEDGER_TOKEN_OWNER
    [token] premint   → TOKENLEDGER_TOKEN_PREMINT
    [token] cap       → TOKENLEDGER_TOKEN_CAP
    [logging] level   → TOKENLEDGER_LOG_LEVEL

Amounts in this file are whole tokens; the token scales them by
``10 ** decimals``.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib as tomli
else:
    import tomli

from ..constants import (
    DEFAULT_DECIMALS,
    LOG_FILE_OUTPUT,
    LOG_LEVEL,
    MAX_DECIMALS,
    NULL_ADDRESS,
    TOKEN_NAME,
    TOKEN_OWNER,
    TOKEN_SYMBOL,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class TokenSectionConfig:
    """[token] section."""
    name: str = str(TOKEN_NAME)
    symbol: str = str(TOKEN_SYMBOL)
    decimals: int = DEFAULT_DECIMALS
    owner: str = str(TOKEN_OWNER)
    premint: int = 0
    cap: Optional[int] = None
    paused: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenSectionConfig":
        return cls(
            name=data.get("name", str(TOKEN_NAME)),
            symbol=data.get("symbol", str(TOKEN_SYMBOL)),
            decimals=data.get("decimals", DEFAULT_DECIMALS),
            owner=data.get("owner", str(TOKEN_OWNER)),
            premint=data.get("premint", 0),
            cap=data.get("cap"),
            paused=data.get("paused", False),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("TOKENLEDGER_TOKEN_NAME"):
            self.name = v
        if v := os.environ.get("TOKENLEDGER_TOKEN_SYMBOL"):
            self.symbol = v
        if v := os.environ.get("TOKENLEDGER_TOKEN_OWNER"):
            self.owner = v
        if v := os.environ.get("TOKENLEDGER_TOKEN_PREMINT"):
            self.premint = _parse_int("TOKENLEDGER_TOKEN_PREMINT", v)
        if v := os.environ.get("TOKENLEDGER_TOKEN_CAP"):
            self.cap = _parse_int("TOKENLEDGER_TOKEN_CAP", v)

    def validate(self) -> None:
        if not self.name:
            raise ConfigurationError("token.name cannot be empty")
        if not self.symbol:
            raise ConfigurationError("token.symbol cannot be empty")
        if not self.owner or self.owner == NULL_ADDRESS:
            raise ConfigurationError("token.owner must be set to a non-null address")
        if not 0 <= self.decimals <= MAX_DECIMALS:
            raise ConfigurationError(f"token.decimals must be 0-{MAX_DECIMALS}, got {self.decimals}")
        if self.premint < 0:
            raise ConfigurationError("token.premint cannot be negative")
        if self.cap is not None and self.cap < self.premint:
            raise ConfigurationError(f"token.cap {self.cap} is below premint {self.premint}")


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = str(LOG_LEVEL)
    file_output: bool = bool(LOG_FILE_OUTPUT)
    file_path: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(
            level=data.get("level", str(LOG_LEVEL)),
            file_output=data.get("file_output", bool(LOG_FILE_OUTPUT)),
            file_path=data.get("file_path", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("TOKENLEDGER_LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("TOKENLEDGER_LOG_FILE"):
            self.file_output = True
            self.file_path = v


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


# -----------------------------------------------------------------------
# Top-level unified config
# -----------------------------------------------------------------------

@dataclass
class LedgerConfig:
    """
    Unified ledger configuration.

    Loads every section of config.toml and applies environment variable
    overrides.
    """
    token: TokenSectionConfig = field(default_factory=TokenSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerConfig":
        """Create LedgerConfig from a parsed TOML dict."""
        return cls(
            token=TokenSectionConfig.from_dict(data.get("token", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "LedgerConfig":
        """
        Load configuration from a TOML file.

        Args:
            config_path: Path to config.toml

        Returns:
            LedgerConfig instance
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            try:
                raw = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.token.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """Raise ConfigurationError on invalid values."""
        self.token.validate()
        if self.logging.level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "token": {
                "name": self.token.name,
                "symbol": self.token.symbol,
                "decimals": self.token.decimals,
                "owner": self.token.owner,
                "premint": self.token.premint,
                "cap": self.token.cap,
                "paused": self.token.paused,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
                "file_path": self.logging.file_path,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> LedgerConfig:
    """
    Load and validate ledger configuration.

    Resolution order:
        1. Explicit *path* argument
        2. TOKENLEDGER_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("TOKENLEDGER_CONFIG", "config.toml")

    cfg = LedgerConfig.from_file(path)
    cfg.validate()
    return cfg


def configure_logging(config: LedgerConfig) -> None:
    """Apply the [logging] section to the shared LogManager."""
    from ..logger import LogManager

    LogManager().configure(
        log_level=config.logging.level,
        log_file=Path(config.logging.file_path) if config.logging.file_path else None,
        file_output=config.logging.file_output,
        force=True,
    )
