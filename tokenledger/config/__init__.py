"""
tokenledger Configuration

Loads config.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    LedgerConfig,
    LoggingSectionConfig,
    TokenSectionConfig,
    configure_logging,
    load_config,
)

__all__ = [
    "LedgerConfig",
    "LoggingSectionConfig",
    "TokenSectionConfig",
    "configure_logging",
    "load_config",
]
