"""
Configuration & logging tests.

Coverage:
  - LedgerConfig.from_dict / from_file defaults and TOML parsing
  - Environment variable overrides
  - Validation errors
  - LockableToken.from_config unit scaling
  - Log formatter sanitization and format validation
"""

import logging
import os
import sys

import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tokenledger.config import LedgerConfig, load_config
from tokenledger.constants import DEFAULT_DECIMALS, NULL_ADDRESS
from tokenledger.exceptions import ConfigurationError
from tokenledger.logger import LogManager, TerminalSafeFormatter, get_logger
from tokenledger.tokens import LockableToken

OWNER = "0x" + "0a" * 20

SAMPLE_TOML = f"""
[token]
name = "Vesting Token"
symbol = "VST"
decimals = 6
owner = "{OWNER}"
premint = 1000
cap = 5000
paused = true

[logging]
level = "DEBUG"
file_output = false
"""

ENV_VARS = (
    "TOKENLEDGER_CONFIG",
    "TOKENLEDGER_TOKEN_NAME",
    "TOKENLEDGER_TOKEN_SYMBOL",
    "TOKENLEDGER_TOKEN_OWNER",
    "TOKENLEDGER_TOKEN_PREMINT",
    "TOKENLEDGER_TOKEN_CAP",
    "TOKENLEDGER_LOG_LEVEL",
    "TOKENLEDGER_LOG_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(SAMPLE_TOML)
    return path


class TestLedgerConfig:

    def test_defaults(self):
        cfg = LedgerConfig()
        assert cfg.token.decimals == DEFAULT_DECIMALS
        assert cfg.token.premint == 0
        assert cfg.token.cap is None
        assert cfg.token.paused is False

    def test_from_file(self, config_file):
        cfg = LedgerConfig.from_file(str(config_file))
        assert cfg.token.name == "Vesting Token"
        assert cfg.token.symbol == "VST"
        assert cfg.token.decimals == 6
        assert cfg.token.owner == OWNER
        assert cfg.token.premint == 1000
        assert cfg.token.cap == 5000
        assert cfg.token.paused is True
        assert cfg.logging.level == "DEBUG"
        assert cfg.validate()

    def test_missing_file_uses_defaults(self, tmp_path):
        cfg = LedgerConfig.from_file(str(tmp_path / "absent.toml"))
        assert cfg.token.premint == 0

    def test_invalid_toml_raises(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[token\nname = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            LedgerConfig.from_file(str(path))

    def test_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_TOKEN_SYMBOL", "ENV")
        monkeypatch.setenv("TOKENLEDGER_TOKEN_PREMINT", "7")
        monkeypatch.setenv("TOKENLEDGER_LOG_LEVEL", "warning")
        cfg = LedgerConfig.from_file(str(config_file))
        assert cfg.token.symbol == "ENV"
        assert cfg.token.premint == 7
        assert cfg.logging.level == "WARNING"

    def test_non_integer_env_raises(self, config_file, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_TOKEN_CAP", "lots")
        with pytest.raises(ConfigurationError, match="TOKENLEDGER_TOKEN_CAP"):
            LedgerConfig.from_file(str(config_file))

    def test_log_file_env_enables_file_output(self, config_file, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_LOG_FILE", "/tmp/ledger.log")
        cfg = LedgerConfig.from_file(str(config_file))
        assert cfg.logging.file_output is True
        assert cfg.logging.file_path == "/tmp/ledger.log"

    def test_to_dict(self, config_file):
        d = LedgerConfig.from_file(str(config_file)).to_dict()
        assert d["token"]["symbol"] == "VST"
        assert d["logging"]["level"] == "DEBUG"


class TestValidation:

    def _valid(self) -> LedgerConfig:
        return LedgerConfig.from_dict({"token": {"name": "T", "symbol": "T", "owner": OWNER}})

    def test_valid(self):
        assert self._valid().validate()

    def test_null_owner(self):
        cfg = self._valid()
        cfg.token.owner = NULL_ADDRESS
        with pytest.raises(ConfigurationError, match="owner"):
            cfg.validate()

    def test_decimals_out_of_range(self):
        cfg = self._valid()
        cfg.token.decimals = 19
        with pytest.raises(ConfigurationError, match="decimals"):
            cfg.validate()

    def test_cap_below_premint(self):
        cfg = self._valid()
        cfg.token.premint = 10
        cfg.token.cap = 5
        with pytest.raises(ConfigurationError, match="cap"):
            cfg.validate()

    def test_bad_log_level(self):
        cfg = self._valid()
        cfg.logging.level = "LOUD"
        with pytest.raises(ConfigurationError, match="log level"):
            cfg.validate()


class TestLoadConfig:

    def test_path_from_env(self, config_file, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_CONFIG", str(config_file))
        assert load_config().token.symbol == "VST"

    def test_missing_owner_fails_validation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_TOKEN_OWNER", NULL_ADDRESS)
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "absent.toml"))

    def test_token_from_config(self, config_file):
        cfg = load_config(str(config_file))
        token = LockableToken.from_config(cfg, clock=lambda: 0)
        assert token.decimals == 6
        assert token.total_supply == 1000 * 10 ** 6
        assert token.cap == 5000 * 10 ** 6
        assert token.balance_of(OWNER) == 1000 * 10 ** 6
        assert token.is_paused


class TestLogging:

    def test_sanitize_strips_escape_sequences(self):
        raw = "\x1b[31mred\x1b[0m\rline\x07"
        assert TerminalSafeFormatter.sanitize(raw) == "redline"

    def test_sanitize_keeps_tabs_and_newlines(self):
        assert TerminalSafeFormatter.sanitize("a\tb\nc") == "a\tb\nc"

    def test_valid_log_format_kept(self):
        fmt = "%(asctime)s - %(levelname)s - %(message)s"
        assert LogManager.validate_log_format(fmt) == fmt

    def test_malformed_log_format_falls_back(self):
        fmt = "(asctime)s - %(message)s"
        assert LogManager.validate_log_format(fmt) != fmt

    def test_invalid_date_format_falls_back(self):
        assert LogManager.validate_date_format("not a date") != "not a date"
        assert LogManager.validate_date_format("%Y-%m-%d") == "%Y-%m-%d"

    def test_get_logger(self):
        log = get_logger("tokenledger.tests")
        assert isinstance(log, logging.Logger)
        assert LogManager().is_configured

    def test_configure_file_output(self, tmp_path):
        path = tmp_path / "logs" / "ledger.log"
        manager = LogManager()
        manager.configure(log_level="INFO", log_file=path, console_output=False, file_output=True, force=True)
        try:
            get_logger("tokenledger.tests").info("Lock amount=7 \x1b[31mred")
            for handler in logging.getLogger().handlers:
                handler.flush()
            text = path.read_text(encoding="utf-8")
            assert "amount=7 red" in text
            assert "\x1b" not in text
        finally:
            manager.configure(force=True)
