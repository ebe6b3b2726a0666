"""
tokenledger Logging
===================

Shared logging setup for the token ledger. Console output goes through a
`rich` handler with ledger-specific highlighting; an optional rotating file
handler keeps a plain-text copy. Every line passes through
``TerminalSafeFormatter`` because account names and reasons are caller input.

Usage:
    >>> from tokenledger.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Token deployed")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_DATE_FORMAT,
    LOG_FILE_OUTPUT,
    LOG_FORMAT,
    LOG_LEVEL,
    LOG_MAX_FILE_SIZE,
)

LOG_FILE_PATH = Path.cwd() / "logs" / "tokenledger.log"

LEDGER_THEME = Theme(
    {
        "ledger.address":        "cyan",
        "ledger.amount":         "bold white",
        "ledger.arrow":          "bold yellow",
        "ledger.level_critical": "bold red reverse",
        "ledger.level_debug":    "bold dim",
        "ledger.level_error":    "bold red",
        "ledger.level_info":     "bold green",
        "ledger.level_warning":  "bold yellow",
        "ledger.logger_name":    "magenta",
        "ledger.reason":         "dim cyan",
        "ledger.state":          "bold magenta",
        "ledger.tag":            "bold magenta",
        "ledger.timestamp":      "bold cyan",
    }
)


def _warn(message: str) -> None:
    # Logging is not usable yet while its own settings are being checked
    stamp = time.strftime(str(LOG_DATE_FORMAT.default()))
    print(f"{stamp} - tokenledger.logger - {message}", file=sys.stderr)


class TerminalSafeFormatter(logging.Formatter):
    """Formatter that strips ANSI escapes and control characters (tab and newline survive)."""

    _unsafe_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"      # CSI sequences
        r"|\x1b[@-Z\\-_]"               # lone ESC + final byte
        r"|[\x00-\x08\x0B-\x1F\x7F]"    # C0 controls incl. CR, DEL
    )

    @classmethod
    def sanitize(cls, text: str) -> str:
        return cls._unsafe_re.sub("", text) if text else text

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class LedgerLogHighlighter(RegexHighlighter):
    """Rich highlighter for token ledger log lines."""

    base_style = "ledger."
    highlights = [
        r"(?P<arrow>(\-\->)|(<--)|(→))",
        r"(?P<address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<reason>\breason=[0-9a-f]{8,}…?)",
        r"(?P<amount>\bamount=\d+\b)",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<state>\b(PAUSED|UNPAUSED|FROZEN|UNFROZEN)\b)",
        r"(?P<tag>\[.*?\])",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


class LogManager:
    """
    Process-wide logging configuration (singleton).

    ``configure`` installs handlers on the root logger once; pass
    ``force=True`` to replace them, e.g. after loading config.toml.
    """

    _instance: Optional["LogManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._configured = False
        return cls._instance

    # ── Setting validation ────────────────────────────────────────────

    # "(name)s" fields; each must be preceded by "%"
    _field_re = re.compile(r"\([A-Za-z_]\w*\)[A-Za-z]")

    @classmethod
    def validate_log_format(cls, log_format: str) -> str:
        """Return *log_format* if usable, else the default format."""
        fallback = str(LOG_FORMAT.default())
        if not log_format:
            return fallback
        log_format = str(log_format)

        stray = [m.group() for m in cls._field_re.finditer(log_format)
                 if m.start() == 0 or log_format[m.start() - 1] != "%"]
        if stray:
            _warn(f"Log format has fields without '%': {stray}. Using default.")
            return fallback

        record = logging.LogRecord("check", logging.INFO, "", 0, "check", (), None)
        try:
            logging.Formatter(fmt=log_format).format(record)
        except (ValueError, KeyError, TypeError) as e:
            _warn(f"Log format rejected: {e}. Using default.")
            return fallback
        return log_format

    @staticmethod
    def validate_date_format(date_format: str) -> str:
        """Return *date_format* if it holds at least one strftime directive, else the default."""
        fallback = str(LOG_DATE_FORMAT.default())
        if not date_format:
            return fallback
        date_format = str(date_format)

        if not re.search(r"%[EO]?[-_0^#]*[A-Za-z]", date_format):
            _warn(f"Date format {date_format!r} has no strftime directive. Using default.")
            return fallback
        try:
            time.strftime(date_format)
        except ValueError as e:
            _warn(f"Date format rejected: {e}. Using default.")
            return fallback
        return date_format

    # ── Handlers ──────────────────────────────────────────────────────

    @staticmethod
    def _console_handler(formatter: logging.Formatter) -> logging.Handler:
        if not LOG_CONSOLE_HIGHLIGHTING:
            handler: logging.Handler = logging.StreamHandler(sys.stdout)
        else:
            handler = RichHandler(
                console=Console(theme=LEDGER_THEME, highlight=False),
                highlighter=LedgerLogHighlighter(),
                keywords=[],
                rich_tracebacks=True,
                show_time=False,
                show_level=False,
                show_path=False,
                markup=False,
            )
        handler.setFormatter(formatter)
        return handler

    @staticmethod
    def _file_handler(formatter: logging.Formatter, path: Path) -> logging.Handler:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            filename=str(path),
            maxBytes=LOG_MAX_FILE_SIZE,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        return handler

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
        force: bool = False,
    ) -> None:
        """
        Install handlers on the root logger.

        Args:
            log_level: Level name; defaults to LOG_LEVEL from .env
            log_file: Rotating log file path; defaults to logs/tokenledger.log
            console_output: Attach the console handler
            file_output: Attach the file handler; defaults to LOG_FILE_OUTPUT
            force: Replace an existing configuration
        """
        with self._lock:
            if self._configured and not force:
                return

            level = getattr(logging, str(log_level or LOG_LEVEL).upper(), logging.INFO)

            # Timestamps are UTC regardless of host timezone
            formatter = TerminalSafeFormatter(
                fmt=self.validate_log_format(LOG_FORMAT),
                datefmt=self.validate_date_format(LOG_DATE_FORMAT) + " UTC",
            )
            formatter.converter = time.gmtime

            handlers: List[logging.Handler] = []
            if console_output:
                handlers.append(self._console_handler(formatter))
            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)
            if file_output:
                handlers.append(self._file_handler(formatter, log_file or LOG_FILE_PATH))

            root = logging.getLogger()
            root.handlers.clear()
            root.setLevel(level)
            for handler in handlers:
                handler.setLevel(level)
                root.addHandler(handler)

            self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


def get_logger(name: str) -> logging.Logger:
    """Module-level accessor; configures logging on first use."""
    return LogManager().get_logger(name)
