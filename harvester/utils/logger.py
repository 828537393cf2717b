"""Craigslist Harvester — Logging Setup.

Colored console output on stdout plus a rotating debug log file.
Modules obtain their logger through get_logger().
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# ── Constants ─────────────────────────────────────────────
LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"
LOG_FILE = LOG_DIR / "harvester.log"
MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

# ── ANSI Color Codes ─────────────────────────────────────
COLORS = {
    "DEBUG": "\033[36m",     # Cyan
    "INFO": "\033[32m",      # Green
    "WARNING": "\033[33m",   # Yellow
    "ERROR": "\033[31m",     # Red
    "CRITICAL": "\033[41m",  # Red background
}
RESET = "\033[0m"

_initialized = False
_console_handler: logging.Handler | None = None


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name and timestamp for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        color = COLORS.get(record.levelname, "")
        # Work on a copy so the file handler keeps the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname:<8}{RESET}"
        record.asctime = f"{color}{self.formatTime(record, self.datefmt)}{RESET}"
        return super().format(record)

    def usesTime(self) -> bool:
        return False


def _setup_logging() -> None:
    """Install the console and file handlers on the root logger.

    Idempotent: only the first call has any effect.
    """
    global _initialized, _console_handler
    if _initialized:
        return

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # ── Console Handler (INFO) ───────────────────────────
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(ColoredFormatter(
        fmt="%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(console_handler)

    # ── Rotating File Handler (DEBUG) ────────────────────
    file_handler = RotatingFileHandler(
        filename=str(LOG_FILE),
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(file_handler)

    _console_handler = console_handler
    _initialized = True


def set_console_level(level: str) -> None:
    """Change the console handler's threshold (e.g. "DEBUG", "WARNING").

    Args:
        level: A standard logging level name, case-insensitive.

    Raises:
        ValueError: If the level name is unknown.
    """
    _setup_logging()
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")
    _console_handler.setLevel(numeric)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger, initializing the global handlers first.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        A configured logging.Logger instance.
    """
    _setup_logging()
    return logging.getLogger(name)
