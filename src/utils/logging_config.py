"""
NetCtl Logging Configuration

Provides centralized logging setup for consistent log formatting
across the CLI and the web API.

Usage:
    from utils.logging_config import setup_logging
    setup_logging(level="DEBUG", log_file="~/.local/share/netctl/netctl.log")

Library modules just use logging.getLogger(__name__).
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional, Union

_initialized = False
_lock = threading.Lock()

DEFAULT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DEBUG_FORMAT = "%(asctime)s | %(name)s:%(lineno)d | %(levelname)s | %(message)s"

LEVEL_COLORS = {
    'DEBUG': '\033[36m',     # Cyan
    'INFO': '\033[32m',      # Green
    'WARNING': '\033[33m',   # Yellow
    'ERROR': '\033[31m',     # Red
    'CRITICAL': '\033[35m',  # Magenta
}
RESET = '\033[0m'

NOISY_LOGGERS = ['urllib3', 'werkzeug', 'flask', 'PIL', 'reportlab']


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for terminal output."""

    def __init__(self, fmt=None, datefmt=None, use_colors=True, stream=None):
        super().__init__(fmt, datefmt)
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record):
        if not self.use_colors or record.levelname not in LEVEL_COLORS:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{LEVEL_COLORS[original]}{original}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def parse_level(level: Union[int, str]) -> int:
    """Accept logging.INFO or "info"; unknown names fall back to INFO"""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    use_colors: bool = True,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
    force: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level, numeric or by name
        log_file: Optional file path for a rotating log
        use_colors: Enable colored output on a terminal
        max_bytes: Max log file size before rotation
        backup_count: Number of rotated files to keep
        force: Reconfigure even if already set up
    """
    global _initialized

    with _lock:
        if _initialized and not force:
            return

        numeric = parse_level(level)
        log_format = DEBUG_FORMAT if numeric <= logging.DEBUG else DEFAULT_FORMAT

        root_logger = logging.getLogger()
        root_logger.setLevel(numeric)
        root_logger.handlers.clear()

        # stderr keeps stdout clean for CSV/PDF piped out of the CLI
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric)
        console_handler.setFormatter(ColoredFormatter(log_format, use_colors=use_colors))
        root_logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file).expanduser()
            try:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    log_path,
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                )
                file_handler.setLevel(numeric)
                file_handler.setFormatter(logging.Formatter(log_format))
                root_logger.addHandler(file_handler)
            except OSError as e:
                root_logger.warning(f"Cannot write log file {log_path}: {e}")

        for lib_name in NOISY_LOGGERS:
            logging.getLogger(lib_name).setLevel(logging.WARNING)

        _initialized = True


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger, configuring defaults on first use.

    Args:
        name: Logger name (typically __name__)
    """
    if not _initialized:
        setup_logging()
    return logging.getLogger(name)
