"""Logging setup for LinearTV with file and console output"""

import logging
import logging.handlers
import sys
from pathlib import Path

DEFAULT_LOG_DIR = Path("logs")
DEFAULT_LOG_FILE = "lineartv.log"

# Third-party loggers that drown the playout log below WARNING
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "uvicorn.access")


def parse_size(size: str, default: int = 10 * 1024 * 1024) -> int:
    """
    Parse a human size string ("10MB", "512KB", "1GB") into bytes.

    Args:
        size: Size string from configuration
        default: Value returned when the string cannot be parsed

    Returns:
        Size in bytes
    """
    units = {"KB": 1024, "MB": 1024 * 1024, "GB": 1024 * 1024 * 1024}
    value = size.strip().upper()
    for suffix, factor in units.items():
        if value.endswith(suffix):
            try:
                return int(value[: -len(suffix)]) * factor
            except ValueError:
                return default
    try:
        return int(value)
    except ValueError:
        return default


def _log_file_path(file_name: str | None, directory: Path | None) -> Path:
    """Where the rotating log lives; an explicit directory wins over the file's own."""
    path = Path(file_name or DEFAULT_LOG_FILE)
    if directory is not None:
        return Path(directory) / path.name
    if path.parent == Path("."):
        return DEFAULT_LOG_DIR / path.name
    return path


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S")
    )
    return handler


def _file_handler(path: Path, level: int, fmt: str, max_bytes: int, backups: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=max_bytes,
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file_name: str | None = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_format: str | None = None,
    log_directory: Path | None = None,
) -> logging.Logger:
    """
    Configure the root logger for the server process.

    Replaces any handlers already on the root logger with a stdout handler
    and a size-rotated file. Database and access loggers are held at
    WARNING unless the level is DEBUG.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file_name: Log file name or path; a bare name goes under logs/
        log_to_console: Attach the stdout handler
        log_to_file: Attach the rotating file handler
        max_bytes: Rotate after this many bytes
        backup_count: Rotated files kept
        log_format: Format of file records
        log_directory: Directory overriding the one in log_file_name

    Returns:
        The root logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    fmt = log_format or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_to_console:
        root.addHandler(_console_handler(level))

    log_path = None
    if log_to_file:
        log_path = _log_file_path(log_file_name, log_directory)
        root.addHandler(_file_handler(log_path, level, fmt, max_bytes, backup_count))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    if log_path is not None:
        root.info(f"Logging at {log_level.upper()} to {log_path} ({backup_count} backups)")
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""
    return logging.getLogger(name)
