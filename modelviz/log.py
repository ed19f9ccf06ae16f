"""Logging configuration for the modelviz engine."""

import logging
import logging.handlers
import sys
from pathlib import Path

import colorlog

# Plain format used for files and non-colored consoles
BASE_LOG_FORMAT = (
    "%(asctime)s %(levelname)8s %(message)s (%(name)s@%(filename)s:%(lineno)d)"
)

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_colors: bool = True,
    enable_file_logging: bool = False,
    log_dir: Path | None = None,
    is_test_env: bool = False,
) -> None:
    """Configure root logging for the engine and the API.

    Args:
        level: Logging level (int or level name such as "INFO")
        format_string: Custom console format string
        use_colors: Whether the console handler uses colorlog
        enable_file_logging: Whether to also write to a log file
        log_dir: Directory for log files (defaults to ./logs or ./logs/test)
        is_test_env: Truncate a single test.log instead of rotating
    """
    if log_dir is None:
        log_dir = Path("logs", "test") if is_test_env else Path("logs")

    handlers = [
        _create_console_handler(
            format_string or _get_console_format(use_colors), use_colors
        )
    ]

    if enable_file_logging:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_create_file_handler(log_dir, is_test_env))

    logging.basicConfig(level=level, handlers=handlers, force=True)


def _get_console_format(use_colors: bool) -> str:
    if not use_colors:
        return BASE_LOG_FORMAT
    return (
        "%(asctime)s %(log_color)s%(levelname)8s%(reset)s %(message)s "
        "\033[90m(%(name)s@%(filename)s:%(lineno)d)\033[0m"
    )


def _create_console_handler(format_string: str, use_colors: bool) -> logging.Handler:
    """Build the stdout handler, colored when requested."""
    handler = logging.StreamHandler(sys.stdout)
    formatter: logging.Formatter
    if use_colors:
        formatter = colorlog.ColoredFormatter(
            format_string,
            datefmt="%m-%d %H:%M:%S",
            log_colors=LOG_COLORS,
            style="%",
        )
    else:
        formatter = logging.Formatter(format_string, datefmt="%m-%d %H:%M:%S")
    handler.setFormatter(formatter)
    return handler


def _create_file_handler(log_dir: Path, is_test_env: bool) -> logging.Handler:
    """Build the file handler: truncated in tests, rotated otherwise."""
    handler: logging.Handler
    if is_test_env:
        handler = logging.FileHandler(log_dir / "test.log", mode="w")
    else:
        handler = logging.handlers.RotatingFileHandler(
            log_dir / "modelviz.log",
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=4,
            encoding="utf-8",
        )
    handler.setFormatter(logging.Formatter(BASE_LOG_FORMAT, datefmt="%m-%d %H:%M:%S"))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name."""
    return logging.getLogger(name)


def setup_test_logging(level: int = logging.DEBUG) -> None:
    """Console plus a per-run test.log that is overwritten each session."""
    setup_logging(level=level, enable_file_logging=True, is_test_env=True)
