"""
Reader AI - Logging System
One stdlib logger with two sinks: a rich console and a diagnostic file
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

LOGGER_NAME = "reader_ai"

THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "timestamp": "dim white",
    "header": "bold magenta",
    "config": "dim cyan",
})

# stderr keeps command output on stdout clean
console = Console(theme=THEME, stderr=True)

_LEVEL_STYLES = {
    logging.DEBUG: "timestamp",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


class ConsoleHandler(logging.Handler):
    """
    Renders records on the rich console as "[HH:MM:SS] message".

    Records may carry a `style` (theme name) and a `spaced` flag that puts
    a blank line in front, both passed through `extra=`.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = getattr(record, "style", None) or _LEVEL_STYLES.get(record.levelno, "info")
            stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
            if getattr(record, "spaced", False):
                console.print()
            console.print(
                f"[timestamp][{stamp}][/timestamp] [{style}]{escape(record.getMessage())}[/{style}]",
                highlight=False
            )
        except Exception:
            self.handleError(record)


def setup_logging(
    log_file_path: Path,
    level: str = "INFO",
    log_to_file: bool = True,
    log_to_console: bool = True
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        log_file_path: Diagnostic log file (created with its directory)
        level: Minimum level for the console (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Attach the file sink, which records everything
        log_to_console: Attach the rich console sink
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_to_console:
        console_handler = ConsoleHandler()
        console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
        logger.addHandler(console_handler)

    if log_to_file:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(
            "[%(asctime)s] %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def get_logger() -> logging.Logger:
    """The application logger; console-only until setup_logging() runs."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        logger.addHandler(ConsoleHandler())
    return logger


def log(message: str, level: str = "info", prefix: str = "", style: Optional[str] = None) -> None:
    """
    Log one line.

    Args:
        message: Text to log (never interpreted as rich markup)
        level: info, warning, error or debug
        prefix: Optional emoji shown before the message
        style: Console style override (theme name)
    """
    text = f"{prefix} {message}" if prefix else message
    get_logger().log(
        getattr(logging, level.upper(), logging.INFO),
        text,
        extra={"style": style}
    )


def log_info(message: str, prefix: str = "") -> None:
    log(message, "info", prefix)


def log_success(message: str, prefix: str = "") -> None:
    log(message, "info", prefix or "✅", style="success")


def log_warning(message: str, prefix: str = "") -> None:
    log(message, "warning", prefix or "⚠️")


def log_error(message: str, prefix: str = "") -> None:
    log(message, "error", prefix or "❌")


def log_config(key: str, value: str, indent: int = 0) -> None:
    """One "key: value" line of a configuration listing."""
    log(f"{'   ' * indent}{key}: {value}", style="config")


def log_section(title: str, emoji: str = "📋") -> None:
    """Section title, preceded by a blank console line."""
    get_logger().info(f"{emoji} {title}:", extra={"style": "header", "spaced": True})


def log_startup_banner(version: str, project_name: str) -> None:
    separator = "=" * 60
    logger = get_logger()
    logger.info(separator, extra={"style": "header", "spaced": True})
    logger.info(f"📚 {project_name} - v{version} - Reading Assistant", extra={"style": "header"})
    logger.info(separator, extra={"style": "header"})
