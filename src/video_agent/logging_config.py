"""
Centralized logging configuration for the launcher.

This module provides a single setup_logging function that configures
logging consistently with:
- Console output to stdout at the requested level
- Optional file output to logs/{service_name}.log
- Fresh log file on each start unless LOG_APPEND=1
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional

from video_agent.config import env_bool, env_str

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_HANDLER_MARKER = "_video_agent_handler"
_LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("asyncio", "aiohttp", "urllib3")


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(_LOG_FORMAT, _DATE_FORMAT)


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARKER, True)
    return handler


def _remove_own_handlers(root_logger: logging.Logger) -> None:
    """Close and detach handlers installed by a previous setup_logging call."""
    for handler in list(root_logger.handlers):
        if not getattr(handler, _HANDLER_MARKER, False):
            continue
        root_logger.removeHandler(handler)
        try:
            handler.close()
        except OSError as exc:
            _MODULE_LOGGER.debug("Handler close failed: %s", exc)


def _build_console_handler(level: int) -> logging.Handler:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_build_formatter())
    console_handler.setLevel(level)
    return _mark(console_handler)


def resolve_log_directory(log_dir: Optional[Path] = None) -> Path:
    if log_dir is not None:
        return log_dir.expanduser()
    configured = env_str("VIDEO_AGENT_LOG_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.cwd() / "logs"


def _configure_file_handler(service_name: Optional[str], log_dir: Optional[Path]) -> Optional[logging.Handler]:
    if not service_name:
        return None

    logs_dir = resolve_log_directory(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"{service_name}.log"
    file_mode = "a" if env_bool("LOG_APPEND", or_value=False) else "w"

    handler_cls = getattr(logging.handlers, "WatchedFileHandler", logging.FileHandler)
    file_handler = handler_cls(log_path, mode=file_mode)
    file_handler.setFormatter(_build_formatter())
    file_handler.setLevel(logging.INFO)
    return _mark(file_handler)


def _suppress_noisy_third_parties() -> None:
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(
    service_name: Optional[str] = None,
    *,
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
) -> None:
    """Configure logging for the launcher; calling it again replaces the previous setup."""

    with _config_lock:
        root_logger = logging.getLogger()
        _remove_own_handlers(root_logger)

        root_logger.addHandler(_build_console_handler(level))

        file_handler = _configure_file_handler(service_name, log_dir)
        if file_handler:
            root_logger.addHandler(file_handler)

        root_logger.setLevel(min(level, logging.INFO) if file_handler else level)
        _suppress_noisy_third_parties()


__all__ = ["resolve_log_directory", "setup_logging"]
