"""Centralized logging configuration for rugbyclaw.

Provides structured logging with console and file output.
Call setup_logging() once at process startup.

Usage:
    # At startup (CLI entry point)
    from rugbyclaw.utilities.logging import setup_logging
    setup_logging()

    # In any module (standard Python pattern)
    import logging
    logger = logging.getLogger(__name__)
    logger.info("[MODULE] Something happened: %s", value)

Environment variables:
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: WARNING)
    LOG_DIR: Directory for log files (default: <cache dir>/logs)
    LOG_FORMAT: "text" or "json" (default: text)
"""

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Track if logging has been configured
_configured = False


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Lets automation ingest CLI logs line by line.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def _get_log_dir() -> Path:
    """Determine log directory."""
    if env_dir := os.getenv("LOG_DIR"):
        return Path(env_dir)

    from rugbyclaw.config import get_cache_dir

    return get_cache_dir() / "logs"


def _get_log_level() -> int:
    """Get log level from environment.

    A CLI keeps stdout for its own output, so the console stays quiet by default.
    """
    level_name = os.getenv("LOG_LEVEL", "WARNING").upper()
    return getattr(logging, level_name, logging.WARNING)


def _get_formatter(use_json: bool = False) -> logging.Formatter:
    """Get the appropriate formatter."""
    if use_json:
        return JSONFormatter()

    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(
    log_level: str | None = None,
    log_dir: str | Path | None = None,
    use_json: bool | None = None,
) -> None:
    """Initialize the logging system.

    Call this once at process startup. Safe to call multiple times
    (subsequent calls are no-ops).

    Args:
        log_level: Override LOG_LEVEL env var
        log_dir: Override LOG_DIR env var
        use_json: Override LOG_FORMAT env var (True for JSON output)
    """
    global _configured
    if _configured:
        return

    level = getattr(logging, (log_level or "").upper(), None) or _get_log_level()
    log_path = Path(log_dir) if log_dir else _get_log_dir()

    if use_json is None:
        use_json = os.getenv("LOG_FORMAT", "text").lower() == "json"

    formatter = _get_formatter(use_json)

    # === Console Handler (stderr: stdout carries command output) ===
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers filter from here
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # File logging is optional: a read-only home must not break the CLI
    try:
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path / "rugbyclaw.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)

        error_handler = RotatingFileHandler(
            log_path / "rugbyclaw_errors.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)

        root_logger.addHandler(file_handler)
        root_logger.addHandler(error_handler)
    except OSError as e:
        root_logger.warning("[STARTUP] File logging disabled (%s): %s", log_path, e)

    # === Quiet Noisy Loggers ===
    for name in ("httpx", "httpcore", "httpcore.connection", "httpcore.http11", "hpack"):
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True

    from rugbyclaw.config import VERSION

    logger = logging.getLogger("rugbyclaw")
    logger.debug("[STARTUP] rugbyclaw %s", VERSION)
    logger.debug("[STARTUP] Log level: %s", logging.getLevelName(level))
    logger.debug("[STARTUP] Log directory: %s", log_path)
    logger.debug("[STARTUP] Log format: %s", "JSON" if use_json else "text")
