"""
Centralized logging configuration for iTerm MCP
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .env_config import config as env_config

# Attributes present on every LogRecord; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    use_json: Optional[bool] = None,
    file_enabled: bool = True,
) -> None:
    """
    Setup centralized logging configuration

    Console output always goes to stderr; stdout carries the MCP protocol.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        use_json: Use JSON formatting for console logs
        file_enabled: Enable file logging
    """
    if log_level is None:
        log_level = env_config.effective_log_level
    if log_file is None:
        log_file = Path(env_config.ITERM_MCP_LOG_FILE)
    if use_json is None:
        use_json = env_config.ITERM_MCP_LOG_JSON

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    if use_json:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - [iterm-mcp] %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(console_handler)

    file_error = None
    if file_enabled:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"  # 10MB
            )
        except OSError as e:
            file_error = e
        else:
            file_handler.setLevel(numeric_level)
            # Always use structured format for files
            file_handler.setFormatter(StructuredFormatter())
            root_logger.addHandler(file_handler)

    configure_module_loggers()

    logger = logging.getLogger(__name__)
    if file_error is not None:
        logger.warning(
            f"Unable to write to log file at {log_file}, falling back to console logging: {file_error}"
        )
    logger.info(
        "Logging configured",
        extra={
            "log_level": log_level,
            "log_file": str(log_file) if file_enabled and file_error is None else None,
            "use_json": use_json,
        },
    )


def configure_module_loggers() -> None:
    """Quiet down noisy libraries"""
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("mcp").setLevel(logging.WARNING)


def set_log_level(log_level: str) -> None:
    """Change the level of the root logger and its handlers after setup"""
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers:
        handler.setLevel(numeric_level)
