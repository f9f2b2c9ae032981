"""Logging setup for POSPeripherals."""

from __future__ import annotations

import json
import logging
import logging.handlers
from typing import Any, Dict, Optional

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 3


def configure_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """Log to stderr and, optionally, to a rotating file."""
    handlers: list = [logging.StreamHandler()]
    if log_file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_file, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding='utf-8'
            )
        )
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    # Event loop debug chatter
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


def log_json(logger: logging.Logger, level: int, payload: Dict[str, Any]) -> None:
    """Log ``payload`` as one line of compact JSON."""
    logger.log(level, json.dumps(payload, separators=(",", ":"), default=str))
