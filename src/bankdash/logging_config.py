"""
Logging configuration for the BankDash audit service.

Everything the service logs lives under the "bankdash" logger namespace
(bankdash.api.*, bankdash.audit.*, bankdash.client), so one call to
setup_logging() covers it:

- the directory and level come from BANKDASH_LOG_DIR and LOG_LEVEL via
  bankdash.config, read at call time so tests can point them elsewhere;
- records go to a rotating bankdash.log, with warnings and errors echoed to
  the console (per-service fetch failures show up there);
- httpx's own per-request INFO lines are silenced because BankDashClient
  already logs its upstream calls.

Calling setup_logging() again replaces the handlers rather than stacking them.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from bankdash.config import get_settings

LOG_FILE_NAME = "bankdash.log"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

SERVICE_LOGGER = "bankdash"


def _service_handlers(log_file: Path, level: int) -> List[logging.Handler]:
    """
    Rotating file at ``level`` plus a console echo for WARNING and above.
    """
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    handlers: List[logging.Handler] = [
        RotatingFileHandler(log_file, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"),
        logging.StreamHandler(),
    ]
    for handler, handler_level in zip(handlers, (level, logging.WARNING)):
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
    return handlers


def _replace_handlers(logger: logging.Logger, handlers: List[logging.Handler]) -> None:
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)


def setup_logging(log_dir: Optional[Path] = None, log_level: Optional[str] = None) -> Path:
    """
    Configure the root level and the "bankdash" service logger.

    Returns the path of the log file in use.
    """
    settings = get_settings()
    directory = Path(log_dir or settings.log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    log_file = directory / LOG_FILE_NAME
    service_logger = logging.getLogger(SERVICE_LOGGER)
    service_logger.setLevel(level)
    _replace_handlers(service_logger, _service_handlers(log_file, level))

    # httpx logs every request at INFO; the client already does that
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return log_file


def get_logger(name: str) -> logging.Logger:
    """
    Convenience wrapper to get a named logger.
    """
    return logging.getLogger(name)
