"""
Environment configuration for the BankDash audit service.

Values are read from the process environment, with a .env file (if one is
found) filling in anything not already set.

  BANKDASH_API_URL          base URL of the BankDash backend API
  BANKDASH_API_TOKEN        optional bearer token sent upstream
  BANKDASH_REQUEST_TIMEOUT  upstream request timeout in seconds (default 10)
  BANKDASH_LOG_DIR          directory for rotating log files
  LOG_LEVEL                 DEBUG / INFO / WARNING ... (default INFO)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True), override=False)

DEFAULT_API_URL = "http://localhost:8080/api"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_LOG_DIR = Path.cwd() / "logs"


@dataclass(frozen=True)
class Settings:
    api_url: str
    api_token: Optional[str]
    request_timeout: float
    log_dir: Path
    log_level: str


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_settings() -> Settings:
    """
    Snapshot the current environment into a Settings object.
    """
    return Settings(
        api_url=os.getenv("BANKDASH_API_URL", DEFAULT_API_URL).rstrip("/"),
        api_token=os.getenv("BANKDASH_API_TOKEN") or None,
        request_timeout=_float_env("BANKDASH_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        log_dir=Path(os.getenv("BANKDASH_LOG_DIR") or DEFAULT_LOG_DIR),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
