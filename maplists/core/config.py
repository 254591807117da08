"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    database_url: str
    worker_port: int = 9000
    request_timeout: float = 10.0
    import_delay_seconds: float = 0.05
    default_city: Optional[str] = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    worker_port = int(os.getenv("WORKER_PORT", "9000"))
    request_timeout = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
    import_delay_seconds = float(os.getenv("IMPORT_DELAY_SECONDS", "0.05"))
    default_city_raw = os.getenv("DEFAULT_CITY")
    default_city = default_city_raw.strip() if default_city_raw and default_city_raw.strip() else None

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if import_delay_seconds < 0:
        logger.warning("IMPORT_DELAY_SECONDS is negative; falling back to no delay.")
        import_delay_seconds = 0.0

    return Settings(
        database_url=database_url,
        worker_port=worker_port,
        request_timeout=request_timeout,
        import_delay_seconds=import_delay_seconds,
        default_city=default_city,
    )
