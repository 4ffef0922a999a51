import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .source import DEFAULT_CHAINLIST_URL
from .store import DEFAULT_DATA_FILE

DEFAULT_CATALOG_MAX_AGE_SECONDS = 7 * 24 * 60 * 60


@dataclass
class Config:
    chainlist_url: str = DEFAULT_CHAINLIST_URL
    data_path: Optional[str] = None
    catalog_max_age_seconds: int = DEFAULT_CATALOG_MAX_AGE_SECONDS
    probe_timeout: float = 5.0
    fallback_delay: float = 5.0
    request_timeout: int = 10
    max_retries: int = 1
    backoff_seconds: float = 0.5
    log_level: str = "WARNING"

    @property
    def catalog_max_age(self) -> timedelta:
        return timedelta(seconds=self.catalog_max_age_seconds)

    @property
    def catalog_path(self) -> str:
        return self.data_path or os.path.join(os.getcwd(), DEFAULT_DATA_FILE)


def load_config() -> Config:
    """Load configuration from environment variables."""
    chainlist_url = os.getenv("CHAINLIST_URL", DEFAULT_CHAINLIST_URL).strip()
    data_path = (os.getenv("RPC_DATA_PATH") or "").strip() or None
    max_age = int(os.getenv("CATALOG_MAX_AGE_SECONDS", str(DEFAULT_CATALOG_MAX_AGE_SECONDS)))
    probe_timeout = float(os.getenv("PROBE_TIMEOUT_SECONDS", "5"))
    fallback_delay = float(os.getenv("FALLBACK_DELAY_SECONDS", "5"))
    timeout = int(os.getenv("REQUEST_TIMEOUT", "10"))
    max_retries = int(os.getenv("REQUEST_RETRIES", "1"))
    backoff = float(os.getenv("REQUEST_BACKOFF_SECONDS", "0.5"))
    log_level = os.getenv("LOG_LEVEL", "WARNING").strip().upper()

    if max_age < 0:
        raise ValueError("CATALOG_MAX_AGE_SECONDS must be >= 0.")
    if probe_timeout <= 0:
        raise ValueError("PROBE_TIMEOUT_SECONDS must be > 0.")
    if fallback_delay < 0:
        raise ValueError("FALLBACK_DELAY_SECONDS must be >= 0.")

    return Config(
        chainlist_url=chainlist_url,
        data_path=data_path,
        catalog_max_age_seconds=max_age,
        probe_timeout=probe_timeout,
        fallback_delay=fallback_delay,
        request_timeout=timeout,
        max_retries=max_retries,
        backoff_seconds=backoff,
        log_level=log_level,
    )
