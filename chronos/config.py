import os

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://api.cron-job.org"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 1000

CRON_JOB_ORG_API_KEY = os.getenv("CRON_JOB_ORG_API_KEY", "")
CRON_JOB_ORG_BASE_URL = os.getenv("CRON_JOB_ORG_BASE_URL", DEFAULT_BASE_URL)
CRON_JOB_ORG_TIMEOUT_MS = int(os.getenv("CRON_JOB_ORG_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS)))
CRON_JOB_ORG_RETRY_ATTEMPTS = int(os.getenv("CRON_JOB_ORG_RETRY_ATTEMPTS", str(DEFAULT_RETRY_ATTEMPTS)))
CRON_JOB_ORG_RETRY_DELAY_MS = int(os.getenv("CRON_JOB_ORG_RETRY_DELAY_MS", str(DEFAULT_RETRY_DELAY_MS)))
CRON_JOB_ORG_DEBUG = os.getenv("CRON_JOB_ORG_DEBUG", "").lower() in ("1", "true", "yes")

# Key callers of the control plane send in X-API-Key; unrelated to the provider key
CONTROL_PLANE_API_KEY = os.getenv("API_KEY", "dev-key")


class ClientConfig(BaseModel):
    """Immutable settings shared by every call a client makes."""

    model_config = ConfigDict(frozen=True)

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    retry_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=1)
    retry_delay_ms: int = Field(default=DEFAULT_RETRY_DELAY_MS, ge=0)
    debug: bool = False


def client_config_from_env() -> ClientConfig:
    return ClientConfig(
        api_key=CRON_JOB_ORG_API_KEY,
        base_url=CRON_JOB_ORG_BASE_URL,
        timeout_ms=CRON_JOB_ORG_TIMEOUT_MS,
        retry_attempts=CRON_JOB_ORG_RETRY_ATTEMPTS,
        retry_delay_ms=CRON_JOB_ORG_RETRY_DELAY_MS,
        debug=CRON_JOB_ORG_DEBUG,
    )
