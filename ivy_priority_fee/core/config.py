# /ivy_priority_fee/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fixed listen address; not configurable.
LISTEN_HOST = "127.0.0.1"
LISTEN_PORT = 43278

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"

class Settings(BaseSettings):
    # Node endpoint
    RPC_URL: str = DEFAULT_RPC_URL
    RPC_TIMEOUT_SECONDS: float = 60.0

    # Operational Settings
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str | None = None
    METRICS_PORT: int | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

try:
    settings = Settings()
except Exception as e:
    # Late import to avoid circular dependency only for logging the failure
    try:
        from ivy_priority_fee.core.logger import get_logger, configure_logging
        configure_logging()
        log = get_logger("IVY.Config")
        log.critical("FAILED_TO_LOAD_SETTINGS", error=str(e))
    except Exception:
        print("FAILED_TO_LOAD_SETTINGS", e)
    # In a container, a hard exit is often appropriate if config fails.
    raise SystemExit(1)
