# /ivy_priority_fee/core/config_validator.py
# Run at startup to validate settings before the listener binds.
from urllib.parse import urlparse

from ivy_priority_fee.core.config import settings
from ivy_priority_fee.core.logger import log

def validate(config=settings):
    log.info("--- CONFIG VALIDATION START ---")
    errors = []

    url = urlparse(config.RPC_URL or "")
    if url.scheme not in ("http", "https") or not url.netloc:
        errors.append(f"RPC_URL must be an http(s) URL, got {config.RPC_URL!r}")
    if config.RPC_TIMEOUT_SECONDS <= 0:
        errors.append("RPC_TIMEOUT_SECONDS must be positive")
    if config.METRICS_PORT is not None and not 0 < config.METRICS_PORT < 65536:
        errors.append(f"METRICS_PORT out of range: {config.METRICS_PORT}")

    if errors:
        for error in errors:
            log.critical(error)
        raise ValueError("System configuration is incomplete. Halting.")

    log.info("--- CONFIG VALIDATION PASSED ---", rpc_url=config.RPC_URL)

if __name__ == "__main__":
    validate()
