# /ivy_priority_fee/core/logger.py
import logging
import uuid
import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars
import sentry_sdk
from prometheus_client import Counter
from ivy_priority_fee.core.config import settings

# --- Prometheus Metrics ---
FEE_REQUESTS = Counter("ivy_fee_requests_total", "Priority fee estimates served", ["outcome"])
BATCH_ITEM_ERRORS = Counter("ivy_fee_batch_item_errors_total", "getTransaction items answered with an error")
BATCH_FETCH_FAILURES = Counter("ivy_fee_batch_fetch_failures_total", "Failed transaction batch attempts", ["error"])
ERRORS_LOGGED = Counter("ivy_fee_errors_logged_total", "Total number of errors logged", ["level"])

_COUNTED_LEVELS = {"warning", "error", "critical"}

def count_errors(logger, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that feeds ERRORS_LOGGED.

    Must run after ``add_log_level`` so ``event_dict["level"]`` is set.
    """
    level = event_dict.get("level", method_name)
    if level in _COUNTED_LEVELS:
        ERRORS_LOGGED.labels(level).inc()
    return event_dict

def configure_logging():
    if settings.SENTRY_DSN:
        sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=1.0)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            count_errors,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(settings.LOG_LEVEL.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

def get_logger(name: str):
    return structlog.get_logger(name)

def bind_request_id(request_id: str | None = None) -> str:
    """Start a fresh logging context for one inbound request."""
    request_id = request_id or uuid.uuid4().hex
    clear_contextvars()
    bind_contextvars(request_id=request_id)
    return request_id

configure_logging()
log = get_logger("IVY.System")
