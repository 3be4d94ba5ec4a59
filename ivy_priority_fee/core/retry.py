# /ivy_priority_fee/core/retry.py
# Retry policies for node calls.
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_none
from ivy_priority_fee.core.exceptions import PriorityFeeError

MAX_BATCH_FETCH_ATTEMPTS = 10

def batch_fetch_attempts(max_attempts: int = MAX_BATCH_FETCH_ATTEMPTS) -> AsyncRetrying:
    """Bounded attempt loop for the getTransaction batch.

    No wait between attempts and no parameter changes. After the last attempt
    the most recent error is re-raised unchanged.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_none(),
        retry=retry_if_exception_type(PriorityFeeError),
        reraise=True,
    )
