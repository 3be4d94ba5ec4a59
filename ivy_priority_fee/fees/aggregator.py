# /ivy_priority_fee/fees/aggregator.py
# Top-level fee estimation: sample Jupiter traffic, take a clamped median.
from typing import List, Sequence

from ivy_priority_fee.core.retry import batch_fetch_attempts, MAX_BATCH_FETCH_ATTEMPTS
from ivy_priority_fee.core.exceptions import PriorityFeeError
from ivy_priority_fee.core.logger import get_logger, BATCH_FETCH_FAILURES
from ivy_priority_fee.fees.extractor import extract_priority_fees
from ivy_priority_fee.fees.signatures import fetch_recent_signatures, MAX_SIGNATURES_LIMIT
from ivy_priority_fee.rpc.client import RpcClient

log = get_logger(__name__)

# Jupiter aggregator v6: high, steady transaction volume that reflects what
# ordinary swaps are paying to land.
JUPITER_AGGREGATOR_V6 = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"

# Upper sanity bound on the returned estimate, in micro-lamports per CU.
MAX_PRIORITY_FEE = 5_000_000

def clamped_median(samples: Sequence[int], ceiling: int = MAX_PRIORITY_FEE) -> int:
    """Upper median of ``samples`` (index len // 2 after sorting), capped at ``ceiling``.

    Even-length input takes the higher of the two middle values, no averaging.
    An empty input yields 0.
    """
    if not samples:
        return 0
    ordered = sorted(samples)
    return min(ordered[len(ordered) // 2], ceiling)

class PriorityFeeEstimator:
    """
    Estimates a reasonable priority fee from recent Jupiter transactions.
    """
    def __init__(
        self,
        client: RpcClient,
        address: str = JUPITER_AGGREGATOR_V6,
        signature_limit: int = MAX_SIGNATURES_LIMIT,
        max_attempts: int = MAX_BATCH_FETCH_ATTEMPTS,
    ):
        self.client = client
        self.address = address
        self.signature_limit = signature_limit
        self.max_attempts = max_attempts

    async def _fetch_samples(self, signatures: List[str]) -> List[int]:
        samples: List[int] = []
        async for attempt in batch_fetch_attempts(self.max_attempts):
            with attempt:
                try:
                    samples = await extract_priority_fees(self.client, signatures)
                except PriorityFeeError as e:
                    BATCH_FETCH_FAILURES.labels(type(e).__name__).inc()
                    log.warning(
                        "TRANSACTION_BATCH_FAILED",
                        attempt=attempt.retry_state.attempt_number,
                        max_attempts=self.max_attempts,
                        error=str(e),
                    )
                    raise
        return samples

    async def get_reasonable_priority_fee(self) -> int:
        """
        Returns the clamped upper median priority fee of recent transactions.

        0 means there was nothing to sample. Failure to fetch the signatures,
        or ``max_attempts`` failed transaction batches, raises instead.
        """
        signatures = await fetch_recent_signatures(self.client, self.address, self.signature_limit)
        if not signatures:
            log.info("NO_RECENT_SIGNATURES", address=self.address)
            return 0

        samples = await self._fetch_samples(signatures)
        fee = clamped_median(samples)
        log.info("PRIORITY_FEE_ESTIMATED", signatures=len(signatures), samples=len(samples), fee=fee)
        return fee
