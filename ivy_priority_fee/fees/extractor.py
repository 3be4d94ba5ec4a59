# /ivy_priority_fee/fees/extractor.py
# Per-transaction priority fees from getTransaction results.
from typing import List, Optional, Sequence

from ivy_priority_fee.core.logger import get_logger
from ivy_priority_fee.rpc.client import RpcClient
from ivy_priority_fee.rpc.models import TransactionMeta, TransactionResult

log = get_logger(__name__)

# Base fee charged per signature. Every sampled transaction is assumed to
# carry exactly one signature.
BASE_FEE_LAMPORTS_PER_SIGNATURE = 5000
MICRO_LAMPORTS_PER_LAMPORT = 1_000_000

GET_TRANSACTION_CONFIG = {
    "commitment": "confirmed",
    "encoding": "json",
    "maxSupportedTransactionVersion": 0,
}

def compute_priority_fee(meta: TransactionMeta) -> Optional[int]:
    """
    Priority fee paid by one transaction, in micro-lamports per compute unit.

    Returns None when the transaction cannot contribute a sample: it consumed
    no compute units, or its total fee is below the one-signature base fee.
    """
    compute_units = meta.compute_units_consumed or 0
    if compute_units <= 0:
        return None

    if meta.fee < BASE_FEE_LAMPORTS_PER_SIGNATURE:
        log.warning(
            "FEE_BELOW_BASE_FEE_SKIPPED",
            fee=meta.fee,
            base_fee=BASE_FEE_LAMPORTS_PER_SIGNATURE,
            compute_units=compute_units,
        )
        return None

    return ((meta.fee - BASE_FEE_LAMPORTS_PER_SIGNATURE) * MICRO_LAMPORTS_PER_LAMPORT) // compute_units

async def extract_priority_fees(client: RpcClient, signatures: Sequence[str]) -> List[int]:
    """Fetch ``signatures`` in one getTransaction batch and derive a fee sample from each."""
    items = await client.call_batch(
        "getTransaction",
        [[signature, dict(GET_TRANSACTION_CONFIG)] for signature in signatures],
        TransactionResult,
    )

    fees: List[int] = []
    for item in items:
        # Items are judged on their own content; response order is not trusted.
        if item.error is not None or item.result is None or item.result.meta is None:
            continue
        fee = compute_priority_fee(item.result.meta)
        if fee is None:
            continue
        fees.append(fee)

    log.info("PRIORITY_FEES_EXTRACTED", requested=len(signatures), returned=len(items), samples=len(fees))
    return fees
