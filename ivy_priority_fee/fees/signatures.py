# /ivy_priority_fee/fees/signatures.py
from typing import List

from ivy_priority_fee.core.logger import get_logger
from ivy_priority_fee.rpc.client import RpcClient
from ivy_priority_fee.rpc.models import SignatureInfo

log = get_logger(__name__)

# Largest page getSignaturesForAddress will serve.
MAX_SIGNATURES_LIMIT = 1000

async def fetch_recent_signatures(client: RpcClient, address: str, limit: int) -> List[str]:
    """Most recent confirmed signatures for ``address``, newest first as the node returns them."""
    limit = min(limit, MAX_SIGNATURES_LIMIT)
    infos = await client.call_single(
        "getSignaturesForAddress",
        [address, {"commitment": "confirmed", "limit": limit}],
        List[SignatureInfo],
    )
    signatures = [info.signature for info in infos]
    log.debug("SIGNATURES_FETCHED", address=address, limit=limit, count=len(signatures))
    return signatures
