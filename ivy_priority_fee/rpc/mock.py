# /ivy_priority_fee/rpc/mock.py
# - Test implementation of RpcClient.
# - Lets the fee pipeline run without a node.

from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import TypeAdapter

from ivy_priority_fee.core.logger import get_logger
from ivy_priority_fee.rpc.client import RpcClient
from ivy_priority_fee.rpc.models import BatchItem

log = get_logger(__name__)

class MockRpcClient(RpcClient):
    """
    A mock RpcClient that answers from canned data instead of the network.

    ``single_results`` maps a method name to the raw JSON result (or an
    exception to raise). ``batch_handler`` receives the params list of a batch
    and returns the raw batch items, or raises.
    """
    def __init__(
        self,
        single_results: Optional[Dict[str, Any]] = None,
        batch_handler: Optional[Callable[[Sequence[List[Any]]], List[dict]]] = None,
    ):
        super().__init__(rpc_url="http://mock.invalid")
        self.single_results = single_results or {}
        self.batch_handler = batch_handler
        self.single_calls: List[tuple] = []
        self.batch_calls: List[tuple] = []
        log.info("MOCK_RPC_CLIENT_INITIALIZED")

    async def call_single(self, method: str, params: List[Any], result_type):
        self.single_calls.append((method, params))
        result = self.single_results[method]
        if isinstance(result, Exception):
            log.error("MOCK_SINGLE_CALL_FORCED_FAILURE", method=method)
            raise result
        return TypeAdapter(result_type).validate_python(result)

    async def call_batch(self, method: str, params_per_item: Sequence[List[Any]], result_type):
        self.batch_calls.append((method, list(params_per_item)))
        if self.batch_handler is None:
            raise AssertionError(f"unexpected batch call to {method}")
        raw_items = self.batch_handler(params_per_item)
        items = TypeAdapter(List[BatchItem[result_type]]).validate_python(raw_items)
        return self._collect_batch_items(method, items, len(params_per_item))
