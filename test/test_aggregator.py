# /test/test_aggregator.py
# - Median selection, clamping and the batch retry loop.

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from ivy_priority_fee.core.exceptions import BatchTooLargeError, ProtocolError, TransportError
from ivy_priority_fee.fees.aggregator import (
    JUPITER_AGGREGATOR_V6,
    MAX_PRIORITY_FEE,
    PriorityFeeEstimator,
    clamped_median,
)
from ivy_priority_fee.rpc.client import RpcClient
from ivy_priority_fee.rpc.mock import MockRpcClient

def signatures(n):
    return [{"signature": f"sig{i}"} for i in range(n)]

def tx(item_id, fee, compute_units):
    return {"jsonrpc": "2.0", "result": {"meta": {"fee": fee, "computeUnitsConsumed": compute_units}}, "id": item_id}

# --- clamped_median ---

@pytest.mark.parametrize("samples, expected", [
    ([1, 3, 5], 3),
    ([1, 3, 5, 7], 5),
    ([7, 1, 5, 3], 5),
    ([42], 42),
    ([2, 1], 2),
    ([9_000_000, 9_500_000], 5_000_000),
    ([], 0),
])
def test_clamped_median(samples, expected):
    assert clamped_median(samples) == expected

def test_clamped_median_never_exceeds_ceiling():
    assert clamped_median([MAX_PRIORITY_FEE + 1] * 3) == MAX_PRIORITY_FEE
    assert clamped_median([MAX_PRIORITY_FEE]) == MAX_PRIORITY_FEE

# --- PriorityFeeEstimator ---

@pytest.mark.asyncio
async def test_no_signatures_returns_zero_without_batch():
    client = MockRpcClient(single_results={"getSignaturesForAddress": []})
    estimator = PriorityFeeEstimator(client)

    assert await estimator.get_reasonable_priority_fee() == 0
    assert client.batch_calls == []
    assert client.single_calls == [
        ("getSignaturesForAddress", [JUPITER_AGGREGATOR_V6, {"commitment": "confirmed", "limit": 1000}]),
    ]

@pytest.mark.asyncio
async def test_no_eligible_samples_returns_zero():
    client = MockRpcClient(
        single_results={"getSignaturesForAddress": signatures(3)},
        batch_handler=lambda params: [
            {"jsonrpc": "2.0", "result": {"meta": {"fee": 10000}}, "id": 0},
            tx(1, 10000, 0),
            {"jsonrpc": "2.0", "result": {"meta": None}, "id": 2},
        ],
    )

    assert await PriorityFeeEstimator(client).get_reasonable_priority_fee() == 0

@pytest.mark.asyncio
async def test_returns_upper_median_of_samples():
    client = MockRpcClient(
        single_results={"getSignaturesForAddress": signatures(4)},
        batch_handler=lambda params: [
            tx(0, 5001, 1000),   # 1_000
            tx(1, 5003, 1000),   # 3_000
            tx(2, 5007, 1000),   # 7_000
            tx(3, 5005, 1000),   # 5_000
        ],
    )

    assert await PriorityFeeEstimator(client).get_reasonable_priority_fee() == 5_000

@pytest.mark.asyncio
async def test_estimate_is_clamped():
    client = MockRpcClient(
        single_results={"getSignaturesForAddress": signatures(2)},
        batch_handler=lambda params: [tx(0, 14000, 1000), tx(1, 14500, 1000)],
    )

    assert await PriorityFeeEstimator(client).get_reasonable_priority_fee() == 5_000_000

@pytest.mark.asyncio
async def test_batch_failures_exhaust_after_ten_attempts():
    def always_too_large(params):
        raise BatchTooLargeError("batch size too large for destination RPC, try again!")

    client = MockRpcClient(
        single_results={"getSignaturesForAddress": signatures(5)},
        batch_handler=always_too_large,
    )

    with pytest.raises(BatchTooLargeError):
        await PriorityFeeEstimator(client).get_reasonable_priority_fee()
    assert len(client.batch_calls) == 10

@pytest.mark.asyncio
async def test_last_error_is_surfaced():
    errors = [TransportError("got status 502: bad gateway", status=502)] * 9 + [BatchTooLargeError("last one")]

    def fail_in_sequence(params):
        raise errors.pop(0)

    client = MockRpcClient(
        single_results={"getSignaturesForAddress": signatures(1)},
        batch_handler=fail_in_sequence,
    )

    with pytest.raises(BatchTooLargeError, match="last one"):
        await PriorityFeeEstimator(client).get_reasonable_priority_fee()

@pytest.mark.asyncio
async def test_first_successful_attempt_wins():
    attempts = []

    def flaky(params):
        attempts.append(len(params))
        if len(attempts) < 4:
            raise TransportError("got status 429: slow down", status=429)
        return [tx(i, 6000, 1000) for i in range(len(params))]

    client = MockRpcClient(
        single_results={"getSignaturesForAddress": signatures(3)},
        batch_handler=flaky,
    )

    assert await PriorityFeeEstimator(client).get_reasonable_priority_fee() == 1_000_000
    # Same signatures on every attempt.
    assert attempts == [3, 3, 3, 3]

@pytest.mark.asyncio
async def test_signature_fetch_failure_is_not_retried():
    client = MockRpcClient(single_results={"getSignaturesForAddress": TransportError("got status 500: oops", status=500)})

    with pytest.raises(TransportError):
        await PriorityFeeEstimator(client).get_reasonable_priority_fee()
    assert len(client.single_calls) == 1
    assert client.batch_calls == []

# --- end to end against a fake node ---

class CountingNode:
    def __init__(self):
        self.single_requests = 0
        self.batch_requests = 0

    async def handle(self, request):
        payload = await request.json()
        if isinstance(payload, list):
            self.batch_requests += 1
            return web.json_response([])
        self.single_requests += 1
        return web.json_response({"jsonrpc": "2.0", "result": signatures(3), "id": payload["id"]})

@pytest_asyncio.fixture
async def counting_node():
    fake = CountingNode()
    app = web.Application()
    app.router.add_post("/", fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.url = str(server.make_url("/"))
    yield fake
    await server.close()

@pytest.mark.asyncio
async def test_empty_batch_replies_retry_then_fail(counting_node):
    async with RpcClient(rpc_url=counting_node.url, timeout_seconds=5) as client:
        with pytest.raises(BatchTooLargeError):
            await PriorityFeeEstimator(client).get_reasonable_priority_fee()

    assert counting_node.single_requests == 1
    assert counting_node.batch_requests == 10

@pytest.mark.asyncio
async def test_empty_batch_from_mock_is_retried_not_zero():
    client = MockRpcClient(
        single_results={"getSignaturesForAddress": signatures(2)},
        batch_handler=lambda params: [],
    )

    with pytest.raises(BatchTooLargeError):
        await PriorityFeeEstimator(client).get_reasonable_priority_fee()
    assert len(client.batch_calls) == 10

class NestedReplyNode(CountingNode):
    async def handle(self, request):
        payload = await request.json()
        if isinstance(payload, list):
            self.batch_requests += 1
            return web.Response(text="[" * 200000 + "]" * 200000, content_type="application/json")
        self.single_requests += 1
        return web.json_response({"jsonrpc": "2.0", "result": signatures(2), "id": payload["id"]})

@pytest.mark.asyncio
async def test_unparseable_batch_replies_are_retried_as_protocol_errors():
    fake = NestedReplyNode()
    app = web.Application()
    app.router.add_post("/", fake.handle)
    server = TestServer(app)
    await server.start_server()
    try:
        async with RpcClient(rpc_url=str(server.make_url("/")), timeout_seconds=5) as client:
            with pytest.raises(ProtocolError):
                await PriorityFeeEstimator(client).get_reasonable_priority_fee()
    finally:
        await server.close()

    assert fake.single_requests == 1
    assert fake.batch_requests == 10
