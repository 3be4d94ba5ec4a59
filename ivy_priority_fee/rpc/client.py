# /ivy_priority_fee/rpc/client.py
# Async JSON-RPC client for a Solana node: single calls and batches.
import asyncio
from typing import Any, List, Optional, Sequence, Type, TypeVar, Union

import aiohttp
from pydantic import TypeAdapter, ValidationError

from ivy_priority_fee.core.config import settings
from ivy_priority_fee.core.exceptions import BatchTooLargeError, ProtocolError, RpcError, TransportError
from ivy_priority_fee.core.logger import get_logger, BATCH_ITEM_ERRORS
from ivy_priority_fee.rpc.models import BatchErrorReply, BatchItem, RpcRequest, SingleResponse

log = get_logger(__name__)

T = TypeVar("T")

MAX_RESPONSE_LEN = 100_000_000
SINGLE_CALL_ID = 1
_CHUNK_SIZE = 1 << 16


class RpcClient:
    """
    Talks JSON-RPC 2.0 over HTTP POST to one node endpoint.

    The underlying ``aiohttp.ClientSession`` is created on first use and shared
    by every call made through this client; call ``close()`` when done.
    """

    def __init__(
        self,
        rpc_url: str | None = None,
        timeout_seconds: float | None = None,
        max_response_len: int = MAX_RESPONSE_LEN,
    ):
        self.rpc_url = rpc_url or settings.RPC_URL
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds or settings.RPC_TIMEOUT_SECONDS)
        self.max_response_len = max_response_len
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
            log.info("RPC_CLIENT_CLOSED", rpc_url=self.rpc_url)
        self._session = None

    async def _read_capped(self, resp: aiohttp.ClientResponse) -> bytes:
        if resp.content_length is not None and resp.content_length > self.max_response_len:
            raise TransportError(
                f"response body of {resp.content_length} bytes exceeds limit of {self.max_response_len}",
                status=resp.status,
            )
        body = bytearray()
        async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > self.max_response_len:
                raise TransportError(
                    f"response body exceeds limit of {self.max_response_len} bytes",
                    status=resp.status,
                )
        return bytes(body)

    async def _post(self, payload: Any) -> bytes:
        session = self._get_session()
        try:
            async with session.post(self.rpc_url, json=payload) as resp:
                body = await self._read_capped(resp)
                if resp.status != 200:
                    text = body.decode("utf-8", errors="replace")
                    raise TransportError(f"got status {resp.status}: {text}", status=resp.status, body=text)
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"request to {self.rpc_url} failed: {e!r}") from e

    async def call_single(self, method: str, params: List[Any], result_type: Type[T]) -> T:
        """Perform one call and return its ``result`` parsed as ``result_type``.

        Raises RpcError when the node reports an error and ProtocolError when
        the envelope carries neither a result nor an error.
        """
        request = RpcRequest(id=SINGLE_CALL_ID, method=method, params=params)
        raw = await self._post(request.model_dump())

        try:
            response = SingleResponse[result_type].model_validate_json(raw)
        except ValidationError as e:
            raise ProtocolError(f"{method}: malformed response: {e}") from e

        if response.error is not None:
            raise RpcError(response.error.code, response.error.message, method=method)
        if response.result is None:
            raise ProtocolError(f"{method}: missing result")
        return response.result

    async def call_batch(
        self,
        method: str,
        params_per_item: Sequence[List[Any]],
        result_type: Type[T],
    ) -> List[BatchItem[T]]:
        """Send one request per params entry as a single batch.

        Request ids are 0..n-1 in input order. Items the node answered with an
        error are logged and left out; the rest keep their response order.
        """
        requests = [
            RpcRequest(id=i, method=method, params=params).model_dump()
            for i, params in enumerate(params_per_item)
        ]
        raw = await self._post(requests)

        # pydantic's JSON parser bounds nesting depth and reports it as a ValidationError.
        try:
            reply = TypeAdapter(Union[List[BatchItem[result_type]], BatchErrorReply]).validate_json(raw)
        except ValidationError as e:
            raise ProtocolError(f"{method} batch: malformed response: {e}") from e

        if isinstance(reply, BatchErrorReply):
            if reply.error is not None:
                raise RpcError(reply.error.code, reply.error.message, method=method)
            raise ProtocolError(f"{method} batch: expected a JSON array, got an object")

        return self._collect_batch_items(method, reply, len(requests))

    def _collect_batch_items(self, method: str, items: List[BatchItem[T]], requested: int) -> List[BatchItem[T]]:
        """Apply the batch reply rules: empty means too large, errored items are dropped."""
        if not items and requested:
            raise BatchTooLargeError("batch size too large for destination RPC, try again!")

        out: List[BatchItem[T]] = []
        for item in items:
            if item.error is not None:
                BATCH_ITEM_ERRORS.inc()
                log.warning(
                    "RPC_BATCH_ITEM_ERROR",
                    method=method,
                    id=item.id,
                    code=item.error.code,
                    message=item.error.message,
                )
                continue
            out.append(item)

        log.debug("RPC_BATCH_COMPLETE", method=method, requested=requested, returned=len(items), kept=len(out))
        return out
