# /ivy_priority_fee/rpc/models.py
# JSON-RPC 2.0 envelopes and the Solana payloads the fee pipeline reads.
from typing import Any, Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class RpcRequest(BaseModel):
    jsonrpc: str = "2.0"
    id: int
    method: str
    params: List[Any]

    model_config = ConfigDict(frozen=True)


class RpcErrorObject(BaseModel):
    code: int
    message: str


class SingleResponse(BaseModel, Generic[T]):
    """Response to a single call; its ``id`` is not inspected."""
    result: Optional[T] = None
    error: Optional[RpcErrorObject] = None


class BatchItem(BaseModel, Generic[T]):
    """One entry of a batch response, matched to its request through ``id``."""
    result: Optional[T] = None
    error: Optional[RpcErrorObject] = None
    id: Any = None


class BatchErrorReply(BaseModel):
    """A whole batch answered with one envelope instead of an array."""
    error: Optional[RpcErrorObject] = None


# --- getSignaturesForAddress ---

class SignatureInfo(BaseModel):
    signature: str
    slot: Optional[int] = None
    err: Optional[Any] = None
    block_time: Optional[int] = Field(default=None, alias="blockTime")
    confirmation_status: Optional[str] = Field(default=None, alias="confirmationStatus")


# --- getTransaction ---

class TransactionMeta(BaseModel):
    fee: int = Field(ge=0)
    compute_units_consumed: Optional[int] = Field(default=None, ge=0, alias="computeUnitsConsumed")


class TransactionResult(BaseModel):
    meta: Optional[TransactionMeta] = None
