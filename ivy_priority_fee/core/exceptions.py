# /ivy_priority_fee/core/exceptions.py


class PriorityFeeError(Exception):
    """Base class for every failure of the fee estimation pipeline."""
    pass


class TransportError(PriorityFeeError):
    """The node could not be reached, answered non-200, or sent too much data."""

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body


class ProtocolError(PriorityFeeError):
    """The node answered with JSON we cannot interpret."""
    pass


class RpcError(PriorityFeeError):
    """The node explicitly reported an error for a call."""

    def __init__(self, code: int, message: str, method: str | None = None):
        prefix = f"{method} error" if method else "rpc error"
        super().__init__(f"{prefix} (code {code}): {message}")
        self.code = code
        self.message = message
        self.method = method


class BatchTooLargeError(PriorityFeeError):
    """A non-empty batch came back empty; the node likely rejected its size."""
    pass
