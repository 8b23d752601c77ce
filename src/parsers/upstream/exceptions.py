from src.parsers.errors import ScreenerError


class UpstreamError(ScreenerError):
    pass


class TransportError(UpstreamError):
    """Non-success HTTP status, network failure or undecodable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RpcError(UpstreamError):
    """Well-formed JSON-RPC error envelope."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class UpstreamTimeoutError(UpstreamError, TimeoutError):
    pass
