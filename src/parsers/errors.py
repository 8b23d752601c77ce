"""Error taxonomy shared by the upstream client, analyzers and operations."""


class ScreenerError(Exception):
    pass


class ConfigError(ScreenerError):
    pass


class ValidationError(ScreenerError, ValueError):
    """Malformed or out-of-range argument. Never retried."""


class AccountNotFoundError(ScreenerError):
    """Upstream has no account at the requested address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Account not found: {address}")
        self.address = address


class ComputationError(ScreenerError):
    """Inputs were well-formed but the metric cannot be derived from them."""


class InvalidPoolError(ComputationError):
    pass


class AmbiguousReserveError(ComputationError):
    pass
