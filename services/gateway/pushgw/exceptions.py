"""Errors raised by the push gateway core and its HTTP boundary."""


class PushGatewayError(Exception):
    """Base class for gateway errors scoped to a single request."""


class InvalidRequest(PushGatewayError):
    """Required identifying fields were missing from a request body."""

    def __init__(self, *fields: str) -> None:
        self.fields = fields
        super().__init__(f"{' and '.join(fields)} are required")


class NoTokensForUser(PushGatewayError):
    """The user has no registered device tokens."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__("No tokens for this user")


class ProviderError(PushGatewayError):
    """The push provider call itself failed (transport, auth, quota, rejection).

    The original SDK exception is chained as ``__cause__`` and its message is
    kept verbatim.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)
