"""Core exceptions for the relay."""


class ProxyError(Exception):
    """Base exception for relay errors.

    ``status_code`` is the HTTP status used when the error is rendered to the
    client as ``{"error": message}``.
    """

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    status_code = 400


class ModelNotFoundError(ProxyError):
    """Raised when a requested model has no Anakin app id."""

    status_code = 400

    def __init__(self, model: str) -> None:
        super().__init__(f"unsupported model: {model}")
        self.model = model


class UpstreamError(ProxyError):
    """Raised when the Anakin backend cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = status_code


class ClientDisconnected(ProxyError):
    """The inbound client went away before the stream finished."""

    def __init__(self, message: str = "client disconnected") -> None:
        super().__init__(message)
