"""Exceptions raised by the client SDK."""


class ConfigurationError(RuntimeError):
    """Backend URL or public API key missing; fatal at startup."""


class CosyApiError(Exception):
    """
    A request failed.

    status is None when no response arrived (network error, timeout).
    code is the server's machine-readable classification when it sent one.
    """

    def __init__(self, message: str, *, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, code={self.code!r}, message={self.message!r})"


class CosyAuthError(CosyApiError):
    """401: no session, expired session or bad credentials."""
