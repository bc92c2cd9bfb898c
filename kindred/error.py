from typing import Any, Optional


class ProviderError(Exception):
    """Raised when a generation provider answers with a non-success status."""

    def __init__(
        self,
        provider: str,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        response: Any = None,
    ):
        self.provider = provider
        self.message = message or f"{provider} request failed"
        self.status_code = status_code
        self.response = response
        super().__init__(f"{provider}: {self.message}")


class AuthenticationError(ProviderError):
    """Raised when no API key is available for the provider."""

    def __init__(self, provider: str, message: Optional[str] = None, **kwargs):
        super().__init__(provider, message=message or f"Missing {provider} API key", **kwargs)


class EmptyResponseError(ProviderError):
    """Raised when the provider succeeds but returns no usable text."""

    def __init__(self, provider: str, message: Optional[str] = None, reason: Optional[str] = None, **kwargs):
        self.reason = reason
        super().__init__(provider, message=message or f"{provider} returned no text", **kwargs)
