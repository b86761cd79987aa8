"""Custom exception classes for the application."""

from typing import Optional


class DecorSearchException(Exception):
    """Base exception for all decor-search errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(DecorSearchException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class ConfigurationError(DecorSearchException):
    """Raised when a provider is used without its credentials configured.

    This is a deployment defect, so unlike every other provider failure it
    is allowed to reach the caller.
    """

    def __init__(self, provider: str, setting: str):
        self.provider = provider
        self.setting = setting
        super().__init__(
            f"{provider} API key is not configured. "
            f"Set {setting} in your environment or .env file."
        )


class ProviderError(DecorSearchException):
    """Raised when a provider request fails."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"Provider error for {provider}: {message}")


class ProviderAuthError(ProviderError):
    """Raised on 401/403 responses. Never retried; arms the provider cool-down."""

    def __init__(self, provider: str, status_code: int, detail: str = ""):
        if status_code == 401:
            message = "authentication failed, check the RapidAPI key"
        else:
            message = "access forbidden, the key may be invalid or not subscribed"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(provider, message, status_code=status_code)


class RateLimitError(ProviderError):
    """Raised when an external API rate limit is hit."""

    def __init__(self, provider: str):
        super().__init__(provider, "rate limit exceeded", status_code=429)
