"""Exception types raised by the review engine."""


class ReviewerError(Exception):
    """Base class for all review engine errors."""


class InvalidRepositoryError(ReviewerError):
    """Raised when a repository identifier is not in "owner/name" form."""


class ProviderError(ReviewerError):
    """Raised when a language-model provider fails to produce a review."""

    def __init__(self, message: str, provider: str = "unknown") -> None:
        super().__init__(message)
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its wall-clock timeout."""


class ProviderResponseError(ProviderError):
    """Raised when a provider returns an error, an empty or a malformed response."""


class AllProvidersFailedError(ProviderError):
    """Raised when both the primary and the fallback provider failed."""

    def __init__(self, primary_error: Exception, fallback_error: Exception) -> None:
        super().__init__(
            f"All LLM providers failed. Primary: {primary_error}, Fallback: {fallback_error}",
            provider="all",
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error
