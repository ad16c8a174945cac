"""Primary/fallback coordination of provider adapters."""

import logging
from typing import Any

from salesforce_reviewer.errors import AllProvidersFailedError
from salesforce_reviewer.models.context import ContextSet
from salesforce_reviewer.models.review import ReviewResult
from salesforce_reviewer.providers.anthropic_provider import AnthropicProvider
from salesforce_reviewer.providers.base import ProviderAdapter, ProviderConfig
from salesforce_reviewer.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[ProviderAdapter]] = {
    AnthropicProvider.NAME: AnthropicProvider,
    OpenAIProvider.NAME: OpenAIProvider,
}


def create_provider(config: ProviderConfig) -> ProviderAdapter:
    """Build the adapter for a configured provider name.

    Raises:
        ValueError: If the provider name is not supported
    """
    provider_cls = PROVIDERS.get(config.name)
    if provider_cls is None:
        raise ValueError(
            f"Unsupported LLM provider: {config.name} (supported: {', '.join(sorted(PROVIDERS))})"
        )
    return provider_cls(config)


class ProviderManager:
    """Runs the primary provider and falls back to the secondary on any failure."""

    def __init__(self, primary: ProviderAdapter, fallback: ProviderAdapter) -> None:
        """Initialize the manager.

        Args:
            primary: Adapter tried first
            fallback: Adapter tried only after the primary has failed
        """
        self.primary = primary
        self.fallback = fallback

    @classmethod
    def from_configs(cls, primary: ProviderConfig, fallback: ProviderConfig) -> "ProviderManager":
        """Build both adapters from explicit configuration."""
        return cls(create_provider(primary), create_provider(fallback))

    async def review(
        self, prompt: str, code: str, context: ContextSet | None = None
    ) -> ReviewResult:
        """Review code with the primary provider, falling back once on failure.

        Args:
            prompt: Category-specific review instructions
            code: Diff or file content to review
            context: Additional context files (empty if omitted)

        Returns:
            Normalized review from whichever provider succeeded

        Raises:
            AllProvidersFailedError: If both providers fail
        """
        context = context if context is not None else {}

        try:
            logger.info(f"Attempting review with primary provider: {self.primary.name}")
            return await self.primary.review(prompt, code, context)
        except Exception as e:
            primary_error = e
            logger.warning(
                f"Primary provider {self.primary.name} failed: {e}. Trying fallback provider."
            )

        try:
            logger.info(f"Attempting review with fallback provider: {self.fallback.name}")
            return await self.fallback.review(prompt, code, context)
        except Exception as fallback_error:
            logger.error(
                f"Both providers failed. Primary: {primary_error}, Fallback: {fallback_error}"
            )
            raise AllProvidersFailedError(primary_error, fallback_error) from fallback_error

    def status(self) -> dict[str, dict[str, Any]]:
        """Report identity and availability of both providers."""
        return {
            role: {"name": adapter.name, "model": adapter.model, "available": adapter.available}
            for role, adapter in (("primary", self.primary), ("fallback", self.fallback))
        }

    async def close(self) -> None:
        """Close both adapters."""
        await self.primary.close()
        await self.fallback.close()

    async def __aenter__(self) -> "ProviderManager":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()
