"""Language-model providers for Salesforce Reviewer."""

from salesforce_reviewer.providers.anthropic_provider import AnthropicProvider
from salesforce_reviewer.providers.base import ProviderAdapter, ProviderConfig
from salesforce_reviewer.providers.manager import ProviderManager, create_provider
from salesforce_reviewer.providers.normalizer import parse_review_response
from salesforce_reviewer.providers.openai_provider import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "OpenAIProvider",
    "ProviderAdapter",
    "ProviderConfig",
    "ProviderManager",
    "create_provider",
    "parse_review_response",
]
