"""Anthropic Messages API adapter."""

from salesforce_reviewer.providers.base import ProviderAdapter

ANTHROPIC_API_BASE = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(ProviderAdapter):
    """Adapter for Claude models via the Anthropic Messages API."""

    NAME = "anthropic"
    DEFAULT_BASE_URL = ANTHROPIC_API_BASE

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    async def _complete(self, full_prompt: str) -> str:
        body = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [{"role": "user", "content": full_prompt}],
        }

        response = await self._client.post("/v1/messages", json=body)
        response.raise_for_status()
        data = response.json()

        content = data.get("content") if isinstance(data, dict) else None
        if not content or not isinstance(content, list):
            raise self._response_error("Empty response")

        block = content[0]
        if not isinstance(block, dict) or block.get("type") != "text":
            raise self._response_error("Invalid response type")

        text = block.get("text")
        if not isinstance(text, str) or not text.strip():
            raise self._response_error("Empty text block")

        return text
