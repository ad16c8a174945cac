"""OpenAI Chat Completions API adapter."""

from salesforce_reviewer.providers.base import ProviderAdapter

OPENAI_API_BASE = "https://api.openai.com"

SYSTEM_PROMPT = (
    "You are an expert Salesforce code reviewer. Provide detailed, actionable feedback "
    "focused on issues, bugs, and improvements. Never provide positive feedback, only "
    "constructive criticism."
)


class OpenAIProvider(ProviderAdapter):
    """Adapter for GPT models via the OpenAI Chat Completions API."""

    NAME = "openai"
    DEFAULT_BASE_URL = OPENAI_API_BASE

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    async def _complete(self, full_prompt: str) -> str:
        body = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": full_prompt},
            ],
        }

        response = await self._client.post("/v1/chat/completions", json=body)
        response.raise_for_status()
        data = response.json()

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices, list):
            raise self._response_error("Empty response")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise self._response_error("Empty response")

        return content
