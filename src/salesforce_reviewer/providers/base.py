"""Base class for language-model provider adapters."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from salesforce_reviewer.errors import ProviderError, ProviderResponseError, ProviderTimeoutError
from salesforce_reviewer.models.context import ContextSet
from salesforce_reviewer.models.review import ReviewResult
from salesforce_reviewer.providers.normalizer import parse_review_response

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... (truncated)"

OUTPUT_INSTRUCTIONS = """**CRITICAL INSTRUCTIONS:**

1. **ONLY PROVIDE FEEDBACK IF GENUINE ISSUES EXIST** - Do not create fake issues for the sake of review
2. **IF CODE IS PERFECT** - Return empty feedback array and say "No issues found"
3. **SUGGESTIONS** - Only provide if you are highly confident and the suggestion adds real value
4. **CODE EXAMPLES** - Include only when beneficial and you are certain of correctness
5. **BE PRECISE** - Every feedback must be necessary and actionable

Please provide your response in the following JSON format:
{
  "feedback": [
    {
      "line": 10,
      "message": "Specific issue description",
      "severity": "critical|warning|improvement",
      "category": "security|performance|maintainability|best-practice|bug",
      "file": "filename",
      "suggestion": "Optional: Actionable solution with code example if confident and beneficial"
    }
  ],
  "summary": {
    "totalIssues": 0,
    "criticalIssues": 0,
    "warnings": 0,
    "improvements": 0,
    "categories": {},
    "recommendations": []
  },
  "prAnalysis": {
    "totalFilesChanged": 2,
    "linesAdded": 45,
    "linesDeleted": 12,
    "overview": "Optional: Brief description of what this PR accomplishes",
    "primaryChanges": ["Main change area 1", "Main change area 2"],
    "riskLevel": "low|medium|high (only if you can assess accurately)",
    "recommendationSummary": "Optional: Overall assessment"
  }
}

**REMEMBER:** If no real issues exist, return empty feedback array. Quality over quantity!"""


@dataclass
class ProviderConfig:
    """Configuration for a single provider adapter."""

    name: str
    model: str
    api_key: str
    base_url: str | None = None
    timeout_seconds: float = 300
    max_context_chars: int = 2000
    max_tokens: int = 4000
    temperature: float = 0.1


def format_context(context: ContextSet, max_chars: int = 2000) -> str:
    """Render context files as a prompt section.

    Each file is cut to max_chars characters; a truncation marker is appended
    to files that were cut.
    """
    if not context:
        return ""

    parts = ["\n\n## Context Files:\n"]
    for path, context_file in context.items():
        content = context_file.content
        parts.append(f"\n### {path} ({context_file.category.label}):\n```\n")
        parts.append(content[:max_chars])
        if len(content) > max_chars:
            parts.append(f"\n{TRUNCATION_MARKER}")
        parts.append("\n```\n")
    return "".join(parts)


def build_full_prompt(prompt: str, code: str, context_block: str) -> str:
    """Combine the caller prompt, code body, context block and output format."""
    return f"""{prompt}

## Code to Review:
```
{code}
```
{context_block}

{OUTPUT_INSTRUCTIONS}"""


class ProviderAdapter(ABC):
    """Base class for all provider adapters.

    Subclasses implement `_complete`, which sends one request and returns the
    raw response text. Everything else (prompt shaping, the timeout race,
    error mapping and normalization) lives here.
    """

    NAME: str = "base"
    DEFAULT_BASE_URL: str = ""

    def __init__(self, config: ProviderConfig, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the adapter.

        Args:
            config: Provider identity, model, credential and limits
            http_client: Optional pre-built HTTP client (mainly for tests)
        """
        self.config = config
        self._client = http_client or httpx.AsyncClient(
            base_url=config.base_url or self.DEFAULT_BASE_URL,
            headers=self._headers(),
            timeout=config.timeout_seconds,
        )

    @property
    def name(self) -> str:
        return self.NAME

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def available(self) -> bool:
        """Whether a credential is configured."""
        return bool(self.config.api_key)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ProviderAdapter":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def review(self, prompt: str, code: str, context: ContextSet) -> ReviewResult:
        """Generate a review for one unit of code.

        Args:
            prompt: Category-specific review instructions
            code: Diff or full file content to review
            context: Additional files for structural background

        Returns:
            Normalized review result

        Raises:
            ProviderTimeoutError: If the call exceeds the configured timeout
            ProviderResponseError: If the backend fails or returns an unusable response
        """
        full_prompt = build_full_prompt(
            prompt, code, format_context(context, self.config.max_context_chars)
        )
        timeout = self.config.timeout_seconds
        logger.info(
            f"Generating review with {self.name} model {self.model} "
            f"(prompt length: {len(full_prompt)})"
        )

        try:
            raw = await asyncio.wait_for(self._complete(full_prompt), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(
                f"LLM request timeout after {timeout}s", provider=self.name
            ) from e
        except ProviderError:
            raise
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"{self.name} transport timeout: {e}", provider=self.name) from e
        except httpx.HTTPStatusError as e:
            raise ProviderResponseError(
                f"{self.name} returned HTTP {e.response.status_code}", provider=self.name
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderResponseError(
                f"{self.name} review generation failed: {e}", provider=self.name
            ) from e

        logger.debug(f"{self.name} response length: {len(raw)}")
        return parse_review_response(raw)

    def _headers(self) -> dict[str, str]:
        """Request headers for this backend."""
        return {"Content-Type": "application/json"}

    @abstractmethod
    async def _complete(self, full_prompt: str) -> str:
        """Send the prompt and return the raw response text."""

    def _response_error(self, detail: str) -> ProviderResponseError:
        return ProviderResponseError(f"{detail} from {self.name}", provider=self.name)
