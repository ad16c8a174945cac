"""Configuration loading and validation for Salesforce Reviewer."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from salesforce_reviewer.providers.base import ProviderConfig
from salesforce_reviewer.providers.manager import PROVIDERS

DEFAULT_MODELS = {
    "anthropic": "claude-3-5-sonnet-20241022",
    "openai": "gpt-4o",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class LLMProviderSettings:
    """One language model backend."""

    name: str
    model: str
    api_key: str = ""
    base_url: str | None = None


@dataclass
class LLMSettings:
    """Primary and fallback language model backends."""

    primary: LLMProviderSettings
    fallback: LLMProviderSettings


@dataclass
class GitHubSettings:
    """GitHub integration configuration."""

    token: str
    webhook_secret: str | None = None
    base_url: str | None = None  # For GitHub Enterprise


@dataclass
class ReviewSettings:
    """Review run configuration."""

    max_context_files: int = 10
    max_file_size_kb: int = 100
    timeout_seconds: int = 300
    max_context_chars: int = 2000
    max_parallel_reviews: int = 4
    inject_context: bool = False


@dataclass
class ServerSettings:
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    health_check_path: str = "/health"


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"


@dataclass
class Config:
    """Complete application configuration."""

    github: GitHubSettings
    llm: LLMSettings
    review: ReviewSettings = field(default_factory=ReviewSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def provider_config(self, settings: LLMProviderSettings) -> ProviderConfig:
        """Bind a backend's settings to the review limits."""
        return ProviderConfig(
            name=settings.name,
            model=settings.model,
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout_seconds=self.review.timeout_seconds,
            max_context_chars=self.review.max_context_chars,
        )


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file (default: config.yaml)

    Returns:
        Loaded configuration
    """
    # Find config file
    if config_path is None:
        config_path = Path("config.yaml")
        if not config_path.exists():
            config_path = Path("config.example.yaml")

    # Load from file if exists
    raw_config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}

    # Expand environment variables
    raw_config = _expand_env_vars(raw_config)

    # Parse configuration
    return _parse_config(raw_config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in config."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            env_var = obj[2:-1]
            return os.environ.get(env_var, "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _parse_provider(raw: dict[str, Any], env_prefix: str, default_name: str) -> LLMProviderSettings:
    """Parse one provider block; empty values fall back to <PREFIX>_* env vars."""
    name = raw.get("name") or os.environ.get(f"{env_prefix}_PROVIDER") or default_name
    name = name.strip().lower()
    model = raw.get("model") or os.environ.get(f"{env_prefix}_MODEL") or DEFAULT_MODELS.get(name, "")
    return LLMProviderSettings(
        name=name,
        model=model,
        api_key=raw.get("api_key") or os.environ.get(f"{env_prefix}_API_KEY", ""),
        base_url=raw.get("base_url"),
    )


def _parse_config(raw: dict[str, Any]) -> Config:
    """Parse raw config dict into Config object."""
    # GitHub config
    github_raw = raw.get("github") or {}
    github = GitHubSettings(
        token=github_raw.get("token") or os.environ.get("GITHUB_TOKEN", ""),
        webhook_secret=github_raw.get("webhook_secret") or os.environ.get("GITHUB_WEBHOOK_SECRET"),
        base_url=github_raw.get("base_url"),
    )

    # LLM backends
    llm_raw = raw.get("llm") or {}
    llm = LLMSettings(
        primary=_parse_provider(llm_raw.get("primary") or {}, "LLM", "anthropic"),
        fallback=_parse_provider(llm_raw.get("fallback") or {}, "FALLBACK_LLM", "openai"),
    )

    # Review settings
    review_raw = raw.get("review") or {}
    review = ReviewSettings(
        max_context_files=int(review_raw.get("max_context_files", 10)),
        max_file_size_kb=int(review_raw.get("max_file_size_kb", 100)),
        timeout_seconds=int(review_raw.get("timeout_seconds", 300)),
        max_context_chars=int(review_raw.get("max_context_chars", 2000)),
        max_parallel_reviews=int(review_raw.get("max_parallel_reviews", 4)),
        inject_context=bool(review_raw.get("inject_context", False)),
    )

    # Server settings
    server_raw = raw.get("server") or {}
    server = ServerSettings(
        host=server_raw.get("host", "0.0.0.0"),
        port=int(server_raw.get("port", 8080)),
        health_check_path=server_raw.get("health_check_path", "/health"),
    )

    # Logging settings
    logging_raw = raw.get("logging") or {}
    level = logging_raw.get("level") or os.environ.get("LOG_LEVEL", "INFO")

    return Config(
        github=github,
        llm=llm,
        review=review,
        server=server,
        logging=LoggingSettings(level=level.upper()),
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not config.github.token:
        errors.append("Missing GitHub token (set GITHUB_TOKEN or github.token)")

    for role, env_prefix, settings in (
        ("primary", "LLM", config.llm.primary),
        ("fallback", "FALLBACK_LLM", config.llm.fallback),
    ):
        if settings.name not in PROVIDERS:
            errors.append(
                f"Unsupported {role} LLM provider: {settings.name} "
                f"(expected one of {', '.join(sorted(PROVIDERS))})"
            )
        if not settings.model:
            errors.append(f"Missing {role} LLM model (set {env_prefix}_MODEL or llm.{role}.model)")
        if not settings.api_key:
            errors.append(
                f"Missing {role} LLM API key (set {env_prefix}_API_KEY or llm.{role}.api_key)"
            )

    review = config.review
    if review.max_context_files < 0:
        errors.append("review.max_context_files must not be negative")
    if review.max_parallel_reviews < 1:
        errors.append("review.max_parallel_reviews must be at least 1")
    if review.timeout_seconds <= 0:
        errors.append("review.timeout_seconds must be positive")
    if review.max_file_size_kb <= 0:
        errors.append("review.max_file_size_kb must be positive")

    if config.logging.level not in LOG_LEVELS:
        errors.append(f"Invalid log level: {config.logging.level}")

    return errors
