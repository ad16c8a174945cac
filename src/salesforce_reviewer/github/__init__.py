"""GitHub integration for Salesforce Reviewer."""

from salesforce_reviewer.github.client import GitHubClient, RepositorySource, parse_repository
from salesforce_reviewer.github.webhook import PREvent, create_webhook_app

__all__ = [
    "GitHubClient",
    "PREvent",
    "RepositorySource",
    "create_webhook_app",
    "parse_repository",
]
