"""GitHub webhook server for automatic PR reviews."""

import asyncio
import hashlib
import hmac
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi import FastAPI, HTTPException, Request

from salesforce_reviewer import __version__
from salesforce_reviewer.providers.manager import ProviderManager

logger = logging.getLogger(__name__)

# PR actions that start a review
TRIGGER_ACTIONS = frozenset({"opened", "synchronize", "reopened"})

ReviewHandler = Callable[..., Awaitable[object]]


@dataclass
class PREvent:
    """Represents a PR webhook event."""

    repo: str
    pr_number: int
    action: str
    head_sha: str | None = None
    sender: str = ""
    installation_id: int | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "PREvent":
        """Build an event from a pull_request webhook payload.

        Raises:
            KeyError: If a required field is missing
        """
        pull_request = payload["pull_request"]
        return cls(
            repo=payload["repository"]["full_name"],
            pr_number=pull_request["number"],
            action=payload["action"],
            head_sha=(pull_request.get("head") or {}).get("sha"),
            sender=(payload.get("sender") or {}).get("login", ""),
            installation_id=(payload.get("installation") or {}).get("id"),
        )


# Review trigger - set by the application
_review_handler: ReviewHandler | None = None

# Keeps running review tasks referenced until they finish
_background_tasks: set[asyncio.Task] = set()


def set_review_handler(handler: ReviewHandler | None) -> None:
    """Set the review handler function."""
    global _review_handler
    _review_handler = handler


async def handle_pr_event(event: PREvent) -> None:
    """Handle a PR event by triggering a review if appropriate.

    Args:
        event: PR event data
    """
    if event.action == "closed":
        logger.info(f"PR #{event.pr_number} in {event.repo} was closed")
        return

    if event.action not in TRIGGER_ACTIONS:
        logger.debug(f"Ignoring PR action: {event.action}")
        return

    logger.info(f"Triggering review for {event.repo} PR #{event.pr_number}")

    if _review_handler is None:
        logger.warning("No review handler configured")
        return

    try:
        await _review_handler(repo=event.repo, pr_number=event.pr_number, head_sha=event.head_sha)
    except Exception as e:
        logger.exception(f"Error reviewing {event.repo} PR #{event.pr_number}: {e}")


def _schedule(event: PREvent) -> None:
    task = asyncio.create_task(handle_pr_event(event))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


def create_webhook_app(
    webhook_secret: str | None = None,
    providers: ProviderManager | None = None,
    health_path: str = "/health",
) -> FastAPI:
    """Create the FastAPI webhook application.

    Args:
        webhook_secret: GitHub webhook secret for signature verification.
                       Verification is skipped when no secret is set.
        providers: Provider manager whose status the health check reports
        health_path: Route of the health check endpoint

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Salesforce Reviewer Webhook",
        description="Webhook server for Salesforce pull request reviews",
        version=__version__,
    )

    @app.get(health_path)
    async def health_check():
        """Health check endpoint."""
        health = {"status": "healthy", "service": "salesforce-reviewer", "version": __version__}
        if providers is not None:
            health["providers"] = providers.status()
        return health

    @app.post("/webhook")
    async def github_webhook(request: Request):
        """Handle GitHub webhook events."""
        # Read body once (required for signature verification and parsing)
        body = await request.body()

        if webhook_secret:
            signature = request.headers.get("X-Hub-Signature-256", "")
            if not verify_signature(body, signature, webhook_secret):
                logger.warning("Rejected webhook with invalid signature")
                raise HTTPException(status_code=401, detail="Invalid signature")

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail=f"Invalid JSON: {e}") from e

        event_type = request.headers.get("X-GitHub-Event", "")

        if event_type == "pull_request":
            try:
                pr_event = PREvent.from_payload(payload)
            except (KeyError, TypeError) as e:
                raise HTTPException(status_code=400, detail=f"Malformed payload: {e}") from e

            logger.info(
                f"Received pull_request {pr_event.action} for {pr_event.repo} #{pr_event.pr_number}"
            )
            # Process async to respond quickly
            _schedule(pr_event)

        elif event_type == "ping":
            logger.info("Received ping from GitHub")
            return {"status": "pong"}

        else:
            logger.debug(f"Ignoring event type: {event_type}")

        return {"status": "ok"}

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "service": "Salesforce Reviewer",
            "version": __version__,
            "endpoints": {
                "health": health_path,
                "webhook": "/webhook",
            },
        }

    return app


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify GitHub webhook signature.

    Args:
        payload: Raw request body
        signature: X-Hub-Signature-256 header value
        secret: Webhook secret

    Returns:
        True if signature is valid
    """
    if not signature.startswith("sha256="):
        return False

    expected = (
        "sha256="
        + hmac.new(
            secret.encode(),
            payload,
            hashlib.sha256,
        ).hexdigest()
    )

    return hmac.compare_digest(expected, signature)
