"""Command-line interface for Salesforce Reviewer."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
import uvicorn
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from salesforce_reviewer import __version__
from salesforce_reviewer.config import Config, load_config, validate_config
from salesforce_reviewer.github.webhook import create_webhook_app, set_review_handler
from salesforce_reviewer.orchestrator import ReviewOrchestrator, RunState, report_as_json

console = Console()


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Configure logging with rich handler."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _load_valid_config(config_path: str | None) -> Config:
    """Load configuration and exit with the errors if it is invalid."""
    config = load_config(Path(config_path) if config_path else None)
    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(1)
    return config


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Salesforce Reviewer - LLM-powered reviews for Salesforce pull requests."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command("review-pr")
@click.argument("repo")
@click.argument("pr_number", type=int)
@click.option("--head-sha", help="Commit to review (default: PR head)")
@click.option("--output", type=click.Choice(["github", "json", "markdown"]), default="github")
@click.option("--dry-run", is_flag=True, help="Don't post to GitHub")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
@click.pass_context
def review_pr(
    ctx: click.Context,
    repo: str,
    pr_number: int,
    head_sha: str | None,
    output: str,
    dry_run: bool,
    config_path: str | None,
) -> None:
    """Review a GitHub pull request of Salesforce code.

    With --output=github (default) the review is posted to the PR unless
    --dry-run is set. The json and markdown outputs never post.
    """
    config = _load_valid_config(config_path)
    setup_logging(ctx.obj.get("verbose", False), config.logging.level)

    post = output == "github" and not dry_run
    exit_code = asyncio.run(
        review_pr_async(
            repo=repo,
            pr_number=pr_number,
            config=config,
            head_sha=head_sha,
            output=output,
            post=post,
        )
    )
    sys.exit(exit_code)


async def review_pr_async(
    repo: str,
    pr_number: int,
    config: Config,
    head_sha: str | None = None,
    output: str = "github",
    post: bool = True,
) -> int:
    """Run one review and print the outcome.

    Returns:
        Process exit code
    """
    console.print(f"🔍 Reviewing PR #{pr_number} in [bold]{repo}[/bold]...")

    async with ReviewOrchestrator.from_config(config) as orchestrator:
        result = await orchestrator.run(repo, pr_number, head_sha=head_sha, post=post)

    if result.state == RunState.ERRORED:
        console.print(f"[red]Error:[/red] {result.error}")
        return 1

    report = result.report
    if report is None:
        console.print("[yellow]No Salesforce files to review[/yellow]")
        return 0

    console.print(
        f"✅ Review complete: {len(report.findings)} findings in "
        f"{len(report.files_reviewed)} files ({report.verdict.value})"
    )
    if report.files_skipped:
        console.print(
            f"[yellow]⚠️  {len(report.files_skipped)} files could not be reviewed: "
            f"{', '.join(report.files_skipped)}[/yellow]"
        )

    if output == "json":
        print(json.dumps(report_as_json(report), indent=2))
    elif output == "markdown":
        print(report.summary)
    elif not post:
        console.print("\n[yellow]Dry run - not posting to GitHub[/yellow]")
        print(report.summary)
    else:
        console.print(f"📝 Posted review to GitHub ({report.verdict.github_event})")

    return 0


@cli.group("config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command("validate")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_validate(config_path: str | None) -> None:
    """Validate configuration file."""
    try:
        config = load_config(Path(config_path) if config_path else None)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        console.print("[red]Configuration is invalid:[/red]")
        for error in errors:
            console.print(f"  • {error}")
        sys.exit(1)

    console.print("[green]✓ Configuration is valid[/green]")


def _mask(secret: str | None) -> str:
    if not secret:
        return "[red]not set[/red]"
    return f"{secret[:4]}…" if len(secret) > 8 else "set"


@config_group.command("show")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_show(config_path: str | None) -> None:
    """Show current configuration."""
    config = load_config(Path(config_path) if config_path else None)

    console.print("\n[bold]Current Configuration[/bold]\n")

    # Providers table
    table = Table(title="LLM Providers")
    table.add_column("Role")
    table.add_column("Provider")
    table.add_column("Model")
    table.add_column("API Key")

    for role, provider in (("primary", config.llm.primary), ("fallback", config.llm.fallback)):
        table.add_row(role, provider.name, provider.model, _mask(provider.api_key))

    console.print(table)

    # Other settings
    review = config.review
    console.print(f"\n[bold]GitHub token:[/bold] {_mask(config.github.token)}")
    console.print(f"[bold]Webhook secret:[/bold] {_mask(config.github.webhook_secret)}")
    console.print(f"[bold]Timeout:[/bold] {review.timeout_seconds}s")
    console.print(f"[bold]Max context files:[/bold] {review.max_context_files}")
    console.print(f"[bold]Max file size:[/bold] {review.max_file_size_kb}KB")
    console.print(f"[bold]Parallel reviews:[/bold] {review.max_parallel_reviews}")
    console.print(f"[bold]Inject context:[/bold] {review.inject_context}")


@cli.command("serve")
@click.option("--port", type=int, help="Port to listen on")
@click.option("--host", help="Host to bind to")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def serve(port: int | None, host: str | None, config_path: str | None) -> None:
    """Start the webhook server."""
    config = _load_valid_config(config_path)
    setup_logging(level=config.logging.level)

    orchestrator = ReviewOrchestrator.from_config(config)

    # Set up review handler
    async def review_handler(repo: str, pr_number: int, head_sha: str | None = None) -> None:
        await orchestrator.run(repo, pr_number, head_sha=head_sha)

    set_review_handler(review_handler)

    # Create and run app
    app = create_webhook_app(
        config.github.webhook_secret,
        providers=orchestrator.providers,
        health_path=config.server.health_check_path,
    )

    host = host or config.server.host
    port = port or config.server.port
    console.print(f"🚀 Starting webhook server on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    cli()
