"""Tests for CLI commands."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner


@pytest.fixture
def config():
    """A complete, valid configuration."""
    from salesforce_reviewer.config import Config, GitHubSettings, LLMProviderSettings, LLMSettings

    return Config(
        github=GitHubSettings(token="ghp_abcdefghijkl", webhook_secret="hook-secret-value"),
        llm=LLMSettings(
            primary=LLMProviderSettings("anthropic", "claude-test", "sk-ant-123456789"),
            fallback=LLMProviderSettings("openai", "gpt-test", "sk-oa-123456789"),
        ),
    )


def _report(critical_response):
    from salesforce_reviewer.models.files import ChangedFile, ChangeStatus
    from salesforce_reviewer.orchestrator.aggregator import FileReview, ReviewAggregator
    from salesforce_reviewer.providers.normalizer import parse_review_response

    review = FileReview("classes/Foo.cls", parse_review_response(critical_response))
    changed = [ChangedFile("classes/Foo.cls", ChangeStatus.MODIFIED, 6, 0)]
    return ReviewAggregator().aggregate([review], changed)


def _fake_orchestrator(result):
    orchestrator = MagicMock()
    orchestrator.run = AsyncMock(return_value=result)
    orchestrator.__aenter__ = AsyncMock(return_value=orchestrator)
    orchestrator.__aexit__ = AsyncMock(return_value=None)
    return orchestrator


class TestCLI:
    """Tests for CLI commands."""

    def test_cli_help(self):
        """Test that CLI shows help."""
        from salesforce_reviewer.cli import cli

        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "review-pr" in result.output
        assert "serve" in result.output

    def test_review_pr_command(self, config):
        """Test review-pr passes its arguments through."""
        from salesforce_reviewer.cli import cli

        runner = CliRunner()

        with (
            patch("salesforce_reviewer.cli.load_config", return_value=config),
            patch("salesforce_reviewer.cli.review_pr_async", new_callable=AsyncMock) as mock_review,
        ):
            mock_review.return_value = 0

            result = runner.invoke(
                cli,
                ["review-pr", "acme/crm", "42", "--head-sha", "abc123"],
                catch_exceptions=False,
            )

        assert result.exit_code == 0
        mock_review.assert_called_once()
        kwargs = mock_review.call_args.kwargs
        assert kwargs["repo"] == "acme/crm"
        assert kwargs["pr_number"] == 42
        assert kwargs["head_sha"] == "abc123"
        assert kwargs["config"] is config
        assert kwargs["post"] is True

    @pytest.mark.parametrize(
        "extra",
        [["--dry-run"], ["--output", "json"], ["--output", "markdown"]],
    )
    def test_review_pr_does_not_post(self, config, extra):
        """Test that dry runs and local outputs never post."""
        from salesforce_reviewer.cli import cli

        with (
            patch("salesforce_reviewer.cli.load_config", return_value=config),
            patch("salesforce_reviewer.cli.review_pr_async", new_callable=AsyncMock) as mock_review,
        ):
            mock_review.return_value = 0

            CliRunner().invoke(cli, ["review-pr", "acme/crm", "42", *extra])

        assert mock_review.call_args.kwargs["post"] is False

    def test_review_pr_exit_code(self, config):
        """Test that a failed run exits non-zero."""
        from salesforce_reviewer.cli import cli

        with (
            patch("salesforce_reviewer.cli.load_config", return_value=config),
            patch("salesforce_reviewer.cli.review_pr_async", new_callable=AsyncMock) as mock_review,
        ):
            mock_review.return_value = 1

            result = CliRunner().invoke(cli, ["review-pr", "acme/crm", "42"])

        assert result.exit_code == 1

    def test_review_pr_invalid_config(self, config):
        """Test that an invalid configuration stops before reviewing."""
        from salesforce_reviewer.cli import cli

        config.github.token = ""

        with (
            patch("salesforce_reviewer.cli.load_config", return_value=config),
            patch("salesforce_reviewer.cli.review_pr_async", new_callable=AsyncMock) as mock_review,
        ):
            result = CliRunner().invoke(cli, ["review-pr", "acme/crm", "42"])

        assert result.exit_code == 1
        assert "Missing GitHub token" in result.output
        mock_review.assert_not_called()

    def test_config_validate_command(self, config):
        """Test config validate with a valid config."""
        from salesforce_reviewer.cli import cli

        with patch("salesforce_reviewer.cli.load_config", return_value=config):
            result = CliRunner().invoke(cli, ["config", "validate"])

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_config_validate_invalid(self, config):
        """Test config validate lists every problem."""
        from salesforce_reviewer.cli import cli

        config.llm.fallback.api_key = ""
        config.review.max_parallel_reviews = 0

        with patch("salesforce_reviewer.cli.load_config", return_value=config):
            result = CliRunner().invoke(cli, ["config", "validate"])

        assert result.exit_code == 1
        assert "Missing fallback LLM API key" in result.output
        assert "max_parallel_reviews" in result.output

    def test_config_validate_load_error(self):
        """Test config validate when the file cannot be parsed."""
        from salesforce_reviewer.cli import cli

        with patch("salesforce_reviewer.cli.load_config", side_effect=ValueError("bad port")):
            result = CliRunner().invoke(cli, ["config", "validate"])

        assert result.exit_code == 1
        assert "bad port" in result.output

    def test_config_show_masks_secrets(self, config):
        """Test config show lists providers without leaking keys."""
        from salesforce_reviewer.cli import cli

        with patch("salesforce_reviewer.cli.load_config", return_value=config):
            result = CliRunner().invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "LLM Providers" in result.output
        assert "claude-test" in result.output
        assert "gpt-test" in result.output
        assert "sk-ant-123456789" not in result.output
        assert "ghp_abcdefghijkl" not in result.output

    def test_serve_command_starts_server(self, config):
        """Test that serve wires the review handler and starts uvicorn."""
        from salesforce_reviewer.cli import cli

        with (
            patch("salesforce_reviewer.cli.load_config", return_value=config),
            patch("salesforce_reviewer.cli.ReviewOrchestrator") as mock_orchestrator,
            patch("salesforce_reviewer.cli.set_review_handler") as mock_set_handler,
            patch("salesforce_reviewer.cli.uvicorn") as mock_uvicorn,
        ):
            result = CliRunner().invoke(
                cli,
                ["serve", "--port", "9000", "--host", "127.0.0.1"],
                catch_exceptions=False,
            )

        assert result.exit_code == 0
        mock_orchestrator.from_config.assert_called_once_with(config)
        mock_set_handler.assert_called_once()
        mock_uvicorn.run.assert_called_once()
        call_args = mock_uvicorn.run.call_args
        assert call_args.kwargs["port"] == 9000
        assert call_args.kwargs["host"] == "127.0.0.1"

    def test_serve_defaults_from_config(self, config):
        """Test that host and port default to the server settings."""
        from salesforce_reviewer.cli import cli

        config.server.port = 8181

        with (
            patch("salesforce_reviewer.cli.load_config", return_value=config),
            patch("salesforce_reviewer.cli.ReviewOrchestrator"),
            patch("salesforce_reviewer.cli.set_review_handler"),
            patch("salesforce_reviewer.cli.uvicorn") as mock_uvicorn,
        ):
            CliRunner().invoke(cli, ["serve"], catch_exceptions=False)

        assert mock_uvicorn.run.call_args.kwargs["port"] == 8181
        assert mock_uvicorn.run.call_args.kwargs["host"] == "0.0.0.0"


class TestReviewPRAsync:
    """Tests for the review runner behind review-pr."""

    @pytest.mark.asyncio
    async def test_json_output(self, config, critical_response, capsys):
        """Test that json output prints the machine-readable report."""
        from salesforce_reviewer.cli import review_pr_async
        from salesforce_reviewer.orchestrator import RunResult, RunState

        report = _report(critical_response)
        orchestrator = _fake_orchestrator(RunResult(RunState.MERGED, report=report))

        with patch("salesforce_reviewer.cli.ReviewOrchestrator") as mock_cls:
            mock_cls.from_config.return_value = orchestrator
            code = await review_pr_async("acme/crm", 42, config, output="json", post=False)

        assert code == 0
        orchestrator.run.assert_awaited_once_with("acme/crm", 42, head_sha=None, post=False)
        printed = capsys.readouterr().out
        data = json.loads(printed[printed.index("{"):])
        assert data["verdict"] == "request-changes"
        assert data["findings"][0]["file"] == "classes/Foo.cls"

    @pytest.mark.asyncio
    async def test_errored_run(self, config):
        """Test that an errored run returns exit code 1."""
        from salesforce_reviewer.cli import review_pr_async
        from salesforce_reviewer.orchestrator import RunResult, RunState

        orchestrator = _fake_orchestrator(RunResult(RunState.ERRORED, error="API down"))

        with patch("salesforce_reviewer.cli.ReviewOrchestrator") as mock_cls:
            mock_cls.from_config.return_value = orchestrator
            code = await review_pr_async("acme/crm", 42, config)

        assert code == 1

    @pytest.mark.asyncio
    async def test_nothing_to_review(self, config):
        """Test that a PR with no Salesforce files succeeds."""
        from salesforce_reviewer.cli import review_pr_async
        from salesforce_reviewer.orchestrator import RunResult, RunState

        orchestrator = _fake_orchestrator(RunResult(RunState.FILES_FILTERED))

        with patch("salesforce_reviewer.cli.ReviewOrchestrator") as mock_cls:
            mock_cls.from_config.return_value = orchestrator
            code = await review_pr_async("acme/crm", 42, config)

        assert code == 0
