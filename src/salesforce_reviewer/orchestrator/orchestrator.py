"""Review orchestrator: one pull request review run from listing to posting."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from salesforce_reviewer.config import Config
from salesforce_reviewer.github.client import GitHubClient, RepositorySource, parse_repository
from salesforce_reviewer.models.context import ContextSet
from salesforce_reviewer.models.files import ChangedFile, ChangeStatus, is_salesforce_file
from salesforce_reviewer.models.review import AggregateReport
from salesforce_reviewer.orchestrator.aggregator import FileReview, ReviewAggregator
from salesforce_reviewer.orchestrator.resolver import DependencyResolver
from salesforce_reviewer.prompts import build_pr_review_prompt
from salesforce_reviewer.providers.manager import ProviderManager

logger = logging.getLogger(__name__)

ERROR_COMMENT = """🤖 **Salesforce Code Review - Error**

Unfortunately, I encountered an error while reviewing this PR:

```
{error}
```

Please check the logs or contact the maintainers if this persists.

---
*Powered by Salesforce Reviewer*"""


class RunState(Enum):
    """Stages of a review run."""

    START = "start"
    FILES_LISTED = "files-listed"
    FILES_FILTERED = "files-filtered"
    REVIEWING = "reviewing"
    MERGED = "merged"
    POSTED = "posted"
    ERRORED = "errored"


@dataclass
class OrchestratorConfig:
    """Configuration for the orchestrator."""

    max_parallel_reviews: int = 4
    max_context_files: int = 10
    inject_context: bool = False


@dataclass
class RunResult:
    """Where a run ended and what it produced."""

    state: RunState
    report: AggregateReport | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state != RunState.ERRORED


class ReviewOrchestrator:
    """Runs a pull request review end to end.

    Files are reviewed concurrently, bounded by max_parallel_reviews. A file
    whose review fails is skipped; the run itself only fails on errors
    outside the per-file step, and then reports them on the PR.
    """

    def __init__(
        self,
        github: GitHubClient,
        providers: ProviderManager,
        config: OrchestratorConfig | None = None,
        aggregator: ReviewAggregator | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            github: Client for reading the PR and posting results
            providers: Primary and fallback language model providers
            config: Optional configuration
            aggregator: Optional aggregator (defaults to ReviewAggregator)
        """
        self.github = github
        self.providers = providers
        self.config = config or OrchestratorConfig()
        self.aggregator = aggregator or ReviewAggregator()

    @classmethod
    def from_config(cls, config: Config) -> "ReviewOrchestrator":
        """Build the GitHub client, providers and settings from configuration."""
        github = GitHubClient(
            config.github.token,
            base_url=config.github.base_url,
            max_file_size_kb=config.review.max_file_size_kb,
        )
        providers = ProviderManager.from_configs(
            config.provider_config(config.llm.primary),
            config.provider_config(config.llm.fallback),
        )
        return cls(
            github,
            providers,
            OrchestratorConfig(
                max_parallel_reviews=config.review.max_parallel_reviews,
                max_context_files=config.review.max_context_files,
                inject_context=config.review.inject_context,
            ),
        )

    async def run(
        self,
        repo: str,
        pr_number: int,
        head_sha: str | None = None,
        post: bool = True,
    ) -> RunResult:
        """Review a pull request.

        Args:
            repo: Repository in "owner/name" format
            pr_number: Pull request number
            head_sha: Commit to review; defaults to the PR head
            post: Post results to GitHub (False for dry runs)

        Returns:
            RunResult with the final state and the report, if one was produced
        """
        state = RunState.START
        logger.info(f"Starting review for PR #{pr_number} in {repo}")

        try:
            parse_repository(repo)
            changed = await asyncio.to_thread(self.github.list_changed_files, repo, pr_number)
            if not head_sha:
                head_sha = await asyncio.to_thread(self.github.get_head_sha, repo, pr_number)
            state = self._transition(state, RunState.FILES_LISTED)

            reviewable = self.filter_files(changed)
            state = self._transition(state, RunState.FILES_FILTERED)
            if not reviewable:
                logger.info("No Salesforce files to review, skipping")
                return RunResult(state=state)

            state = self._transition(state, RunState.REVIEWING)
            context = await self._resolve_context(repo, head_sha, reviewable)
            reviews, skipped = await self._review_files(repo, head_sha, reviewable, context)

            report = self.aggregator.aggregate(reviews, changed, skipped)
            state = self._transition(state, RunState.MERGED)
            if not post:
                return RunResult(state=state, report=report)

            await self._post(repo, pr_number, head_sha, report)
            state = self._transition(state, RunState.POSTED)
            logger.info(
                f"Review completed for PR #{pr_number}: {len(report.findings)} total issues found"
            )
            return RunResult(state=state, report=report)

        except Exception as e:
            logger.error(f"Review failed for PR #{pr_number} in state {state.value}: {e}")
            self._transition(state, RunState.ERRORED)
            if post:
                await self._post_error_comment(repo, pr_number, e)
            return RunResult(state=RunState.ERRORED, error=str(e))

    def _transition(self, current: RunState, new: RunState) -> RunState:
        logger.info(f"Review run: {current.value} -> {new.value}")
        return new

    def filter_files(self, files: list[ChangedFile]) -> list[ChangedFile]:
        """Keep files that still exist and are recognized Salesforce files."""
        reviewable = [
            f for f in files if f.status != ChangeStatus.REMOVED and is_salesforce_file(f.path)
        ]
        logger.info(
            f"Detected {len(reviewable)} Salesforce files: {[f.path for f in reviewable]}"
        )
        return reviewable

    async def _resolve_context(
        self, repo: str, head_sha: str, files: list[ChangedFile]
    ) -> ContextSet:
        if not self.config.inject_context:
            return {}
        source = RepositorySource(self.github, repo, head_sha)
        resolver = DependencyResolver(source, self.config.max_context_files)
        return await resolver.resolve(files)

    async def _review_files(
        self,
        repo: str,
        head_sha: str,
        files: list[ChangedFile],
        context: ContextSet,
    ) -> tuple[list[FileReview], list[str]]:
        semaphore = asyncio.Semaphore(max(1, self.config.max_parallel_reviews))

        async def bounded(file: ChangedFile) -> FileReview | None:
            async with semaphore:
                return await self._review_file(repo, head_sha, file, context)

        results = await asyncio.gather(*(bounded(f) for f in files))

        reviews = [r for r in results if r is not None]
        skipped = [f.path for f, r in zip(files, results) if r is None]
        return reviews, skipped

    async def _review_file(
        self,
        repo: str,
        head_sha: str,
        file: ChangedFile,
        context: ContextSet,
    ) -> FileReview | None:
        """Review one file. Returns None when the file had to be skipped."""
        logger.info(
            f"Reviewing file: {file.path} "
            f"({file.changes} changes, +{file.additions}/-{file.deletions})"
        )

        try:
            code = file.patch
            if not code:
                logger.warning(f"No patch content for {file.path}, fetching full file")
                code = await asyncio.to_thread(
                    self.github.get_file_content, repo, file.path, head_sha
                )
                if not code:
                    logger.warning(f"Skipping empty file: {file.path}")
                    return None

            prompt = build_pr_review_prompt(file.category, file)
            file_context = {path: f for path, f in context.items() if path != file.path}
            result = await self.providers.review(prompt, code, file_context)

        except Exception as e:
            logger.error(f"Failed to review file {file.path}: {e}")
            return None

        logger.info(f"Completed review for {file.path}: {len(result.findings)} issues found")
        return FileReview(path=file.path, result=result)

    async def _post(self, repo: str, pr_number: int, head_sha: str, report: AggregateReport) -> None:
        """Post the combined review, falling back to separate comments."""
        try:
            await asyncio.to_thread(
                self.github.create_review,
                repo,
                pr_number,
                head_sha,
                report.verdict,
                report.summary,
                report.comments,
            )
            logger.info(
                f"Posted PR review with {len(report.comments)} inline comments and summary"
            )
            return
        except Exception as e:
            logger.error(f"Failed to post batched PR review: {e}")

        logger.info("Falling back to individual comments")
        posted = 0
        for comment in report.comments:
            try:
                await asyncio.to_thread(
                    self.github.create_review_comment, repo, pr_number, head_sha, comment
                )
                posted += 1
            except Exception as e:
                logger.error(f"Failed to post inline comment for {comment.path}:{comment.line}: {e}")
        logger.info(f"Posted {posted}/{len(report.comments)} inline comments individually")

        try:
            await asyncio.to_thread(
                self.github.create_issue_comment, repo, pr_number, report.summary
            )
        except Exception as e:
            logger.error(f"Failed to post summary comment: {e}")

    async def _post_error_comment(self, repo: str, pr_number: int, error: Exception) -> None:
        """Report a failed run on the PR. Never raises."""
        try:
            await asyncio.to_thread(
                self.github.create_issue_comment,
                repo,
                pr_number,
                ERROR_COMMENT.format(error=error),
            )
        except Exception as e:
            logger.error(f"Failed to post error comment: {e}")

    async def close(self) -> None:
        """Close provider connections."""
        await self.providers.close()

    async def __aenter__(self) -> "ReviewOrchestrator":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
