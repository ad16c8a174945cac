"""GitHub API client for PR operations."""

import asyncio
import logging
from itertools import islice

from github import Github
from github.GithubException import GithubException
from github.PullRequest import PullRequest
from github.Repository import Repository

from salesforce_reviewer.errors import InvalidRepositoryError
from salesforce_reviewer.models.files import ChangedFile, ChangeStatus
from salesforce_reviewer.models.review import InlineComment, Verdict

logger = logging.getLogger(__name__)

# Code search results beyond this are never looked at
MAX_SEARCH_RESULTS = 10


def parse_repository(full_name: str) -> tuple[str, str]:
    """Split an "owner/name" repository identifier.

    Raises:
        InvalidRepositoryError: If the identifier is not exactly two non-empty parts
    """
    parts = full_name.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidRepositoryError(f"Invalid repository name format: {full_name}")
    return parts[0], parts[1]


class GitHubClient:
    """Client for GitHub API operations.

    All methods are blocking; async callers wrap them with asyncio.to_thread.
    """

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        max_file_size_kb: int = 100,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token or app token
            base_url: Optional base URL for GitHub Enterprise
            max_file_size_kb: Files larger than this are read as empty
        """
        if base_url:
            self._gh = Github(token, base_url=base_url)
        else:
            self._gh = Github(token)
        self.max_file_size_kb = max_file_size_kb
        self._repos: dict[str, Repository] = {}

    def get_repo(self, repo_name: str) -> Repository:
        """Get a repository by name.

        The Repository object is cached per name, so repeated reads and
        existence checks cost one API call each.

        Args:
            repo_name: Repository in "owner/name" format

        Returns:
            Repository object
        """
        if repo_name not in self._repos:
            parse_repository(repo_name)
            self._repos[repo_name] = self._gh.get_repo(repo_name)
        return self._repos[repo_name]

    def get_pull_request(self, repo_name: str, pr_number: int) -> PullRequest:
        """Get a pull request.

        Args:
            repo_name: Repository in "owner/name" format
            pr_number: Pull request number

        Returns:
            PullRequest object
        """
        return self.get_repo(repo_name).get_pull(pr_number)

    def get_head_sha(self, repo_name: str, pr_number: int) -> str:
        """Get the commit SHA at the head of a pull request."""
        return self.get_pull_request(repo_name, pr_number).head.sha

    def list_changed_files(self, repo_name: str, pr_number: int) -> list[ChangedFile]:
        """List every file changed by a pull request.

        Args:
            repo_name: Repository in "owner/name" format
            pr_number: Pull request number

        Returns:
            Changed files with status, line counts and patch
        """
        pr = self.get_pull_request(repo_name, pr_number)
        files = [
            ChangedFile(
                path=file.filename,
                status=ChangeStatus.from_github(file.status),
                additions=file.additions,
                deletions=file.deletions,
                patch=file.patch or None,
                raw_url=file.raw_url,
            )
            for file in pr.get_files()
        ]
        logger.info(f"PR #{pr_number} in {repo_name} changes {len(files)} files")
        return files

    def get_file_content(self, repo_name: str, path: str, ref: str) -> str:
        """Read a file at a ref.

        Args:
            repo_name: Repository in "owner/name" format
            path: Repository-relative path
            ref: Branch, tag or commit SHA

        Returns:
            Decoded file content, or "" for directories and files over the size limit

        Raises:
            FileNotFoundError: If the path does not exist at the ref
        """
        try:
            content = self.get_repo(repo_name).get_contents(path, ref=ref)
        except GithubException as e:
            if e.status == 404:
                raise FileNotFoundError(path) from e
            raise

        if isinstance(content, list):
            logger.debug(f"{path} is a directory, not a file")
            return ""

        if content.size > self.max_file_size_kb * 1024:
            logger.warning(
                f"Skipping {path}: {content.size} bytes exceeds {self.max_file_size_kb}KB limit"
            )
            return ""

        return content.decoded_content.decode("utf-8", errors="replace")

    def file_exists(self, repo_name: str, path: str, ref: str) -> bool:
        """Check whether a path exists at a ref."""
        try:
            self.get_repo(repo_name).get_contents(path, ref=ref)
        except GithubException as e:
            if e.status == 404:
                return False
            raise
        return True

    def search_code(self, repo_name: str, query: str) -> list[str]:
        """Search the repository's code.

        Args:
            repo_name: Repository in "owner/name" format
            query: Search terms, scoped to the repository automatically

        Returns:
            Paths of matching files, best match first
        """
        results = self._gh.search_code(f"{query} repo:{repo_name}")
        return [item.path for item in islice(results, MAX_SEARCH_RESULTS)]

    def create_review(
        self,
        repo_name: str,
        pr_number: int,
        commit_sha: str,
        verdict: Verdict,
        body: str,
        comments: list[InlineComment],
    ) -> None:
        """Post one combined review with inline comments.

        Args:
            repo_name: Repository in "owner/name" format
            pr_number: Pull request number
            commit_sha: Commit the inline comments are anchored to
            verdict: Review verdict
            body: Review body text
            comments: Inline comments to attach
        """
        repo = self.get_repo(repo_name)
        pr = repo.get_pull(pr_number)
        logger.info(
            f"Posting review to PR #{pr_number}: {verdict.github_event} "
            f"with {len(comments)} inline comments"
        )
        pr.create_review(
            commit=repo.get_commit(commit_sha),
            body=body,
            event=verdict.github_event,
            comments=[{"path": c.path, "line": c.line, "body": c.body} for c in comments],
        )

    def create_review_comment(
        self,
        repo_name: str,
        pr_number: int,
        commit_sha: str,
        comment: InlineComment,
    ) -> None:
        """Post a single inline comment on the PR diff."""
        repo = self.get_repo(repo_name)
        pr = repo.get_pull(pr_number)
        pr.create_review_comment(
            body=comment.body,
            commit=repo.get_commit(commit_sha),
            path=comment.path,
            line=comment.line,
        )
        logger.debug(f"Posted inline comment on {comment.path}:{comment.line}")

    def create_issue_comment(self, repo_name: str, pr_number: int, body: str) -> None:
        """Post a plain comment on the PR conversation."""
        self.get_pull_request(repo_name, pr_number).create_issue_comment(body)
        logger.info(f"Posted issue comment on PR #{pr_number}")


class RepositorySource:
    """Async read access to one repository at one ref.

    This is the source the dependency resolver fetches context through.
    """

    def __init__(self, client: GitHubClient, repo_name: str, ref: str) -> None:
        self.client = client
        self.repo_name = repo_name
        self.ref = ref

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self.client.get_file_content, self.repo_name, path, self.ref)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self.client.file_exists, self.repo_name, path, self.ref)

    async def search(self, query: str) -> list[str]:
        return await asyncio.to_thread(self.client.search_code, self.repo_name, query)
