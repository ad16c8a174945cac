"""Review result models."""

from dataclasses import dataclass, field
from enum import Enum

from salesforce_reviewer.models.findings import Category, Finding, Severity


class RiskTier(Enum):
    """Coarse impact classification of a pull request."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def emoji(self) -> str:
        return {RiskTier.LOW: "🟢", RiskTier.MEDIUM: "🟡", RiskTier.HIGH: "🔴"}[self]


class Verdict(Enum):
    """Overall recommendation for a pull request."""

    APPROVE = "approve"
    COMMENT = "comment"
    REQUEST_CHANGES = "request-changes"

    @property
    def github_event(self) -> str:
        """Review event name expected by the GitHub API."""
        return self.value.replace("-", "_").upper()


class ParseMode(Enum):
    """How a raw provider response was turned into a result."""

    STRUCTURED = "structured"
    HEURISTIC = "heuristic"


@dataclass(frozen=True)
class ReviewSummary:
    """Finding counts, always derived from a finding list."""

    total_issues: int
    critical_issues: int
    warnings: int
    improvements: int
    categories: dict[Category, int]
    recommendations: list[str] = field(default_factory=list)

    @classmethod
    def from_findings(
        cls, findings: list[Finding], recommendations: list[str] | None = None
    ) -> "ReviewSummary":
        """Recompute counts from findings."""
        by_severity = count_by_severity(findings)
        return cls(
            total_issues=len(findings),
            critical_issues=by_severity[Severity.CRITICAL],
            warnings=by_severity[Severity.WARNING],
            improvements=by_severity[Severity.IMPROVEMENT],
            categories=count_by_category(findings),
            recommendations=list(recommendations or []),
        )


@dataclass(frozen=True)
class PRAnalysis:
    """Optional PR-level analysis a provider may return alongside findings."""

    files_changed: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    overview: str | None = None
    primary_changes: list[str] = field(default_factory=list)
    risk_tier: RiskTier | None = None
    recommendation: str | None = None


@dataclass(frozen=True)
class ReviewResult:
    """Normalized review of one unit of code."""

    findings: list[Finding]
    summary: ReviewSummary
    analysis: PRAnalysis | None = None
    parse_mode: ParseMode = ParseMode.STRUCTURED

    @classmethod
    def empty(cls) -> "ReviewResult":
        return cls(findings=[], summary=ReviewSummary.from_findings([]))


@dataclass(frozen=True)
class InlineComment:
    """A comment anchored to a line of a file in the PR diff."""

    path: str
    line: int
    body: str


@dataclass
class AggregateReport:
    """Final merged review for a pull request."""

    findings: list[Finding]
    by_severity: dict[Severity, int]
    by_category: dict[Category, int]
    risk_tier: RiskTier
    recommendation: str
    summary: str
    verdict: Verdict
    comments: list[InlineComment] = field(default_factory=list)
    files_reviewed: list[str] = field(default_factory=list)
    files_skipped: list[str] = field(default_factory=list)

    @property
    def has_critical_issues(self) -> bool:
        """Check if the report has any critical findings."""
        return self.by_severity.get(Severity.CRITICAL, 0) > 0


def count_by_severity(findings: list[Finding]) -> dict[Severity, int]:
    """Count findings by severity level."""
    counts: dict[Severity, int] = dict.fromkeys(Severity, 0)
    for finding in findings:
        counts[finding.severity] += 1
    return counts


def count_by_category(findings: list[Finding]) -> dict[Category, int]:
    """Count findings by category, omitting categories with no findings."""
    counts: dict[Category, int] = {}
    for finding in findings:
        counts[finding.category] = counts.get(finding.category, 0) + 1
    return counts
