"""Finding models for code review results."""

from dataclasses import dataclass, replace
from enum import Enum


class Severity(Enum):
    """Severity levels for findings.

    - CRITICAL: Must fix before merge (security, data loss, governor limit breaches).
    - WARNING: Should fix; a real issue but not blocking.
    - IMPROVEMENT: Optional enhancement.
    """

    CRITICAL = "critical"
    WARNING = "warning"
    IMPROVEMENT = "improvement"

    @property
    def emoji(self) -> str:
        return {
            Severity.CRITICAL: "🔴",
            Severity.WARNING: "🟡",
            Severity.IMPROVEMENT: "🔵",
        }[self]


class Category(Enum):
    """Categories for review findings."""

    SECURITY = "security"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    BEST_PRACTICE = "best-practice"
    BUG = "bug"

    @property
    def tag(self) -> str:
        """Heading used on inline comments."""
        return {
            Category.SECURITY: "Security Issue",
            Category.PERFORMANCE: "Performance",
            Category.MAINTAINABILITY: "Maintainability",
            Category.BEST_PRACTICE: "Best Practice",
            Category.BUG: "Potential Bug",
        }[self]

    @property
    def emoji(self) -> str:
        return {
            Category.SECURITY: "🔒",
            Category.PERFORMANCE: "⚡",
            Category.MAINTAINABILITY: "🔧",
            Category.BEST_PRACTICE: "📚",
            Category.BUG: "🐛",
        }[self]


@dataclass(frozen=True)
class Finding:
    """A single issue reported against one line of one file."""

    line: int
    message: str
    severity: Severity
    category: Category
    file_path: str
    suggestion: str | None = None

    def __post_init__(self) -> None:
        """Validate finding data."""
        if self.line < 1:
            raise ValueError(f"line must be >= 1, got {self.line}")

    def with_file(self, file_path: str) -> "Finding":
        """Return a copy of this finding attached to another file."""
        return replace(self, file_path=file_path)
