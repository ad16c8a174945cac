"""Data models for Salesforce Reviewer."""

from salesforce_reviewer.models.context import ContextFile, ContextSet
from salesforce_reviewer.models.files import (
    ChangedFile,
    ChangeStatus,
    FileCategory,
    FileKind,
    Priority,
    classify,
)
from salesforce_reviewer.models.findings import Category, Finding, Severity
from salesforce_reviewer.models.review import (
    AggregateReport,
    InlineComment,
    ParseMode,
    PRAnalysis,
    ReviewResult,
    ReviewSummary,
    RiskTier,
    Verdict,
)

__all__ = [
    "AggregateReport",
    "Category",
    "ChangedFile",
    "ChangeStatus",
    "ContextFile",
    "ContextSet",
    "FileCategory",
    "FileKind",
    "Finding",
    "InlineComment",
    "ParseMode",
    "PRAnalysis",
    "Priority",
    "ReviewResult",
    "ReviewSummary",
    "RiskTier",
    "Verdict",
    "classify",
]
