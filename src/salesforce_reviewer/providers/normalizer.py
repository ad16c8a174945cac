"""Normalization of raw provider output into review results.

Parsing runs in two phases. Strict decoding accepts a JSON object with a
``feedback`` list and a ``summary`` object holding a numeric ``totalIssues``.
Anything else falls through to a line-oriented heuristic extractor that
recognizes ``File: <path>`` and ``Line <N>:`` markers. Parsing never raises;
summary counts are always recomputed from the final finding list.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from salesforce_reviewer.models.findings import Category, Finding, Severity
from salesforce_reviewer.models.review import (
    ParseMode,
    PRAnalysis,
    ReviewResult,
    ReviewSummary,
    RiskTier,
)

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[\w-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_LINE_MARKER = re.compile(r"Line\s+(\d{1,9}):")
_FILE_MARKER = re.compile(r"File:\s*(.+)")

# Heuristic lines must be longer than this to count as a finding
MIN_MESSAGE_LENGTH = 20

_SEVERITY_KEYWORDS: list[tuple[Severity, tuple[str, ...]]] = [
    (Severity.CRITICAL, ("security", "vulnerability", "injection", "error")),
    (Severity.WARNING, ("warning", "issue", "problem")),
]

_CATEGORY_KEYWORDS: list[tuple[Category, tuple[str, ...]]] = [
    (Category.SECURITY, ("security", "injection", "vulnerability")),
    (Category.PERFORMANCE, ("performance", "slow", "optimize")),
    (Category.MAINTAINABILITY, ("maintain", "complex", "refactor")),
    (Category.BEST_PRACTICE, ("best practice", "convention", "standard")),
]


@dataclass(frozen=True)
class StructuredParse:
    """A response that decoded into the expected JSON shape."""

    findings: list[Finding]
    recommendations: list[str]
    analysis: PRAnalysis | None


@dataclass(frozen=True)
class HeuristicParse:
    """A response recovered by line-oriented heuristics."""

    findings: list[Finding]


ParseOutcome = StructuredParse | HeuristicParse


def parse_review_response(raw: str) -> ReviewResult:
    """Parse raw provider text into a review result.

    Args:
        raw: Response text exactly as returned by the backend

    Returns:
        A well-formed ReviewResult, possibly with zero findings
    """
    outcome = parse_outcome(raw)

    if isinstance(outcome, StructuredParse):
        return ReviewResult(
            findings=outcome.findings,
            summary=ReviewSummary.from_findings(outcome.findings, outcome.recommendations),
            analysis=outcome.analysis,
            parse_mode=ParseMode.STRUCTURED,
        )

    return ReviewResult(
        findings=outcome.findings,
        summary=ReviewSummary.from_findings(outcome.findings),
        parse_mode=ParseMode.HEURISTIC,
    )


def parse_outcome(raw: str) -> ParseOutcome:
    """Run strict decoding, falling back to heuristic extraction."""
    if not isinstance(raw, str):
        logger.warning(f"Provider response is {type(raw).__name__}, not text")
        return HeuristicParse(findings=[])

    payload = decode_structured(strip_fence(raw))
    if payload is not None:
        return StructuredParse(
            findings=_findings_from_payload(payload["feedback"]),
            recommendations=_string_list(payload["summary"].get("recommendations")),
            analysis=_analysis_from_payload(payload.get("prAnalysis")),
        )

    logger.warning("Structured parsing failed, using heuristic extraction")
    return HeuristicParse(findings=extract_heuristic_findings(raw))


def strip_fence(text: str) -> str:
    """Remove a single enclosing markdown fence, with or without a language tag."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", cleaned, count=1), count=1)
    return cleaned


def decode_structured(text: str) -> dict[str, Any] | None:
    """Decode and validate the structured response shape.

    Returns:
        The decoded payload, or None if it is not valid JSON of the right shape
    """
    try:
        payload = json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.debug(f"JSON decoding failed: {e}")
        return None

    if not isinstance(payload, dict):
        return None
    if not isinstance(payload.get("feedback"), list):
        return None

    summary = payload.get("summary")
    if not isinstance(summary, dict):
        return None

    total = summary.get("totalIssues")
    if isinstance(total, bool) or not isinstance(total, (int, float)):
        return None

    return payload


def extract_heuristic_findings(raw: str) -> list[Finding]:
    """Recover findings from free text.

    A ``File:`` line sets the current file and a ``Line <N>:`` line sets the
    current line. While both are set, every line longer than
    MIN_MESSAGE_LENGTH becomes a finding, including the ``Line`` line itself.
    """
    findings: list[Finding] = []
    current_file = ""
    current_line = 0

    for line in raw.split("\n"):
        trimmed = line.strip()

        line_match = _LINE_MARKER.search(trimmed)
        if line_match:
            current_line = int(line_match.group(1))

        file_match = _FILE_MARKER.search(trimmed)
        if file_match:
            current_file = file_match.group(1).strip()
            continue

        if len(trimmed) > MIN_MESSAGE_LENGTH and current_file and current_line > 0:
            findings.append(
                Finding(
                    line=current_line,
                    message=trimmed,
                    severity=infer_severity(trimmed),
                    category=infer_category(trimmed),
                    file_path=current_file,
                )
            )

    return findings


def infer_severity(message: str) -> Severity:
    """Guess a severity from keywords in the message."""
    lowered = message.lower()
    for severity, keywords in _SEVERITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return severity
    return Severity.IMPROVEMENT


def infer_category(message: str) -> Category:
    """Guess a category from keywords in the message."""
    lowered = message.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return Category.BUG


def _findings_from_payload(items: list[Any]) -> list[Finding]:
    findings = []
    for item in items:
        finding = _finding_from_item(item)
        if finding is None:
            logger.warning(f"Dropping malformed feedback item: {item!r}")
            continue
        findings.append(finding)
    return findings


def _finding_from_item(item: Any) -> Finding | None:
    if not isinstance(item, dict):
        return None

    message = item.get("message")
    if not isinstance(message, str) or not message.strip():
        return None

    try:
        line = max(1, int(item.get("line", 1)))
    except (TypeError, ValueError, OverflowError):
        line = 1

    file_path = item.get("file")
    suggestion = item.get("suggestion")

    return Finding(
        line=line,
        message=message.strip(),
        severity=_enum_value(Severity, item.get("severity"), Severity.IMPROVEMENT),
        category=_enum_value(Category, item.get("category"), Category.BUG),
        file_path=file_path if isinstance(file_path, str) else "",
        suggestion=suggestion if isinstance(suggestion, str) and suggestion.strip() else None,
    )


def _analysis_from_payload(raw: Any) -> PRAnalysis | None:
    if not isinstance(raw, dict):
        return None

    risk = raw.get("riskLevel")
    risk_tier = _enum_value(RiskTier, risk, None) if isinstance(risk, str) else None

    return PRAnalysis(
        files_changed=_int_or_zero(raw.get("totalFilesChanged")),
        lines_added=_int_or_zero(raw.get("linesAdded")),
        lines_deleted=_int_or_zero(raw.get("linesDeleted")),
        overview=_optional_text(raw.get("overview")),
        primary_changes=_string_list(raw.get("primaryChanges")),
        risk_tier=risk_tier,
        recommendation=_optional_text(raw.get("recommendationSummary")),
    )


def _enum_value(enum_cls: Any, value: Any, default: Any) -> Any:
    if not isinstance(value, str):
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return default


def _int_or_zero(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]
