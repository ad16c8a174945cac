"""Review aggregator for merging per-file reviews into one PR review."""

import logging
from dataclasses import dataclass

from salesforce_reviewer.models.files import ChangedFile
from salesforce_reviewer.models.findings import Finding, Severity
from salesforce_reviewer.models.review import (
    AggregateReport,
    InlineComment,
    PRAnalysis,
    ReviewResult,
    RiskTier,
    Verdict,
    count_by_category,
    count_by_severity,
)

logger = logging.getLogger(__name__)

FOOTER = "*🚀 Powered by Salesforce Reviewer - Context-aware Salesforce code reviews*"

# Thresholds for deriving a risk tier when no provider supplied one
HIGH_RISK_ISSUES = 10
MEDIUM_RISK_ISSUES = 3
MEDIUM_RISK_LINES = 100


@dataclass(frozen=True)
class FileReview:
    """Provider result for a single changed file."""

    path: str
    result: ReviewResult


def derive_risk_tier(critical: int, total: int, lines_changed: int) -> RiskTier:
    """Derive a risk tier from finding counts and change size."""
    if critical > 0 or total > HIGH_RISK_ISSUES:
        return RiskTier.HIGH
    if total > MEDIUM_RISK_ISSUES or lines_changed > MEDIUM_RISK_LINES:
        return RiskTier.MEDIUM
    return RiskTier.LOW


def determine_verdict(findings: list[Finding]) -> Verdict:
    """Pick the review verdict.

    Any critical finding requests changes; no findings at all approves;
    everything else is a plain comment.
    """
    if any(f.severity == Severity.CRITICAL for f in findings):
        return Verdict.REQUEST_CHANGES
    if not findings:
        return Verdict.APPROVE
    return Verdict.COMMENT


def format_inline_comment(finding: Finding) -> InlineComment:
    """Render a finding as an inline review comment."""
    body = f"{finding.severity.emoji} **{finding.category.tag}**\n\n{finding.message}"
    if finding.suggestion and finding.suggestion.strip():
        body += f"\n\n**💡 Suggestion:**\n{finding.suggestion}"
    return InlineComment(path=finding.file_path, line=finding.line, body=body)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


class ReviewAggregator:
    """Combines per-file reviews into an aggregate report."""

    def aggregate(
        self,
        reviews: list[FileReview],
        changed_files: list[ChangedFile],
        files_skipped: list[str] | None = None,
    ) -> AggregateReport:
        """Merge per-file reviews.

        Args:
            reviews: Successful per-file reviews, in review order
            changed_files: Every file changed by the PR, used for line totals
            files_skipped: Paths that were filtered in but not reviewed; kept for
                callers, never rendered into the PR review

        Returns:
            AggregateReport with counts, risk tier, verdict, summary and comments
        """
        findings = [
            finding.with_file(review.path)
            for review in reviews
            for finding in review.result.findings
        ]

        by_severity = count_by_severity(findings)
        by_category = count_by_category(findings)
        analysis = self._merge_analysis(reviews, changed_files)

        critical = by_severity[Severity.CRITICAL]
        lines_changed = analysis.lines_added + analysis.lines_deleted
        risk_tier = analysis.risk_tier or derive_risk_tier(critical, len(findings), lines_changed)

        verdict = determine_verdict(findings)
        recommendation = analysis.recommendation or self._recommendation(len(findings), critical)

        report = AggregateReport(
            findings=findings,
            by_severity=by_severity,
            by_category=by_category,
            risk_tier=risk_tier,
            recommendation=recommendation,
            summary="",
            verdict=verdict,
            comments=[format_inline_comment(f) for f in findings],
            files_reviewed=[review.path for review in reviews],
            files_skipped=list(files_skipped or []),
        )
        report.summary = self.render_summary(report, analysis)

        logger.info(
            f"Aggregated {len(findings)} findings from {len(reviews)} files: "
            f"verdict={verdict.value}, risk={risk_tier.value}"
        )
        return report

    def _merge_analysis(
        self, reviews: list[FileReview], changed_files: list[ChangedFile]
    ) -> PRAnalysis:
        """Take the first provider analysis and overlay the real change stats.

        The risk tier comes from the first analysis that supplies one, which
        need not be the analysis the overview comes from.
        """
        analyses = [r.result.analysis for r in reviews if r.result.analysis]
        supplied = analyses[0] if analyses else None
        risk_tier = next((a.risk_tier for a in analyses if a.risk_tier), None)

        lines_added = sum(f.additions for f in changed_files)
        lines_deleted = sum(f.deletions for f in changed_files)

        if supplied is None:
            return PRAnalysis(
                files_changed=len(changed_files),
                lines_added=lines_added,
                lines_deleted=lines_deleted,
            )

        return PRAnalysis(
            files_changed=len(changed_files),
            lines_added=lines_added,
            lines_deleted=lines_deleted,
            overview=supplied.overview,
            primary_changes=list(supplied.primary_changes),
            risk_tier=risk_tier,
            recommendation=supplied.recommendation,
        )

    def _recommendation(self, total: int, critical: int) -> str:
        if total == 0:
            return "**APPROVE** - No issues found. The code looks good to merge."
        if critical > 0:
            return (
                f"**REQUEST_CHANGES** - Address {critical} critical "
                f"{_plural(critical, 'issue', 'issues')} before merge. "
                "Other improvements will enhance code quality."
            )
        return (
            f"**COMMENT** - Consider addressing {total} "
            f"{_plural(total, 'suggestion', 'suggestions')} to improve code quality, "
            "but no blocking issues found."
        )

    def render_summary(self, report: AggregateReport, analysis: PRAnalysis) -> str:
        """Render the markdown body of the PR review."""
        files_count = len(report.files_reviewed)
        total = len(report.findings)

        overview = analysis.overview or (
            f"This pull request modifies {files_count} Salesforce "
            f"{_plural(files_count, 'file', 'files')} with various improvements and updates."
        )

        tier = report.risk_tier
        impact_areas = ""
        if analysis.primary_changes:
            impact_areas = f" affecting {', '.join(analysis.primary_changes)}"

        lines = [
            "## 🔍 **Code Review Analysis**",
            "",
            "### **Overview**",
            overview,
            "",
            f"**Impact Assessment:** {tier.emoji} {tier.value.capitalize()} risk changes{impact_areas}.",
            "",
            "### **📊 Analysis Results**",
            f"- **Files Reviewed:** {files_count} Salesforce files",
            f"- **Lines Changed:** +{analysis.lines_added}/-{analysis.lines_deleted}",
        ]
        if total > 0:
            lines.append(f"- **Issues Found:** {total} items requiring attention")
        else:
            lines.append("- **Issues Found:** None")

        if total > 0:
            critical = report.by_severity[Severity.CRITICAL]
            warnings = report.by_severity[Severity.WARNING]
            improvements = report.by_severity[Severity.IMPROVEMENT]
            lines.extend(
                [
                    "",
                    "### **🚨 Priority Actions**",
                    f"- 🔴 **Critical ({critical})**: "
                    f"{'Requires immediate attention' if critical else 'None'}",
                    f"- 🟡 **Warning ({warnings})**: {'Should be addressed' if warnings else 'None'}",
                    f"- 🔵 **Enhancement ({improvements})**: "
                    f"{'Optional improvements' if improvements else 'None'}",
                ]
            )

            if report.by_category:
                lines.extend(["", "### **📋 Findings by Category**"])
                for category, count in report.by_category.items():
                    lines.append(f"- {category.emoji} **{category.value}**: {count}")

        lines.extend(
            [
                "",
                "### **✅ Recommendation**",
                report.recommendation,
                "",
                "---",
                FOOTER,
            ]
        )
        return "\n".join(lines)


def report_as_json(report: AggregateReport) -> dict:
    """Convert a report to a JSON-serializable dict."""
    return {
        "verdict": report.verdict.value,
        "risk_tier": report.risk_tier.value,
        "recommendation": report.recommendation,
        "summary": {
            "total_issues": len(report.findings),
            "by_severity": {s.value: n for s, n in report.by_severity.items()},
            "by_category": {c.value: n for c, n in report.by_category.items()},
        },
        "files_reviewed": report.files_reviewed,
        "findings": [
            {
                "file": f.file_path,
                "line": f.line,
                "severity": f.severity.value,
                "category": f.category.value,
                "message": f.message,
                "suggestion": f.suggestion,
            }
            for f in report.findings
        ],
        "body": report.summary,
    }
