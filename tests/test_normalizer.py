"""Tests for provider response normalization."""

import json

import pytest

from conftest import make_response


class TestStructuredParsing:
    """Tests for strict JSON decoding."""

    def test_parses_structured_response(self, critical_response):
        """Test a well-formed response."""
        from salesforce_reviewer.models.findings import Category, Severity
        from salesforce_reviewer.models.review import ParseMode
        from salesforce_reviewer.providers.normalizer import parse_review_response

        result = parse_review_response(critical_response)

        assert result.parse_mode == ParseMode.STRUCTURED
        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.line == 5
        assert finding.severity == Severity.CRITICAL
        assert finding.category == Category.SECURITY
        assert finding.suggestion.startswith("Use a bind variable")
        assert result.summary.critical_issues == 1

    @pytest.mark.parametrize("fence", ["```json\n{}\n```", "```\n{}\n```"])
    def test_strips_code_fence(self, fence, empty_response):
        """Test that an enclosing fence with or without a tag is removed."""
        from salesforce_reviewer.models.review import ParseMode
        from salesforce_reviewer.providers.normalizer import parse_review_response

        raw = fence.replace("{}", empty_response)
        result = parse_review_response(raw)

        assert result.parse_mode == ParseMode.STRUCTURED
        assert result.findings == []

    def test_summary_recomputed_from_findings(self):
        """Test that provider-reported counts are ignored."""
        from salesforce_reviewer.providers.normalizer import parse_review_response

        raw = json.dumps(
            {
                "feedback": [
                    {
                        "line": 1,
                        "message": "Hard-coded record type id",
                        "severity": "warning",
                        "category": "maintainability",
                    }
                ],
                "summary": {"totalIssues": 42, "criticalIssues": 7},
            }
        )

        result = parse_review_response(raw)

        assert result.summary.total_issues == 1
        assert result.summary.critical_issues == 0
        assert result.summary.warnings == 1

    def test_unknown_enums_use_defaults(self):
        """Test that unknown severity and category fall back."""
        from salesforce_reviewer.models.findings import Category, Severity
        from salesforce_reviewer.providers.normalizer import parse_review_response

        raw = make_response(
            [{"line": -4, "message": "Something odd", "severity": "blocker", "category": "style"}]
        )

        finding = parse_review_response(raw).findings[0]

        assert finding.severity == Severity.IMPROVEMENT
        assert finding.category == Category.BUG
        assert finding.line == 1

    def test_drops_malformed_items(self):
        """Test that items without a message are dropped."""
        from salesforce_reviewer.providers.normalizer import parse_review_response

        raw = make_response(
            [
                "not an object",
                {"line": 3},
                {"line": "7", "message": "Missing null check on query result"},
            ]
        )

        result = parse_review_response(raw)

        assert [f.line for f in result.findings] == [7]

    def test_bool_total_is_not_numeric(self):
        """Test that a boolean totalIssues fails strict decoding."""
        from salesforce_reviewer.models.review import ParseMode
        from salesforce_reviewer.providers.normalizer import parse_review_response

        raw = json.dumps({"feedback": [], "summary": {"totalIssues": True}})

        assert parse_review_response(raw).parse_mode == ParseMode.HEURISTIC

    def test_pr_analysis(self):
        """Test that PR analysis is carried through."""
        from salesforce_reviewer.models.review import RiskTier
        from salesforce_reviewer.providers.normalizer import parse_review_response

        raw = make_response(
            [],
            prAnalysis={
                "totalFilesChanged": 2,
                "overview": "Adds account search",
                "primaryChanges": ["AccountService"],
                "riskLevel": "Medium",
                "recommendationSummary": "Looks fine",
            },
        )

        analysis = parse_review_response(raw).analysis

        assert analysis.overview == "Adds account search"
        assert analysis.primary_changes == ["AccountService"]
        assert analysis.risk_tier == RiskTier.MEDIUM
        assert analysis.recommendation == "Looks fine"


class TestHeuristicParsing:
    """Tests for free-text recovery."""

    def test_extracts_findings_from_text(self):
        """Test File/Line markers drive heuristic extraction."""
        from salesforce_reviewer.models.findings import Category, Severity
        from salesforce_reviewer.models.review import ParseMode
        from salesforce_reviewer.providers.normalizer import parse_review_response

        raw = "\n".join(
            [
                "Here is my review.",
                "File: classes/AccountService.cls",
                "Line 12: possible SOQL injection vulnerability in query",
                "Consider refactor of this complex method",
                "short",
            ]
        )

        result = parse_review_response(raw)

        assert result.parse_mode == ParseMode.HEURISTIC
        assert len(result.findings) == 2
        first, second = result.findings
        assert first.file_path == "classes/AccountService.cls"
        assert first.line == 12
        assert first.severity == Severity.CRITICAL
        assert first.category == Category.SECURITY
        assert second.line == 12
        assert second.severity == Severity.IMPROVEMENT
        assert second.category == Category.MAINTAINABILITY

    def test_nothing_before_markers(self):
        """Test that text without both markers yields no findings."""
        from salesforce_reviewer.providers.normalizer import parse_review_response

        raw = "This code has a serious performance problem somewhere.\nLine 4: but no file given here"

        assert parse_review_response(raw).findings == []

    def test_keyword_inference(self):
        """Test the keyword tables."""
        from salesforce_reviewer.models.findings import Category, Severity
        from salesforce_reviewer.providers.normalizer import infer_category, infer_severity

        assert infer_severity("Unhandled error on insert") == Severity.CRITICAL
        assert infer_severity("Minor issue with naming") == Severity.WARNING
        assert infer_severity("Could be tidier") == Severity.IMPROVEMENT
        assert infer_category("slow loop") == Category.PERFORMANCE
        assert infer_category("follow naming convention") == Category.BEST_PRACTICE
        assert infer_category("wrong result") == Category.BUG


class TestNeverRaises:
    """The normalizer must accept any input."""

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "null",
            "[]",
            "{",
            "```",
            "```json\n```",
            '{"feedback": "nope", "summary": {"totalIssues": 0}}',
            '{"feedback": [], "summary": []}',
            "Line 99999999999999999999: File: x",
            "[" * 10000,
            None,
            123,
        ],
    )
    def test_returns_result(self, raw):
        """Test that malformed input returns a result instead of raising."""
        from salesforce_reviewer.models.review import ReviewResult
        from salesforce_reviewer.providers.normalizer import parse_review_response

        result = parse_review_response(raw)

        assert isinstance(result, ReviewResult)
        assert result.summary.total_issues == len(result.findings)
