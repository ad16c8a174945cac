"""Orchestrator components for Salesforce Reviewer."""

from salesforce_reviewer.orchestrator.aggregator import FileReview, ReviewAggregator, report_as_json
from salesforce_reviewer.orchestrator.orchestrator import (
    OrchestratorConfig,
    ReviewOrchestrator,
    RunResult,
    RunState,
)
from salesforce_reviewer.orchestrator.resolver import DependencyResolver, extract_dependencies

__all__ = [
    "DependencyResolver",
    "FileReview",
    "OrchestratorConfig",
    "ReviewAggregator",
    "ReviewOrchestrator",
    "RunResult",
    "RunState",
    "extract_dependencies",
    "report_as_json",
]
