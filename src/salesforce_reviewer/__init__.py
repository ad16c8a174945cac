"""Salesforce Reviewer - LLM-powered pull request reviews for Salesforce code."""

__version__ = "0.1.0"
