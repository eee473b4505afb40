"""Dependency injection for FastAPI."""

from quotedesk.config.settings import settings
from quotedesk.orchestrator import BatchFetchOrchestrator
from quotedesk.service import build_orchestrator


def get_orchestrator() -> BatchFetchOrchestrator:
    """Provide a BatchFetchOrchestrator wired to Redis and Alpha Vantage."""
    return build_orchestrator(settings)
