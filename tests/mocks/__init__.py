"""Mock implementations for testing."""

from tests.mocks.api import (
    MockDashboardClient,
    make_analysis,
    make_opportunity,
    make_risk_settings,
    responder,
    wait_for,
)


__all__ = [
    "MockDashboardClient",
    "make_analysis",
    "make_opportunity",
    "make_risk_settings",
    "responder",
    "wait_for",
]
