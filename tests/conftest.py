"""
FILE: tests/conftest.py
Shared fixtures and marker routing for the investment proposal test suite.
"""

from pathlib import Path

import pytest

from src.api.routers.investment_proposals import reset_investment_services_for_tests


def _has_marker(item: pytest.Item, name: str) -> bool:
    return item.get_closest_marker(name) is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if (
            _has_marker(item, "unit")
            or _has_marker(item, "integration")
            or _has_marker(item, "e2e")
        ):
            continue

        path = Path(str(item.fspath)).as_posix().lower()
        if "/tests/integration/" in path or "_integration.py" in path:
            item.add_marker(pytest.mark.integration)
            continue
        if "/tests/e2e/" in path:
            item.add_marker(pytest.mark.e2e)
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def investment_runtime_test_harness(monkeypatch: pytest.MonkeyPatch):
    """Fresh in-memory wiring with instant background tasks for every test."""

    monkeypatch.setenv("INVESTMENT_STORE_BACKEND", "IN_MEMORY")
    monkeypatch.delenv("INVESTMENT_POSTGRES_DSN", raising=False)
    monkeypatch.delenv("INVESTMENT_MAX_AMOUNT", raising=False)
    monkeypatch.delenv("INVESTMENT_RISK_ASSESSMENT_SERVICE_URL", raising=False)
    monkeypatch.delenv("INVESTMENT_CAPABILITY_ENFORCEMENT_ENABLED", raising=False)
    monkeypatch.setenv("INVESTMENT_RISK_ASSESSMENT_DELAY_SECONDS", "0")
    monkeypatch.setenv("INVESTMENT_CLIENT_NOTIFICATION_DELAY_SECONDS", "0")
    reset_investment_services_for_tests()
    yield
    reset_investment_services_for_tests()
