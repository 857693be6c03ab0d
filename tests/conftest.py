"""Shared fixtures for the reconciliation tests."""

import pytest

from finance_merge.config import ReconciliationSettings


@pytest.fixture
def settings() -> ReconciliationSettings:
    """Settings independent of the environment running the tests."""
    return ReconciliationSettings(
        app_environment="test",
        default_resolution="local",
        year_map_key="years",
        log_conflict_details=True,
    )
