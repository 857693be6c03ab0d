"""Configuration package."""

from finance_merge.config.settings import (
    ReconciliationSettings,
    get_settings,
)

__all__ = [
    "ReconciliationSettings",
    "get_settings",
]
