"""Tests for configuration and audit storage."""

import asyncio

import pytest
from pydantic import ValidationError

from finance_merge.config import ReconciliationSettings, get_settings
from finance_merge.models.audit import AuditEvent, AuditEventType
from finance_merge.models.merge import ResolutionChoice
from finance_merge.services.storage import InMemoryAuditStorage, StorageError


class TestReconciliationSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in (
            "FINANCE_MERGE_DEFAULT_RESOLUTION",
            "FINANCE_MERGE_YEAR_MAP_KEY",
            "FINANCE_MERGE_LOG_CONFLICT_DETAILS",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = ReconciliationSettings(_env_file=None)
        assert settings.default_resolution == ResolutionChoice.LOCAL
        assert settings.year_map_key == "years"
        assert settings.log_conflict_details is True

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("FINANCE_MERGE_DEFAULT_RESOLUTION", "external")
        monkeypatch.setenv("FINANCE_MERGE_YEAR_MAP_KEY", "archive")
        settings = ReconciliationSettings(_env_file=None)
        assert settings.default_resolution == ResolutionChoice.EXTERNAL
        assert settings.year_map_key == "archive"

    def test_manual_default_rejected(self):
        with pytest.raises(ValidationError, match="default_resolution"):
            ReconciliationSettings(_env_file=None, default_resolution="manual")

    def test_year_key_cannot_shadow_collection(self):
        with pytest.raises(ValidationError, match="cannot shadow"):
            ReconciliationSettings(_env_file=None, year_map_key="transactions")

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()


class TestInMemoryAuditStorage:
    """Tests for the in-memory audit log."""

    def test_query_by_entity_and_recency(self):
        storage = InMemoryAuditStorage()
        first = AuditEvent(
            event_type=AuditEventType.CONFLICT_DETECTED,
            entity_type="account",
            entity_id="1",
            description="first",
        )
        second = AuditEvent(
            event_type=AuditEventType.MERGE_COMPLETED,
            description="second",
        )
        asyncio.run(storage.append_event(first))
        asyncio.run(storage.append_event(second))

        by_entity = asyncio.run(storage.get_events_by_entity("account", "1"))
        recent = asyncio.run(storage.get_recent_events(limit=1))

        assert by_entity == [first]
        assert recent == [second]
        assert len(storage) == 2

    def test_full_log_raises(self):
        storage = InMemoryAuditStorage(max_events=0)
        event = AuditEvent(event_type=AuditEventType.MERGE_STARTED, description="x")
        with pytest.raises(StorageError, match="full"):
            asyncio.run(storage.append_event(event))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
