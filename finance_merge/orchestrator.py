"""
Reconciliation Orchestrator for Finance Merge

This module ties the pure merge engine to auditing and configuration and
defines the end-to-end flow a host application runs when the persisted
document changed underneath it:

1. Merge (base + external + local → merged + conflicts)
2. Review (host presents conflicts to the user - outside this package)
3. Resolve (user choices → final document)

DESIGN DECISION: The orchestrator only returns data.
It never writes the document back and never flags unsaved changes;
the host decides when and how to persist the result.
"""

from collections import Counter
from collections.abc import Iterable
from typing import Optional
from uuid import UUID

from finance_merge.audit import AuditLogger, create_correlation_id
from finance_merge.config import ReconciliationSettings, get_settings
from finance_merge.models.merge import (
    ConflictResolution,
    Document,
    MergeResult,
    ResolutionChoice,
)
from finance_merge.reconciliation import (
    MergeContractError,
    MergeCoordinator,
    apply_plan,
    plan_resolutions,
)
from finance_merge.services.storage import AuditStorageInterface


class ReconciliationFlow:
    """
    Orchestrates a reconciliation.

    Flow:
    1. reconcile() → audited three-way merge
    2. Host shows MergeResult.conflicts to the user
    3. resolve() → audited application of the user's choices

    Conflicts are NEVER settled silently: anything the user did not decide
    falls back to the configured default choice, and that is audited.
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[ReconciliationSettings] = None,
        coordinator: Optional[MergeCoordinator] = None,
    ):
        self._settings = settings or get_settings()
        self._audit_logger = audit_logger
        self._coordinator = coordinator or MergeCoordinator(
            year_map_key=self._settings.year_map_key,
        )

    async def reconcile(
        self,
        base: Document,
        external: Document,
        local: Document,
        correlation_id: Optional[UUID] = None,
    ) -> MergeResult:
        """
        Merge the external and local documents against their ancestor.

        Returns:
            MergeResult with the auto-merged document and pending conflicts

        Raises:
            MergeContractError: Malformed snapshots (audited, then re-raised)
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._audit_logger:
            await self._audit_logger.log_merge_started(correlation_id)

        try:
            result = self._coordinator.merge(base, external, local)
        except MergeContractError as e:
            if self._audit_logger:
                await self._audit_logger.log_contract_violation(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            for conflict in result.conflicts:
                await self._audit_logger.log_conflict_detected(conflict, correlation_id)
            await self._audit_logger.log_merge_completed(
                auto_merged_count=result.auto_merged_count,
                conflict_count=result.conflict_count,
                correlation_id=correlation_id,
            )

        return result

    async def resolve(
        self,
        result: MergeResult,
        resolutions: Iterable[ConflictResolution] = (),
        default_choice: Optional[ResolutionChoice] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Document:
        """
        Apply the user's choices to a merge result.

        Args:
            result: Output of reconcile()
            resolutions: Decisions for some or all conflicts
            default_choice: Choice for undecided conflicts
                            (defaults to settings.default_resolution)
            correlation_id: Correlation ID of the reconcile() call

        Returns:
            The final document, ready for the host to persist
        """
        correlation_id = correlation_id or create_correlation_id()
        default_choice = default_choice or self._settings.default_resolution

        try:
            plan = plan_resolutions(result, resolutions, default_choice)
            document = apply_plan(result, plan, year_map_key=self._settings.year_map_key)
        except MergeContractError as e:
            if self._audit_logger:
                await self._audit_logger.log_contract_violation(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger and plan:
            choices = Counter(choice for _conflict, choice, _version in plan)
            await self._audit_logger.log_conflicts_resolved(dict(choices), correlation_id)

        return document


def create_reconciliation_flow(
    audit_storage: Optional[AuditStorageInterface] = None,
    settings: Optional[ReconciliationSettings] = None,
) -> ReconciliationFlow:
    """
    Factory function to create a reconciliation flow.

    Args:
        audit_storage: Where audit events are persisted.
                       If None, events only go to the structured log.
        settings: Explicit settings (defaults to environment settings)

    Returns:
        A ready-to-use ReconciliationFlow
    """
    settings = settings or get_settings()
    audit_logger = AuditLogger(
        storage=audit_storage,
        include_conflict_details=settings.log_conflict_details,
    )
    return ReconciliationFlow(audit_logger=audit_logger, settings=settings)
