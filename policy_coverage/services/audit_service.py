"""
Audit Service — records a redacted trail of assessments and reviews.

Only summaries go into the trail (citation, candidate count, verdict, a
digest of the prompt); full prompts and responses never do.  A failed audit
write is logged and dropped, it never fails the operation being audited.
"""

from __future__ import annotations

import logging
from typing import Any

from policy_coverage.config import get_settings
from policy_coverage.models.schemas import AuditEvent
from policy_coverage.persistence.coverage_repository import CoverageRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Writes audit events through the coverage repository."""

    def __init__(self, repository: CoverageRepository):
        self.repository = repository
        self.org_id = get_settings().org_id

    def record(
        self,
        event_type: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
        actor: str = "system",
        model_id: str | None = None,
        prompt_version: str | None = None,
        input_summary: str | None = None,
        output_summary: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditEvent | None:
        """Record an audit entry and return it (None if the write failed)."""
        try:
            event = AuditEvent(
                org_id=self.org_id,
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                actor=actor,
                model_id=model_id,
                prompt_version=prompt_version,
                input_summary=input_summary,
                output_summary=output_summary,
                metadata=metadata or {},
            )
            self.repository.record_audit_event(event)
        except Exception as exc:
            logger.error(f"[AUDIT] Failed to record {event_type} for {entity_id}: {exc}")
            return None

        logger.debug(f"[AUDIT] {actor} → {event_type}: {output_summary or ''}")
        return event

    def get_trail(self, entity_id: str) -> list[AuditEvent]:
        """Return all audit events for one entity."""
        return [e for e in self.repository.list_audit_events() if e.entity_id == entity_id]
