"""
Coverage Repository — obligation/policy store and assessment persistence.

Reads the corpus (obligations, policies, provisions, sub-domain labels) and
writes assessments, audit events and review overrides.  Two backends:
in-memory for mock mode and tests, MongoDB for real runs.

Assessments are unique per (obligation_id, run_id): saving a second one for
the same pair returns the row already stored.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from policy_coverage.config import get_settings
from policy_coverage.matching.corpus import PolicyCorpus
from policy_coverage.models.schemas import (
    Assessment,
    AuditEvent,
    Obligation,
    Policy,
    Provision,
    ReviewRequest,
    SubDomainLabel,
)
from policy_coverage.persistence.mongo_client import MongoClient

logger = logging.getLogger(__name__)


class CoverageRepository(ABC):
    """Store boundary used by the assessment and review services."""

    # ── Corpus (read-only inputs) ────────────────────────

    @abstractmethod
    def list_obligations(self) -> list[Obligation]: ...

    @abstractmethod
    def get_obligation(self, obligation_id: str) -> Obligation | None: ...

    @abstractmethod
    def list_policies(self) -> list[Policy]: ...

    @abstractmethod
    def list_provisions(self) -> list[Provision]: ...

    @abstractmethod
    def list_sub_domain_labels(self) -> list[SubDomainLabel]: ...

    @abstractmethod
    def seed(
        self,
        obligations: list[Obligation] = (),
        policies: list[Policy] = (),
        provisions: list[Provision] = (),
        labels: list[SubDomainLabel] = (),
    ) -> None:
        """Load corpus rows (upstream extraction output)."""

    # ── Assessments ──────────────────────────────────────

    @abstractmethod
    def save_assessment(self, assessment: Assessment) -> Assessment: ...

    @abstractmethod
    def get_assessment(self, assessment_id: str) -> Assessment | None: ...

    @abstractmethod
    def find_assessment(self, obligation_id: str, run_id: str) -> Assessment | None:
        """The assessment already stored for this obligation in this run, if any."""

    @abstractmethod
    def list_assessments(self, run_id: str | None = None) -> list[Assessment]: ...

    @abstractmethod
    def apply_review(self, assessment_id: str, review: ReviewRequest) -> Assessment | None:
        """Layer a human override on top of the stored verdict."""

    # ── Audit ────────────────────────────────────────────

    @abstractmethod
    def record_audit_event(self, event: AuditEvent) -> None: ...

    @abstractmethod
    def list_audit_events(self) -> list[AuditEvent]: ...

    def close(self) -> None:
        """Release backend connections."""

    # ── Shared helpers ───────────────────────────────────

    def load_corpus(self) -> PolicyCorpus:
        corpus = PolicyCorpus(
            policies=self.list_policies(),
            provisions=self.list_provisions(),
            labels=self.list_sub_domain_labels(),
        )
        logger.info(
            f"Loaded corpus: {len(corpus.policies)} policies, "
            f"{len(corpus.provisions)} provisions, {len(corpus.labels)} labels"
        )
        return corpus

    def unassessed_obligations(self, run_id: str | None = None) -> list[Obligation]:
        """Obligations with no assessment (in the given run, or in any run)."""
        assessed = {a.obligation_id for a in self.list_assessments(run_id)}
        pending = [o for o in self.list_obligations() if o.id not in assessed]
        pending.sort(key=lambda o: (o.source_id, o.citation))
        return pending

    def next_unassessed_obligation(self, run_id: str | None = None) -> Obligation | None:
        pending = self.unassessed_obligations(run_id)
        return pending[0] if pending else None

    def load_corpus_file(self, path: str | Path) -> int:
        """Seed from a JSON file with obligations/policies/provisions/sub_domain_labels."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        obligations = [Obligation(**o) for o in data.get("obligations", [])]
        policies = [Policy(**p) for p in data.get("policies", [])]
        provisions = [Provision(**p) for p in data.get("provisions", [])]
        labels = [SubDomainLabel(**label) for label in data.get("sub_domain_labels", [])]
        self.seed(obligations, policies, provisions, labels)
        logger.info(
            f"Seeded {len(obligations)} obligations, {len(policies)} policies, "
            f"{len(provisions)} provisions from {path}"
        )
        return len(obligations)


class InMemoryCoverageRepository(CoverageRepository):
    """Dict-backed store.  Thread-safe so batch workers can share it."""

    def __init__(self):
        self._lock = threading.Lock()
        self._obligations: dict[str, Obligation] = {}
        self._policies: dict[str, Policy] = {}
        self._provisions: dict[str, Provision] = {}
        self._labels: list[SubDomainLabel] = []
        self._assessments: dict[str, Assessment] = {}
        self._run_index: dict[tuple[str, str], str] = {}
        self._audit_events: list[AuditEvent] = []

    def list_obligations(self) -> list[Obligation]:
        return list(self._obligations.values())

    def get_obligation(self, obligation_id: str) -> Obligation | None:
        return self._obligations.get(obligation_id)

    def list_policies(self) -> list[Policy]:
        return list(self._policies.values())

    def list_provisions(self) -> list[Provision]:
        return list(self._provisions.values())

    def list_sub_domain_labels(self) -> list[SubDomainLabel]:
        return list(self._labels)

    def seed(self, obligations=(), policies=(), provisions=(), labels=()) -> None:
        with self._lock:
            self._obligations.update({o.id: o for o in obligations})
            self._policies.update({p.id: p for p in policies})
            self._provisions.update({p.id: p for p in provisions})
            self._labels.extend(labels)

    def save_assessment(self, assessment: Assessment) -> Assessment:
        key = (assessment.obligation_id, assessment.run_id)
        with self._lock:
            existing_id = self._run_index.get(key)
            if existing_id is not None:
                logger.warning(
                    f"Assessment for {assessment.obligation_id} in run "
                    f"{assessment.run_id!r} already stored — keeping {existing_id}"
                )
                return self._assessments[existing_id].model_copy(deep=True)
            stored = assessment.model_copy(deep=True)
            self._assessments[stored.id] = stored
            self._run_index[key] = stored.id
        logger.debug(f"Saved assessment {stored.id} for {stored.obligation_id}")
        return stored.model_copy(deep=True)

    def get_assessment(self, assessment_id: str) -> Assessment | None:
        found = self._assessments.get(assessment_id)
        return found.model_copy(deep=True) if found else None

    def find_assessment(self, obligation_id: str, run_id: str) -> Assessment | None:
        existing_id = self._run_index.get((obligation_id, run_id))
        return self.get_assessment(existing_id) if existing_id else None

    def list_assessments(self, run_id: str | None = None) -> list[Assessment]:
        return [
            a.model_copy(deep=True)
            for a in self._assessments.values()
            if run_id is None or a.run_id == run_id
        ]

    def apply_review(self, assessment_id: str, review: ReviewRequest) -> Assessment | None:
        with self._lock:
            stored = self._assessments.get(assessment_id)
            if stored is None:
                return None
            stored.human_status = review.human_status
            stored.review_notes = review.review_notes
            stored.reviewed_by = review.reviewed_by
            stored.reviewed_at = datetime.now(timezone.utc)
            return stored.model_copy(deep=True)

    def record_audit_event(self, event: AuditEvent) -> None:
        with self._lock:
            self._audit_events.append(event.model_copy(deep=True))

    def list_audit_events(self) -> list[AuditEvent]:
        return deepcopy(self._audit_events)


class MongoCoverageRepository(CoverageRepository):
    """MongoDB-backed store; one collection per row type."""

    def __init__(self, client: MongoClient | None = None):
        self._client = client or MongoClient()
        self._db: Any = None

    def _get_db(self) -> Any:
        if self._db is None:
            self._db = self._client.get_database()
            self._db.coverage_assessments.create_index(
                [("obligation_id", 1), ("run_id", 1)], unique=True
            )
        return self._db

    @staticmethod
    def _doc(model: Any) -> dict[str, Any]:
        exclude = {"effective_status"} if isinstance(model, Assessment) else None
        doc = model.model_dump(mode="json", exclude=exclude)
        doc["_id"] = doc["id"]
        return doc

    @staticmethod
    def _strip(doc: dict[str, Any] | None) -> dict[str, Any] | None:
        if doc is None:
            return None
        doc = dict(doc)
        doc.pop("_id", None)
        return doc

    def list_obligations(self) -> list[Obligation]:
        return [Obligation(**self._strip(d)) for d in self._get_db().obligations.find()]

    def get_obligation(self, obligation_id: str) -> Obligation | None:
        doc = self._strip(self._get_db().obligations.find_one({"_id": obligation_id}))
        return Obligation(**doc) if doc else None

    def list_policies(self) -> list[Policy]:
        return [Policy(**self._strip(d)) for d in self._get_db().policies.find()]

    def list_provisions(self) -> list[Provision]:
        return [Provision(**self._strip(d)) for d in self._get_db().provisions.find()]

    def list_sub_domain_labels(self) -> list[SubDomainLabel]:
        return [SubDomainLabel(**self._strip(d)) for d in self._get_db().sub_domain_labels.find()]

    def seed(self, obligations=(), policies=(), provisions=(), labels=()) -> None:
        db = self._get_db()
        for collection, rows in (
            (db.obligations, obligations),
            (db.policies, policies),
            (db.provisions, provisions),
        ):
            for row in rows:
                doc = self._doc(row)
                collection.replace_one({"_id": doc["_id"]}, doc, upsert=True)
        for label in labels:
            db.sub_domain_labels.replace_one(
                {"prefix": label.prefix}, label.model_dump(mode="json"), upsert=True
            )

    def save_assessment(self, assessment: Assessment) -> Assessment:
        db = self._get_db()
        key = {"obligation_id": assessment.obligation_id, "run_id": assessment.run_id}
        result = db.coverage_assessments.update_one(
            key, {"$setOnInsert": self._doc(assessment)}, upsert=True
        )
        if result.upserted_id is None:
            logger.warning(
                f"Assessment for {assessment.obligation_id} in run "
                f"{assessment.run_id!r} already stored — keeping existing row"
            )
        return Assessment(**self._strip(db.coverage_assessments.find_one(key)))

    def get_assessment(self, assessment_id: str) -> Assessment | None:
        doc = self._strip(self._get_db().coverage_assessments.find_one({"_id": assessment_id}))
        return Assessment(**doc) if doc else None

    def find_assessment(self, obligation_id: str, run_id: str) -> Assessment | None:
        doc = self._strip(self._get_db().coverage_assessments.find_one(
            {"obligation_id": obligation_id, "run_id": run_id}
        ))
        return Assessment(**doc) if doc else None

    def list_assessments(self, run_id: str | None = None) -> list[Assessment]:
        query = {} if run_id is None else {"run_id": run_id}
        return [
            Assessment(**self._strip(d))
            for d in self._get_db().coverage_assessments.find(query)
        ]

    def apply_review(self, assessment_id: str, review: ReviewRequest) -> Assessment | None:
        db = self._get_db()
        result = db.coverage_assessments.update_one(
            {"_id": assessment_id},
            {"$set": {
                "human_status": review.human_status.value,
                "review_notes": review.review_notes,
                "reviewed_by": review.reviewed_by,
                "reviewed_at": datetime.now(timezone.utc).isoformat(),
            }},
        )
        if result.matched_count == 0:
            return None
        return self.get_assessment(assessment_id)

    def record_audit_event(self, event: AuditEvent) -> None:
        self._get_db().audit_events.insert_one(self._doc(event))

    def list_audit_events(self) -> list[AuditEvent]:
        return [AuditEvent(**self._strip(d)) for d in self._get_db().audit_events.find()]

    def close(self) -> None:
        self._client.close()
        self._db = None


def build_repository() -> CoverageRepository:
    """In-memory store in mock mode, MongoDB otherwise."""
    if get_settings().mock_mode:
        return InMemoryCoverageRepository()
    return MongoCoverageRepository()
