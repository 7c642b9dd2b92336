"""
Policy Coverage Engine — Main Entry Point

Assess every unassessed obligation in a corpus file (CLI):
    python -m policy_coverage path/to/corpus.json

Embed provisions into the vector index:
    python -m policy_coverage --index path/to/corpus.json

Run as an API server (for the review frontend):
    python -m policy_coverage --serve
    # or: uvicorn policy_coverage.api:app --reload --port 8000

Or import and run programmatically:
    from policy_coverage.main import run
    assessments = run("path/to/corpus.json")
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

from policy_coverage.config import get_settings
from policy_coverage.models.schemas import Assessment
from policy_coverage.persistence.coverage_repository import build_repository
from policy_coverage.retrieval.provision_store import InMemoryProvisionStore, ProvisionVectorStore
from policy_coverage.services.assessment_service import build_assessment_service
from policy_coverage.utils.logger import setup_logging


def run(corpus_path: str = "", run_id: str | None = None) -> list[Assessment]:
    """Assess all pending obligations and return the stored assessments."""
    setup_logging()
    logger = logging.getLogger(__name__)
    settings = get_settings()
    started = datetime.now(timezone.utc)
    run_id = run_id or f"run_{started.strftime('%Y%m%dT%H%M%S')}"

    logger.info("=" * 60)
    logger.info("  POLICY COVERAGE ENGINE")
    logger.info(f"  Mode: {'MOCK' if settings.mock_mode else 'LIVE'} | Run: {run_id} | Started: {started.isoformat()}")
    logger.info("=" * 60)

    repository = build_repository()
    if corpus_path:
        repository.load_corpus_file(corpus_path)

    try:
        service = build_assessment_service(repository)
        assessments = service.assess_all(run_id)
        _print_summary(assessments, service.progress(run_id))
    finally:
        repository.close()
    return assessments


def _print_summary(assessments: list[Assessment], progress: dict) -> None:
    """Print a human-readable summary of the run."""
    logger = logging.getLogger(__name__)

    logger.info("")
    logger.info("-" * 60)
    logger.info("  RUN SUMMARY")
    logger.info("-" * 60)
    logger.info(f"  Assessed:       {len(assessments)} this run")
    logger.info(f"  Unassessed:     {progress.get('unassessed', 0)}")
    for status, count in sorted(progress.get("by_status", {}).items()):
        logger.info(f"  {status + ':':<16}{count}")
    logger.info(f"  Needs review:   {progress.get('needs_review', 0)}")

    fallbacks = [a for a in assessments if a.assessed_by.value == "fallback"]
    if fallbacks:
        logger.info(f"  Fallbacks:      {len(fallbacks)}")
        for a in fallbacks:
            logger.info(f"    {a.obligation_id} | {a.gap_detail}")
    logger.info("-" * 60)
    logger.info("")


def index(corpus_path: str = "") -> int:
    """Embed every provision and upsert it into the vector index."""
    setup_logging()
    logger = logging.getLogger(__name__)

    repository = build_repository()
    if corpus_path:
        repository.load_corpus_file(corpus_path)

    store = InMemoryProvisionStore() if get_settings().mock_mode else ProvisionVectorStore()
    try:
        count = store.embed_provisions(repository.list_provisions())
    finally:
        repository.close()
    logger.info(f"Indexed {count} provisions")
    return count


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI server (for the review frontend)."""
    import uvicorn

    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run("policy_coverage.api:app", host=host, port=port, reload=True)


if __name__ == "__main__":
    if "--serve" in sys.argv:
        serve()
    elif "--index" in sys.argv:
        args = [a for a in sys.argv[1:] if a != "--index"]
        index(args[0] if args else "")
    else:
        run(sys.argv[1] if len(sys.argv) > 1 else "")
