# backend/app/core/tasks.py

import base64
from typing import Any, Dict, List

from celery.utils.log import get_task_logger
from backend.worker.worker import celery_app
from backend.app.core.batch_orchestrator import BatchOrchestrator
from backend.app.core.oracle import ScoringOracleClient
from backend.app.config import settings
from backend.app.models.batch_models import BatchJob, ResumeDocument

logger = get_task_logger(__name__)


def encode_documents(documents: List[ResumeDocument]) -> List[Dict[str, str]]:
    """File bytes travel through the JSON broker as base64."""
    return [
        {"fileName": d.file_name, "content": base64.b64encode(d.content).decode("ascii")}
        for d in documents
    ]


def decode_documents(items: List[Dict[str, str]]) -> List[ResumeDocument]:
    return [
        ResumeDocument(file_name=item["fileName"], content=base64.b64decode(item["content"]))
        for item in items
    ]


def build_batch_payload(batch: BatchJob, documents: List[ResumeDocument], job_description: str) -> Dict[str, Any]:
    return {
        "batch": batch.to_wire(),
        "job_description": job_description,
        "files": encode_documents(documents),
    }


@celery_app.task(
    name="run_batch_job",
    bind=True,
    # no autoretry: a rerun would score every resume again
    soft_time_limit=settings.CELERY_SOFT_TIME_LIMIT,
    time_limit=settings.CELERY_HARD_TIME_LIMIT,
    acks_late=False,
)
def run_batch_job(self, payload: dict):
    batch = BatchJob.model_validate(payload["batch"])
    documents = decode_documents(payload.get("files") or [])
    logger.info("Starting batch %s with %d file(s)", batch.id, len(documents))

    def publish(snapshot: BatchJob) -> None:
        self.update_state(task_id=batch.id, state="PROGRESS", meta=snapshot.to_wire())

    orchestrator = BatchOrchestrator(on_progress=publish)
    result = orchestrator.run(batch, documents, payload.get("job_description") or "")
    logger.info("Finished batch %s (average score %s)", batch.id, result.average_score)
    return result.to_wire()


@celery_app.task(
    name="warmup_llm",
    bind=False,
    soft_time_limit=180,
    time_limit=240,
)
def warmup_llm():
    """
    Pre-load the scoring model into memory via a tiny completion.
    """
    model_id = settings.full_model_id()
    logger.info("Warming up LLM model_id=%s base_url=%s", model_id, settings.LLM_BASE_URL)
    txt = ScoringOracleClient(settings).warm_up()
    logger.info("Warmup response (truncated): %s", (txt or "")[:120])
    return {"status": "ok", "model": model_id}
