# backend/app/core/async_queue.py

from typing import Any, Dict, List, Optional

from celery.exceptions import TimeoutError as CeleryTimeoutError
from celery.result import AsyncResult
from backend.app.config import settings
from backend.app.core.batch_orchestrator import BatchOrchestrator
from backend.app.core.tasks import build_batch_payload, run_batch_job
from backend.app.models.batch_models import BatchJob, ResumeDocument
from backend.worker.worker import celery_app

# Celery states that carry a BatchJob snapshot as their meta
SNAPSHOT_STATES = {"CREATED", "PROGRESS", "SUCCESS"}


class BatchQueue:
    """Submits batches to the Celery 'batch' queue and reads their progress back."""

    def submit_batch(
        self,
        documents: List[ResumeDocument],
        job_description: str,
        job_id: Optional[str] = None,
        job_title: Optional[str] = None,
        submitted_by: Optional[str] = None,
    ) -> BatchJob:
        # Raises BatchRejected before anything is stored or queued
        batch = BatchOrchestrator(config=settings).create_batch(
            documents, job_description, job_id=job_id, job_title=job_title, submitted_by=submitted_by,
        )
        # Store the Created snapshot first so polling works before a worker picks the task up
        celery_app.backend.store_result(batch.id, batch.to_wire(), "CREATED")
        run_batch_job.apply_async(
            args=[build_batch_payload(batch, documents, job_description)],
            task_id=batch.id,
            queue="batch",
            routing_key="batch",
        )
        return batch

    def get_batch(self, batch_id: str) -> Dict[str, Any]:
        """
        Returns {"batch_id", "state", "batch", "error"}; `batch` is the latest
        snapshot dict, or None when the id is unknown or the run crashed.
        """
        return self._describe(AsyncResult(batch_id, app=celery_app))

    def wait_for_batch(self, batch_id: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Block until the batch finishes or timeout (seconds).
        Returns same shape as get_batch().
        """
        ar = AsyncResult(batch_id, app=celery_app)
        try:
            ar.get(timeout=timeout, propagate=False)
        except CeleryTimeoutError:
            # still running: report whatever progress exists
            pass
        return self._describe(ar)

    @staticmethod
    def _describe(ar: AsyncResult) -> Dict[str, Any]:
        state = ar.state
        if state == "FAILURE":
            return {"batch_id": ar.id, "state": state, "batch": None, "error": str(ar.result)}
        if state in SNAPSHOT_STATES and isinstance(ar.info, dict):
            return {"batch_id": ar.id, "state": state, "batch": ar.info, "error": None}
        return {"batch_id": ar.id, "state": state, "batch": None, "error": None}


# Singleton
queue = BatchQueue()
