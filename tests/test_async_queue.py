"""Tests for BatchQueue with the Celery result backend and broker mocked out."""

from unittest.mock import MagicMock, call, patch

import pytest
from celery.exceptions import TimeoutError as CeleryTimeoutError

from backend.app.core import async_queue
from backend.app.core.async_queue import BatchQueue
from backend.app.core.errors import BatchRejected
from backend.app.models.batch_models import BatchJob, ResumeDocument
from conftest import JOB_DESCRIPTION


def async_result(state, info=None, result=None, batch_id="batch-1"):
    ar = MagicMock()
    ar.id = batch_id
    ar.state = state
    ar.info = info
    ar.result = result
    return ar


def test_submit_stores_created_snapshot_before_enqueueing():
    documents = [ResumeDocument("a.pdf", b"%PDF-a"), ResumeDocument("b.pdf", b"%PDF-b")]
    order = []
    with patch.object(async_queue, "celery_app") as celery_app, \
            patch.object(async_queue, "run_batch_job") as task:
        celery_app.backend.store_result.side_effect = lambda *a, **kw: order.append("store_result")
        task.apply_async.side_effect = lambda *a, **kw: order.append("apply_async")
        batch = BatchQueue().submit_batch(documents, JOB_DESCRIPTION, job_id="job-1", submitted_by="hr@example.com")

    assert order == ["store_result", "apply_async"]
    batch_id, snapshot, state = celery_app.backend.store_result.call_args.args
    assert batch_id == batch.id
    assert state == "CREATED"
    assert snapshot["status"] == "Created"
    assert snapshot["totalCount"] == 2
    assert snapshot["jobId"] == "job-1"

    kwargs = task.apply_async.call_args.kwargs
    assert kwargs["task_id"] == batch.id
    assert kwargs["queue"] == "batch"
    assert kwargs["routing_key"] == "batch"
    payload = kwargs["args"][0]
    assert payload["job_description"] == JOB_DESCRIPTION
    assert [f["fileName"] for f in payload["files"]] == ["a.pdf", "b.pdf"]


def test_rejected_submission_stores_and_queues_nothing():
    with patch.object(async_queue, "celery_app") as celery_app, \
            patch.object(async_queue, "run_batch_job") as task:
        with pytest.raises(BatchRejected):
            BatchQueue().submit_batch([], JOB_DESCRIPTION)
    celery_app.backend.store_result.assert_not_called()
    task.apply_async.assert_not_called()


@pytest.mark.parametrize("state", ["CREATED", "PROGRESS", "SUCCESS"])
def test_snapshot_states_return_batch(state):
    snapshot = BatchJob(id="batch-1", total_count=1).to_wire()
    with patch.object(async_queue, "AsyncResult", return_value=async_result(state, info=snapshot)):
        described = BatchQueue().get_batch("batch-1")
    assert described == {"batch_id": "batch-1", "state": state, "batch": snapshot, "error": None}


def test_failure_state_returns_error():
    crash = RuntimeError("WorkerLostError")
    with patch.object(async_queue, "AsyncResult", return_value=async_result("FAILURE", info=crash, result=crash)):
        described = BatchQueue().get_batch("batch-1")
    assert described["batch"] is None
    assert described["error"] == "WorkerLostError"


def test_unknown_id_has_no_batch():
    with patch.object(async_queue, "AsyncResult", return_value=async_result("PENDING")):
        described = BatchQueue().get_batch("nope")
    assert described["state"] == "PENDING"
    assert described["batch"] is None
    assert described["error"] is None


def test_wait_returns_progress_when_timeout_expires():
    snapshot = BatchJob(id="batch-1", total_count=2, processed_count=1).to_wire()
    ar = async_result("PROGRESS", info=snapshot)
    ar.get.side_effect = CeleryTimeoutError("The operation timed out.")
    with patch.object(async_queue, "AsyncResult", return_value=ar):
        described = BatchQueue().wait_for_batch("batch-1", timeout=0.5)
    assert ar.get.call_args == call(timeout=0.5, propagate=False)
    assert described["batch"]["processedCount"] == 1
