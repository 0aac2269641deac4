"""Tests for the HTTP surface with the Celery queue mocked out."""

import inspect
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from backend.app.core.errors import BatchRejected
from backend.app.api import routes
from backend.app.main import app
from backend.app.models.batch_models import BatchJob, BatchStatus, MatchResult, MatchStatus
from conftest import make_pdf

client = TestClient(app)


def completed_batch():
    return BatchJob(
        id="batch-1",
        job_id="job-1",
        job_title="Backend Engineer",
        total_count=2,
        processed_count=2,
        status=BatchStatus.COMPLETED,
        average_score=40.0,
        results=[
            MatchResult(file_name="a.pdf", match_score=80, status=MatchStatus.APPROVED,
                        matching_skills=["Python"], recommendations=["Add Docker."]),
            MatchResult(file_name="b.pdf", match_score=0, status=MatchStatus.ERROR,
                        recommendations=["Failed to process: PDF parsing failed"]),
        ],
    )


def described(batch=None, state="SUCCESS", error=None):
    return {"batch_id": "batch-1", "state": state, "batch": batch.to_wire() if batch else None, "error": error}


@pytest.fixture
def mock_queue():
    with patch("backend.app.api.routes.queue") as q:
        yield q


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_parse_pdf_returns_collapsed_and_layout_text():
    pdf = make_pdf([[(72, 700, "Jane Doe")], [(72, 700, "Page two")]])
    resp = client.post("/parse-pdf", files={"file": ("cv.pdf", pdf, "application/pdf")})
    assert resp.status_code == 200
    body = resp.json()
    assert "Jane Doe" in body["extractedText"]
    assert "\n\n" in body["layoutText"]


def test_parse_pdf_rejects_malformed_document():
    resp = client.post("/parse-pdf", files={"file": ("cv.pdf", b"not a pdf", "application/pdf")})
    assert resp.status_code == 422


def test_submit_batch_queues_documents(mock_queue):
    mock_queue.submit_batch.return_value = BatchJob(id="batch-1", total_count=2)
    resp = client.post(
        "/batches",
        files=[("files", ("a.pdf", b"%PDF-a", "application/pdf")), ("files", ("b.pdf", b"%PDF-b", "application/pdf"))],
        data={"job_description": "Python role", "job_id": "job-1", "submitted_by": "hr@example.com"},
    )
    assert resp.status_code == 202
    assert resp.json() == {"batchId": "batch-1", "status": "Created", "totalCount": 2}

    args, kwargs = mock_queue.submit_batch.call_args
    documents, job_description = args
    assert [d.file_name for d in documents] == ["a.pdf", "b.pdf"]
    assert documents[1].content == b"%PDF-b"
    assert job_description == "Python role"
    assert kwargs["job_id"] == "job-1"
    assert kwargs["submitted_by"] == "hr@example.com"


def test_submit_batch_rejected_inputs(mock_queue):
    mock_queue.submit_batch.side_effect = BatchRejected("A job description is required")
    resp = client.post(
        "/batches",
        files=[("files", ("a.pdf", b"%PDF-a", "application/pdf"))],
        data={"job_description": "   "},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == "A job description is required"


def test_batch_status_returns_snapshot(mock_queue):
    snapshot = BatchJob(id="batch-1", total_count=3, processed_count=1, status=BatchStatus.PROCESSING)
    mock_queue.get_batch.return_value = described(snapshot, state="PROGRESS")
    body = client.get("/batches/batch-1").json()
    assert body["status"] == "Processing"
    assert body["processedCount"] == 1
    assert body["totalCount"] == 3


def test_unknown_batch_is_404(mock_queue):
    mock_queue.get_batch.return_value = described(None, state="PENDING")
    assert client.get("/batches/nope").status_code == 404


def test_crashed_batch_is_500(mock_queue):
    mock_queue.get_batch.return_value = described(None, state="FAILURE", error="WorkerLostError")
    resp = client.get("/batches/batch-1")
    assert resp.status_code == 500
    assert "WorkerLostError" in resp.json()["detail"]


def test_wait_passes_timeout(mock_queue):
    mock_queue.wait_for_batch.return_value = described(completed_batch())
    resp = client.get("/batches/batch-1/wait", params={"timeout": 5})
    assert resp.status_code == 200
    mock_queue.wait_for_batch.assert_called_once_with("batch-1", timeout=5.0)


def test_report_requires_completion(mock_queue):
    snapshot = BatchJob(id="batch-1", total_count=3, processed_count=2, status=BatchStatus.PROCESSING)
    mock_queue.get_batch.return_value = described(snapshot, state="PROGRESS")
    resp = client.get("/batches/batch-1/report")
    assert resp.status_code == 409
    assert "2/3" in resp.json()["detail"]


def test_report_of_completed_batch(mock_queue):
    mock_queue.get_batch.return_value = described(completed_batch())
    body = client.get("/batches/batch-1/report").json()
    assert body["batchId"] == "batch-1"
    assert body["totalProcessed"] == 2
    assert body["averageScore"] == 40.0
    assert [r["fileName"] for r in body["results"]] == ["a.pdf", "b.pdf"]


@pytest.mark.parametrize("fmt, media_type", [
    ("json", "application/json"),
    ("md", "text/markdown"),
    ("pdf", "application/pdf"),
])
def test_download_formats(mock_queue, fmt, media_type):
    mock_queue.get_batch.return_value = described(completed_batch())
    resp = client.get("/batches/batch-1/download", params={"format": fmt})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(media_type)
    if fmt == "md":
        assert "| 1 | a.pdf | 80% | Approved |" in resp.text
    if fmt == "pdf":
        assert resp.content.startswith(b"%PDF")


def test_download_rejects_unknown_format(mock_queue):
    assert client.get("/batches/batch-1/download", params={"format": "docx"}).status_code == 422


def test_warmup_enqueues_task():
    with patch("backend.app.api.routes.celery_app") as celery_app:
        celery_app.send_task.return_value = MagicMock(id="warm-1")
        resp = client.post("/warmup")
    assert resp.json() == {"jobId": "warm-1"}
    celery_app.send_task.assert_called_once_with("warmup_llm", queue="llm", routing_key="llm")


@pytest.mark.parametrize("handler", [
    routes.batch_status, routes.batch_wait, routes.batch_report, routes.batch_download,
])
def test_result_backend_handlers_run_in_threadpool(handler):
    # plain def handlers are dispatched to the threadpool, so a long poll cannot stall the loop
    assert not inspect.iscoroutinefunction(handler)
