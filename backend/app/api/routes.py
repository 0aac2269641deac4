#backend/app/api/routes.py

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, File, Form, UploadFile, Query, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse

from backend.app.core.pdf_parser import PDFParser, collapse_whitespace
from backend.app.core.async_queue import queue
from backend.app.core.artifacts import ReportRenderer, markdown_for_batch
from backend.app.core.errors import BatchRejected, ExtractionError
from backend.app.models.batch_models import (
    BatchJob,
    BatchReport,
    BatchStatus,
    BatchSubmitResponse,
    PDFUploadResponse,
    ResumeDocument,
    WarmupResponse,
)
from backend.worker.worker import celery_app

import tempfile
import os
import json


api_router = APIRouter()
_pdf = ReportRenderer()


@api_router.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok"}


@api_router.post("/parse-pdf", response_model=PDFUploadResponse, tags=["Parsing"])
async def parse_pdf_endpoint(file: UploadFile = File(...)):
    """Extract text from one uploaded PDF (preview of what the batch pipeline scores)."""
    content = await file.read()
    try:
        layout = await run_in_threadpool(PDFParser().extract_layout, content)
    except ExtractionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return PDFUploadResponse(extracted_text=collapse_whitespace(layout), layout_text=layout)


@api_router.post("/batches", response_model=BatchSubmitResponse, status_code=202, tags=["Batches"])
async def submit_batch(
    files: List[UploadFile] = File(..., description="Resume PDFs"),
    job_description: str = Form(...),
    job_id: Optional[str] = Form(default=None),
    job_title: Optional[str] = Form(default=None),
    submitted_by: Optional[str] = Form(default=None),
):
    """Queue a batch of resumes for screening against one job description."""
    documents = []
    for index, upload in enumerate(files, start=1):
        content = await upload.read()
        documents.append(ResumeDocument(file_name=upload.filename or f"resume_{index}.pdf", content=content))
    try:
        # Redis writes block; keep them off the event loop
        batch = await run_in_threadpool(
            queue.submit_batch, documents, job_description, job_id=job_id, job_title=job_title, submitted_by=submitted_by,
        )
    except BatchRejected as e:
        raise HTTPException(status_code=422, detail=str(e))
    return BatchSubmitResponse(batch_id=batch.id, status=batch.status, total_count=batch.total_count)


@api_router.get("/batches/{batch_id}", response_model=BatchJob, tags=["Batches"])
def batch_status(batch_id: str):
    """Current progress snapshot; poll until status is Completed."""
    return _load_batch(queue.get_batch(batch_id))


@api_router.get("/batches/{batch_id}/wait", response_model=BatchJob, tags=["Batches"])
def batch_wait(batch_id: str, timeout: Optional[float] = Query(default=30.0, ge=0.0, description="Seconds to wait")):
    """
    Blocks up to `timeout` seconds for the batch to finish, then returns its current snapshot.
    """
    return _load_batch(queue.wait_for_batch(batch_id, timeout=timeout))


@api_router.get("/batches/{batch_id}/report", response_model=BatchReport, tags=["Batches"])
def batch_report(batch_id: str):
    return _completed_report(batch_id)


# ------------ Warmup ------------
@api_router.post("/warmup", response_model=WarmupResponse, tags=["Health"])
def warmup():
    """Enqueue a warmup task for the scoring model."""
    async_res = celery_app.send_task("warmup_llm", queue="llm", routing_key="llm")
    return WarmupResponse(job_id=async_res.id)


# ---------------- Downloadable Artifacts ----------------

@api_router.get("/batches/{batch_id}/download", tags=["Batches"])
def batch_download(
    batch_id: str,
    format: str = Query("md", pattern="^(md|json|pdf)$", description="Download format: md, json, or pdf"),
):
    """
    Download the ranked report of a completed batch as Markdown (md), JSON (json), or PDF (pdf).
    """
    report = _completed_report(batch_id)
    stem = f"screening_report_{batch_id}"
    if format == "json":
        return _download_json(report.to_wire(), f"{stem}.json")
    if format == "pdf":
        tmp_path = _tmp_path(f"{stem}.pdf")
        _pdf.build_batch_pdf(tmp_path, report)
        return FileResponse(tmp_path, media_type="application/pdf", filename=os.path.basename(tmp_path))
    return _download_md(markdown_for_batch(report), f"{stem}.md")


# ---------------- Helpers ----------------

def _load_batch(described: Dict[str, Any]) -> BatchJob:
    if described.get("state") == "FAILURE":
        raise HTTPException(status_code=500, detail=f"Batch run crashed: {described.get('error') or 'Unknown error'}")
    snapshot = described.get("batch")
    if not snapshot:
        raise HTTPException(status_code=404, detail="Batch not found")
    return BatchJob.model_validate(snapshot)


def _completed_report(batch_id: str) -> BatchReport:
    batch = _load_batch(queue.get_batch(batch_id))
    if batch.status != BatchStatus.COMPLETED:
        raise HTTPException(
            status_code=409,
            detail=f"Batch not finished yet ({batch.processed_count}/{batch.total_count} processed)",
        )
    return batch.report()


def _download_md(markdown_text: str, filename: str) -> FileResponse:
    tmp_path = _write_temp_file(markdown_text, filename)
    return FileResponse(tmp_path, media_type="text/markdown", filename=os.path.basename(tmp_path))


def _download_json(payload: Dict[str, Any], filename: str) -> FileResponse:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    tmp_path = _write_temp_file(text, filename)
    return FileResponse(tmp_path, media_type="application/json", filename=os.path.basename(tmp_path))


def _write_temp_file(content: str, filename: str) -> str:
    tmp_path = _tmp_path(filename)
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(content)
    return tmp_path


def _tmp_path(filename: str) -> str:
    tmp_dir = tempfile.mkdtemp(prefix="artifacts_")
    return os.path.join(tmp_dir, filename)
