# frontend/api_client.py

import os
import time
from typing import Any, Callable, Dict, Iterable, Optional, Tuple
import requests

FINISHED = "Completed"


class BackendClient:
    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0):
        self.base_url = (base_url or os.getenv("BACKEND_URL") or "http://localhost:8000").rstrip("/")
        self.timeout = timeout

    # -------- Parsing --------
    def parse_pdf(self, file_bytes: bytes, filename: str = "resume.pdf") -> str:
        url = f"{self.base_url}/parse-pdf"
        files = {"file": (filename, file_bytes, "application/pdf")}
        resp = requests.post(url, files=files, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json().get("extractedText", "") or ""

    # -------- Batches --------
    def submit_batch(
        self,
        resumes: Iterable[Tuple[str, bytes]],
        job_description: str,
        job_id: Optional[str] = None,
        job_title: Optional[str] = None,
        submitted_by: Optional[str] = None,
    ) -> str:
        """Upload (filename, bytes) pairs; returns the batch id."""
        url = f"{self.base_url}/batches"
        files = [("files", (name, data, "application/pdf")) for name, data in resumes]
        form = {"job_description": job_description}
        for key, value in (("job_id", job_id), ("job_title", job_title), ("submitted_by", submitted_by)):
            if value:
                form[key] = value
        resp = requests.post(url, files=files, data=form, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()["batchId"]

    def batch_status(self, batch_id: str) -> Dict[str, Any]:
        resp = requests.get(f"{self.base_url}/batches/{batch_id}", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def batch_report(self, batch_id: str) -> Dict[str, Any]:
        resp = requests.get(f"{self.base_url}/batches/{batch_id}/report", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def batch_wait(self, batch_id: str, timeout: float = 60.0) -> Dict[str, Any]:
        url = f"{self.base_url}/batches/{batch_id}/wait"
        resp = requests.get(url, params={"timeout": timeout}, timeout=timeout + 5)
        resp.raise_for_status()
        return resp.json()

    def download_url(self, batch_id: str, fmt: str = "pdf") -> str:
        return f"{self.base_url}/batches/{batch_id}/download?format={fmt}"

    # -------- Convenience: poll with progress callback --------
    def wait_with_progress(
        self,
        batch_id: str,
        total_wait: float = 600.0,
        poll_interval: float = 2.0,
        on_tick: Optional[Callable[[int, int, str], None]] = None,
    ) -> Dict[str, Any]:
        """
        Poll the batch until it is Completed or `total_wait` elapses.
        `on_tick(processed_count, total_count, status)` is called after every poll.
        """
        elapsed = 0.0
        snapshot: Dict[str, Any] = {}
        while elapsed < total_wait:
            snapshot = self.batch_status(batch_id)
            if on_tick:
                on_tick(snapshot.get("processedCount", 0), snapshot.get("totalCount", 0), snapshot.get("status"))
            if snapshot.get("status") == FINISHED:
                return snapshot
            time.sleep(poll_interval)
            elapsed += poll_interval
        # Final status fetch
        return self.batch_status(batch_id)
