
# backend/app/core/batch_orchestrator.py
import logging
import threading
import uuid
from typing import Callable, List, Optional, Sequence

from backend.app.config import settings as default_settings
from backend.app.core.classifier import DocumentClassifier
from backend.app.core.errors import BatchRejected, ExtractionError, OracleError
from backend.app.core.oracle import ScoringOracleClient
from backend.app.core.pdf_parser import PDFParser
from backend.app.core.scoring import StatusThresholds
from backend.app.models.batch_models import (
    BatchJob,
    BatchStatus,
    ClassificationVerdict,
    MatchResult,
    MatchStatus,
    ResumeDocument,
    utcnow,
)

logger = logging.getLogger(__name__)

NOT_A_RESUME_MESSAGE = "This document does not appear to be a resume or CV. Please upload a valid resume."
ORACLE_FAILURE_RATIONALE = "Unable to analyze resume due to an error with the AI model. Please try again."
ORACLE_FAILURE_NARRATIVE = "Analysis could not be completed."

ProgressCallback = Callable[[BatchJob], None]


class BatchOrchestrator:
    """
    Runs a batch of resumes through extraction, classification and scoring.

    Files are processed one by one in submission order. Every failure is folded into
    that file's MatchResult, so a started batch always reaches Completed. Each state
    change is published to `on_progress` as a detached snapshot.
    """

    def __init__(
        self,
        parser: Optional[PDFParser] = None,
        classifier: Optional[DocumentClassifier] = None,
        oracle: Optional[ScoringOracleClient] = None,
        on_progress: Optional[ProgressCallback] = None,
        config=None,
    ):
        self.settings = config or default_settings
        self.parser = parser or PDFParser(self.settings)
        self.oracle = oracle or ScoringOracleClient(self.settings)
        self.classifier = classifier or DocumentClassifier(self.oracle, self.settings)
        self.on_progress = on_progress
        self.thresholds = StatusThresholds.from_settings(self.settings)
        self._lock = threading.Lock()

    # ---------- Lifecycle ----------
    def create_batch(
        self,
        documents: Sequence[ResumeDocument],
        job_description: str,
        job_id: Optional[str] = None,
        job_title: Optional[str] = None,
        submitted_by: Optional[str] = None,
        batch_id: Optional[str] = None,
    ) -> BatchJob:
        self.validate(documents, job_description)
        return BatchJob(
            id=batch_id or uuid.uuid4().hex,
            job_id=job_id,
            job_title=job_title,
            submitted_by=submitted_by,
            total_count=len(documents),
        )

    def validate(self, documents: Sequence[ResumeDocument], job_description: str) -> None:
        if not documents:
            raise BatchRejected("No resume files provided")
        if len(documents) > self.settings.MAX_BATCH_FILES:
            raise BatchRejected(
                f"Too many resume files: {len(documents)} (max {self.settings.MAX_BATCH_FILES})"
            )
        if not (job_description or "").strip():
            raise BatchRejected("A job description is required")

    def run(self, batch: BatchJob, documents: Sequence[ResumeDocument], job_description: str) -> BatchJob:
        if batch.status != BatchStatus.CREATED:
            raise ValueError(f"Batch {batch.id} already {batch.status.value}")
        self.validate(documents, job_description)

        with self._lock:
            batch.status = BatchStatus.PROCESSING
            self._publish(batch)
        logger.info("Batch %s started: %d resume(s)", batch.id, batch.total_count)

        for document in documents:
            try:
                result = self.process_document(document, job_description)
            except Exception as e:
                logger.exception("Error processing %s", document.file_name)
                result = self._error_result(document.file_name, str(e) or type(e).__name__)
            self._record(batch, result)

        with self._lock:
            self._complete(batch)
            self._publish(batch)
        logger.info(
            "Batch %s completed: %d processed, average score %s",
            batch.id, batch.processed_count, batch.average_score,
        )
        return batch

    # ---------- Per-file pipeline ----------
    def process_document(self, document: ResumeDocument, job_description: str) -> MatchResult:
        try:
            text = self.parser.extract_text(document.content)
        except ExtractionError as e:
            logger.warning("Extraction failed for %s: %s", document.file_name, e)
            return self._error_result(document.file_name, str(e))

        verdict = self.classifier.classify(text)
        if not verdict.is_resume:
            logger.info("%s is not a valid resume (%s), assigning 0%% score", document.file_name, verdict.method.value)
            return self._rejected_result(document.file_name, text, verdict)

        try:
            assessment = self.oracle.score(job_description, text)
        except OracleError as e:
            logger.warning("Scoring failed for %s: %s", document.file_name, e.reason)
            return self._oracle_failure_result(document.file_name, text, verdict, e)

        score = self.oracle.final_score(assessment)
        return MatchResult(
            file_name=document.file_name,
            match_score=score,
            status=self.thresholds.status_for(score),
            matching_skills=assessment.matching_skills,
            missing_skills=assessment.missing_skills,
            implied_skills=assessment.implied_skills,
            strengths=assessment.strengths,
            score_rationale=assessment.score_rationale,
            recommendations=assessment.recommendations,
            extracted_text_sample=self._sample(text),
            classification=verdict,
        )

    # ---------- Result builders ----------
    def _sample(self, text: str) -> str:
        return (text or "")[: self.settings.RESULT_TEXT_SAMPLE_CHARS]

    def _error_result(self, file_name: str, reason: str) -> MatchResult:
        return MatchResult(
            file_name=file_name,
            match_score=0,
            status=MatchStatus.ERROR,
            recommendations=[f"Failed to process: {reason}"],
        )

    def _rejected_result(self, file_name: str, text: str, verdict: ClassificationVerdict) -> MatchResult:
        return MatchResult(
            file_name=file_name,
            match_score=0,
            status=MatchStatus.NOT_A_MATCH,
            score_rationale=NOT_A_RESUME_MESSAGE,
            recommendations=[NOT_A_RESUME_MESSAGE],
            extracted_text_sample=self._sample(text),
            classification=verdict,
        )

    def _oracle_failure_result(self, file_name: str, text: str,
                               verdict: ClassificationVerdict, error: OracleError) -> MatchResult:
        return MatchResult(
            file_name=file_name,
            match_score=0,
            status=MatchStatus.NOT_A_MATCH,
            implied_skills=ORACLE_FAILURE_NARRATIVE,
            score_rationale=ORACLE_FAILURE_RATIONALE,
            recommendations=[f"{ORACLE_FAILURE_RATIONALE} ({error.reason})"],
            extracted_text_sample=self._sample(text),
            classification=verdict,
        )

    # ---------- Progress ----------
    def _record(self, batch: BatchJob, result: MatchResult) -> None:
        with self._lock:
            batch.results.append(result)
            batch.processed_count += 1
            self._publish(batch)
        logger.info(
            "Batch %s: %d/%d processed (%s -> %s, %d)",
            batch.id, batch.processed_count, batch.total_count,
            result.file_name, result.status.value, result.match_score,
        )

    def _complete(self, batch: BatchJob) -> None:
        scores: List[int] = [r.match_score for r in batch.results]
        batch.average_score = round(sum(scores) / len(scores), 2) if scores else 0.0
        # sorted() is stable, so equal scores keep submission order
        batch.results = sorted(batch.results, key=lambda r: r.match_score, reverse=True)
        batch.status = BatchStatus.COMPLETED
        batch.completed_at = utcnow()

    def _publish(self, batch: BatchJob) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(batch.model_copy(deep=True))
        except Exception:
            # progress is best-effort; the run still reaches Completed
            logger.exception("Failed to publish progress for batch %s", batch.id)
