#backend/app/models/batch_models.py

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def unique_skills(items: Iterable[str]) -> List[str]:
    """Drop blanks and case-insensitive duplicates, keeping first-seen order."""
    seen = set()
    out: List[str] = []
    for item in items or []:
        name = (item or "").strip()
        key = name.lower()
        if name and key not in seen:
            seen.add(key)
            out.append(name)
    return out


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MatchStatus(str, Enum):
    APPROVED = "Approved"
    NEEDS_IMPROVEMENT = "Needs Improvement"
    NOT_A_MATCH = "Not a Match"
    ERROR = "Error"


class VerdictMethod(str, Enum):
    HEURISTIC = "heuristic"
    ORACLE = "oracle"
    DEFAULT_FALLBACK = "default-fallback"


class BatchStatus(str, Enum):
    CREATED = "Created"
    PROCESSING = "Processing"
    COMPLETED = "Completed"


@dataclass(frozen=True)
class ResumeDocument:
    file_name: str
    content: bytes


class ClassificationVerdict(WireModel):
    is_resume: bool
    method: VerdictMethod
    matched_categories: List[str] = Field(default_factory=list)


class MatchResult(WireModel):
    file_name: str
    match_score: int = Field(ge=0, le=100)
    status: MatchStatus
    matching_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    implied_skills: str = ""
    strengths: List[str] = Field(default_factory=list)
    score_rationale: str = ""
    recommendations: List[str] = Field(default_factory=list)
    extracted_text_sample: str = ""
    classification: Optional[ClassificationVerdict] = None
    processed_at: datetime = Field(default_factory=utcnow)

    @field_validator("matching_skills", "missing_skills")
    @classmethod
    def _dedupe(cls, v: List[str]) -> List[str]:
        return unique_skills(v)


class SkillBreakdown(WireModel):
    matched: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)


class OracleAssessment(WireModel):
    """Validated scoring reply. Required fields have no default."""
    match_score: Union[StrictInt, StrictFloat]
    matching_skills: List[str]
    missing_skills: List[str]
    implied_skills: str
    recommendations: List[str]
    score_rationale: str = ""
    strengths: List[str] = Field(default_factory=list)
    core_skills: Optional[SkillBreakdown] = None
    preferred_skills: Optional[SkillBreakdown] = None
    project_quality_multiplier: Optional[Union[StrictInt, StrictFloat]] = None

    @field_validator("match_score", "project_quality_multiplier")
    @classmethod
    def _finite(cls, v: Any) -> Any:
        # json.loads accepts NaN and Infinity
        if v is not None and not math.isfinite(v):
            raise ValueError("must be a finite number")
        return v

    @field_validator("implied_skills", mode="before")
    @classmethod
    def _narrative(cls, v: Any) -> Any:
        # some models answer with a list of skills instead of prose
        if isinstance(v, list):
            return "; ".join(str(x) for x in v if x)
        return v

    @field_validator("score_rationale", mode="before")
    @classmethod
    def _rationale(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("strengths", mode="before")
    @classmethod
    def _strengths(cls, v: Any) -> Any:
        return [] if v is None else v

    def has_breakdown(self) -> bool:
        """True when both partitions are present and name at least one skill."""
        if self.core_skills is None or self.preferred_skills is None:
            return False
        parts = (self.core_skills, self.preferred_skills)
        return any(p.matched or p.missing for p in parts)


class BatchReport(WireModel):
    batch_id: str
    job_id: Optional[str] = None
    job_title: Optional[str] = None
    total_processed: int
    average_score: Optional[float] = None
    results: List[MatchResult] = Field(default_factory=list)


class BatchJob(WireModel):
    id: str
    job_id: Optional[str] = None
    job_title: Optional[str] = None
    submitted_by: Optional[str] = None
    total_count: int
    processed_count: int = 0
    results: List[MatchResult] = Field(default_factory=list)
    status: BatchStatus = BatchStatus.CREATED
    average_score: Optional[float] = None
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    def report(self) -> BatchReport:
        return BatchReport(
            batch_id=self.id,
            job_id=self.job_id,
            job_title=self.job_title,
            total_processed=self.processed_count,
            average_score=self.average_score,
            results=list(self.results),
        )


# ---------- API payloads ----------

class PDFUploadResponse(WireModel):
    extracted_text: str
    layout_text: str = ""


class BatchSubmitResponse(WireModel):
    batch_id: str
    status: BatchStatus = BatchStatus.CREATED
    total_count: int


class WarmupResponse(WireModel):
    job_id: str
