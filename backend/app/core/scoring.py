# backend/app/core/scoring.py

import math
from dataclasses import dataclass

from backend.app.models.batch_models import MatchStatus

CORE_MATCH_POINTS = 7
CORE_MISSING_PENALTY = 8
PREFERRED_MATCH_POINTS = 3
PREFERRED_MISSING_PENALTY = 1

MIN_MULTIPLIER = 0.9
MAX_MULTIPLIER = 1.15

# (missing-core ratio strictly above, cap), strictest first
CORE_GAP_CAPS = ((0.6, 45), (0.4, 60))


def weighted_raw_score(core_matched: int, core_missing: int,
                       preferred_matched: int, preferred_missing: int) -> int:
    return (
        CORE_MATCH_POINTS * core_matched
        - CORE_MISSING_PENALTY * core_missing
        + PREFERRED_MATCH_POINTS * preferred_matched
        - PREFERRED_MISSING_PENALTY * preferred_missing
    )


def clamp_score(value: float) -> int:
    """Round half-up and clamp into [0, 100]."""
    return max(0, min(100, int(math.floor(value + 0.5))))


def apply_score_policy(raw: float, multiplier: float = 1.0, core_missing_ratio: float = 0.0) -> int:
    multiplier = max(MIN_MULTIPLIER, min(MAX_MULTIPLIER, multiplier))
    score = raw * multiplier
    for ratio, cap in CORE_GAP_CAPS:
        if core_missing_ratio > ratio:
            score = min(score, cap)
            break
    return clamp_score(score)


def score_from_breakdown(core_matched: int, core_missing: int,
                         preferred_matched: int, preferred_missing: int,
                         multiplier: float = 1.0) -> int:
    """Full scoring contract: weighted points, quality multiplier, core-gap caps, [0, 100]."""
    raw = weighted_raw_score(core_matched, core_missing, preferred_matched, preferred_missing)
    core_total = core_matched + core_missing
    ratio = core_missing / core_total if core_total else 0.0
    return apply_score_policy(raw, multiplier, ratio)


@dataclass(frozen=True)
class StatusThresholds:
    approved_min: int = 70
    review_min: int = 55

    @classmethod
    def from_settings(cls, config) -> "StatusThresholds":
        return cls(config.STATUS_APPROVED_MIN, config.STATUS_REVIEW_MIN)

    def status_for(self, score: int) -> MatchStatus:
        if score >= self.approved_min:
            return MatchStatus.APPROVED
        if score >= self.review_min:
            return MatchStatus.NEEDS_IMPROVEMENT
        return MatchStatus.NOT_A_MATCH

    def describe(self) -> str:
        return (
            f"{self.approved_min}-100 → Approved, "
            f"{self.review_min}-{self.approved_min - 1} → Needs Improvement, "
            f"0-{self.review_min - 1} → Not a Match"
        )
