# backend/app/core/classifier.py

import logging
import re
from typing import Dict, List, Pattern

from backend.app.config import settings as default_settings
from backend.app.core.errors import ClassificationIndeterminate, OracleError
from backend.app.models.batch_models import ClassificationVerdict, VerdictMethod

logger = logging.getLogger(__name__)

RESUME_CATEGORIES: Dict[str, Pattern] = {
    "sections": re.compile(r"\b(skills?|education|experience|projects?)\b", re.IGNORECASE),
    "contact": re.compile(r"\b(email|phone|linkedin|github)\b", re.IGNORECASE),
    "roles": re.compile(r"\b(developer|engineer|analyst|designer|manager)\b", re.IGNORECASE),
    "education": re.compile(r"\b(university|college|bachelor|master|degree)\b", re.IGNORECASE),
    "technologies": re.compile(r"\b(python|java|javascript|react|node|sql|aws|docker)\b", re.IGNORECASE),
}


def matched_categories(text: str) -> List[str]:
    return [name for name, pattern in RESUME_CATEGORIES.items() if pattern.search(text)]


class DocumentClassifier:
    """
    Decides whether extracted text is plausibly a resume.

    Cheap keyword heuristics settle most documents; only ambiguous ones go to the
    oracle. `classify` never raises: when the oracle cannot answer, the configured
    fallback policy (CLASSIFIER_FAIL_OPEN) decides.
    """

    def __init__(self, oracle, config=None):
        self.oracle = oracle
        self.settings = config or default_settings

    def classify(self, text: str) -> ClassificationVerdict:
        text = text or ""
        if len(text) < self.settings.CLASSIFIER_MIN_CHARS:
            logger.info("Document too short to be a resume (%d chars)", len(text))
            return ClassificationVerdict(is_resume=False, method=VerdictMethod.HEURISTIC)

        categories = matched_categories(text)
        if len(categories) >= self.settings.CLASSIFIER_MIN_CATEGORIES:
            logger.info("Document matches resume patterns: %s", ", ".join(categories))
            return ClassificationVerdict(
                is_resume=True, method=VerdictMethod.HEURISTIC, matched_categories=categories
            )

        try:
            is_resume = self._ask_oracle(text)
        except ClassificationIndeterminate as e:
            fallback = self.settings.CLASSIFIER_FAIL_OPEN
            logger.warning("Resume validation failed (%s), defaulting to %s", e, fallback)
            return ClassificationVerdict(
                is_resume=fallback, method=VerdictMethod.DEFAULT_FALLBACK, matched_categories=categories
            )

        logger.info("AI resume validation result: %s", is_resume)
        return ClassificationVerdict(
            is_resume=is_resume, method=VerdictMethod.ORACLE, matched_categories=categories
        )

    def _ask_oracle(self, text: str) -> bool:
        try:
            return self.oracle.classify(text)
        except OracleError as e:
            raise ClassificationIndeterminate(e.reason) from e
        except Exception as e:
            logger.exception("Unexpected error from resume validation")
            raise ClassificationIndeterminate(str(e)) from e
