# backend/app/core/oracle.py

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import litellm
from pydantic import ValidationError

from backend.app.config import settings as default_settings
from backend.app.core.errors import OracleError
from backend.app.core.prompts import classifier_messages, scoring_messages
from backend.app.core.scoring import StatusThresholds, clamp_score, score_from_breakdown
from backend.app.models.batch_models import OracleAssessment

logger = logging.getLogger(__name__)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Return the first balanced top-level {...} object found in `text`.
    Tolerates prose or markdown fences around it; braces inside JSON strings
    do not count towards the balance.
    """
    if not text:
        raise OracleError("Empty reply from model")
    start = text.find("{")
    if start == -1:
        raise OracleError("No JSON object found in model reply")
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                try:
                    return json.loads(text[start:i + 1])
                except json.JSONDecodeError as e:
                    raise OracleError(f"Invalid JSON in model reply: {e}") from e
    raise OracleError("Unbalanced JSON object in model reply")


class ScoringOracleClient:
    """
    Thin client for the external scoring model (OpenAI-compatible chat completions via LiteLLM).

    Exposes the two calls the pipeline needs, `classify` and `score`; both raise
    OracleError on transport errors, timeouts, non-success responses, or replies
    that do not honour the contract.
    """

    def __init__(self, config=None, completion: Optional[Callable[..., Any]] = None):
        self.settings = config or default_settings
        self._completion = completion or litellm.completion
        self.thresholds = StatusThresholds.from_settings(self.settings)

    # ---------- Public API ----------
    def classify(self, text: str) -> bool:
        sample = (text or "")[: self.settings.CLASSIFIER_SAMPLE_CHARS]
        reply = self._chat(
            classifier_messages(sample),
            temperature=self.settings.CLASSIFIER_TEMPERATURE,
            max_tokens=self.settings.CLASSIFIER_MAX_TOKENS,
        )
        return "true" in reply.strip().lower()

    def score(self, job_description: str, resume_text: str) -> OracleAssessment:
        logger.info("Starting AI analysis, resume length: %d", len(resume_text or ""))
        reply = self._chat(
            scoring_messages(job_description, resume_text, self.thresholds),
            temperature=self.settings.LLM_TEMPERATURE,
            max_tokens=self.settings.LLM_MAX_TOKENS or None,
        )
        payload = extract_json_object(reply)
        try:
            assessment = OracleAssessment.model_validate(payload)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise OracleError(f"Invalid analysis response, bad fields: {', '.join(fields)}") from e
        logger.info("Analysis successful, model match score: %s", assessment.match_score)
        return assessment

    def final_score(self, assessment: OracleAssessment) -> int:
        """
        Score used downstream. When the reply carries the Core/Preferred breakdown the
        weighted formula is recomputed locally; otherwise the model's number is clamped.
        """
        model_score = clamp_score(float(assessment.match_score))
        if not assessment.has_breakdown():
            return model_score
        core, preferred = assessment.core_skills, assessment.preferred_skills
        multiplier = assessment.project_quality_multiplier
        score = score_from_breakdown(
            len(core.matched), len(core.missing),
            len(preferred.matched), len(preferred.missing),
            float(multiplier) if multiplier is not None else 1.0,
        )
        if score != model_score:
            logger.debug("Recomputed score %d differs from model score %d", score, model_score)
        return score

    def warm_up(self) -> str:
        """Tiny completion so a local model gets loaded before the first batch."""
        return self._chat(
            [{"role": "user", "content": self.settings.WARMUP_PROMPT}],
            temperature=0.0,
            max_tokens=16,
        )

    # ---------- Transport ----------
    def _chat(self, messages: List[Dict[str, str]], temperature: float, max_tokens: Optional[int]) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.settings.full_model_id(),
            "api_base": self.settings.LLM_BASE_URL,
            "api_key": self.settings.LLM_API_KEY,
            "timeout": self.settings.LLM_REQUEST_TIMEOUT,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if self.settings.LLM_NUM_RETRIES:
            kwargs["num_retries"] = self.settings.LLM_NUM_RETRIES

        try:
            resp = self._completion(**kwargs)
        except Exception as e:
            # litellm maps timeouts, connection errors and non-2xx statuses to exceptions
            raise OracleError(f"Model API error: {type(e).__name__}: {e}") from e

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise OracleError("Malformed completion response") from e
        if not isinstance(content, str) or not content.strip():
            raise OracleError("Empty reply from model")
        return content
