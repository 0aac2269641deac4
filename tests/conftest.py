"""Shared fixtures and fakes for the screening pipeline tests."""

from io import BytesIO
from types import SimpleNamespace

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from backend.app.config import Settings
from backend.app.core.errors import ExtractionError, OracleError
from backend.app.core.oracle import ScoringOracleClient
from backend.app.models.batch_models import OracleAssessment


RESUME_TEXT = (
    "Jane Candidate | Email: jane@example.com | Phone: +1 555 0100\n"
    "EXPERIENCE Backend Developer at Acme Corp, building REST APIs with Python, Flask and PostgreSQL.\n"
    "EDUCATION Bachelor of Science in Computer Science, State University."
)

NOT_A_RESUME_TEXT = (
    "Invoice number 4471 for office furniture delivered to the downtown branch. "
    "Payment is due within thirty days of receipt. Please remit the balance to the "
    "account listed below. Thank you for your business."
)

JOB_DESCRIPTION = "Backend role. Core: Python, SQL, REST APIs. Preferred: Docker, AWS."


def make_pdf(pages):
    """Build a PDF in memory; `pages` is a list of [(x, y, text), ...] in points, y from the bottom."""
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for items in pages:
        for x, y, text in items:
            c.drawString(x, y, text)
        c.showPage()
    c.save()
    return buf.getvalue()


def completion_reply(content):
    """Shape of a chat-completion response as returned by litellm."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeParser:
    """Treats document bytes as UTF-8 text; b'broken' cannot be parsed."""

    def extract_text(self, content):
        if content == b"broken":
            raise ExtractionError("PDF parsing failed: EOF marker not found")
        return content.decode("utf-8")


class StubOracle:
    """
    Canned oracle: `scores` maps a marker found in the resume text to a score,
    or to an exception instance to raise.
    """

    final_score = ScoringOracleClient.final_score

    def __init__(self, scores=None, classify_result=True):
        self.scores = scores or {}
        self.classify_result = classify_result
        self.classify_calls = []
        self.score_calls = []

    def classify(self, text):
        self.classify_calls.append(text)
        if isinstance(self.classify_result, Exception):
            raise self.classify_result
        return self.classify_result

    def score(self, job_description, resume_text):
        self.score_calls.append(resume_text)
        value = 50
        for marker, outcome in self.scores.items():
            if marker in resume_text:
                value = outcome
                break
        if isinstance(value, Exception):
            raise value
        return OracleAssessment(
            match_score=value,
            matching_skills=["Python", "python", "SQL"],
            missing_skills=["Docker"],
            implied_skills="REST API design shown in the Acme role.",
            recommendations=["Add container experience."],
            score_rationale="Solid core match.",
        )


def resume_with(marker):
    return f"{marker} {RESUME_TEXT}"


@pytest.fixture
def test_settings():
    return Settings()


@pytest.fixture
def stub_oracle():
    return StubOracle(scores={"ALPHA": 80, "BETA": 60, "GAMMA": 60, "BROKEN_ORACLE": OracleError("HTTP 503")})
