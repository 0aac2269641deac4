
#backend/app/core/pdf_parser.py
import logging
import re
from io import BytesIO
from pathlib import Path
from typing import List, NamedTuple, Sequence, Union
from urllib.parse import unquote

from PyPDF2 import PdfReader

from backend.app.config import settings as default_settings
from backend.app.core.errors import ExtractionError

logger = logging.getLogger(__name__)

# Layout unit used for positions: a US-Letter page is 38.25 units wide
POINTS_PER_UNIT = 16.0

_WHITESPACE = re.compile(r"\s+")


class TextFragment(NamedTuple):
    """A positioned run of text; y grows downwards, both axes in layout units."""
    x: float
    y: float
    text: str


def decode_fragment(raw: str) -> str:
    """URL-decode a fragment, keeping the raw value when it is not valid percent-encoding."""
    # PyPDF2 does not percent-encode, so a literal "%20" in a resume is decoded too.
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        return raw


def _page_lines(fragments: Sequence[TextFragment], tolerance: float) -> List[str]:
    lines: List[List[TextFragment]] = []
    last_y = None
    for frag in sorted(fragments, key=lambda f: f.y):
        # same visual line while y stays within tolerance of the previous fragment
        if last_y is None or frag.y - last_y > tolerance:
            lines.append([])
        lines[-1].append(frag)
        last_y = frag.y
    return [
        " ".join(decode_fragment(f.text) for f in sorted(line, key=lambda f: f.x))
        for line in lines
    ]


def order_fragments(pages: Sequence[Sequence[TextFragment]], tolerance: float = 0.1) -> str:
    """
    Rebuild reading order from positioned fragments.

    Fragments are read top-to-bottom; fragments whose y differs by no more than
    `tolerance` form one line and are read left-to-right. Lines are joined with
    a newline, pages with a blank line.
    """
    rendered = []
    for fragments in pages:
        kept = [f for f in fragments if f.text and f.text.strip()]
        rendered.append("\n".join(_page_lines(kept, tolerance)))
    return "\n\n".join(rendered)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


class PDFParser:
    """Handles PDF text extraction with layout-aware reading order."""

    def __init__(self, config=None):
        self.settings = config or default_settings

    def extract_text(self, file: Union[Path, bytes]) -> str:
        """Plain text for scoring: reading order preserved, whitespace collapsed."""
        text = collapse_whitespace(self.extract_layout(file))
        logger.info("PDF extraction successful, text length: %d", len(text))
        return text

    def extract_layout(self, file: Union[Path, bytes]) -> str:
        """Ordered text keeping one line per visual line and a blank line between pages."""
        reader = self._open(file)
        try:
            pages = [self._page_fragments(page) for page in reader.pages]
        except Exception as e:
            raise ExtractionError(f"Failed to process PDF data: {e}") from e
        return order_fragments(pages, tolerance=self.settings.PDF_LINE_TOLERANCE)

    def _open(self, file: Union[Path, bytes]) -> PdfReader:
        if isinstance(file, Path):
            data = file.read_bytes()
        elif isinstance(file, (bytes, bytearray)):
            data = bytes(file)
        else:
            raise ValueError("Unsupported file type for PDFParser.")
        logger.debug("Starting PDF extraction, buffer size: %d", len(data))
        if not data:
            raise ExtractionError("PDF parsing failed: empty document")
        try:
            return PdfReader(BytesIO(data))
        except Exception as e:
            raise ExtractionError(f"PDF parsing failed: {e}") from e

    @staticmethod
    def _page_fragments(page) -> List[TextFragment]:
        top = float(page.mediabox.top)
        fragments: List[TextFragment] = []

        def visitor(text, cm, tm, font_dict, font_size):
            if not text or not text.strip():
                return
            # text space -> user space
            x = tm[4] * cm[0] + tm[5] * cm[2] + cm[4]
            y = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
            fragments.append(TextFragment(x / POINTS_PER_UNIT, (top - y) / POINTS_PER_UNIT, text.strip()))

        page.extract_text(visitor_text=visitor)
        return fragments
