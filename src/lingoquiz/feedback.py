"""
Parsing of translation feedback returned by a text generation model.

The model is asked for a markdown table of corrections, a "Natural Version"
section and an "Overall Score" section, but nothing guarantees it complies.
``parse_feedback_response`` therefore never raises: whatever cannot be
found is replaced by a fallback value.
"""
import logging
import re
from typing import List, Optional

from .models import FeedbackRow, ParsedFeedback

logger = logging.getLogger(__name__)

NATURAL_VERSION_FALLBACK = "Natural version not available."
UNPARSEABLE_FALLBACK = "Unable to parse feedback. Please see raw response."
DEFAULT_SCORE = 5.0
MIN_SCORE = 0.0
MAX_SCORE = 10.0

_TABLE_RE = re.compile(r"^\|.*\|[\s\S]*?\n\n", re.MULTILINE)
_NATURAL_VERSION_RE = re.compile(
    r"##\s*Natural Version\s*\n+([\s\S]*?)(?=\n##|\Z)", re.IGNORECASE
)
_INLINE_SCORE_RE = re.compile(
    r"##[ \t]*Overall Score[ \t]*:?[ \t]*[*_]*[ \t]*(-?\d+(?:\.\d+)?)", re.IGNORECASE
)
_OVERALL_SCORE_RE = re.compile(
    r"##\s*Overall Score[^\n]*\n+\s*[*_]*\s*(-?\d+(?:\.\d+)?)", re.IGNORECASE
)
_ANY_SCORE_RE = re.compile(
    r"(-?\d+(?:\.\d+)?)\s*(?:/\s*10|out of 10)", re.IGNORECASE
)


def _clamp_score(value: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def _parse_table(text: str) -> List[FeedbackRow]:
    match = _TABLE_RE.search(text)
    if not match:
        return []

    lines = [line.strip() for line in match.group(0).split("\n") if line.strip()]
    rows = []
    # first two lines are the header and the |---| separator
    for line in lines[2:]:
        if not line.startswith("|"):
            continue
        cells = [cell.strip() for cell in line.split("|")]
        cells = [cell for cell in cells if cell]
        if len(cells) < 4:
            continue
        rows.append(
            FeedbackRow(
                urdu_phrase=cells[0],
                user_translation=cells[1],
                suggested_translation=cells[2],
                explanation=cells[3],
            )
        )
    return rows


def _parse_natural_version(text: str) -> str:
    match = _NATURAL_VERSION_RE.search(text)
    if match:
        return match.group(1).strip()
    return ""


def _parse_score(text: str) -> Optional[float]:
    match = (
        _INLINE_SCORE_RE.search(text)
        or _OVERALL_SCORE_RE.search(text)
        or _ANY_SCORE_RE.search(text)
    )
    if match:
        return _clamp_score(float(match.group(1)))
    return None


def parse_feedback_response(text: str) -> ParsedFeedback:
    try:
        score = _parse_score(text)
        if score is None:
            logger.warning("No score found in feedback response, using default")
        return ParsedFeedback(
            feedback_rows=_parse_table(text),
            natural_version=_parse_natural_version(text) or NATURAL_VERSION_FALLBACK,
            score=DEFAULT_SCORE if score is None else score,
            score_detected=score is not None,
            raw_response=text,
        )
    except Exception:
        logger.exception("Failed to parse feedback response")
        return ParsedFeedback(
            feedback_rows=[],
            natural_version=UNPARSEABLE_FALLBACK,
            score=DEFAULT_SCORE,
            score_detected=False,
            raw_response=text if isinstance(text, str) else "",
        )
