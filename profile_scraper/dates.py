"""
Date/Range Normalizer.

Turns free-text temporal captions ("Jan 2019 - Present · 5 yrs 2 mos",
"Issued Jun 2018 · Expires Jun 2021", "2016 – 2020") into a DateRange.
Inputs are third-party free text, so nothing here raises: anything that does
not look like a date comes back as the empty range.
"""

import re

from .config import DATE_CANDIDATE_MAX_LENGTH
from .models import DateRange, EMPTY_RANGE
from .utils import clean_text, split_middle_dot

# --- Constants for Parsing ---
MONTHS_RE = r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)"
YEAR_RE = re.compile(r"\b\d{4}\b")
PRESENT_RE = re.compile(r"\b(present|current|ongoing)\b", re.I)
DURATION_RE = re.compile(
    r"^(?:\d+\s*(?:yrs?|years?|mos?|months?)(?:\s+\d+\s*(?:mos?|months?))?|less than a (?:year|month))$",
    re.I,
)
RANGE_SPLIT_RE = re.compile(
    r"\s+[-–—]\s+|(?<=\d)\s*[-–—]\s*(?=\d{4}\b|present\b)",
    re.I,
)
_FULL_MONTHS = {
    "january": "Jan", "february": "Feb", "march": "Mar", "april": "Apr",
    "june": "Jun", "july": "Jul", "august": "Aug", "september": "Sep",
    "sept": "Sep", "october": "Oct", "november": "Nov", "december": "Dec",
}
_FULL_MONTH_RE = re.compile(r"\b(" + "|".join(_FULL_MONTHS) + r")\b\.?", re.I)
_ABBR_MONTH_RE = re.compile(rf"\b{MONTHS_RE}\b\.?", re.I)
_ISSUED_RE = re.compile(r"^(?:issued(?:\s+on)?|published(?:\s+on)?|filed)\s*:?\s+", re.I)
_EXPIRES_RE = re.compile(r"^(?:expires|expired|expiration)\s*:?\s+", re.I)
_NO_EXPIRY_RE = re.compile(r"^no expiration", re.I)

# Words that may sit next to a date without making it prose
_DATE_FILLER = {
    "expected", "graduated", "since", "to", "from", "until", "fall", "spring",
    "summer", "winter", "q1", "q2", "q3", "q4", "of", "and",
}


def has_temporal_marker(text: str) -> bool:
    """True when text contains a 4-digit year or a present/ongoing marker."""
    return bool(text) and bool(YEAR_RE.search(text) or PRESENT_RE.search(text))


def is_duration(text: str) -> bool:
    """'2 yrs 3 mos' / 'Less than a year'."""
    return bool(DURATION_RE.match(clean_text(text)))


def abbreviate_months(text: str) -> str:
    """'January 2019' -> 'Jan 2019'; abbreviations are title-cased."""
    text = _FULL_MONTH_RE.sub(lambda m: _FULL_MONTHS[m.group(1).lower()], text)
    text = _ABBR_MONTH_RE.sub(lambda m: m.group(1)[:3].title(), text)
    return PRESENT_RE.sub(lambda m: m.group(1).title(), text)


def _looks_temporal(body: str) -> bool:
    """Reject prose that merely mentions a year ("Led the 2019 migration of ...")."""
    leftover = _FULL_MONTH_RE.sub(" ", body)
    leftover = _ABBR_MONTH_RE.sub(" ", leftover)
    leftover = YEAR_RE.sub(" ", leftover)
    leftover = PRESENT_RE.sub(" ", leftover)
    leftover = re.sub(r"[\d,.\-–—/()]", " ", leftover)
    words = [w for w in leftover.lower().split() if w not in _DATE_FILLER]
    return len(words) <= 1


def _split_clauses(raw: str):
    """Separate the date body from duration and expiry clauses."""
    body_parts, duration, expires = [], "", ""
    for idx, part in enumerate(split_middle_dot(raw)):
        if idx > 0 and is_duration(part):
            duration = duration or part
        elif _NO_EXPIRY_RE.match(part):
            continue
        elif _EXPIRES_RE.match(part):
            expires = expires or _EXPIRES_RE.sub("", part).strip()
        else:
            body_parts.append(part)
    body = next((p for p in body_parts if has_temporal_marker(p)), "")
    return body, duration, expires


def normalize_date_range(text) -> DateRange:
    """
    Parse one candidate string into a DateRange.

    Returns the empty range unless the candidate carries a 4-digit year or a
    present marker. Start/end keep a best-effort textual form; month names are
    abbreviated for display consistency.
    """
    raw = clean_text(text)
    if not raw or len(raw) > DATE_CANDIDATE_MAX_LENGTH:
        return EMPTY_RANGE
    if not has_temporal_marker(raw):
        return EMPTY_RANGE

    body, duration, expires = _split_clauses(raw)
    body = _ISSUED_RE.sub("", body).strip()
    if not body or not _looks_temporal(body):
        return EMPTY_RANGE

    parts = RANGE_SPLIT_RE.split(body, maxsplit=1)
    start = parts[0].strip(" ,")
    end = parts[1].strip(" ,") if len(parts) > 1 else ""
    if not end and expires and has_temporal_marker(expires):
        end = expires
    if not start:
        start, end = end, ""

    start = abbreviate_months(start)
    end = abbreviate_months(end)
    range_text = f"{start} - {end}" if end else start
    return DateRange(
        start_text=start,
        end_text=end,
        range_text=range_text,
        duration_text=duration,
    )


def is_date_like(text: str) -> bool:
    """A fragment that should never be used as a label/organization/location."""
    return is_date_clause(text) or not normalize_date_range(text).is_empty


def is_date_clause(text: str) -> bool:
    """Duration or expiry clauses that only ever accompany a date."""
    raw = clean_text(text)
    return is_duration(raw) or bool(_EXPIRES_RE.match(raw) or _NO_EXPIRY_RE.match(raw))


def resolve_date(fragments, exclude=None):
    """
    Pick the date among candidate fragments.

    Tie-break: (a) a caption-region fragment that normalizes, else (b) the first
    fragment in document order with a year/present marker that normalizes.
    Returns (DateRange, fragment) or (EMPTY_RANGE, None).
    """
    candidates = [f for f in fragments if not (exclude and exclude(f))]
    for frag in candidates:
        if frag.is_caption:
            dr = normalize_date_range(frag.text)
            if not dr.is_empty:
                return dr, frag
    for frag in candidates:
        if not has_temporal_marker(frag.text):
            continue
        dr = normalize_date_range(frag.text)
        if not dr.is_empty:
            return dr, frag
    return EMPTY_RANGE, None
