import html
import re

"""Pure functions for text cleaning shared by the collector and the extraction engine."""

# --- Constants for Parsing ---
MIDDLE_DOT_SPLIT_RE = re.compile(r"\s*·\s*")
EMPLOYMENT_TYPES = (
    "Full-time", "Part-time", "Internship", "Contract", "Temporary",
    "Apprenticeship", "Self-employed", "Freelance", "Seasonal",
)
WORK_ARRANGEMENTS = ("Remote", "Hybrid", "On-site")
_EMPLOYMENT_TYPE_RE = re.compile(
    r"\s*·\s*(?P<etype>" + "|".join(re.escape(t) for t in EMPLOYMENT_TYPES) + r")\b.*$",
    re.I,
)
_METADATA_TOKENS = {t.lower() for t in EMPLOYMENT_TYPES + WORK_ARRANGEMENTS}


def clean_text(text) -> str:
    """Collapse whitespace, unescape HTML entities and straighten smart quotes."""
    if not text:
        return ""
    text = html.unescape(str(text))
    text = (text.replace("’", "'").replace("‘", "'")
                .replace("“", '"').replace("”", '"')
                .replace("\xa0", " "))
    return " ".join(text.split())


def clean_doubled(text):
    """Clean up doubled text like 'EngineerEngineer' -> 'Engineer'."""
    if not text or len(text) < 4:
        return text
    # Exact duplication "WordWord"
    if len(text) % 2 == 0:
        mid = len(text) // 2
        if text[:mid] == text[mid:]:
            return text[:mid]
    # Duplication with space "Word Word Word Word" -> "Word Word"
    parts = text.split()
    if len(parts) >= 2 and len(parts) % 2 == 0:
        half = len(parts) // 2
        if parts[:half] == parts[half:]:
            return " ".join(parts[:half])
    return text


def split_middle_dot(text: str):
    """'Acme · Full-time' -> ['Acme', 'Full-time']. Empty parts are dropped."""
    return [p.strip() for p in MIDDLE_DOT_SPLIT_RE.split(text or "") if p.strip()]


def split_employment_type(text: str):
    """
    'Acme Corp · Full-time' -> ('Acme Corp', 'Full-time').
    A string that is only an employment type yields ('', type).
    """
    raw = clean_text(text)
    if raw.lower() in {t.lower() for t in EMPLOYMENT_TYPES}:
        return "", raw
    m = _EMPLOYMENT_TYPE_RE.search(raw)
    if not m:
        return raw, ""
    return raw[:m.start()].strip(), m.group("etype")


def is_metadata_token(text: str) -> bool:
    """True for fragments that are only an employment type or work arrangement."""
    parts = split_middle_dot(text)
    return bool(parts) and all(p.lower() in _METADATA_TOKENS for p in parts)


def normalize_profile_url(url: str) -> str:
    """Strip query/fragment and trailing slash; add the scheme if missing."""
    url = (url or "").strip()
    if not url:
        return ""
    url = url.split("#")[0].split("?")[0].rstrip("/")
    if url.startswith("www."):
        url = "https://" + url
    return url


def truncate(text: str, limit: int) -> str:
    if not text or len(text) <= limit:
        return text or ""
    cut = text[:limit]
    # Prefer a word boundary
    if " " in cut[limit // 2:]:
        cut = cut[:cut.rfind(" ")]
    return cut.rstrip(" ,;:")
