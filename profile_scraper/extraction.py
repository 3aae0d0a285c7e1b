"""
Field Extraction Engine.

Turns one item's ordered fragments into a typed entity with a fixed pipeline:

    label -> organization -> date -> location -> description -> skills

Each kind differs only by its KindRule (which steps apply, which fragments are
claimed up front, how the organization line is split). Every fragment fills at
most one field: the pool tracks what has been consumed.
"""

import re
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from .config import (
    DESCRIPTION_MAX_LENGTH,
    LOCATION_MAX_LENGTH,
    ORGANIZATION_MAX_LENGTH,
    logger,
)
from .dates import is_date_clause, is_date_like, resolve_date
from .errors import ExtractionAnomaly
from .models import (
    EXTRACTION_ANOMALY,
    ENTITY_CLASSES,
    Diagnostic,
    ItemFragments,
    RawFragment,
)
from .noise_classifier import get_classifier, is_noise_text
from .utils import (
    EMPLOYMENT_TYPES,
    clean_doubled,
    clean_text,
    is_metadata_token,
    split_employment_type,
    split_middle_dot,
    truncate,
)

# --- Labelled fragments ---
SKILLS_PREFIX_RE = re.compile(r"^skills\s*:\s*", re.I)
SKILLS_INLINE_RE = re.compile(r"(?:^|\s)skills\s*:\s*", re.I)
SKILL_SPLIT_RE = re.compile(r"\s*[·•,|]\s*")
SKILL_TAIL_RE = re.compile(r"\s+[-–—]\s+.*$")
SKILL_MORE_RE = re.compile(r"^\+?\d+\s+(?:more\s+)?skills?$", re.I)
SKILL_AND_MORE_RE = re.compile(r"\s+and\s+\+?\d+\s+(?:more\s+)?skills?$", re.I)
CREDENTIAL_ID_RE = re.compile(r"^credential id\s*:?\s*", re.I)
CREDENTIAL_LINK_RE = re.compile(r"credential|credly|certificat|verify|badge|cert", re.I)
GRADE_RE = re.compile(r"^(?:grade|gpa)\s*:?\s*", re.I)
ACTIVITIES_RE = re.compile(r"activities and societies\s*:\s*", re.I)
ASSOCIATED_RE = re.compile(r"^associated with\s*:?\s*", re.I)
ISSUED_BY_RE = re.compile(r"^issued by\s*:?\s*", re.I)
PATENT_NUMBER_RE = re.compile(
    r"^(?:patent\s+(?:number|no\.?|#)\s*:?\s*)?(?:[A-Z]{2,3}\s*)?\d[\d,./\-]{3,}(?:\s*[A-Z]\d?)?$",
    re.I,
)
PROFICIENCY_RE = re.compile(
    r"\b(proficiency|native|bilingual|fluent|professional working|elementary|limited working)\b",
    re.I,
)
VOLUNTEER_CAUSES = {
    "animal welfare", "arts and culture", "children", "civil rights and social action",
    "economic empowerment", "education", "environment", "health",
    "human rights", "humanitarian relief", "politics", "poverty alleviation",
    "science and technology", "social services", "veteran support",
    "disaster and humanitarian relief",
}
# Links that point back into the profile site rather than at the item itself
_INTERNAL_LINK_RE = re.compile(r"/in/|/company/|/school/|/details/|/search/|miniProfile|overlay", re.I)

LEFTOVER_MAX_LENGTH = 50


# ============================================================
# Fragment pool
# ============================================================
class _Pool:
    """Ordered fragments plus the set already claimed by a field."""

    def __init__(self, fragments):
        self.fragments = list(fragments)
        self.used = set()

    def remaining(self) -> List[Tuple[int, RawFragment]]:
        return [(i, f) for i, f in enumerate(self.fragments) if i not in self.used]

    def take(self, idx: int) -> str:
        self.used.add(idx)
        return self.fragments[idx].text

    def claim(self, pattern) -> List[str]:
        """Consume every remaining fragment matching `pattern`; return their texts."""
        taken = []
        for i, f in self.remaining():
            if pattern.search(f.text):
                taken.append(self.take(i))
        return taken

    def index_of(self, frag) -> Optional[int]:
        for i, f in self.remaining():
            if f is frag:
                return i
        return None


def expand_compound(fragments) -> List[RawFragment]:
    """
    Split 'Issued by IEEE · Jun 2018' style fragments into their parts, but only
    when a date is mixed with other text. 'Jan 2019 - Present · 3 yrs' and
    'Acme · Full-time' stay whole.
    """
    out = []
    for frag in fragments:
        parts = split_middle_dot(frag.text)
        if len(parts) > 1:
            dated = [is_date_like(p) for p in parts]
            if any(dated) and not all(dated):
                out.extend(replace(frag, text=p) for p in parts)
                continue
        out.append(frag)
    return out


# ============================================================
# Field helpers
# ============================================================
def parse_contextual_skills(text: str) -> Tuple[str, Tuple[str, ...]]:
    """
    Split a 'Skills:' tail off a block of text.

    'Built X. Skills: Go, SQL' -> ('Built X.', ('Go', 'SQL')). Tokens are cut at
    a spaced dash ('Python - advanced' -> 'Python') so 'Front-End' survives.
    """
    if not text:
        return "", ()
    m = SKILLS_INLINE_RE.search(text)
    if not m:
        return text, ()
    before = text[:m.start()].strip()
    tokens = []
    for raw in SKILL_SPLIT_RE.split(text[m.end():]):
        token = SKILL_AND_MORE_RE.sub("", raw.strip())
        token = SKILL_TAIL_RE.sub("", token)
        token = re.sub(r"^and\s+", "", token, flags=re.I).strip(" .;:")
        if not token or SKILL_MORE_RE.match(token):
            continue
        if token.lower() not in {t.lower() for t in tokens}:
            tokens.append(token)
    return before, tuple(tokens)


def _employment_type_in(text: str) -> str:
    known = {t.lower(): t for t in EMPLOYMENT_TYPES}
    for part in split_middle_dot(text):
        if part.lower() in known:
            return known[part.lower()]
    return ""


def looks_like_location(text: str) -> bool:
    """'Dallas, Texas, United States': comma-separated capitalised parts, no year."""
    if not text or "," not in text or len(text) >= LOCATION_MAX_LENGTH:
        return False
    if re.search(r"\d{4}", text) or ":" in text or len(text.split()) > 10:
        return False
    parts = [p.strip() for p in split_middle_dot(text)[0].split(",")]
    return all(p and (p[0].isupper() or p[0].isdigit()) for p in parts)


def _is_reserved(text: str) -> bool:
    """Labelled fragments that belong to a specific field."""
    return bool(
        SKILLS_PREFIX_RE.match(text) or CREDENTIAL_ID_RE.match(text)
        or GRADE_RE.match(text) or ACTIVITIES_RE.match(text)
        or ASSOCIATED_RE.match(text) or ISSUED_BY_RE.match(text)
    )


def _fits_organization(text: str) -> bool:
    return (
        bool(text)
        and len(text) <= ORGANIZATION_MAX_LENGTH
        and not is_date_like(text)
        and not _is_reserved(text)
        and not is_noise_text(text)
    )


def _first_external_link(links, pattern=None) -> str:
    for href in links or []:
        if _INTERNAL_LINK_RE.search(href):
            continue
        if pattern is not None and not pattern.search(href):
            continue
        return href
    return ""


# ============================================================
# Kind-specific claims (run before the generic steps)
# ============================================================
def _claim_skills(pool, values, item):
    for text in pool.claim(SKILLS_PREFIX_RE):
        _, tokens = parse_contextual_skills(text)
        values.setdefault("_skills", []).extend(tokens)


def _claim_employment_type(pool, values, item):
    for i, f in pool.remaining():
        if is_metadata_token(f.text):
            pool.take(i)
            etype = _employment_type_in(f.text)
            if etype and not values.get("employment_type"):
                values["employment_type"] = etype


def _claim_credential(pool, values, item):
    for text in pool.claim(CREDENTIAL_ID_RE):
        values.setdefault("credential_id", CREDENTIAL_ID_RE.sub("", text).strip())
    url = _first_external_link(item.links, CREDENTIAL_LINK_RE) or _first_external_link(item.links)
    if url:
        values["url"] = url


def _claim_grade(pool, values, item):
    for text in pool.claim(GRADE_RE):
        values.setdefault("grade", GRADE_RE.sub("", text).strip())
    for text in pool.claim(ACTIVITIES_RE):
        values.setdefault("activities", ACTIVITIES_RE.sub("", text).strip())


def _claim_issued_by(pool, values, item):
    for text in pool.claim(ISSUED_BY_RE):
        values.setdefault("_organization", ISSUED_BY_RE.sub("", text).strip())


def _claim_associated_org(pool, values, item):
    # Projects: "Associated with Acme" is the organization
    for text in pool.claim(ASSOCIATED_RE):
        values.setdefault("_organization", ASSOCIATED_RE.sub("", text).strip())


def _claim_associated_extra(pool, values, item):
    # Honors: "Associated with Acme" is context, the issuer stays the organization
    for text in pool.claim(ASSOCIATED_RE):
        values.setdefault("associated_with", ASSOCIATED_RE.sub("", text).strip())


def _claim_url(pool, values, item):
    url = _first_external_link(item.links)
    if url:
        values["url"] = url


def _claim_cause(pool, values, item):
    for i, f in pool.remaining():
        if f.text.lower() in VOLUNTEER_CAUSES:
            values["cause"] = pool.take(i)
            return


def _claim_patent_number(pool, values, item):
    for i, f in pool.remaining():
        if PATENT_NUMBER_RE.match(f.text) and not is_date_like(f.text):
            values["number"] = re.sub(r"^patent\s+(?:number|no\.?|#)\s*:?\s*", "", pool.take(i), flags=re.I)
            return


def _claim_proficiency(pool, values, item):
    for i, f in pool.remaining():
        if PROFICIENCY_RE.search(f.text) and len(f.text) <= LEFTOVER_MAX_LENGTH:
            values["proficiency"] = pool.take(i)
            return


# ============================================================
# Organization splitters
# ============================================================
def _split_company(text, pool, org_idx):
    company, etype = split_employment_type(text)
    out = {"company": company}
    if etype:
        out["employment_type"] = etype
    return out


def _split_degree(text, pool, org_idx):
    """'Bachelor of Science - BS, Computer Science' -> degree + field."""
    if "," in text:
        degree, field_of_study = text.split(",", 1)
        return {"degree": degree.strip(), "field": field_of_study.strip()}
    out = {"degree": text}
    # Field of study on its own line right after the degree
    for i, f in pool.remaining():
        if i != org_idx + 1:
            continue
        if (not is_date_like(f.text) and not _is_reserved(f.text)
                and not is_noise_text(f.text) and not re.search(r"\d{4}", f.text)
                and len(f.text) < LOCATION_MAX_LENGTH):
            out["field"] = pool.take(i)
    return out


# ============================================================
# Rule table
# ============================================================
@dataclass(frozen=True)
class KindRule:
    has_dates: bool = True
    has_location: bool = False
    has_description: bool = True
    has_skills: bool = False
    claims: Tuple[Callable, ...] = ()
    split_organization: Optional[Callable] = None
    # field filled by the first short unclaimed fragment, if still empty
    leftover_field: str = ""
    date_exclude: Optional[Callable] = None


KIND_RULES = {
    "experience": KindRule(
        has_location=True, has_skills=True,
        claims=(_claim_skills, _claim_employment_type),
        split_organization=_split_company,
    ),
    "education": KindRule(
        claims=(_claim_grade,),
        split_organization=_split_degree,
    ),
    "certification": KindRule(
        has_description=False,
        claims=(_claim_credential, _claim_issued_by),
    ),
    "project": KindRule(
        has_skills=True,
        claims=(_claim_skills, _claim_associated_org, _claim_url),
    ),
    "volunteer": KindRule(
        has_location=True,
        claims=(_claim_cause,),
        leftover_field="cause",
        # An "Issued ..." caption belongs to a certificate widget, never a volunteer role
        date_exclude=lambda f: "issued" in f.text.lower(),
    ),
    "publication": KindRule(claims=(_claim_url,)),
    "honor": KindRule(claims=(_claim_issued_by, _claim_associated_extra)),
    "language": KindRule(
        has_dates=False, has_description=False,
        claims=(_claim_proficiency,),
        leftover_field="proficiency",
    ),
    "patent": KindRule(claims=(_claim_patent_number, _claim_url)),
}


# ============================================================
# Pipeline
# ============================================================
def _pick_label(pool) -> Optional[int]:
    remaining = pool.remaining()
    if not remaining:
        return None
    for i, f in remaining:
        if f.is_primary_label:
            return i
    return remaining[0][0]


def _pick_organization(pool, label_idx) -> Optional[int]:
    """
    Second privileged fragment if there is one, else the fragment right after
    the label. Chrome and metadata lines are stepped over; a date stops the
    search (the item has no organization line).
    """
    remaining = pool.remaining()
    for i, f in remaining:
        if f.is_primary_label and _fits_organization(f.text):
            return i
    for i, f in remaining:
        if i < label_idx:
            continue
        if is_noise_text(f.text) or is_metadata_token(f.text) or _is_reserved(f.text):
            continue
        return i if _fits_organization(f.text) else None
    return None


def _pick_location(pool) -> Optional[int]:
    for i, f in pool.remaining():
        if looks_like_location(f.text):
            return i
    return None


def _pick_leftover(pool) -> Optional[int]:
    for i, f in pool.remaining():
        text = f.text
        if (len(text) <= LEFTOVER_MAX_LENGTH and not re.search(r"\d{4}", text)
                and not is_date_like(text) and not is_noise_text(text)
                and not is_metadata_token(text) and not _is_reserved(text)):
            return i
    return None


def _pick_description(pool) -> Optional[int]:
    candidates = [
        (i, f) for i, f in pool.remaining()
        if not is_metadata_token(f.text) and not is_noise_text(f.text)
        and not is_date_like(f.text)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda c: len(c[1].text))[0]


def extract_entity(kind: str, item: ItemFragments, default_organization: str = ""):
    """
    Build one entity of `kind` from an item's fragments.

    Returns None when the item has no identifying label. `default_organization`
    is the company inherited by a role nested under a grouped experience item.
    """
    if kind not in KIND_RULES:
        raise ExtractionAnomaly(f"Unknown entity kind: {kind}")
    if not isinstance(item, ItemFragments):
        raise ExtractionAnomaly(f"Expected ItemFragments, got {type(item).__name__}")

    rule = KIND_RULES[kind]
    cls = ENTITY_CLASSES[kind]
    pool = _Pool(expand_compound(item.fragments))
    values = {}

    for claim in rule.claims:
        claim(pool, values, item)

    # 1. Label
    label_idx = _pick_label(pool)
    if label_idx is None:
        return None
    label = clean_doubled(pool.take(label_idx))
    if kind == "experience":
        label, etype = split_employment_type(label)
        if etype:
            values.setdefault("employment_type", etype)
    if not label:
        return None
    values[cls.LABEL_FIELD] = label

    # 2. Organization
    if cls.ORG_FIELD:
        claimed = values.pop("_organization", "")
        if default_organization:
            values[cls.ORG_FIELD] = default_organization
        elif claimed:
            values[cls.ORG_FIELD] = claimed
        else:
            org_idx = _pick_organization(pool, label_idx)
            if org_idx is not None:
                text = clean_doubled(pool.take(org_idx))
                if rule.split_organization:
                    for key, value in rule.split_organization(text, pool, org_idx).items():
                        if key == cls.ORG_FIELD or not values.get(key):
                            values[key] = value
                else:
                    values[cls.ORG_FIELD] = text

    # 3. Date
    if rule.has_dates:
        date_range, frag = resolve_date([f for _, f in pool.remaining()], exclude=rule.date_exclude)
        if frag is not None:
            pool.take(pool.index_of(frag))
            values["date_range"] = date_range
        # Duration/expiry leftovers are never description
        for i, f in pool.remaining():
            if is_date_clause(f.text):
                pool.take(i)

    # 4. Location
    if rule.has_location:
        loc_idx = _pick_location(pool)
        if loc_idx is not None:
            values["location"] = pool.take(loc_idx)

    if rule.leftover_field and not values.get(rule.leftover_field):
        left_idx = _pick_leftover(pool)
        if left_idx is not None:
            values[rule.leftover_field] = pool.take(left_idx)

    # 5. Description
    if rule.has_description:
        description = clean_text(item.expandable_text)
        if not description:
            desc_idx = _pick_description(pool)
            if desc_idx is not None:
                description = truncate(pool.take(desc_idx), DESCRIPTION_MAX_LENGTH)
        if kind == "education" and ACTIVITIES_RE.search(description):
            head, tail = ACTIVITIES_RE.split(description, maxsplit=1)
            values.setdefault("activities", tail.strip())
            description = head.strip()
        # 6. Skills
        if rule.has_skills:
            description, tokens = parse_contextual_skills(description)
            values.setdefault("_skills", []).extend(tokens)
        values["description"] = description

    skills = []
    for token in values.pop("_skills", []):
        if token.lower() not in {s.lower() for s in skills}:
            skills.append(token)
    if rule.has_skills:
        values["contextual_skills"] = tuple(skills)

    return cls(**values)


def extract_grouped_experience(item: ItemFragments) -> List:
    """
    Company header with nested roles. The header's label is the company for
    every role; its location and employment type fill roles that lack them.
    """
    header = expand_compound(item.fragments)
    if not header:
        return []
    company_frag = next((f for f in header if f.is_primary_label), header[0])
    company, header_etype = split_employment_type(clean_doubled(company_frag.text))
    header_location = ""
    for f in header:
        if f is company_frag:
            continue
        if not header_etype:
            header_etype = _employment_type_in(f.text)
        if not header_location and looks_like_location(f.text):
            header_location = f.text

    roles = []
    for sub in item.sub_items:
        entity = extract_entity("experience", sub, default_organization=company)
        if entity is None:
            continue
        updates = {}
        if header_location and not entity.location:
            updates["location"] = header_location
        if header_etype and not entity.employment_type:
            updates["employment_type"] = header_etype
        roles.append(replace(entity, **updates) if updates else entity)
    return roles


def extract_items(kind: str, items, diagnostics=None, classifier=None, url: str = "") -> List:
    """
    Extract every item of one view, dropping noise.

    A failure on one item is recorded as an extraction_anomaly diagnostic and
    never aborts the rest of the list.
    """
    classifier = classifier or get_classifier()
    entities = []
    for idx, item in enumerate(items or []):
        try:
            if kind == "experience" and getattr(item, "sub_items", None):
                produced = extract_grouped_experience(item)
            else:
                entity = extract_entity(kind, item)
                produced = [entity] if entity is not None else []
        except Exception as e:
            logger.warning(f"    ⚠️ Could not extract {kind} item {idx}: {e}")
            if diagnostics is not None:
                diagnostics.append(Diagnostic(kind, EXTRACTION_ANOMALY, f"item {idx}: {e}", url))
            continue
        entities.extend(e for e in produced if not classifier.is_noise(e))
    return entities
