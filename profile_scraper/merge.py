"""
Merge/Assembly.

Main view and detail view report overlapping entity sets. The detail view is
the richer source, so its entities lead; main-view entities only widen them
(fill fields the detail copy left empty) or, when unmatched, follow them.
Widening never overwrites a non-empty field, so repeating a merge changes
nothing.
"""

from dataclasses import fields, replace
from datetime import datetime
from typing import Dict, List

from .config import logger
from .models import (
    ENTITY_CLASSES,
    RECORD_FIELDS,
    SECTION_ABSENT,
    Diagnostic,
    ProfileRecord,
)
from .noise_classifier import get_classifier
from .utils import clean_text


def keys_match(a, b) -> bool:
    """
    Same label (case-insensitive); organization and range text equal or empty
    on either side.
    """
    if type(a) is not type(b):
        return False
    ka, kb = a.normalized_key(), b.normalized_key()
    if not ka[0] or ka[0] != kb[0]:
        return False
    for x, y in zip(ka[1:], kb[1:]):
        if x and y and x != y:
            return False
    return True


def _is_empty(value) -> bool:
    if hasattr(value, "is_empty"):
        return value.is_empty
    return not value


def widen(target, source):
    """Copy of `target` with its empty fields filled from `source`."""
    updates = {}
    for f in fields(target):
        mine = getattr(target, f.name)
        theirs = getattr(source, f.name)
        if _is_empty(mine) and not _is_empty(theirs):
            updates[f.name] = theirs
    return replace(target, **updates) if updates else target


def dedupe(entities) -> List:
    """Collapse matching entities within one list, keeping first-seen order."""
    out = []
    for entity in entities:
        for idx, kept in enumerate(out):
            if keys_match(kept, entity):
                out[idx] = widen(kept, entity)
                break
        else:
            out.append(entity)
    return out


def merge_entities(main, detail, classifier=None) -> List:
    """
    Detail entities first (in their order), each widened by its main-view
    match; unmatched main entities appended in their order. A second noise
    sweep runs over the union.
    """
    classifier = classifier or get_classifier()
    merged = dedupe(detail or [])
    for entity in dedupe(main or []):
        for idx, kept in enumerate(merged):
            if keys_match(kept, entity):
                merged[idx] = widen(kept, entity)
                break
        else:
            merged.append(entity)
    return classifier.filter(merged)


def merge_skills(*sources) -> List[str]:
    """Union of skill names, first spelling wins, case-insensitive."""
    seen = set()
    out = []
    for names in sources:
        for name in names or []:
            name = clean_text(name)
            if not name or name.lower() in seen:
                continue
            seen.add(name.lower())
            out.append(name)
    return out


class ProfileAssembler:
    """
    Single-owner accumulator for one run. Identity fields only widen; each kind
    holds the main-view and detail-view sets until build() merges them.
    """

    IDENTITY_FIELDS = ("name", "headline", "location", "photo_url", "about")

    def __init__(self, profile_url: str, classifier=None):
        self.profile_url = profile_url
        self.classifier = classifier or get_classifier()
        self.identity: Dict[str, str] = {k: "" for k in self.IDENTITY_FIELDS}
        self.main: Dict[str, List] = {kind: [] for kind in ENTITY_CLASSES}
        self.detail: Dict[str, List] = {kind: [] for kind in ENTITY_CLASSES}
        self.skills: List[List[str]] = []
        self.diagnostics: List[Diagnostic] = []

    def add_identity(self, **values):
        for key, value in values.items():
            if key in self.identity and not self.identity[key] and value:
                self.identity[key] = value

    def add_main(self, kind: str, entities):
        self.main[kind].extend(entities)

    def add_detail(self, kind: str, entities):
        self.detail[kind].extend(entities)

    def add_skills(self, names):
        self.skills.append(list(names or []))

    def add_diagnostic(self, kind: str, category: str, message: str = "", url: str = ""):
        if category == SECTION_ABSENT:
            logger.info(f"    [{kind}] {category}: {message}")
        else:
            logger.warning(f"    ⚠️ [{kind}] {category}: {message}")
        self.diagnostics.append(Diagnostic(kind, category, message, url))

    def build(self, complete: bool = True) -> ProfileRecord:
        collections = {}
        for kind, attr in RECORD_FIELDS.items():
            collections[attr] = tuple(
                merge_entities(self.main[kind], self.detail[kind], self.classifier)
            )
        return ProfileRecord(
            profile_url=self.profile_url,
            skills=tuple(merge_skills(*self.skills)),
            diagnostics=tuple(self.diagnostics),
            complete=complete,
            scraped_at=datetime.now().isoformat(timespec="seconds"),
            **self.identity,
            **collections,
        )
