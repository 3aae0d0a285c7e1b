"""
Typed records produced by an extraction run.

Fragments and items are ephemeral inputs to the extraction engine. Entities,
date ranges and the ProfileRecord are frozen values: Merge/Assembly builds new
instances (dataclasses.replace) rather than mutating them, and the record handed
to the caller never changes afterwards.

Serialization is a flat, self-describing dict/JSON shape. A DateRange is
flattened into the owning entity as ``from`` / ``to`` / ``dates`` / ``duration``.
"""

import json
from dataclasses import dataclass, field, fields
from typing import ClassVar, Dict, List, Tuple


# ============================================================
# Fragments
# ============================================================
@dataclass(frozen=True)
class RawFragment:
    text: str
    is_primary_label: bool = False
    is_caption: bool = False


@dataclass
class ItemFragments:
    """Everything the collector saw for one visual item."""
    fragments: List[RawFragment] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    expandable_text: str = ""
    sub_items: List["ItemFragments"] = field(default_factory=list)

    @classmethod
    def from_texts(cls, texts, primary=(), caption=(), **kwargs):
        """Build an item from plain strings; `primary`/`caption` are indexes."""
        frags = [
            RawFragment(t, is_primary_label=i in primary, is_caption=i in caption)
            for i, t in enumerate(texts)
        ]
        return cls(fragments=frags, **kwargs)

    @property
    def texts(self):
        return [f.text for f in self.fragments]


# ============================================================
# Dates
# ============================================================
@dataclass(frozen=True)
class DateRange:
    start_text: str = ""
    end_text: str = ""
    range_text: str = ""
    duration_text: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.range_text

    @property
    def is_open(self) -> bool:
        return bool(self.range_text) and not self.end_text

    def to_dict(self) -> Dict[str, str]:
        return {
            "from": self.start_text,
            "to": self.end_text,
            "dates": self.range_text,
            "duration": self.duration_text,
        }

    @classmethod
    def from_dict(cls, data) -> "DateRange":
        return cls(
            start_text=data.get("from", "") or "",
            end_text=data.get("to", "") or "",
            range_text=data.get("dates", "") or "",
            duration_text=data.get("duration", "") or "",
        )


EMPTY_RANGE = DateRange()
_DATE_KEYS = ("from", "to", "dates", "duration")


# ============================================================
# Entities
# ============================================================
class Entity:
    """
    Shared behaviour for the nine entity kinds.

    Each subclass names the field holding its identifying label and its
    organization-like field, plus the fields that count as "discriminating"
    for the noise classifier when neither organization nor date is present.
    """
    KIND: ClassVar[str] = ""
    LABEL_FIELD: ClassVar[str] = "title"
    ORG_FIELD: ClassVar[str] = ""
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ()

    @property
    def label(self) -> str:
        return getattr(self, self.LABEL_FIELD, "") or ""

    @property
    def organization(self) -> str:
        if not self.ORG_FIELD:
            return ""
        return getattr(self, self.ORG_FIELD, "") or ""

    @property
    def dates(self) -> DateRange:
        return getattr(self, "date_range", EMPTY_RANGE)

    def normalized_key(self) -> Tuple[str, str, str]:
        return (
            " ".join(self.label.lower().split()),
            " ".join(self.organization.lower().split()),
            " ".join(self.dates.range_text.lower().split()),
        )

    def to_dict(self) -> Dict:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, DateRange):
                data.update(value.to_dict())
            elif isinstance(value, tuple):
                data[f.name] = list(value)
            else:
                data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data):
        kwargs = {}
        for f in fields(cls):
            if f.name == "date_range":
                if any(k in data for k in _DATE_KEYS):
                    kwargs["date_range"] = DateRange.from_dict(data)
                continue
            if f.name not in data:
                continue
            value = data[f.name]
            kwargs[f.name] = tuple(value) if isinstance(value, list) else (value or "")
        return cls(**kwargs)


@dataclass(frozen=True)
class Experience(Entity):
    KIND: ClassVar[str] = "experience"
    LABEL_FIELD: ClassVar[str] = "title"
    ORG_FIELD: ClassVar[str] = "company"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("location", "description")

    title: str = ""
    company: str = ""
    employment_type: str = ""
    location: str = ""
    date_range: DateRange = EMPTY_RANGE
    description: str = ""
    contextual_skills: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Education(Entity):
    KIND: ClassVar[str] = "education"
    LABEL_FIELD: ClassVar[str] = "school"
    ORG_FIELD: ClassVar[str] = "degree"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("field", "grade")

    school: str = ""
    degree: str = ""
    field: str = ""
    grade: str = ""
    date_range: DateRange = EMPTY_RANGE
    activities: str = ""
    description: str = ""


@dataclass(frozen=True)
class Certification(Entity):
    KIND: ClassVar[str] = "certification"
    LABEL_FIELD: ClassVar[str] = "name"
    ORG_FIELD: ClassVar[str] = "issuer"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("credential_id", "url")

    name: str = ""
    issuer: str = ""
    date_range: DateRange = EMPTY_RANGE
    credential_id: str = ""
    url: str = ""


@dataclass(frozen=True)
class Project(Entity):
    KIND: ClassVar[str] = "project"
    LABEL_FIELD: ClassVar[str] = "title"
    ORG_FIELD: ClassVar[str] = "associated_with"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("url", "description")

    title: str = ""
    associated_with: str = ""
    date_range: DateRange = EMPTY_RANGE
    url: str = ""
    description: str = ""
    contextual_skills: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Volunteer(Entity):
    KIND: ClassVar[str] = "volunteer"
    LABEL_FIELD: ClassVar[str] = "role"
    ORG_FIELD: ClassVar[str] = "organization"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("cause",)

    role: str = ""
    organization: str = ""
    cause: str = ""
    location: str = ""
    date_range: DateRange = EMPTY_RANGE
    description: str = ""


@dataclass(frozen=True)
class Publication(Entity):
    KIND: ClassVar[str] = "publication"
    LABEL_FIELD: ClassVar[str] = "title"
    ORG_FIELD: ClassVar[str] = "publisher"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("url",)

    title: str = ""
    publisher: str = ""
    date_range: DateRange = EMPTY_RANGE
    url: str = ""
    description: str = ""


@dataclass(frozen=True)
class Honor(Entity):
    KIND: ClassVar[str] = "honor"
    LABEL_FIELD: ClassVar[str] = "title"
    ORG_FIELD: ClassVar[str] = "issuer"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("associated_with",)

    title: str = ""
    issuer: str = ""
    associated_with: str = ""
    date_range: DateRange = EMPTY_RANGE
    description: str = ""


@dataclass(frozen=True)
class Language(Entity):
    KIND: ClassVar[str] = "language"
    LABEL_FIELD: ClassVar[str] = "name"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("proficiency",)

    name: str = ""
    proficiency: str = ""


@dataclass(frozen=True)
class Patent(Entity):
    KIND: ClassVar[str] = "patent"
    LABEL_FIELD: ClassVar[str] = "title"
    ORG_FIELD: ClassVar[str] = "office"
    DISCRIMINATORS: ClassVar[Tuple[str, ...]] = ("number", "url", "description")

    title: str = ""
    office: str = ""
    number: str = ""
    date_range: DateRange = EMPTY_RANGE
    url: str = ""
    description: str = ""


# kind -> entity class, in the order detail views are visited
ENTITY_CLASSES = {
    cls.KIND: cls
    for cls in (Experience, Education, Certification, Project, Volunteer,
                Publication, Honor, Language, Patent)
}

# kind -> ProfileRecord collection field
RECORD_FIELDS = {
    "experience": "experience",
    "education": "education",
    "certification": "certifications",
    "project": "projects",
    "volunteer": "volunteering",
    "publication": "publications",
    "honor": "honors",
    "language": "languages",
    "patent": "patents",
}


# ============================================================
# Diagnostics & record
# ============================================================
NAVIGATION_FAILED = "navigation_failed"
SECTION_ABSENT = "section_absent"
EXTRACTION_ANOMALY = "extraction_anomaly"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    category: str
    message: str = ""
    url: str = ""

    def to_dict(self):
        return {"kind": self.kind, "category": self.category,
                "message": self.message, "url": self.url}

    @classmethod
    def from_dict(cls, data):
        return cls(**{k: data.get(k, "") for k in ("kind", "category", "message", "url")})


@dataclass(frozen=True)
class ProfileRecord:
    profile_url: str = ""
    name: str = ""
    headline: str = ""
    location: str = ""
    photo_url: str = ""
    about: str = ""
    skills: Tuple[str, ...] = ()
    experience: Tuple[Experience, ...] = ()
    education: Tuple[Education, ...] = ()
    certifications: Tuple[Certification, ...] = ()
    projects: Tuple[Project, ...] = ()
    volunteering: Tuple[Volunteer, ...] = ()
    publications: Tuple[Publication, ...] = ()
    honors: Tuple[Honor, ...] = ()
    languages: Tuple[Language, ...] = ()
    patents: Tuple[Patent, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()
    complete: bool = True
    scraped_at: str = ""

    def entities(self, kind):
        return getattr(self, RECORD_FIELDS[kind])

    def to_dict(self) -> Dict:
        data = {
            "profile_url": self.profile_url,
            "name": self.name,
            "headline": self.headline,
            "location": self.location,
            "photo_url": self.photo_url,
            "about": self.about,
            "skills": list(self.skills),
        }
        for kind, attr in RECORD_FIELDS.items():
            data[attr] = [e.to_dict() for e in getattr(self, attr)]
        data["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        data["complete"] = self.complete
        data["scraped_at"] = self.scraped_at
        return data

    @classmethod
    def from_dict(cls, data) -> "ProfileRecord":
        kwargs = {
            key: data.get(key, "") or ""
            for key in ("profile_url", "name", "headline", "location",
                        "photo_url", "about", "scraped_at")
        }
        kwargs["skills"] = tuple(data.get("skills") or ())
        for kind, attr in RECORD_FIELDS.items():
            entity_cls = ENTITY_CLASSES[kind]
            kwargs[attr] = tuple(entity_cls.from_dict(e) for e in data.get(attr) or ())
        kwargs["diagnostics"] = tuple(Diagnostic.from_dict(d) for d in data.get("diagnostics") or ())
        kwargs["complete"] = bool(data.get("complete", True))
        return cls(**kwargs)

    def to_json(self, indent=2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "ProfileRecord":
        return cls.from_dict(json.loads(text))
