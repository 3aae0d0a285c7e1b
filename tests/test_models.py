"""
Tests for ProfileRecord serialization.

Run with: pytest tests/test_models.py -v
"""

import json

from profile_scraper.dates import normalize_date_range
from profile_scraper.models import (
    SECTION_ABSENT,
    Certification,
    Diagnostic,
    Education,
    Experience,
    Language,
    ProfileRecord,
)


def _record():
    return ProfileRecord(
        profile_url="https://www.linkedin.com/in/jane-doe",
        name="Jane Doe",
        headline="Staff Engineer",
        location="Dallas, Texas, United States",
        about="Builds things. Ünïcode ok.",
        skills=("Python", "SQL"),
        experience=(
            Experience(title="Senior Engineer", company="Acme",
                       date_range=normalize_date_range("Jan 2021 - Present · 2 yrs"),
                       contextual_skills=("Go",)),
            Experience(title="Engineer", company="Acme",
                       date_range=normalize_date_range("Jan 2019 - Dec 2020")),
        ),
        education=(Education(school="UNT", degree="BS", field="Computer Science",
                             date_range=normalize_date_range("2015 - 2019")),),
        certifications=(Certification(name="CKA", issuer="CNCF", credential_id="X1"),),
        languages=(Language(name="Spanish", proficiency="Native or bilingual proficiency"),),
        diagnostics=(Diagnostic("patent", SECTION_ABSENT, "View does not exist"),),
        complete=True,
        scraped_at="2026-01-01T00:00:00",
    )


def test_json_round_trip():
    record = _record()
    text = record.to_json()
    again = ProfileRecord.from_json(text)

    assert again == record
    assert again.to_json() == text
    assert [e.title for e in again.experience] == ["Senior Engineer", "Engineer"]


def test_flat_entity_shape():
    data = json.loads(_record().to_json())
    exp = data["experience"][0]

    assert exp["from"] == "Jan 2021"
    assert exp["to"] == "Present"
    assert exp["dates"] == "Jan 2021 - Present"
    assert exp["duration"] == "2 yrs"
    assert exp["contextual_skills"] == ["Go"]
    assert "date_range" not in exp
    assert data["projects"] == []
    assert data["diagnostics"][0]["category"] == SECTION_ABSENT


def test_missing_keys_default_to_empty():
    record = ProfileRecord.from_dict({"profile_url": "https://x.test/in/a", "experience": [{"title": "Engineer"}]})
    assert record.experience[0].date_range.is_empty
    assert record.skills == ()
    assert record.complete is True


def test_entities_by_kind():
    record = _record()
    assert record.entities("certification") == record.certifications
    assert record.entities("language")[0].proficiency.startswith("Native")
