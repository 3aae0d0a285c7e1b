"""
Tests for Merge/Assembly.

Run with: pytest tests/test_merge.py -v
"""

from profile_scraper.dates import normalize_date_range
from profile_scraper.merge import (
    ProfileAssembler,
    dedupe,
    keys_match,
    merge_entities,
    merge_skills,
    widen,
)
from profile_scraper.models import (
    NAVIGATION_FAILED,
    Education,
    Experience,
    ProfileRecord,
)

RANGE_A = normalize_date_range("2019 - 2021")
RANGE_B = normalize_date_range("Jan 2022 - Present")


def test_richer_detail_entity_wins():
    main = Experience(title="X", company="")
    detail = Experience(title="X", company="Acme", date_range=RANGE_A)
    assert merge_entities([main], [detail]) == [detail]


def test_merge_is_idempotent():
    entities = [
        Experience(title="Engineer", company="Acme", date_range=RANGE_A),
        Experience(title="Senior Engineer", company="Acme", date_range=RANGE_B),
    ]
    once = merge_entities(entities, entities)
    assert once == entities
    assert merge_entities(once, entities) == entities


def test_main_view_fills_empty_fields_only():
    main = Experience(title="Engineer", company="Acme", date_range=RANGE_A,
                      description="Short blurb", location="Austin, Texas")
    detail = Experience(title="Engineer", company="Acme", date_range=RANGE_A,
                        description="The full description")
    merged = merge_entities([main], [detail])

    assert len(merged) == 1
    assert merged[0].description == "The full description"
    assert merged[0].location == "Austin, Texas"


def test_unmatched_main_entities_follow_detail_order():
    detail = [Experience(title="B", company="Globex", date_range=RANGE_B)]
    main = [
        Experience(title="A", company="Acme", date_range=RANGE_A),
        Experience(title="B", company="Globex"),
    ]
    assert [e.title for e in merge_entities(main, detail)] == ["B", "A"]


def test_same_title_different_company_stays_separate():
    a = Experience(title="Engineer", company="Acme", date_range=RANGE_A)
    b = Experience(title="Engineer", company="Globex", date_range=RANGE_A)
    assert not keys_match(a, b)
    assert merge_entities([a], [b]) == [b, a]


def test_keys_never_match_across_kinds():
    assert not keys_match(Experience(title="UNT"), Education(school="UNT"))


def test_dedupe_within_one_source():
    a = Experience(title="Engineer", company="Acme")
    b = Experience(title="engineer", date_range=RANGE_A)
    assert dedupe([a, b]) == [Experience(title="Engineer", company="Acme", date_range=RANGE_A)]


def test_widen_returns_same_object_when_nothing_to_fill():
    a = Experience(title="Engineer", company="Acme", date_range=RANGE_A)
    assert widen(a, Experience(title="Engineer")) is a


def test_noise_swept_after_merge():
    decoy = Experience(title="Someone at Acme", company="Acme", date_range=RANGE_A)
    assert merge_entities([decoy], []) == []


def test_merge_skills_case_insensitive_first_spelling_wins():
    assert merge_skills(["Python", "SQL"], ["python", "Go", ""]) == ["Python", "SQL", "Go"]


class TestProfileAssembler:

    def test_build(self):
        asm = ProfileAssembler("https://www.linkedin.com/in/jane-doe")
        asm.add_identity(name="Jane Doe", headline="Engineer")
        asm.add_identity(name="Someone Else", location="Dallas, Texas")
        asm.add_main("experience", [Experience(title="Engineer", company="Acme")])
        asm.add_detail("experience", [Experience(title="Engineer", company="Acme", date_range=RANGE_A)])
        asm.add_skills(["Python"])
        asm.add_diagnostic("project", NAVIGATION_FAILED, "timed out", "https://x.test")

        record = asm.build(complete=False)

        assert isinstance(record, ProfileRecord)
        assert record.name == "Jane Doe"
        assert record.location == "Dallas, Texas"
        assert record.experience == (Experience(title="Engineer", company="Acme", date_range=RANGE_A),)
        assert record.education == ()
        assert record.skills == ("Python",)
        assert record.diagnostics[0].category == NAVIGATION_FAILED
        assert record.complete is False
        assert record.scraped_at
