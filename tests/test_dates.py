"""
Tests for the Date/Range Normalizer.

Run with: pytest tests/test_dates.py -v
"""

import pytest

from profile_scraper.dates import (
    is_date_clause,
    is_date_like,
    is_duration,
    normalize_date_range,
    resolve_date,
)
from profile_scraper.models import EMPTY_RANGE, RawFragment


class TestNormalizeDateRange:

    def test_open_range_with_duration(self):
        dr = normalize_date_range("Jan 2019 - Present · 5 yrs 2 mos")
        assert dr.start_text == "Jan 2019"
        assert dr.end_text == "Present"
        assert dr.range_text == "Jan 2019 - Present"
        assert dr.duration_text == "5 yrs 2 mos"

    def test_issued_and_expires(self):
        dr = normalize_date_range("Issued Jun 2018 · Expires Jun 2021")
        assert dr.start_text == "Jun 2018"
        assert dr.end_text == "Jun 2021"
        assert dr.range_text == "Jun 2018 - Jun 2021"

    def test_en_dash_years(self):
        dr = normalize_date_range("2016 – 2020")
        assert (dr.start_text, dr.end_text) == ("2016", "2020")
        assert dr.range_text == "2016 - 2020"

    def test_unspaced_year_range(self):
        dr = normalize_date_range("2018-2020")
        assert (dr.start_text, dr.end_text) == ("2018", "2020")

    def test_full_month_names_are_abbreviated(self):
        dr = normalize_date_range("January 2019 - March 2020")
        assert dr.range_text == "Jan 2019 - Mar 2020"

    def test_single_date(self):
        dr = normalize_date_range("Published Nov 3, 2022")
        assert dr.start_text == "Nov 3, 2022"
        assert dr.end_text == ""

    @pytest.mark.parametrize("text", [
        "Acme Corp",
        "Full-time",
        "Remote",
        "Dallas, Texas, United States",
        "Built X. Skills: Go, SQL",
        "3 yrs 2 mos",
        "",
        None,
    ])
    def test_no_year_and_no_present_marker_is_empty(self, text):
        assert normalize_date_range(text) == EMPTY_RANGE

    def test_prose_mentioning_a_year_is_not_a_date(self):
        assert normalize_date_range("Led the 2019 migration of billing systems").is_empty

    def test_overlong_candidate_is_ignored(self):
        text = "Jan 2019 - Present " + "x" * 100
        assert normalize_date_range(text).is_empty


class TestDatePredicates:

    def test_durations(self):
        assert is_duration("3 yrs")
        assert is_duration("1 yr 4 mos")
        assert is_duration("Less than a year")
        assert not is_duration("2019")

    def test_clauses(self):
        assert is_date_clause("Expires Jan 2023")
        assert is_date_clause("No expiration date")
        assert not is_date_clause("Issued by IEEE")

    def test_date_like(self):
        assert is_date_like("Issued Jan 2020")
        assert is_date_like("Expires Jan 2023")
        assert not is_date_like("Issued by IEEE")
        assert not is_date_like("US 10,123,456")


class TestResolveDate:

    def test_caption_fragment_wins(self):
        frags = [
            RawFragment("Acme"),
            RawFragment("2015 - 2019"),
            RawFragment("Jan 2020 - Present", is_caption=True),
        ]
        dr, frag = resolve_date(frags)
        assert dr.start_text == "Jan 2020"
        assert frag is frags[2]

    def test_first_in_document_order_without_caption(self):
        frags = [RawFragment("Acme"), RawFragment("2015 - 2019"), RawFragment("2020 - 2021")]
        dr, frag = resolve_date(frags)
        assert dr.range_text == "2015 - 2019"
        assert frag is frags[1]

    def test_exclusion(self):
        frags = [RawFragment("Issued Jan 2020")]
        dr, frag = resolve_date(frags, exclude=lambda f: "issued" in f.text.lower())
        assert dr.is_empty
        assert frag is None
