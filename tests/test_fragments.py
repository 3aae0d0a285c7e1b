"""
Tests for the Fragment Collector against small HTML snapshots.

Run with: pytest tests/test_fragments.py -v
"""

from profile_scraper.extraction import extract_items
from profile_scraper.fragments import (
    collect_fragments,
    collect_items,
    collect_skill_names,
    extract_top_card,
    find_detail_region,
    find_section,
    parse_snapshot,
)

EXPERIENCE_DETAIL = """
<html><body>
<main>
  <section>
    <div class="scaffold-finite-scroll__content">
      <ul>
        <li class="pvs-list__paged-list-item">
          <div class="t-bold">
            <span aria-hidden="true">Software Engineer</span>
            <span class="visually-hidden">Software Engineer</span>
          </div>
          <span class="t-14"><span aria-hidden="true">Acme Corp · Full-time</span></span>
          <span class="pvs-entity__caption-wrapper" aria-hidden="true">Jan 2019 - Dec 2021 · 3 yrs</span>
          <span><span aria-hidden="true">Dallas, Texas, United States</span></span>
          <div class="inline-show-more-text">
            <span aria-hidden="true">Built X. Skills: Go, SQL</span>
          </div>
        </li>
        <li class="pvs-list__paged-list-item">
          <div class="t-bold"><span aria-hidden="true">Acme</span></div>
          <span><span aria-hidden="true">Full-time · 3 yrs</span></span>
          <ul>
            <li class="pvs-list__paged-list-item">
              <div class="t-bold"><span aria-hidden="true">Engineer</span></div>
              <span class="pvs-entity__caption-wrapper" aria-hidden="true">Jan 2019 - Dec 2020 · 2 yrs</span>
            </li>
            <li class="pvs-list__paged-list-item">
              <div class="t-bold"><span aria-hidden="true">Senior Engineer</span></div>
              <span class="pvs-entity__caption-wrapper" aria-hidden="true">Jan 2021 - Present · 2 yrs</span>
            </li>
          </ul>
        </li>
        <li class="pvs-list__paged-list-item">
          <div class="t-bold"><span aria-hidden="true">Someone at Initech</span></div>
        </li>
      </ul>
    </div>
  </section>
</main>
<aside><span aria-hidden="true">People also viewed</span></aside>
</body></html>
"""

MAIN_VIEW = """
<html><body><main>
  <section>
    <h1>Jane Doe (She/Her)</h1>
    <div class="text-body-medium">Staff Engineer at Acme</div>
    <span class="text-body-small">Dallas, Texas, United States</span>
    <span class="text-body-small">500+ connections</span>
    <img class="pv-top-card-profile-picture__image" src="https://media.example.test/jane.jpg">
  </section>
  <section>
    <div id="about"></div>
    <h2>About</h2>
    <div class="inline-show-more-text"><span aria-hidden="true">I build things.</span></div>
  </section>
  <section>
    <h2><span aria-hidden="true">Licenses &amp; certifications</span><span class="visually-hidden">Licenses &amp; certifications</span></h2>
    <ul><li class="artdeco-list__item"><span aria-hidden="true">CKA</span></li></ul>
  </section>
  <section>
    <div id="skills"></div>
    <ul>
      <li class="artdeco-list__item">
        <div class="t-bold"><span aria-hidden="true">Python</span></div>
        <span aria-hidden="true">3 endorsements</span>
      </li>
      <li class="artdeco-list__item">
        <div class="t-bold"><span aria-hidden="true">SQL</span></div>
      </li>
    </ul>
  </section>
</main></body></html>
"""


class TestCollectItems:

    def test_flat_item_fragments(self):
        region = find_detail_region(parse_snapshot(EXPERIENCE_DETAIL))
        items = collect_items(region, "experience")
        first = items[0]

        assert first.texts == [
            "Software Engineer",
            "Acme Corp · Full-time",
            "Jan 2019 - Dec 2021 · 3 yrs",
            "Dallas, Texas, United States",
        ]
        assert first.fragments[0].is_primary_label
        assert not first.fragments[1].is_primary_label
        assert first.fragments[2].is_caption
        assert first.expandable_text == "Built X. Skills: Go, SQL"

    def test_nested_roles_become_sub_items(self):
        region = find_detail_region(parse_snapshot(EXPERIENCE_DETAIL))
        items = collect_items(region, "experience")

        assert len(items) == 3
        grouped = items[1]
        assert grouped.texts == ["Acme", "Full-time · 3 yrs"]
        assert [s.texts[0] for s in grouped.sub_items] == ["Engineer", "Senior Engineer"]

    def test_view_to_entities(self):
        region = find_detail_region(parse_snapshot(EXPERIENCE_DETAIL))
        entities = extract_items("experience", collect_items(region, "experience"))

        assert [(e.title, e.company) for e in entities] == [
            ("Software Engineer", "Acme Corp"),
            ("Engineer", "Acme"),
            ("Senior Engineer", "Acme"),
        ]
        first = entities[0]
        assert first.employment_type == "Full-time"
        assert first.location == "Dallas, Texas, United States"
        assert first.description == "Built X."
        assert first.contextual_skills == ("Go", "SQL")

    def test_detail_region_excludes_aside(self):
        region = find_detail_region(parse_snapshot(EXPERIENCE_DETAIL))
        texts = [f.text for f in collect_fragments(region)]
        assert "People also viewed" not in texts


class TestCollectFragments:

    def test_missing_region(self):
        assert collect_fragments(None) == []
        assert collect_items(None, "experience") == []

    def test_hidden_elements_skipped(self):
        soup = parse_snapshot(
            '<ul><li class="pvs-list__paged-list-item"><span aria-hidden="true">Visible</span>'
            '<span aria-hidden="true" style="display:none">Hidden</span></li></ul>'
        )
        assert [f.text for f in collect_fragments(soup.find("li"))] == ["Visible"]

    def test_text_node_fallback_uses_font_weight(self):
        soup = parse_snapshot("<div><strong>Engineer</strong><p>Acme</p></div>")
        frags = collect_fragments(soup.find("div"))
        assert [f.text for f in frags] == ["Engineer", "Acme"]
        assert frags[0].is_primary_label
        assert not frags[1].is_primary_label


class TestMainView:

    def test_top_card(self):
        card = extract_top_card(parse_snapshot(MAIN_VIEW))
        assert card["name"] == "Jane Doe"
        assert card["headline"] == "Staff Engineer at Acme"
        assert card["location"] == "Dallas, Texas, United States"
        assert card["photo_url"] == "https://media.example.test/jane.jpg"
        assert card["about"] == "I build things."

    def test_section_by_heading_text(self):
        section = find_section(parse_snapshot(MAIN_VIEW), "certification")
        assert section is not None
        assert [i.texts for i in collect_items(section, "certification")] == [["CKA"]]

    def test_absent_section(self):
        assert find_section(parse_snapshot(MAIN_VIEW), "patent") is None

    def test_skill_names(self):
        section = find_section(parse_snapshot(MAIN_VIEW), "skills")
        assert collect_skill_names(section) == ["Python", "SQL"]
