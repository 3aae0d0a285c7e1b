"""
Fragment Collector.

Read-only traversal of a rendered page snapshot (BeautifulSoup). Class names on
the target site change often; font weight does not, so bold/weight treatment is
the one structural signal trusted here (it marks the item's primary label).
Everything else downstream works on plain ordered text.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from .config import logger
from .models import ItemFragments, RawFragment
from .utils import clean_doubled, clean_text

# ============================================================
# Markup hints
# ============================================================
ITEM_SELECTOR = (
    "li.pvs-list__paged-list-item, li.artdeco-list__item, "
    "li.pvs-list__item--line-separated"
)
# Grouped experience: several roles nested under one company item
SUB_ITEM_SELECTOR = "li.pvs-list__paged-list-item"
EXPANDABLE_SELECTOR = (
    ".inline-show-more-text, [data-testid='expandable-text-box'], "
    ".pv-shared-text-with-see-more"
)
PRIMARY_CLASSES = {"t-bold", "font-weight-bold", "text-heading-xlarge"}
CAPTION_CLASSES = {"pvs-entity__caption-wrapper"}
HIDDEN_CLASSES = {"visually-hidden", "a11y-text", "hidden"}
_BOLD_STYLE_RE = re.compile(r"font-weight\s*:\s*(bold|[6-9]00)", re.I)
_HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.I)

# kind -> (anchor id on the main view, section heading text)
SECTION_HINTS = {
    "about": ("about", "About"),
    "experience": ("experience", "Experience"),
    "education": ("education", "Education"),
    "certification": ("licenses_and_certifications", "Licenses & certifications"),
    "project": ("projects", "Projects"),
    "volunteer": ("volunteering_experience", "Volunteering"),
    "publication": ("publications", "Publications"),
    "honor": ("honors_and_awards", "Honors & awards"),
    "language": ("languages", "Languages"),
    "patent": ("patents", "Patents"),
    "skills": ("skills", "Skills"),
}


def parse_snapshot(page_html: str) -> BeautifulSoup:
    return BeautifulSoup(page_html or "", "html.parser")


# ============================================================
# Element predicates
# ============================================================
def _classes(el) -> set:
    return set(el.get("class") or []) if isinstance(el, Tag) else set()


def _lineage(el, stop):
    """The element and its ancestors up to (excluding) `stop`."""
    node = el
    while isinstance(node, Tag) and node is not stop:
        yield node
        node = node.parent


def _is_hidden(el, stop) -> bool:
    for node in _lineage(el, stop):
        if _classes(node) & HIDDEN_CLASSES:
            return True
        if node.has_attr("hidden"):
            return True
        if _HIDDEN_STYLE_RE.search(node.get("style", "")):
            return True
    return False


def _is_primary(el, stop) -> bool:
    for node in _lineage(el, stop):
        if node.name in ("strong", "b") or _classes(node) & PRIMARY_CLASSES:
            return True
        if _BOLD_STYLE_RE.search(node.get("style", "")):
            return True
    return False


def _is_caption(el, stop) -> bool:
    return any(_classes(node) & CAPTION_CLASSES for node in _lineage(el, stop))


def _inside_any(el, containers) -> bool:
    parents = [el] + list(el.parents)
    return any(c is p for c in containers for p in parents)


# ============================================================
# Fragment collection
# ============================================================
def collect_fragments(region, kind: Optional[str] = None, skip=()) -> List[RawFragment]:
    """
    Ordered visible text fragments of a region.

    `skip` holds sub-trees (nested items, expandable text) whose text is
    reported elsewhere. A missing or detached region yields an empty list.
    """
    if region is None:
        return []
    try:
        return _collect(region, skip)
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug(f"Fragment collection failed for {kind or 'region'}: {e}")
        return []


def _collect(region, skip) -> List[RawFragment]:
    fragments: List[RawFragment] = []
    spans = [
        s for s in region.select('span[aria-hidden="true"]')
        if not s.find_parent("span", attrs={"aria-hidden": "true"})
    ]
    if spans:
        nodes = [(s, s.get_text(" ", strip=True)) for s in spans]
    else:
        # Markup without accessibility twins: fall back to raw text nodes
        nodes = [(t.parent, str(t)) for t in region.find_all(string=True)
                 if t.parent is not None and t.parent.name not in ("script", "style")]

    for el, raw in nodes:
        if skip and _inside_any(el, skip):
            continue
        if _is_hidden(el, region.parent):
            continue
        text = clean_doubled(clean_text(raw))
        if not text:
            continue
        if fragments and fragments[-1].text == text:
            continue
        fragments.append(RawFragment(
            text=text,
            is_primary_label=_is_primary(el, region.parent),
            is_caption=_is_caption(el, region.parent),
        ))
    return fragments


def _expandable_text(item, skip) -> str:
    for el in item.select(EXPANDABLE_SELECTOR):
        if skip and _inside_any(el, skip):
            continue
        spans = el.select('span[aria-hidden="true"]')
        text = spans[0].get_text(" ", strip=True) if spans else el.get_text(" ", strip=True)
        text = clean_text(text)
        if text:
            return re.sub(r"\s*…\s*see more$", "", text, flags=re.I)
    return ""


def _links(item, skip) -> List[str]:
    hrefs = []
    for a in item.select("a[href]"):
        if skip and _inside_any(a, skip):
            continue
        href = a.get("href", "").strip()
        if href and not href.startswith("#") and href not in hrefs:
            hrefs.append(href)
    return hrefs


def _top_level_items(region) -> list:
    items = region.select(ITEM_SELECTOR)
    item_ids = {id(i) for i in items}
    top = []
    for item in items:
        nested = any(id(p) in item_ids for p in _lineage(item.parent, region))
        if not nested:
            top.append(item)
    return top


def _sub_items(item) -> list:
    """Nested role entries that carry their own bold label."""
    subs = [li for li in item.select(SUB_ITEM_SELECTOR) if li is not item]
    subs = [li for li in subs if _is_primary_anywhere(li)]
    # keep outermost only
    ids = {id(s) for s in subs}
    return [s for s in subs if not any(id(p) in ids for p in _lineage(s.parent, item))]


def _is_primary_anywhere(el) -> bool:
    for span in el.select('span[aria-hidden="true"]'):
        if _is_primary(span, el.parent):
            return True
    return False


def collect_item(item, kind: Optional[str] = None, grouped: bool = False) -> ItemFragments:
    """Fragments, links and expandable text for one list item."""
    subs = _sub_items(item) if grouped else []
    expandables = [el for el in item.select(EXPANDABLE_SELECTOR)
                   if not (subs and _inside_any(el, subs))]
    skip = list(subs) + expandables
    return ItemFragments(
        fragments=collect_fragments(item, kind, skip=skip),
        links=_links(item, subs),
        expandable_text=_expandable_text(item, subs),
        sub_items=[collect_item(s, kind) for s in subs],
    )


def collect_items(region, kind: Optional[str] = None) -> List[ItemFragments]:
    """One ItemFragments per top-level list item of the region."""
    if region is None:
        return []
    grouped = kind == "experience"
    try:
        items = _top_level_items(region)
    except (AttributeError, TypeError) as e:
        logger.debug(f"Item lookup failed for {kind}: {e}")
        return []
    return [collect_item(i, kind, grouped=grouped) for i in items]


# ============================================================
# Region lookup
# ============================================================
def find_section(snapshot, kind: str):
    """
    Resolve a main-view section container for `kind`.
    Probes the anchor id first, then heading text (exact, then partial).
    """
    if snapshot is None or kind not in SECTION_HINTS:
        return None
    anchor_id, heading = SECTION_HINTS[kind]

    anchor = snapshot.find(id=anchor_id)
    if anchor is not None:
        section = anchor.find_parent("section")
        if section is not None:
            return section

    norm = heading.lower()
    headings = snapshot.find_all(["h2", "h3"])
    for exact in (True, False):
        for h in headings:
            text = clean_text(clean_doubled(h.get_text(" ", strip=True))).lower()
            if (text == norm) if exact else (norm in text):
                return h.find_parent("section") or h.find_parent("div")
    return None


def find_detail_region(snapshot):
    """Main content of a detail view; viewer widgets live in the aside."""
    if snapshot is None:
        return None
    return snapshot.find("main") or snapshot.find(attrs={"role": "main"}) or snapshot.body or snapshot


# ============================================================
# Top card
# ============================================================
_LOCATION_SKIP = ("contact info", "connection", "follower")


def extract_top_card(snapshot) -> dict:
    """Name, headline, location, photo and about text from the main view."""
    card = {"name": "", "headline": "", "location": "", "photo_url": "", "about": ""}
    if snapshot is None:
        return card

    h1 = snapshot.find("h1")
    if h1:
        name = clean_text(h1.get_text(" ", strip=True))
        # Clean pronouns if present
        card["name"] = re.sub(r"\s*\(.*?\)\s*$", "", name).strip()

    for div in snapshot.select("div.text-body-medium"):
        text = clean_text(div.get_text(" ", strip=True))
        if text:
            card["headline"] = text
            break

    for span in snapshot.select("span.text-body-small"):
        text = clean_text(span.get_text(" ", strip=True))
        if not text or any(x in text.lower() for x in _LOCATION_SKIP):
            continue
        card["location"] = text
        break

    img = snapshot.select_one(
        "img.pv-top-card-profile-picture__image, "
        "img.pv-top-card-profile-picture__image--show, "
        "button.pv-top-card-profile-picture img"
    )
    if img is not None:
        card["photo_url"] = img.get("src") or img.get("data-delayed-url") or ""

    about = find_section(snapshot, "about")
    if about is not None:
        text = _expandable_text(about, [])
        if not text:
            frags = [f.text for f in collect_fragments(about, "about")
                     if f.text.lower() != "about"]
            text = max(frags, key=len) if frags else ""
        card["about"] = text
    return card


def collect_skill_names(region) -> List[str]:
    """Skill names from a skills section/view: each item's primary label."""
    names = []
    for item in collect_items(region, "skills"):
        frags = item.fragments
        if not frags:
            continue
        primary = next((f for f in frags if f.is_primary_label), frags[0])
        names.append(primary.text)
    return names
