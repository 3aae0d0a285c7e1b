"""
Navigation Controller.

One ProfileScraper owns one browser session and walks a profile strictly in
sequence:

    IDLE -> MAIN_VIEW_LOADED -> DETAIL_VIEW_LOADED (once per kind) -> ASSEMBLED

Each detail view is loaded, given time to lazy-load, extracted, and then the
controller returns to the main view before the next kind. Navigation failures
and absent views only empty that kind; an authentication wall ends the run.
"""

import threading
import time

from . import config
from .config import logger
from .defense.navigator import SafeNavigator
from .defense.page_health import NOT_FOUND
from .driver import SeleniumDriver
from .errors import AuthenticationRequiredError, NavigationError
from .extraction import extract_items
from .fragments import (
    collect_items,
    collect_skill_names,
    extract_top_card,
    find_detail_region,
    find_section,
    parse_snapshot,
)
from .merge import ProfileAssembler
from .models import (
    CANCELLED,
    ENTITY_CLASSES,
    NAVIGATION_FAILED,
    SECTION_ABSENT,
    ProfileRecord,
)
from .noise_classifier import get_classifier
from .utils import normalize_profile_url

# States
IDLE = "idle"
MAIN_VIEW_LOADED = "main_view_loaded"
DETAIL_VIEW_LOADED = "detail_view_loaded"
ASSEMBLED = "assembled"

# kind -> slug of its dedicated view (<profile>/details/<slug>/)
DETAIL_SLUGS = {
    "experience": "experience",
    "education": "education",
    "certification": "certifications",
    "project": "projects",
    "volunteer": "volunteering-experiences",
    "publication": "publications",
    "honor": "honors",
    "language": "languages",
    "patent": "patents",
    "skills": "skills",
}
SCROLL_CONTAINER = ".scaffold-finite-scroll__content"


def detail_url(profile_url: str, kind: str) -> str:
    return f"{normalize_profile_url(profile_url)}/details/{DETAIL_SLUGS[kind]}/"


class ProfileScraper:
    """
    Drives a BrowserDriver through one profile and assembles a ProfileRecord.

    cancel() may be called from another thread; it takes effect between two
    detail views and the partial record comes back with complete=False.
    """

    def __init__(self, driver, navigator=None, classifier=None):
        self.driver = driver
        self.navigator = navigator or SafeNavigator(driver)
        self.classifier = classifier or get_classifier()
        self.state = IDLE
        self._cancel_event = threading.Event()

    def cancel(self):
        logger.warning("🟡 Cancellation requested")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    # ============================================================
    # Page helpers
    # ============================================================
    def wait_for_stable_content(self, selector_hint: str = SCROLL_CONTAINER) -> bool:
        """
        Trigger lazy loading until the content height is unchanged for
        STABLE_PROBES_REQUIRED consecutive probes, at most MAX_LAZY_LOAD_PROBES.
        Returns whether the page settled.
        """
        time.sleep(config.INITIAL_PAINT_SECONDS)
        last_height = self.driver.content_height(selector_hint)
        stable = 0
        for _ in range(config.MAX_LAZY_LOAD_PROBES):
            if stable >= config.STABLE_PROBES_REQUIRED:
                break
            self.driver.trigger_lazy_load(selector_hint)
            time.sleep(config.LAZY_LOAD_PROBE_SECONDS)
            height = self.driver.content_height(selector_hint)
            stable = stable + 1 if height == last_height else 0
            last_height = height
        settled = stable >= config.STABLE_PROBES_REQUIRED
        if not settled:
            logger.debug(f"Content still growing after {config.MAX_LAZY_LOAD_PROBES} probes")
        return settled

    def _open(self, url: str, kind: str, assembler: ProfileAssembler):
        """Navigate and return a parsed snapshot, or None when the view is unusable."""
        try:
            result = self.navigator.get(url)
        except NavigationError as e:
            assembler.add_diagnostic(kind, NAVIGATION_FAILED, str(e), url)
            return None

        if result.status == NOT_FOUND:
            assembler.add_diagnostic(kind, SECTION_ABSENT, "View does not exist", url)
            return None

        try:
            if "/details/" in url and "/details/" not in (self.driver.current_url() or ""):
                # Redirected back to the profile: the profile has no such section
                assembler.add_diagnostic(kind, SECTION_ABSENT, "Redirected away from detail view", url)
                return None
            self.wait_for_stable_content(SCROLL_CONTAINER if "/details/" in url else "")
            page_source = self.driver.page_source()
        except NavigationError as e:
            assembler.add_diagnostic(kind, NAVIGATION_FAILED, str(e), url)
            return None
        return parse_snapshot(page_source)

    def _return_to_main(self, profile_url: str):
        try:
            self.navigator.get(profile_url)
        except NavigationError as e:
            logger.warning(f"⚠️ Could not return to main view: {e}")

    # ============================================================
    # Views
    # ============================================================
    def _scrape_main_view(self, profile_url: str, assembler: ProfileAssembler):
        snapshot = self._open(profile_url, "profile", assembler)
        if snapshot is None:
            return
        self.state = MAIN_VIEW_LOADED

        card = extract_top_card(snapshot)
        assembler.add_identity(**card)
        logger.info(f"👤 {card['name'] or 'Unknown'} | {card['headline'] or '-'}")

        for kind in ENTITY_CLASSES:
            section = find_section(snapshot, kind)
            if section is None:
                continue
            items = collect_items(section, kind)
            entities = extract_items(kind, items, assembler.diagnostics, self.classifier, profile_url)
            assembler.add_main(kind, entities)
            logger.debug(f"   main view {kind}: {len(entities)} of {len(items)} items kept")

        assembler.add_skills(self._skill_names(find_section(snapshot, "skills")))

    def _skill_names(self, region):
        return [n for n in collect_skill_names(region) if not self.classifier.is_noise_text(n)]

    def _scrape_detail_view(self, profile_url: str, kind: str, assembler: ProfileAssembler):
        url = detail_url(profile_url, kind)
        snapshot = self._open(url, kind, assembler)
        if snapshot is None:
            return
        self.state = DETAIL_VIEW_LOADED

        region = find_detail_region(snapshot)
        if kind == "skills":
            names = self._skill_names(region)
            assembler.add_skills(names)
            logger.info(f"   ✓ skills: {len(names)}")
            return

        items = collect_items(region, kind)
        entities = extract_items(kind, items, assembler.diagnostics, self.classifier, url)
        assembler.add_detail(kind, entities)
        logger.info(f"   ✓ {kind}: {len(entities)} of {len(items)} items kept")

    # ============================================================
    # Run
    # ============================================================
    def extract_profile(self, profile_url: str) -> ProfileRecord:
        """
        Visit the main view and every detail view, then merge.

        Raises AuthenticationRequiredError when the session is not signed in;
        every other failure is recorded on the returned record's diagnostics.
        """
        profile_url = normalize_profile_url(profile_url)
        if not profile_url:
            raise ValueError("profile_url is required")

        self._cancel_event.clear()
        self.state = IDLE
        assembler = ProfileAssembler(profile_url, self.classifier)
        complete = True
        logger.info(f"🔎 Extracting {profile_url}")

        try:
            self._scrape_main_view(profile_url, assembler)
            for kind in DETAIL_SLUGS:
                if self.cancelled:
                    assembler.add_diagnostic(kind, CANCELLED, "Run cancelled before this view", "")
                    complete = False
                    break
                self._scrape_detail_view(profile_url, kind, assembler)
                self._return_to_main(profile_url)
        except AuthenticationRequiredError as e:
            logger.error(f"🔒 {e} ({e.url})")
            raise

        record = assembler.build(complete=complete)
        self.state = ASSEMBLED
        return record


def extract_profile(profile_url: str, driver=None) -> ProfileRecord:
    """
    Extract one profile. Without a driver a SeleniumDriver is started, signed
    in, and quit afterwards.
    """
    owns_driver = driver is None
    if owns_driver:
        driver = SeleniumDriver().setup()
    try:
        if owns_driver:
            driver.login()
        return ProfileScraper(driver).extract_profile(profile_url)
    finally:
        if owns_driver:
            driver.quit()
