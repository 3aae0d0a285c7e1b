from dataclasses import dataclass

from bs4 import BeautifulSoup
from selenium.common.exceptions import WebDriverException

from ..errors import NavigationError

# Outcomes
OK = "ok"
AUTH_REQUIRED = "auth_required"
BLOCKED = "blocked"
NOT_FOUND = "not_found"


@dataclass
class HealthResult:
    status: str
    reason: str = ""
    url: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK


def _heading_text(page_source: str) -> str:
    soup = BeautifulSoup(page_source, "html.parser")
    return " ".join(h.get_text(" ", strip=True) for h in soup.find_all(["h1", "h2"])).lower()


class PageHealthChecker:
    """
    Classifies the page a navigation landed on. Detection only: nothing here
    tries to get past a login wall or challenge.
    """
    def __init__(self, min_page_size: int = 2000):
        self.min_page_size = min_page_size
        self.login_markers = [
            "/login", "/authwall", "/checkpoint", "/uas/login", "signup/cold-join",
        ]
        self.block_markers = [
            "let's do a quick security check",
            "please verify you are a human",
            "security verification",
            "unusual activity",
            "you've been temporarily restricted",
            "something went wrong",
        ]
        self.not_found_markers = [
            "this page doesn't exist",
            "this page doesn’t exist",
            "page not found",
            "profile is not available",
        ]

    def check(self, driver) -> HealthResult:
        try:
            current_url = (driver.current_url() or "").lower()
            title = (driver.title() or "").lower()
            page_source = driver.page_source() or ""
        except (NavigationError, WebDriverException) as e:
            return HealthResult(BLOCKED, f"driver_error({type(e).__name__})", "")

        # Login/auth redirects
        for m in self.login_markers:
            if m in current_url:
                return HealthResult(AUTH_REQUIRED, f"redirected_to_login({m})", current_url)
        if ("sign in" in title or "sign up" in title) and "linkedin" in title:
            return HealthResult(AUTH_REQUIRED, "signin_title_detected", current_url)

        # Markers only count in the title and page headings, never in profile text
        headline_text = f"{title} {_heading_text(page_source)}"
        for m in self.not_found_markers:
            if m in headline_text:
                return HealthResult(NOT_FOUND, f"page_contains_marker({m})", current_url)

        for m in self.block_markers:
            if m in headline_text:
                return HealthResult(BLOCKED, f"page_contains_marker({m})", current_url)

        # Empty-ish page
        if len(page_source) < self.min_page_size:
            return HealthResult(BLOCKED, "page_too_small", current_url)

        return HealthResult(OK, "ok", current_url)
