"""
Tests for the defense layer: SafeNavigator and PageHealthChecker.

Run with: pytest tests/test_navigator.py -v
"""

import pytest

from profile_scraper.defense.backoff import BackoffController
from profile_scraper.defense.navigator import SafeNavigator
from profile_scraper.defense.page_health import (
    AUTH_REQUIRED,
    BLOCKED,
    NOT_FOUND,
    OK,
    PageHealthChecker,
)
from profile_scraper.errors import (
    AuthenticationRequiredError,
    NavigationError,
    NavigationTimeout,
)

PADDING = "<!--" + " " * 2500 + "-->"
PROFILE = "https://www.linkedin.com/in/jane-doe"


class _FakeDriver:
    """Serves one page per navigate() call from a script of (url, title, html)."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = []
        self._url = ""
        self._title = ""
        self._html = ""

    def navigate(self, url, wait_policy="load", timeout=60):
        self.calls.append(url)
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        self._url, self._title, self._html = step

    def current_url(self):
        return self._url

    def title(self):
        return self._title

    def page_source(self):
        return self._html


def _page(body, url=PROFILE, title="Jane Doe | LinkedIn"):
    return (url, title, f"<html><body>{body}</body></html>{PADDING}")


@pytest.fixture
def navigator_for(no_sleep):
    def build(script, retries=2):
        driver = _FakeDriver(script)
        return driver, SafeNavigator(driver, max_retries=retries, backoff=BackoffController())
    return build


class TestSafeNavigator:

    def test_healthy_page(self, navigator_for):
        driver, nav = navigator_for([_page("<main>profile</main>")])
        result = nav.get(PROFILE)
        assert result.status == OK
        assert driver.calls == [PROFILE]

    def test_authwall_is_fatal_without_retry(self, navigator_for):
        driver, nav = navigator_for([_page("", url="https://www.linkedin.com/authwall?trk=x")])
        with pytest.raises(AuthenticationRequiredError):
            nav.get(PROFILE)
        assert len(driver.calls) == 1

    def test_blocked_page_retried_then_navigation_error(self, navigator_for, no_sleep):
        driver, nav = navigator_for([_page("<h1>Let's do a quick security check</h1>")], retries=2)
        with pytest.raises(NavigationError) as exc:
            nav.get(PROFILE)
        assert len(driver.calls) == 3
        assert exc.value.url == PROFILE
        assert not isinstance(exc.value, AuthenticationRequiredError)

    def test_timeout_then_success(self, navigator_for):
        driver, nav = navigator_for([NavigationTimeout("slow", url=PROFILE), _page("<main>ok</main>")])
        assert nav.get(PROFILE).ok
        assert len(driver.calls) == 2

    def test_not_found_is_returned_not_retried(self, navigator_for):
        driver, nav = navigator_for([_page("<h1>This page doesn't exist</h1>")])
        assert nav.get(PROFILE + "/details/patents/").status == NOT_FOUND
        assert len(driver.calls) == 1


class TestPageHealthChecker:

    def _check(self, url, title, html, **kwargs):
        driver = _FakeDriver([(url, title, html)])
        driver.navigate(url)
        return PageHealthChecker(**kwargs).check(driver)

    def test_sign_in_title(self):
        assert self._check(PROFILE, "Sign In | LinkedIn", PADDING).status == AUTH_REQUIRED

    def test_login_redirect(self):
        result = self._check("https://www.linkedin.com/login?session_redirect=x", "LinkedIn", PADDING)
        assert result.status == AUTH_REQUIRED
        assert "login" in result.reason

    def test_sign_up_in_profile_title_is_not_auth_wall(self):
        result = self._check(PROFILE, "Sign Up Growth Lead - Jane Doe", PADDING)
        assert result.status == OK

    def test_not_found_heading(self):
        html = f"<html><body><h1>Page not found</h1></body></html>{PADDING}"
        assert self._check(PROFILE, "LinkedIn", html).status == NOT_FOUND

    @pytest.mark.parametrize("text", [
        "Fixed the page not found errors on checkout",
        "Investigated unusual activity in payment logs",
        "Rewrote the something went wrong screen",
    ])
    def test_markers_in_profile_text_are_ignored(self, text):
        html = (
            "<html><body><h1>Jane Doe</h1>"
            f"<section><span aria-hidden=\"true\">{text}</span></section>"
            f"</body></html>{PADDING}"
        )
        assert self._check(PROFILE, "Jane Doe | LinkedIn", html).ok

    def test_too_small(self):
        assert self._check(PROFILE, "Jane", "<html></html>").status == BLOCKED

    def test_size_floor_is_configurable(self):
        assert self._check(PROFILE, "Jane", "<html></html>", min_page_size=0).ok


class TestBackoff:

    def test_recovery_delay_is_capped(self):
        backoff = BackoffController(recovery_base=5, recovery_cap=60)
        assert backoff.recovery_seconds(10) <= 60 * 1.4
        assert backoff.recovery_seconds(0) >= 5 * 0.6
