"""
Browser automation seam.

The Navigation Controller only talks to BrowserDriver. SeleniumDriver is the
production implementation (Chrome via selenium); tests pass a fake.
"""

import json
import time
from abc import ABC, abstractmethod

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from . import config
from .config import logger
from .errors import AuthenticationRequiredError, NavigationError, NavigationTimeout

# wait_policy -> document.readyState values that satisfy it
WAIT_POLICIES = {
    "load": ("complete",),
    "dom": ("interactive", "complete"),
    "none": (),
}

_HEIGHT_JS = """
    const el = (arguments[0] && document.querySelector(arguments[0]))
        || document.scrollingElement || document.body;
    return el ? el.scrollHeight : 0;
"""

_LAZY_LOAD_JS = """
    const el = arguments[0] && document.querySelector(arguments[0]);
    if (el) { el.scrollTop = el.scrollHeight; el.scrollIntoView(false); }
    window.scrollTo(0, document.body.scrollHeight);
    const more = document.querySelector('.scaffold-finite-scroll__load-button');
    if (more && !more.disabled) { more.click(); }
    for (const btn of document.querySelectorAll('button, [role="button"]')) {
        const text = (btn.textContent || '').trim().toLowerCase();
        if (text.includes('show all')) { continue; }
        if (text.endsWith('see more') || text === 'show more') {
            if (btn.getAttribute('aria-expanded') !== 'true') { btn.click(); }
        }
    }
"""


class BrowserDriver(ABC):
    """Operations the Navigation Controller needs from a browser session."""

    @abstractmethod
    def navigate(self, url: str, wait_policy: str = "load", timeout: float = 60):
        """Load `url`; raise NavigationTimeout if it does not settle in time."""

    @abstractmethod
    def current_url(self) -> str:
        ...

    @abstractmethod
    def title(self) -> str:
        ...

    @abstractmethod
    def page_source(self) -> str:
        ...

    @abstractmethod
    def content_height(self, selector_hint: str = "") -> int:
        ...

    @abstractmethod
    def trigger_lazy_load(self, selector_hint: str = ""):
        ...

    @abstractmethod
    def quit(self):
        ...


class SeleniumDriver(BrowserDriver):
    """
    Chrome session with cookie persistence.

    1. Persistent sessions: saved cookies are replayed before any profile visit.
    2. When cookies are missing or stale, credentials from the environment are
       submitted if present; otherwise the user has LOGIN_WAIT_SECONDS to sign
       in by hand in the visible window.
    """

    def __init__(self, headless: bool = None):
        self.headless = config.HEADLESS if headless is None else headless
        self.driver = None

    # ============================================================
    # Selenium Setup & Auth
    # ============================================================
    def setup(self):
        logger.info("Setting up Chrome WebDriver...")
        chrome_options = webdriver.ChromeOptions()

        if self.headless:
            chrome_options.add_argument("--headless")

        chrome_options.add_argument("--start-maximized")
        chrome_options.add_argument("--no-sandbox")
        chrome_options.add_argument("--disable-dev-shm-usage")

        self.driver = webdriver.Chrome(options=chrome_options)
        self.driver.set_page_load_timeout(config.PAGE_LOAD_TIMEOUT_SECONDS)
        logger.info("✓ WebDriver initialized")
        return self

    def _load_cookies(self) -> bool:
        if not config.COOKIES_FILE.exists():
            return False
        try:
            logger.info("Loading saved cookies...")
            self.driver.get(config.LINKEDIN_HOME)
            time.sleep(2)

            cookies = json.loads(config.COOKIES_FILE.read_text(encoding="utf-8"))
            loaded = 0
            for cookie in cookies:
                if "expiry" in cookie:
                    cookie["expiry"] = int(cookie["expiry"])
                cookie.pop("sameSite", None)
                try:
                    self.driver.add_cookie(cookie)
                    loaded += 1
                except WebDriverException as e:
                    logger.debug(f"Skipping cookie {cookie.get('name')}: {e}")

            logger.info(f"✓ Loaded {loaded} cookies")
            self.driver.get(f"{config.LINKEDIN_HOME}/feed")
            time.sleep(3)
            return "feed" in (self.driver.current_url or "")
        except (ValueError, OSError, WebDriverException) as e:
            logger.warning(f"Error loading cookies: {e}")
            return False

    def _save_cookies(self):
        try:
            config.COOKIES_FILE.parent.mkdir(parents=True, exist_ok=True)
            cookies = self.driver.get_cookies()
            config.COOKIES_FILE.write_text(json.dumps(cookies, indent=2), encoding="utf-8")
            logger.info(f"✓ Saved {len(cookies)} cookies")
        except (OSError, WebDriverException) as e:
            logger.error(f"Error saving cookies: {e}")

    def _submit_credentials(self):
        wait = WebDriverWait(self.driver, 10)
        email_field = wait.until(EC.presence_of_element_located((By.ID, "username")))
        email_field.send_keys(config.LINKEDIN_EMAIL)
        password_field = self.driver.find_element(By.ID, "password")
        password_field.send_keys(config.LINKEDIN_PASSWORD)
        password_field.send_keys(Keys.RETURN)

    def login(self):
        """Establish a signed-in session or raise AuthenticationRequiredError."""
        logger.info("Logging in to LinkedIn...")
        if config.USE_COOKIES and self._load_cookies():
            logger.info("✓ Session restored from cookies")
            return True

        try:
            self.driver.get(f"{config.LINKEDIN_HOME}/login")
            time.sleep(2)
            if config.LINKEDIN_EMAIL and config.LINKEDIN_PASSWORD:
                self._submit_credentials()
            else:
                logger.info(f"Waiting up to {config.LOGIN_WAIT_SECONDS}s for manual sign-in...")
            WebDriverWait(self.driver, config.LOGIN_WAIT_SECONDS).until(EC.url_contains("feed"))
        except TimeoutException:
            raise AuthenticationRequiredError("Sign-in did not complete", url=self.current_url())
        except WebDriverException as e:
            raise AuthenticationRequiredError(f"Sign-in failed: {e}", url=self.current_url())

        logger.info("✓ Logged in successfully")
        if config.USE_COOKIES:
            self._save_cookies()
        return True

    def quit(self):
        if self.driver:
            self.driver.quit()
            self.driver = None
            logger.info("✓ WebDriver closed")

    # ============================================================
    # BrowserDriver
    # ============================================================
    def navigate(self, url: str, wait_policy: str = "load", timeout: float = 60):
        states = WAIT_POLICIES.get(wait_policy, WAIT_POLICIES["load"])
        try:
            self.driver.get(url)
            if states:
                WebDriverWait(self.driver, timeout).until(
                    lambda d: d.execute_script("return document.readyState") in states
                )
        except TimeoutException as e:
            raise NavigationTimeout(f"Timed out loading {url}", url=url) from e
        except WebDriverException as e:
            raise NavigationError(f"Driver error loading {url}: {e.msg}", url=url) from e

    def current_url(self) -> str:
        try:
            return self.driver.current_url or ""
        except WebDriverException as e:
            raise NavigationError(f"Could not read current url: {e.msg}") from e

    def title(self) -> str:
        try:
            return self.driver.title or ""
        except WebDriverException as e:
            raise NavigationError(f"Could not read title: {e.msg}") from e

    def page_source(self) -> str:
        try:
            return self.driver.page_source or ""
        except WebDriverException as e:
            raise NavigationError(f"Could not read page source: {e.msg}") from e

    def content_height(self, selector_hint: str = "") -> int:
        try:
            return int(self.driver.execute_script(_HEIGHT_JS, selector_hint or None) or 0)
        except WebDriverException as e:
            logger.debug(f"content_height failed: {e.msg}")
            return 0

    def trigger_lazy_load(self, selector_hint: str = ""):
        try:
            self.driver.execute_script(_LAZY_LOAD_JS, selector_hint or None)
        except WebDriverException as e:
            logger.debug(f"trigger_lazy_load failed: {e.msg}")
