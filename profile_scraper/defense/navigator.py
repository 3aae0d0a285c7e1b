import logging

from ..config import NAVIGATION_RETRIES, PAGE_LOAD_TIMEOUT_SECONDS
from ..errors import AuthenticationRequiredError, NavigationError
from .backoff import BackoffController
from .page_health import AUTH_REQUIRED, NOT_FOUND, HealthResult, PageHealthChecker

logger = logging.getLogger(__name__)


class SafeNavigator:
    """
    A safe wrapper around driver.navigate(url):
    - loads URL
    - checks page health
    - if unhealthy: backoff + retry a bounded number of times

    Returns the HealthResult of the landed page (ok or not_found). Raises
    AuthenticationRequiredError straight away (retrying cannot fix it) and
    NavigationError once the retries are spent.
    """
    def __init__(self, driver, max_retries: int = NAVIGATION_RETRIES,
                 timeout: float = PAGE_LOAD_TIMEOUT_SECONDS,
                 backoff: BackoffController = None, health: PageHealthChecker = None):
        self.driver = driver
        self.max_retries = max_retries
        self.timeout = timeout
        self.backoff = backoff or BackoffController()
        self.health = health or PageHealthChecker()

    def get(self, url: str, wait_policy: str = "load") -> HealthResult:
        last_reason = ""
        for attempt in range(self.max_retries + 1):
            try:
                logger.info(f"🌐 GET: {url} (attempt {attempt+1}/{self.max_retries+1})")
                self.driver.navigate(url, wait_policy, self.timeout)

                # small normal delay to reduce flakiness
                self.backoff.settle_delay()

                result = self.health.check(self.driver)
                if result.status == AUTH_REQUIRED:
                    raise AuthenticationRequiredError(
                        f"Authentication required ({result.reason})", url=result.url or url
                    )
                if result.ok or result.status == NOT_FOUND:
                    return result

                last_reason = result.reason
                logger.warning(f"⚠️ Page unhealthy: {result.reason} url={result.url}")

            except NavigationError as e:
                last_reason = str(e)
                logger.warning(f"⚠️ Navigation error on get(): {e}")

            if attempt < self.max_retries:
                self.backoff.recovery_delay(attempt)

        raise NavigationError(
            f"Gave up after {self.max_retries + 1} attempts: {last_reason}", url=url
        )
