"""Exception taxonomy for a profile extraction run."""


class ProfileScraperError(Exception):
    """Base class for all scraper errors."""


class NavigationError(ProfileScraperError):
    """A view could not be loaded (blocked, unhealthy, driver failure).

    Recoverable: the controller records it against the view's kind and moves on.
    """

    def __init__(self, message, url="", kind=""):
        super().__init__(message)
        self.url = url
        self.kind = kind


class NavigationTimeout(NavigationError):
    """The driver gave up waiting for a page load."""


class AuthenticationRequiredError(ProfileScraperError):
    """The session is not logged in. Fatal for the whole run."""

    def __init__(self, message="Authentication required", url=""):
        super().__init__(message)
        self.url = url


class ExtractionAnomaly(ProfileScraperError):
    """One item had an unexpected fragment shape; only that item is skipped."""
