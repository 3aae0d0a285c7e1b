"""Structured profile extraction from a logged-in browser session."""

from .errors import (
    AuthenticationRequiredError,
    ExtractionAnomaly,
    NavigationError,
    NavigationTimeout,
    ProfileScraperError,
)
from .models import ProfileRecord
from .scraper import ProfileScraper, extract_profile

__version__ = "0.1.0"
