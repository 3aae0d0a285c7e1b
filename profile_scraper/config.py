import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from rich.logging import RichHandler
from rich.console import Console
from rich.text import Text

"""Handles all environment variables, constants, and logger setup."""

# ── Logging Setup ──────────────────────────────────────────
# Rich for colored console output
_console = Console(stderr=True)
_handler = RichHandler(
    console=_console,
    show_time=False,
    show_path=False,
    markup=True,
    rich_tracebacks=True,
    tracebacks_show_locals=False,
)
_handler.setLevel(logging.INFO)
_handler.setFormatter(logging.Formatter("%(message)s"))

logger = logging.getLogger("ProfileScraper")
logger.setLevel(logging.DEBUG)  # allow DEBUG through; handler filters to INFO
if not logger.handlers:
    logger.addHandler(_handler)
logger.propagate = False

# Suppress noisy HTTP loggers
for _noisy in ("urllib3", "urllib3.connectionpool", "selenium", "filelock"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)


# Load environment variables
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# --- Configuration Constants ---
HEADLESS = os.getenv("HEADLESS", "false").lower() == "true"
USE_COOKIES = os.getenv("USE_COOKIES", "true").lower() == "true"
LINKEDIN_COOKIES_PATH = os.getenv("LINKEDIN_COOKIES_PATH", "linkedin_cookies.json")
PROFILE_URL = os.getenv("PROFILE_URL", "")
LINKEDIN_EMAIL = os.getenv("LINKEDIN_EMAIL", "")
LINKEDIN_PASSWORD = os.getenv("LINKEDIN_PASSWORD", "")
LINKEDIN_HOME = "https://www.linkedin.com"

# Timeouts & Delays
PAGE_LOAD_TIMEOUT_SECONDS = int(os.getenv("PAGE_LOAD_TIMEOUT_SECONDS", "60"))
INITIAL_PAINT_SECONDS = float(os.getenv("INITIAL_PAINT_SECONDS", "2"))
LAZY_LOAD_PROBE_SECONDS = float(os.getenv("LAZY_LOAD_PROBE_SECONDS", "1.0"))
MAX_LAZY_LOAD_PROBES = int(os.getenv("MAX_LAZY_LOAD_PROBES", "20"))
STABLE_PROBES_REQUIRED = int(os.getenv("STABLE_PROBES_REQUIRED", "3"))
NAVIGATION_RETRIES = int(os.getenv("NAVIGATION_RETRIES", "2"))
LOGIN_WAIT_SECONDS = int(os.getenv("LOGIN_WAIT_SECONDS", "300"))

# Extraction limits
DESCRIPTION_MAX_LENGTH = int(os.getenv("DESCRIPTION_MAX_LENGTH", "2000"))
LOCATION_MAX_LENGTH = 100
DATE_CANDIDATE_MAX_LENGTH = 80
ORGANIZATION_MAX_LENGTH = 150

# Paths
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(Path(__file__).parent / "output")))
COOKIES_FILE = OUTPUT_DIR / LINKEDIN_COOKIES_PATH


def print_profile_summary(record, status: str = "Extracted"):
    """
    Print a clean, colored per-profile summary block.
    `record` is a ProfileRecord; only counts and headline fields are shown.
    """
    separator = "━" * 50
    out = Text()
    out.append(f"\n{separator}\n", style="blue bold")
    out.append(f"Profile: {record.name or 'Unknown'}\n", style="blue bold")
    out.append(f"URL: {record.profile_url}\n", style="blue")
    out.append(f"{separator}\n\n", style="blue bold")

    if record.headline:
        out.append(f"{record.headline}\n", style="white")
    out.append(f"Location: {record.location or 'Not Found'}\n\n", style="white")

    for title, entities in (
        ("Experience", record.experience),
        ("Education", record.education),
        ("Certifications", record.certifications),
        ("Projects", record.projects),
        ("Volunteering", record.volunteering),
        ("Publications", record.publications),
        ("Honors", record.honors),
        ("Languages", record.languages),
        ("Patents", record.patents),
    ):
        if not entities:
            out.append(f"{title}: None found\n", style="yellow")
            continue
        out.append(f"{title} ({len(entities)})\n", style="cyan bold")
        for entity in entities:
            line = f"  • {entity.label}"
            if entity.organization:
                line += f" — {entity.organization}"
            dates = getattr(entity, "date_range", None)
            if dates and dates.range_text:
                line += f" ({dates.range_text})"
            out.append(f"{line}\n", style="white")

    if record.skills:
        out.append(f"\nSkills: {', '.join(record.skills[:12])}\n", style="white")

    if record.diagnostics:
        out.append(f"\nDiagnostics ({len(record.diagnostics)})\n", style="yellow bold")
        for diag in record.diagnostics:
            out.append(f"  • [{diag.kind}] {diag.category}: {diag.message}\n", style="yellow")

    if record.complete:
        out.append(f"\n✓ Completed — {status}\n", style="green bold")
    else:
        out.append(f"\n⚠ Incomplete — {status}\n", style="yellow bold")
    _console.print(out)
