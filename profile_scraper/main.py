import sys
import threading
from pathlib import Path

from . import config
from .config import logger, print_profile_summary
from .driver import SeleniumDriver
from .errors import AuthenticationRequiredError
from .scraper import ProfileScraper
from .utils import normalize_profile_url


# ============================================================
# Exit Control
# ============================================================
_exit_listener_active = False


def _exit_listener(scraper):
    global _exit_listener_active
    logger.info("💡 Type 'exit' to stop after the current section.")

    while _exit_listener_active:
        try:
            cmd = input().strip().lower()
        except (EOFError, OSError):
            break
        if cmd == "exit":
            scraper.cancel()
            break


def start_exit_listener(scraper):
    global _exit_listener_active
    _exit_listener_active = True
    threading.Thread(target=_exit_listener, args=(scraper,), daemon=True).start()


def stop_exit_listener():
    global _exit_listener_active
    _exit_listener_active = False


# ============================================================
# Output
# ============================================================
def save_record(record, output_dir=None) -> Path:
    """Write the record as <output_dir>/<profile slug>.json."""
    output_dir = Path(output_dir or config.OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)
    slug = record.profile_url.rstrip("/").rsplit("/", 1)[-1] or "profile"
    path = output_dir / f"{slug}.json"
    path.write_text(record.to_json(), encoding="utf-8")
    logger.info(f"💾 Saved {path}")
    return path


# ============================================================
# MAIN
# ============================================================
def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    profile_url = normalize_profile_url(argv[0] if argv else config.PROFILE_URL)
    if not profile_url:
        logger.error("No profile URL given (argument or PROFILE_URL in .env)")
        return 2

    driver = SeleniumDriver().setup()
    scraper = ProfileScraper(driver)
    try:
        driver.login()
        start_exit_listener(scraper)
        record = scraper.extract_profile(profile_url)
    except AuthenticationRequiredError as e:
        logger.error(f"🔒 {e}. Sign in and try again.")
        return 1
    except KeyboardInterrupt:
        logger.warning("Stopped by user")
        return 130
    finally:
        stop_exit_listener()
        driver.quit()

    save_record(record)
    print(record.to_json())
    print_profile_summary(record, status="Extracted" if record.complete else "Cancelled")
    return 0


if __name__ == "__main__":
    sys.exit(main())
