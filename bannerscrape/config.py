"""
Run configuration.

Module constants hold the defaults; FetchConfig bundles them for one run so
the CLI can override single values (term, workers, ...) without touching
module state.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

BANNER_URL = "https://banner.uvic.ca/StudentRegistrationSsb/ssb"
CATALOG_URL = "https://uvic.kuali.co/api/v1/catalog/course/65eb47906641d7001c157bc4"


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_TERM = "202501"
MAX_WORKERS = 10
MAX_ATTEMPTS = 3
RETRY_DELAY = 1.0
REQUEST_TIMEOUT = 30.0
DRY_RUN_LIMIT = 10

COURSES_FILE = "courses.json"
CSV_FILE = "courses.csv"

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "keep-alive",
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/132.0.0.0 Safari/537.36"
    ),
    "Cache-Control": "max-age=0",
}

XHR_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
    "X-Requested-With": "XMLHttpRequest",
}


@dataclass
class FetchConfig:
    """
    Settings shared by the clients and the batch pipeline.

    strict_priming decides what happens when one of the two session-priming
    requests (term selection page, term submission) fails: raise (True) or
    log a warning and still issue the data query (False).
    """

    term: str = DEFAULT_TERM
    workers: int = MAX_WORKERS
    attempts: int = MAX_ATTEMPTS
    retry_delay: float = RETRY_DELAY
    timeout: float = REQUEST_TIMEOUT
    strict_priming: bool = True
    banner_url: str = BANNER_URL
    catalog_url: str = CATALOG_URL
    headers: dict[str, str] = field(default_factory=lambda: dict(BROWSER_HEADERS))
