"""
Exception hierarchy.

    ScrapeError
    ├── FetchError          (retry may help)
    │   ├── TransportError  connection / DNS / timeout
    │   └── ProtocolError
    │       ├── StatusError non-success HTTP status
    │       └── ParseError  body is not the expected JSON shape
    ├── NotFoundError       course or catalog id unknown
    │   └── EmptyResultError
    └── InputError          bad CLI arguments, missing/broken local files
"""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for everything this package raises on purpose."""


class FetchError(ScrapeError):
    pass


class TransportError(FetchError):
    pass


class ProtocolError(FetchError):
    pass


class StatusError(ProtocolError):
    def __init__(self, url: str, status_code: int, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code} {reason}".strip() + f" for {url}")


class ParseError(ProtocolError):
    pass


class NotFoundError(ScrapeError):
    pass


class EmptyResultError(NotFoundError):
    pass


class InputError(ScrapeError):
    pass
