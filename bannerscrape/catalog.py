"""
Kuali catalog client.

One GET per course pid. The API answers with either a single JSON object or
an array wrapping that object, depending on the endpoint version, so both
shapes are accepted.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from bannerscrape.config import FetchConfig
from bannerscrape.errors import EmptyResultError, NotFoundError, ParseError, StatusError, TransportError
from bannerscrape.model import CatalogInfo

log = logging.getLogger(__name__)


def parse_catalog_payload(payload: Any) -> CatalogInfo:
    """
    Turn a decoded catalog response into CatalogInfo.

    - object -> that object
    - array  -> its first element
    - []     -> EmptyResultError
    """
    if isinstance(payload, list):
        if not payload:
            raise EmptyResultError("Catalog API returned an empty result")
        payload = payload[0]
    if not isinstance(payload, dict):
        raise ParseError(f"Unexpected catalog payload type: {type(payload).__name__}")
    return CatalogInfo.from_json(payload)


def fetch_catalog_info(
    pid: str,
    config: Optional[FetchConfig] = None,
    http: Optional[requests.Session] = None,
) -> CatalogInfo:
    """
    Fetch the catalog entry for `pid`.
    """
    cfg = config or FetchConfig()
    pid = (pid or "").strip()
    if not pid:
        raise NotFoundError("Course has no catalog pid")

    url = f"{cfg.catalog_url.rstrip('/')}/{pid}"
    client = http if http is not None else requests
    log.debug("GET %s", url)

    try:
        resp = client.get(url, headers={"Accept": "application/json"}, timeout=cfg.timeout)
    except requests.RequestException as exc:
        raise TransportError(f"Catalog request for {pid} failed: {exc}") from exc

    if resp.status_code == 404:
        raise NotFoundError(f"Catalog entry {pid} not found")
    try:
        resp.raise_for_status()
    except requests.HTTPError as exc:
        raise StatusError(url, resp.status_code, resp.reason or "") from exc

    try:
        payload = resp.json()
    except ValueError as exc:
        raise ParseError(f"Catalog response for {pid} is not valid JSON: {exc}") from exc

    info = parse_catalog_payload(payload)
    if not info.pid:
        info.pid = pid
    return info
