"""
HTTP adapter — release metadata lookups and artifact downloads.

Plain ``urllib.request``; the provisioner only ever does simple GETs
against GitHub, the phpMyAdmin mirror and the public-IP echo service.
Like the command runner, the fetcher returns failures as data.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

USER_AGENT = "ptero-provisioner/0.1"


@dataclass
class FetchResult:
    """Outcome of one GET request."""

    url: str
    ok: bool = True
    data: bytes = b""
    status: int | None = None
    error: str = ""

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.data)


class HttpFetcher:
    """GET requests over ``urllib`` with a fixed user agent."""

    def __init__(self, timeout: int = 60):
        self._timeout = timeout

    def fetch(self, url: str, *, headers: dict[str, str] | None = None) -> FetchResult:
        req = urllib.request.Request(
            url,
            headers={"User-Agent": USER_AGENT, **(headers or {})},
        )
        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                return FetchResult(url=url, data=resp.read(), status=resp.status)
        except urllib.error.HTTPError as e:
            return FetchResult(url=url, ok=False, status=e.code, error=f"HTTP {e.code}: {e.reason}")
        except (urllib.error.URLError, OSError) as e:
            return FetchResult(url=url, ok=False, error=f"Request failed: {e}")

    def fetch_json(self, url: str) -> FetchResult:
        return self.fetch(url, headers={"Accept": "application/vnd.github.v3+json"})
