"""
compliance_orchestrator.clients.web_content

Website content fetch boundary for the website assessor.

Responsibilities:
- Fetch a page over httpx with a bounded timeout.
- Reduce HTML to readable text and truncate it to the excerpt length.
- Report fetch failures as text instead of raising; the assessor still runs
  and the model sees why the content is missing.
"""

from __future__ import annotations

import html
import re

import httpx

from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.settings import Settings

log = get_logger(__name__)

_USER_AGENT = "Mozilla/5.0 Compliance Checker"
_TRUNCATION_MARK = "...[content truncated]..."

_SCRIPT_STYLE = re.compile(r"<(script|style|noscript)[^>]*>[\s\S]*?</\1>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_WS = re.compile(r"\s+")


class WebContentFetcher:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    async def fetch_text(self, url: str) -> str:
        try:
            r = await self._http.get(
                url,
                headers={"User-Agent": _USER_AGENT},
                follow_redirects=True,
                timeout=httpx.Timeout(self._settings.website_fetch_timeout_seconds),
            )
        except httpx.HTTPError as e:
            log.warning("website_fetch_failed", url=url, error=str(e))
            return f"Error fetching content: {e}"

        if not r.is_success:
            log.warning("website_fetch_failed", url=url, status=r.status_code)
            return f"Failed to fetch content, status: {r.status_code}"

        return truncate(html_to_text(r.text), self._settings.content_excerpt_chars)


def html_to_text(raw: str) -> str:
    text = _SCRIPT_STYLE.sub(" ", raw)
    text = _TAG.sub(" ", text)
    return _WS.sub(" ", html.unescape(text)).strip()


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + _TRUNCATION_MARK
