# overlap_scout/client/api_client.py
"""
API client: fetches JSON resources from the analytics REST API with a
bounded number of concurrent requests.
"""
from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from overlap_scout.config import AnalyticsConfig
from overlap_scout.errors import FetchError, MalformedInput
from overlap_scout.logger import get_logger
from overlap_scout.models import Site
from overlap_scout.utils import normalize_url

__all__ = ("FetchOutcome", "ApiClient", "encode_base_url")

logger = get_logger("client")


def encode_base_url(base_url: str) -> str:
    """Base64 of the base URL, as the ``sites/by-base-url/`` endpoint expects."""
    return base64.b64encode(base_url.encode("utf-8")).decode("ascii")


@dataclass(slots=True)
class FetchOutcome:
    """Result of one request in a batch: data on success, error text otherwise."""

    path: str
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ApiClient:
    """Async JSON client configured by :class:`AnalyticsConfig`.

    Use as an async context manager; a session passed in by the caller is
    not closed on exit.
    """

    def __init__(self, config: AnalyticsConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self._base_url = str(config.api_base_url)
        self._session = session
        self._owns_session = session is None
        self._semaphore = asyncio.Semaphore(config.concurrency)

    async def __aenter__(self) -> ApiClient:
        if self._session is None:
            self._session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
            )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def url_for(self, path: str) -> str:
        return self._base_url + path.lstrip("/")

    async def fetch_json(self, path: str) -> Any:
        """GET one resource and decode it; non-2xx or transport error -> FetchError."""
        if self._session is None:
            raise RuntimeError("ApiClient must be used as an async context manager")
        url = self.url_for(path)
        async with self._semaphore:
            try:
                async with self._session.get(url, headers=self.config.request_headers()) as resp:
                    if resp.status >= 400:
                        raise FetchError(url, status=resp.status)
                    data = await resp.json(content_type=None)
            except asyncio.TimeoutError as exc:
                raise FetchError(url, reason="timeout") from exc
            except ClientError as exc:
                raise FetchError(url, reason=str(exc)) from exc
            except ValueError as exc:
                raise MalformedInput(url, f"response is not JSON: {exc}") from exc
        logger.debug("Fetched %s", url)
        return data

    async def _fetch_outcome(self, path: str) -> FetchOutcome:
        try:
            return FetchOutcome(path, data=await self.fetch_json(path))
        except (FetchError, MalformedInput) as exc:
            if self.config.on_fetch_error == "raise":
                raise
            logger.error("Fetch error for %s: %s", path, exc)
            if self.config.on_fetch_error == "empty":
                return FetchOutcome(path, data=[])
            return FetchOutcome(path, error=str(exc))

    async def fetch_many(self, paths: Sequence[str]) -> List[FetchOutcome]:
        """Fire all requests, await all; outcomes keep the order of ``paths``."""
        tasks = [asyncio.create_task(self._fetch_outcome(p)) for p in paths]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    # ------------------------------------------------------------------ #
    # Endpoints                                                          #
    # ------------------------------------------------------------------ #

    @staticmethod
    def site_path(base_url: str) -> str:
        return f"sites/by-base-url/{encode_base_url(base_url)}"

    @staticmethod
    def top_pages_path(site_id: str) -> str:
        return f"sites/{site_id}/top-pages/ahrefs/global"

    @staticmethod
    def opportunities_path(site_id: str) -> str:
        return f"sites/{site_id}/opportunities/"

    @staticmethod
    def suggestions_path(site_id: str, opportunity_id: str) -> str:
        return f"sites/{site_id}/opportunities/{opportunity_id}/suggestions/"

    async def site_by_base_url(self, base_url: str) -> Site:
        data = await self.fetch_json(self.site_path(base_url))
        return Site.from_record(data)

    async def ahrefs_top_pages(self, site: Site) -> Dict[str, Any]:
        """Top-pages record of one site: page URLs only, scheme and ``www.`` stripped."""
        data = await self.fetch_json(self.top_pages_path(site.id))
        if not isinstance(data, list):
            raise MalformedInput(self.top_pages_path(site.id), "expected a list of pages")
        return {
            "siteBaseURL": site.base_url,
            "siteId": site.id,
            "topPages": [
                normalize_url(str(page["url"])) for page in data if isinstance(page, dict) and "url" in page
            ],
        }

    async def opportunities(self, site_id: str) -> List[Dict[str, Any]]:
        """Opportunities of a site, each with its suggestions' ``data`` attached.

        A failed suggestions request fails the whole site with :class:`FetchError`
        unless ``on_fetch_error`` is ``"empty"``, which leaves that opportunity
        with no suggestions.
        """
        items = await self.fetch_json(self.opportunities_path(site_id))
        if not isinstance(items, list):
            raise MalformedInput(self.opportunities_path(site_id), "expected a list of opportunities")
        items = [item for item in items if isinstance(item, dict)]
        paths = [self.suggestions_path(site_id, str(item.get("id"))) for item in items]
        outcomes = await self.fetch_many(paths)
        failed = [outcome for outcome in outcomes if not outcome.ok]
        if failed:
            # под политикой "empty" ошибок здесь нет: fetch_many уже отдал []
            raise FetchError(
                self.opportunities_path(site_id),
                reason=f"{len(failed)} suggestion request(s) failed: {failed[0].error}",
            )
        enriched = []
        for item, outcome in zip(items, outcomes):
            suggestions = outcome.data if isinstance(outcome.data, list) else []
            enriched.append(
                {**item, "suggestions": [s.get("data") for s in suggestions if isinstance(s, dict)]}
            )
        return enriched
