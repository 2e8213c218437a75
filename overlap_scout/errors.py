# File: overlap_scout/errors.py
"""overlap_scout.errors: Исключения, которые поднимают компоненты OverlapScout."""

from __future__ import annotations

from typing import Optional

__all__ = ["OverlapScoutError", "MalformedInput", "SiteNotFoundInSource", "FetchError"]


class OverlapScoutError(Exception):
    """Базовый класс всех ошибок проекта."""


class MalformedInput(OverlapScoutError, ValueError):
    """JSON не разбирается или в нём нет ожидаемого поля."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class SiteNotFoundInSource(OverlapScoutError, LookupError):
    """Для siteId нет записи в наборе данных источника."""

    def __init__(self, source_name: str, site_id: str) -> None:
        self.source_name = source_name
        self.site_id = site_id
        super().__init__(f"site {site_id!r} not found in source {source_name!r}")


class FetchError(OverlapScoutError):
    """HTTP-запрос к API завершился неуспешно."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else (reason or "request failed")
        super().__init__(f"{url}: {detail}")
