# File: overlap_scout/engine.py
"""overlap_scout.engine: Orchestration layer: пакетная обработка сайтов и файлов.

Каждая единица (сайт или файл) обрабатывается независимо: ошибка одной
единицы записывается в отчёт, остальные продолжают обрабатываться.
Файл результата пишется только после успешной обработки единицы.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from overlap_scout.client import ApiClient
from overlap_scout.config import AnalyticsConfig
from overlap_scout.errors import OverlapScoutError
from overlap_scout.loader import list_json_files, read_json
from overlap_scout.logger import get_logger
from overlap_scout.manifest import Manifest, load_manifest, save_manifest
from overlap_scout.models import AHREFS, OPPORTUNITIES, RUM, Site, SourceDataset
from overlap_scout.opportunities import (
    extract_site_links,
    group_by_type,
    reshape,
    reshape_summary,
    sort_rows,
    spreadsheet_rows,
    summarize_rows,
    verify,
)
from overlap_scout.overlap import OverlapEngine
from overlap_scout.report import render_json
from overlap_scout.stats import STATS_KEY, annotate

__all__ = ["UnitError", "BatchReport", "Engine"]

logger = get_logger("engine")

PathT = Union[str, Path]


@dataclass(slots=True)
class UnitError:
    """Ошибка обработки одной единицы (сайта или файла)."""

    unit: str
    error: str

    def as_dict(self) -> Dict[str, str]:
        return {"unit": self.unit, "error": self.error}


@dataclass(slots=True)
class BatchReport:
    """Результаты пакета и ошибки отдельных единиц."""

    results: List[Any] = field(default_factory=list)
    errors: List[UnitError] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def add_error(self, unit: str, exc: BaseException) -> None:
        logger.error("%s: %s", unit, exc)
        self.errors.append(UnitError(unit=unit, error=str(exc)))

    def summary(self) -> str:
        return f"Succeeded: {self.succeeded}, failed: {self.failed}"


class Engine:
    """Фасад для CLI и тестов: сбор данных через API и обработка артефактов."""

    def __init__(self, config: AnalyticsConfig) -> None:
        self.config = config

    # ------------------------------------------------------------------ #
    # Сбор данных через API                                              #
    # ------------------------------------------------------------------ #

    async def _gather_units(
        self,
        labels: Sequence[str],
        coros: Sequence[Awaitable[Any]],
        fallback: Optional[Callable[[int], Any]] = None,
    ) -> BatchReport:
        outcomes = await asyncio.gather(*coros, return_exceptions=True)
        report = BatchReport()
        for index, (label, outcome) in enumerate(zip(labels, outcomes)):
            if not isinstance(outcome, BaseException):
                report.results.append(outcome)
                continue
            if not isinstance(outcome, OverlapScoutError) or self.config.on_fetch_error == "raise":
                raise outcome
            if self.config.on_fetch_error == "empty" and fallback is not None:
                logger.warning("%s: %s, using empty data", label, outcome)
                report.results.append(fallback(index))
            else:
                report.add_error(label, outcome)
        return report

    def fetch_sites(self, base_urls: Sequence[str]) -> BatchReport:
        """Site (id, baseURL) для каждого базового URL."""
        urls = [u.strip() for u in base_urls if u.strip()]
        logger.info("Processing %d customer URLs...", len(urls))

        async def _runner() -> BatchReport:
            async with ApiClient(self.config) as client:
                return await self._gather_units(urls, [client.site_by_base_url(u) for u in urls])

        return asyncio.run(_runner())

    def fetch_top_pages(self, sites: Sequence[Site]) -> BatchReport:
        """Записи ahrefs top-pages по сайтам."""

        def _empty(index: int) -> Dict[str, Any]:
            site = sites[index]
            return {"siteBaseURL": site.base_url, "siteId": site.id, "topPages": []}

        async def _runner() -> BatchReport:
            async with ApiClient(self.config) as client:
                return await self._gather_units(
                    [s.base_url for s in sites], [client.ahrefs_top_pages(s) for s in sites], _empty
                )

        return asyncio.run(_runner())

    @staticmethod
    def opportunities_filename(site: Site) -> str:
        return f"site_opportunities_{site.id}.json"

    def fetch_opportunities(self, sites: Sequence[Site], output_dir: PathT) -> BatchReport:
        """Выгружает opportunities каждого сайта в отдельный файл и пишет manifest."""
        out = Path(output_dir)

        async def _runner() -> BatchReport:
            async with ApiClient(self.config) as client:

                async def _one(site: Site) -> Tuple[Site, List[Any]]:
                    return site, await client.opportunities(site.id)

                return await self._gather_units(
                    [s.base_url for s in sites],
                    [_one(s) for s in sites],
                    lambda index: (sites[index], []),
                )

        fetched = asyncio.run(_runner())
        report = BatchReport(errors=list(fetched.errors))
        manifest = Manifest()
        for site, opportunities in fetched.results:
            name = self.opportunities_filename(site)
            report.results.append(render_json(opportunities, out / name))
            manifest.add(name, site)
            logger.info("%s: %d opportunities saved to %s", site.base_url, len(opportunities), name)
        save_manifest(manifest, out)
        return report

    # ------------------------------------------------------------------ #
    # Обработка артефактов                                               #
    # ------------------------------------------------------------------ #

    def _manifest_files(self, input_dir: PathT) -> Tuple[Manifest, List[Path]]:
        return load_manifest(input_dir), list_json_files(input_dir)

    def extract_links(self, input_dir: PathT) -> BatchReport:
        """Набор opportunities: ссылки домена сайта из каждого файла выгрузки."""
        manifest, files = self._manifest_files(input_dir)
        logger.info("Found %d opportunity files to process", len(files))
        report = BatchReport()
        for path in files:
            entry = manifest.lookup(path.name)
            if entry is None:
                report.add_error(path.name, OverlapScoutError("file is not listed in the manifest"))
                continue
            try:
                record = extract_site_links(
                    read_json(path),
                    entry.domain,
                    entry.site_id,
                    target_keys=self.config.target_keys,
                    file_path=str(path),
                )
            except (OverlapScoutError, OSError) as exc:
                report.add_error(path.name, exc)
                continue
            report.results.append(record)
        return report

    @staticmethod
    def by_type_filename(domain: str, site_id: str) -> str:
        return f"{domain}_{site_id}_opportunities.json"

    def group_opportunities(self, input_dir: PathT, output_dir: PathT) -> BatchReport:
        """Файлы ``{тип: [url]}`` по сайтам плюс manifest выходного каталога."""
        manifest, files = self._manifest_files(input_dir)
        out = Path(output_dir)
        out_manifest = Manifest()
        report = BatchReport()
        for path in files:
            entry = manifest.lookup(path.name)
            if entry is None:
                report.add_error(path.name, OverlapScoutError("file is not listed in the manifest"))
                continue
            try:
                grouped = group_by_type(read_json(path), entry.domain, target_keys=self.config.target_keys)
            except (OverlapScoutError, OSError) as exc:
                report.add_error(path.name, exc)
                continue
            name = self.by_type_filename(entry.domain, entry.site_id)
            report.results.append(render_json(grouped, out / name))
            out_manifest.entries[name] = entry
        save_manifest(out_manifest, out)
        return report

    def overlap_stats(
        self,
        sites: Sequence[Site],
        ahrefs: Sequence[SourceDataset],
        rum: Sequence[SourceDataset],
        opportunities: Sequence[SourceDataset],
    ) -> BatchReport:
        """Строки статистики пересечений; сайт без данных в источнике пропускается с ошибкой."""
        engine = OverlapEngine({AHREFS: ahrefs, RUM: rum, OPPORTUNITIES: opportunities}, top_n=self.config.top_n)
        report = BatchReport()
        for site in sites:
            try:
                report.results.append(engine.site_stats(site))
            except OverlapScoutError as exc:
                report.add_error(site.base_url, exc)
        return report

    def reshape_directory(self, input_dir: PathT, output_dir: PathT) -> BatchReport:
        """``{тип: [url]}`` -> ``{url: [тип]}`` для каждого файла каталога."""
        files = list_json_files(input_dir)
        out = Path(output_dir)
        report = BatchReport()
        for path in files:
            try:
                by_type = read_json(path)
                if not isinstance(by_type, dict):
                    raise OverlapScoutError("expected an object of opportunity types")
                by_url = reshape(by_type)
            except (OverlapScoutError, OSError, TypeError) as exc:
                report.add_error(path.name, exc)
                continue
            render_json(by_url, out / path.name)
            report.results.append({"filename": path.name, **reshape_summary(by_type, by_url)})
        try:
            save_manifest(load_manifest(input_dir), out)
        except FileNotFoundError:
            logger.warning("No manifest in %s, output directory has none either", input_dir)
        return report

    def verify_directory(self, directory: PathT) -> BatchReport:
        """Удаляет повторы типов у URL; файл перезаписывается только при найденных повторах."""
        report = BatchReport()
        for path in list_json_files(directory):
            try:
                by_url = read_json(path)
                if not isinstance(by_url, dict):
                    raise OverlapScoutError("expected an object of URLs")
                result = verify(by_url)
            except (OverlapScoutError, OSError, TypeError) as exc:
                report.add_error(path.name, exc)
                continue
            if result.duplicates_removed:
                render_json(result.cleaned, path)
                logger.warning(
                    "%s: removed %d duplicates in %d URLs",
                    path.name,
                    result.duplicates_removed,
                    result.urls_affected,
                )
            report.results.append(
                {
                    "filename": path.name,
                    "totalUrls": sum(1 for key in by_url if key != STATS_KEY),
                    "urlsAffected": result.urls_affected,
                    "duplicatesRemoved": result.duplicates_removed,
                    "examples": result.examples,
                }
            )
        return report

    def annotate_path(self, target: PathT) -> BatchReport:
        """Добавляет блок stats в файл или во все JSON-файлы каталога."""
        target = Path(target)
        files = list_json_files(target) if target.is_dir() else [target]
        report = BatchReport()
        for path in files:
            try:
                data = read_json(path)
                if not isinstance(data, dict):
                    raise OverlapScoutError("expected an object of groups")
            except (OverlapScoutError, OSError) as exc:
                report.add_error(path.name, exc)
                continue
            annotated = annotate(data)
            render_json(annotated, path)
            stats = annotated["stats"]
            logger.info("%s: %d total URLs across %d groups", path.name, stats["totalUrls"], len(stats) - 1)
            report.results.append({"filename": path.name, "stats": stats})
        return report

    def spreadsheet(self, input_dir: PathT) -> Tuple[BatchReport, Dict[str, Any]]:
        """Строки таблицы opportunities по всем сайтам каталога и сводка по ним."""
        manifest, files = self._manifest_files(input_dir)
        report = BatchReport()
        for path in files:
            entry = manifest.lookup(path.name)
            if entry is None:
                report.add_error(path.name, OverlapScoutError("file is not listed in the manifest"))
                continue
            try:
                data = read_json(path)
                if not isinstance(data, dict):
                    raise OverlapScoutError("expected an object of opportunity types")
            except (OverlapScoutError, OSError) as exc:
                report.add_error(path.name, exc)
                continue
            rows = spreadsheet_rows(entry.domain, data)
            logger.info("Processed %s: %d opportunities", path.name, len(rows))
            report.results.extend(rows)
        report.results = sort_rows(report.results)
        return report, summarize_rows(report.results)
