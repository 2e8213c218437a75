# === FILE: overlap_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа OverlapScout для командной строки.

Сбор данных через API:
  sites                Site (id, baseURL) по базовым URL клиентов
  top-pages            Ahrefs top-pages для списка сайтов
  opportunities        Выгрузка opportunities по сайтам (+ manifest.json)

Обработка артефактов:
  extract-links        Ссылки домена из выгрузок opportunities
  group-opportunities  Ссылки по типам opportunity
  overlap              Пересечения ahrefs / rum / opportunities
  reshape              {тип: [url]} -> {url: [тип]}
  verify               Удаление повторов типов у URL
  add-stats            Блок stats в начале JSON-файлов
  spreadsheet          CSV-таблица opportunities и сводка
  count-pages          Статистика числа top-страниц
  merge                Объединение двух наборов RUM
  missing-sites        Сайты без записи в наборе данных
  config               Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (только консоль stderr, если не указан)
  --log-format FORMAT Формат логирования

Пример:
  overlap-scout overlap --sites output/customer-sites-ids.json \\
      --ahrefs output/ahrefs-top-200-pages.json --rum output/rum-top-200-pages.json \\
      --opportunities output/all-opportunities-top-pages.json --json output/stats.json --csv output/stats.csv
"""
import sys
from pathlib import Path

import click

from overlap_scout import __version__
from overlap_scout.config import load_config
from overlap_scout.engine import BatchReport, Engine
from overlap_scout.errors import OverlapScoutError
from overlap_scout.loader import find_missing_sites, load_dataset, load_sites, merge_datasets, read_json
from overlap_scout.logger import DEFAULT_FORMAT, init_logging
from overlap_scout.models import AHREFS, OPPORTUNITIES, RUM
from overlap_scout.report import render_csv, render_html, render_json
from overlap_scout.stats import top_pages_summary

CONTEXT_SETTINGS = dict(help_option_names=["--help"])

_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)
_DIR = click.Path(exists=True, file_okay=False, path_type=Path)
_OUT_FILE = click.Path(dir_okay=False, path_type=Path)
_OUT_DIR = click.Path(file_okay=False, path_type=Path)


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def echo_report(report: BatchReport) -> None:
    for error in report.errors:
        click.secho(f'  ✗ {error.unit}: {error.error}', fg='yellow', err=True)
    click.echo(report.summary())


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='OverlapScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=_FILE,
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только консоль stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд OverlapScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg
    ctx.obj['engine'] = Engine(cfg)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON (без токена)."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2, exclude={'api_token'}))


# --------------------------------------------------------------------------- #
# Сбор данных через API                                                       #
# --------------------------------------------------------------------------- #


@cli.command('sites', context_settings=CONTEXT_SETTINGS)
@click.argument('base_urls', nargs=-1)
@click.option('--from-file', 'urls_file', type=_FILE, default=None, help='Файл с базовыми URL, по одному в строке')
@click.option('--output', '-o', type=_OUT_FILE, required=True, help='JSON-файл со списком сайтов')
@click.pass_context
def fetch_sites(ctx, base_urls, urls_file, output):
    """Получить id сайтов по базовым URL."""
    urls = list(base_urls)
    if urls_file:
        urls.extend(urls_file.read_text(encoding='utf-8').splitlines())
    if not any(u.strip() for u in urls):
        print_error('Не указано ни одного базового URL')
    try:
        report = ctx.obj['engine'].fetch_sites(urls)
    except OverlapScoutError as e:
        print_error(f'Ошибка при запросе сайтов: {e}')
    render_json([site.to_record() for site in report.results], output)
    click.echo(f'Sites: {output}')
    echo_report(report)


@cli.command('top-pages', context_settings=CONTEXT_SETTINGS)
@click.option('--sites', 'sites_file', type=_FILE, required=True, help='JSON со списком сайтов')
@click.option('--output', '-o', type=_OUT_FILE, required=True, help='JSON-файл с top-страницами')
@click.pass_context
def fetch_top_pages(ctx, sites_file, output):
    """Выгрузить ahrefs top-pages всех сайтов."""
    try:
        sites = load_sites(sites_file)
        report = ctx.obj['engine'].fetch_top_pages(sites)
    except OverlapScoutError as e:
        print_error(f'Ошибка при запросе top-страниц: {e}')
    render_json(report.results, output)
    click.echo(f'Top pages: {output}')
    echo_report(report)


@cli.command('opportunities', context_settings=CONTEXT_SETTINGS)
@click.option('--sites', 'sites_file', type=_FILE, required=True, help='JSON со списком сайтов')
@click.option('--output-dir', '-o', type=_OUT_DIR, default=None,
              help='Каталог для файлов opportunities (default: <output_dir>/opportunities)')
@click.pass_context
def fetch_opportunities(ctx, sites_file, output_dir):
    """Выгрузить opportunities (с suggestions) по каждому сайту."""
    output_dir = output_dir or ctx.obj['config'].output_dir / 'opportunities'
    try:
        sites = load_sites(sites_file)
        report = ctx.obj['engine'].fetch_opportunities(sites, output_dir)
    except OverlapScoutError as e:
        print_error(f'Ошибка при запросе opportunities: {e}')
    echo_report(report)


# --------------------------------------------------------------------------- #
# Обработка артефактов                                                        #
# --------------------------------------------------------------------------- #


@cli.command('extract-links', context_settings=CONTEXT_SETTINGS)
@click.option('--input-dir', '-i', type=_DIR, required=True, help='Каталог выгрузок opportunities')
@click.option('--output', '-o', type=_OUT_FILE, required=True, help='JSON-файл набора opportunities')
@click.pass_context
def extract_links(ctx, input_dir, output):
    """Собрать ссылки домена из выгрузок opportunities."""
    try:
        report = ctx.obj['engine'].extract_links(input_dir)
    except (OverlapScoutError, FileNotFoundError) as e:
        print_error(f'Ошибка при извлечении ссылок: {e}')
    render_json(report.results, output)
    click.echo(f'Extracted links: {output}')
    echo_report(report)


@cli.command('group-opportunities', context_settings=CONTEXT_SETTINGS)
@click.option('--input-dir', '-i', type=_DIR, required=True, help='Каталог выгрузок opportunities')
@click.option('--output-dir', '-o', type=_OUT_DIR, required=True, help='Каталог для файлов {тип: [url]}')
@click.pass_context
def group_opportunities(ctx, input_dir, output_dir):
    """Сгруппировать ссылки каждого сайта по типу opportunity."""
    try:
        report = ctx.obj['engine'].group_opportunities(input_dir, output_dir)
    except (OverlapScoutError, FileNotFoundError) as e:
        print_error(f'Ошибка при группировке: {e}')
    echo_report(report)


@cli.command('overlap', context_settings=CONTEXT_SETTINGS)
@click.option('--sites', 'sites_file', type=_FILE, required=True, help='JSON со списком сайтов')
@click.option('--ahrefs', 'ahrefs_file', type=_FILE, required=True, help='Набор ahrefs top-pages')
@click.option('--rum', 'rum_file', type=_FILE, required=True, help='Набор RUM top-pages')
@click.option('--opportunities', 'opportunities_file', type=_FILE, required=True, help='Набор ссылок opportunities')
@click.option('--json', '-j', 'json_output', type=_OUT_FILE, default=None, help='Сохранить статистику в JSON')
@click.option('--csv', 'csv_output', type=_OUT_FILE, default=None, help='Сохранить статистику в CSV')
@click.option('--html', 'html_output', type=_OUT_FILE, default=None, help='Сохранить HTML-отчёт')
@click.option('--template', '-t', 'template_dir', type=_DIR, default=None, help='Папка с Jinja2-шаблонами')
@click.pass_context
def overlap(ctx, sites_file, ahrefs_file, rum_file, opportunities_file, json_output, csv_output, html_output,
            template_dir):
    """Посчитать пересечения top-страниц для всех сайтов."""
    cfg = ctx.obj['config']
    try:
        report = ctx.obj['engine'].overlap_stats(
            load_sites(sites_file),
            load_dataset(ahrefs_file, AHREFS),
            load_dataset(rum_file, RUM),
            load_dataset(opportunities_file, OPPORTUNITIES),
        )
    except OverlapScoutError as e:
        print_error(f'Ошибка при чтении наборов данных: {e}')

    if json_output:
        click.echo(f'JSON report: {render_json(report.results, json_output)}')
    if csv_output:
        click.echo(f'CSV report: {render_csv(report.results, csv_output)}')
    if html_output:
        click.echo(f'HTML report: {render_html(report.results, html_output, template_dir, top_n=cfg.top_n)}')
    if not (json_output or csv_output or html_output):
        for row in report.results:
            click.echo(
                f"{row['siteBaseURL']}: all={row['overlapAll']} "
                f"ahrefs∩opportunities={row['overlapAhrefsOpportunities']} "
                f"rum∩opportunities={row['overlapRumOpportunities']}"
            )
    echo_report(report)


@cli.command('reshape', context_settings=CONTEXT_SETTINGS)
@click.argument('input_dir', type=_DIR)
@click.argument('output_dir', type=_OUT_DIR)
@click.pass_context
def reshape_cmd(ctx, input_dir, output_dir):
    """Развернуть {тип: [url]} в {url: [тип]} для всех файлов каталога."""
    report = ctx.obj['engine'].reshape_directory(input_dir, output_dir)
    for item in report.results:
        click.echo(
            f"{item['filename']}: {item['totalUrls']} URLs, {item['totalOpportunityTypes']} types, "
            f"{item['urlsWithMultipleOpportunities']} with multiple"
        )
    echo_report(report)


@cli.command('verify', context_settings=CONTEXT_SETTINGS)
@click.argument('directory', type=_DIR)
@click.pass_context
def verify_cmd(ctx, directory):
    """Проверить и удалить повторы типов opportunity у URL."""
    report = ctx.obj['engine'].verify_directory(directory)
    removed = sum(item['duplicatesRemoved'] for item in report.results)
    affected = sum(item['urlsAffected'] for item in report.results)
    if removed:
        click.echo(f'Removed {removed} duplicates in {affected} URLs')
    else:
        click.echo('No duplicates found')
    echo_report(report)


@cli.command('add-stats', context_settings=CONTEXT_SETTINGS)
@click.argument('target', type=click.Path(exists=True, path_type=Path))
@click.pass_context
def add_stats(ctx, target):
    """Добавить блок stats в файл или во все JSON-файлы каталога."""
    report = ctx.obj['engine'].annotate_path(target)
    for item in report.results:
        click.echo(f"{item['filename']}: {item['stats']['totalUrls']} total URLs")
    echo_report(report)


@cli.command('spreadsheet', context_settings=CONTEXT_SETTINGS)
@click.argument('input_dir', type=_DIR)
@click.option('--csv', 'csv_output', type=_OUT_FILE, required=True, help='CSV-таблица opportunities')
@click.option('--summary', 'summary_output', type=_OUT_FILE, default=None, help='JSON-сводка')
@click.pass_context
def spreadsheet(ctx, input_dir, csv_output, summary_output):
    """Собрать таблицу opportunities по всем сайтам."""
    try:
        report, summary = ctx.obj['engine'].spreadsheet(input_dir)
    except (OverlapScoutError, FileNotFoundError) as e:
        print_error(f'Ошибка при создании таблицы: {e}')
    render_csv(report.results, csv_output)
    click.echo(f'CSV: {csv_output} ({summary["totalUrls"]} rows)')
    if summary_output:
        click.echo(f'Summary: {render_json(summary, summary_output)}')
    for error in report.errors:
        click.secho(f'  ✗ {error.unit}: {error.error}', fg='yellow', err=True)


@cli.command('count-pages', context_settings=CONTEXT_SETTINGS)
@click.argument('dataset', type=_FILE)
@click.option('--output', '-o', type=_OUT_FILE, default=None, help='Сохранить сводку в JSON')
def count_pages(dataset, output):
    """Посчитать top-страницы по сайтам набора данных."""
    try:
        data = read_json(dataset)
    except OverlapScoutError as e:
        print_error(f'Ошибка чтения набора: {e}')
    if not isinstance(data, list):
        print_error('Набор данных должен быть JSON-массивом')
    summary = top_pages_summary(data)
    click.echo(
        f"Sites: {summary['totalSites']}, pages: {summary['totalPages']}, "
        f"average: {summary['averagePagesPerSite']}, min: {summary['minPages']}, max: {summary['maxPages']}"
    )
    if output:
        click.echo(f'Summary: {render_json(summary, output)}')


@cli.command('merge', context_settings=CONTEXT_SETTINGS)
@click.argument('primary', type=_FILE)
@click.argument('supplement', type=_FILE)
@click.option('--output', '-o', type=_OUT_FILE, required=True, help='Объединённый JSON')
def merge(primary, supplement, output):
    """Дополнить набор RUM данными второго набора."""
    try:
        merged, updated, added = merge_datasets(read_json(primary), read_json(supplement))
    except (OverlapScoutError, KeyError, TypeError) as e:
        print_error(f'Ошибка объединения: {e}')
    render_json(merged, output)
    empty = sum(1 for record in merged if not record.get('topPages'))
    click.echo(f'Merged: {len(merged)} sites, updated: {updated}, added: {added}, without pages: {empty}')


@cli.command('missing-sites', context_settings=CONTEXT_SETTINGS)
@click.option('--sites', 'sites_file', type=_FILE, required=True, help='JSON со списком сайтов')
@click.option('--records', 'records_file', type=_FILE, required=True, help='Набор данных для сравнения')
@click.option('--output', '-o', type=_OUT_FILE, default=None, help='Сохранить недостающие сайты в JSON')
def missing_sites(sites_file, records_file, output):
    """Найти сайты, для которых нет записи в наборе данных."""
    try:
        records = read_json(records_file)
        missing, found = find_missing_sites(load_sites(sites_file), records)
    except (OverlapScoutError, AttributeError) as e:
        print_error(f'Ошибка сравнения: {e}')
    click.echo(f'Found: {len(found)}, missing: {len(missing)}')
    for site in missing:
        click.echo(f'  {site.base_url} ({site.id})')
    if output and missing:
        click.echo(f'Missing sites: {render_json([s.to_record() for s in missing], output)}')


if __name__ == "__main__":
    cli()
