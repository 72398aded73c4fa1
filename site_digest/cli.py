# === FILE: site_digest/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point of SiteDigest.

Commands:
  crawl     Crawl from a URL or a search query and print/save the report
  extract   Fetch one page and print its title and main content
  config    Show the effective configuration

Global options:
  --config PATH       YAML/JSON config (default: configs/default.yaml if present)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string

crawl options:
  --url URL           Seed URL
  --query TEXT        Search query (seeds via the search API when --url is absent)
  --depth INT         Maximum depth (default 2)
  --links INT         Links followed per page (default 3)
  --summarize         Ask the text-generation API for a summary
  --json PATH         Save the JSON report
  --html PATH         Save the HTML report
  --template DIR      Directory with report.html.j2
  --pretty            Indent JSON output
  --crawl-timeout SEC Time budget of each seed crawl

Example:
  site-digest crawl --url https://example.com/news --depth 1 --pretty
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from site_digest import __version__
from site_digest.config import CrawlRequest, load_config
from site_digest.crawler.crawler import DepthCrawler
from site_digest.engine import start_crawl
from site_digest.exceptions import FetchFailed, SiteDigestError
from site_digest.logger import configure, logger
from site_digest.report.html_report import render_html
from site_digest.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteDigest, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON config file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stderr only when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SiteDigest command group."""
    configure(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--url', '-u', 'url', default=None, help='Seed URL')
@click.option('--query', '-q', 'query', default=None, help='Search query / relevance hint')
@click.option('--depth', '-d', 'max_depth', type=click.IntRange(min=0), default=None,
              help='Maximum crawl depth [config: max_depth]')
@click.option('--links', '-l', 'max_links', type=click.IntRange(min=0), default=None,
              help='Links followed per page [config: max_links_per_page]')
@click.option('--summarize', is_flag=True, help='Attach an AI summary to the report')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with Jinja2 templates (bundled template by default)'
)
@click.option('--pretty', is_flag=True, help='Indent JSON output (2 spaces)')
@click.option(
    '--crawl-timeout', 'crawl_timeout',
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help='Time budget of each seed crawl (seconds)'
)
@click.pass_context
def crawl(ctx, url, query, max_depth, max_links, summarize, json_output, html_output,
          template_dir, pretty, crawl_timeout):
    """Crawl and produce the depth-grouped report."""
    cfg = ctx.obj['config']
    if crawl_timeout is not None:
        cfg = cfg.model_copy(update={'crawl_deadline': crawl_timeout})
    try:
        request = CrawlRequest(
            url=url,
            query=query,
            max_depth=cfg.max_depth if max_depth is None else max_depth,
            max_links_per_page=cfg.max_links_per_page if max_links is None else max_links,
            summarize=summarize,
        )
    except ValidationError as e:
        print_error(f'Invalid request: {e.errors()[0]["msg"]}')

    logger.info('Starting crawl: %s', request.url or request.query)
    try:
        report = asyncio.run(start_crawl(request, cfg))
    except SiteDigestError as e:
        print_error(f'Crawl failed: {e}')

    # no output file: print to stdout
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Failed to save JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Failed to save HTML: {e}')


async def _extract_one(cfg, url):
    async with DepthCrawler(cfg) as crawler:
        html = await crawler.fetcher.fetch(url)
        return crawler.extractor.extract(html, url)


@cli.command('extract', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--pretty', is_flag=True, help='Indent JSON output (2 spaces)')
@click.pass_context
def extract(ctx, url, pretty):
    """Fetch one page and print its title and full content."""
    cfg = ctx.obj['config']
    try:
        page = asyncio.run(_extract_one(cfg, url))
    except FetchFailed as e:
        print_error(f'Fetch failed: {e}')
    if not page.content:
        print_error(f'No content extracted from {url}')
    payload = {
        'url': page.url,
        'title': page.title,
        'strategy': page.strategy,
        'contentLength': len(page.content),
        'fullContent': page.content,
    }
    click.echo(json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


# expose these names at module level for test monkey-patching
cli.start_crawl = start_crawl
cli.render_json = render_json
cli.render_html = render_html

if __name__ == "__main__":
    cli()
