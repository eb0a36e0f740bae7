# === FILE: catalog_scout/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point of the CatalogScout crawler.

Commands:
  crawl     Log in, crawl the configured brands and print the summary
  config    Show the effective configuration (secrets masked)

Global options:
  --config PATH       YAML/JSON config (default: configs/default.yaml)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only when omitted)
  --log-format FORMAT Logging format string

crawl options:
  --brand KEY         Brand key to crawl (repeatable, overrides config)
  --max-products INT  Per-brand product cap
  --concurrency INT   Concurrent page workers
  --skip-persistence  Do not upsert to the remote store
  --output PATH       JSON-lines result stream
  --summary-json PATH Save the summary as JSON
  --summary-html PATH Save the summary as HTML
  --template DIR      Directory with Jinja2 templates
  --crawl-timeout SEC Abort the whole crawl after SEC seconds
  --identity / --secret  Trade account login (or CATALOG_SCOUT_IDENTITY / _SECRET)

Example:
  catalog-scout --config configs/default.yaml crawl --brand kravet --brand leejofa --max-products 50
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from catalog_scout import __version__
from catalog_scout.brands import BRAND_TABLE
from catalog_scout.config import Credentials, load_config
from catalog_scout.engine import start_crawl
from catalog_scout.errors import CatalogScoutError
from catalog_scout.logger import DEFAULT_FORMAT, init_logging
from catalog_scout.report.html_report import render_html
from catalog_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='CatalogScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to the YAML/JSON configuration file.'
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
    help='Log file path (stdout when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """CatalogScout command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--brand', '-b', 'brands',
    multiple=True,
    type=click.Choice(sorted(BRAND_TABLE)),
    help='Brand key to crawl (repeatable)'
)
@click.option('--max-products', '-m', 'max_products', type=click.IntRange(min=1), default=None,
              help='Per-brand product cap')
@click.option('--concurrency', '-n', 'concurrency', type=click.IntRange(min=1), default=None,
              help='Concurrent page workers')
@click.option('--skip-persistence', is_flag=True, default=False,
              help='Do not upsert records to the remote store')
@click.option(
    '--output', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='JSON-lines result stream'
)
@click.option(
    '--summary-json', 'summary_json',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the summary as JSON'
)
@click.option(
    '--summary-html', 'summary_html',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the summary as HTML'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with Jinja2 templates'
)
@click.option('--crawl-timeout', 'crawl_timeout', type=float, default=None,
              help='Timeout for the whole crawl (seconds)')
@click.option('--identity', envvar='CATALOG_SCOUT_IDENTITY', default=None,
              help='Trade account login')
@click.option('--secret', envvar='CATALOG_SCOUT_SECRET', default=None,
              help='Trade account password')
@click.pass_context
def crawl(ctx, brands, max_products, concurrency, skip_persistence, output,
          summary_json, summary_html, template_dir, crawl_timeout, identity, secret):
    """Run a crawl and print the summary."""
    cfg = ctx.obj['config']
    overrides = {}
    if brands:
        overrides['brands'] = list(dict.fromkeys(brands))
    if max_products is not None:
        overrides['max_products_per_brand'] = max_products
    if concurrency is not None:
        overrides['max_concurrency'] = concurrency
    if skip_persistence:
        overrides['skip_persistence'] = True
    if output is not None:
        overrides['output'] = output
    if identity is not None or secret is not None:
        overrides['credentials'] = Credentials(
            identity=identity if identity is not None else cfg.credentials.identity,
            secret=secret if secret is not None else cfg.credentials.secret,
        )
    if overrides:
        cfg = cfg.model_copy(update=overrides)

    click.echo(f'Starting crawl: {", ".join(cfg.brands)}')
    try:
        if crawl_timeout:
            stats = asyncio.run(
                asyncio.wait_for(start_crawl(cfg), timeout=crawl_timeout)
            )
        else:
            stats = asyncio.run(start_crawl(cfg))
    except asyncio.TimeoutError:
        print_error(f'Crawl did not finish within {crawl_timeout} seconds')
    except CatalogScoutError as e:
        print_error(f'Crawl aborted: {e}')
    except Exception as e:
        print_error(f'Crawl failed: {e}')

    click.echo(stats.summary())

    if summary_json:
        try:
            saved_json = render_json(stats, summary_json)
            click.echo(f'JSON summary: {saved_json}')
        except OSError as e:
            print_error(f'Failed to save JSON summary: {e}')

    if summary_html:
        try:
            saved_html = render_html(stats, template_dir, summary_html)
            click.echo(f'HTML summary: {saved_html}')
        except OSError as e:
            print_error(f'Failed to save HTML summary: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON (secrets masked)."""
    cfg = ctx.obj['config']
    click.echo(json.dumps(cfg.public_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
