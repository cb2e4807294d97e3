"""CLI entry point — command definitions using Click.

Commands:
    init    Generate a template config file
    run     Analyze URLs with PageSpeed Insights and print a text report
"""

import logging
import sys

import click
from click.core import ParameterSource

from psi_report import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _load_config(ctx: click.Context):
    """Load the config named by --config (or the defaults). Exits on error."""
    from psi_report.config import ConfigError, load

    try:
        return load(ctx.obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


def _emit_text(text: str, ctx: click.Context) -> None:
    """Write the report to stdout or to the file specified by --output."""
    output_path: str | None = ctx.obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text, nl=False)


def _handle_client_errors(func):
    """Decorator that catches configuration and client exceptions and exits cleanly."""
    import functools

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from psi_report.client import (
            AuthenticationError,
            NetworkError,
            PageSpeedClientError,
            RateLimitError,
        )
        from psi_report.config import ConfigError

        try:
            return func(*args, **kwargs)
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except RateLimitError as exc:
            click.echo(f"Rate limit error: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except PageSpeedClientError as exc:
            click.echo(f"PageSpeed Insights error: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=None,
              help="Path to a psi-config.yaml file (defaults are used if omitted).")
@click.option("--output", "output_path", default=None,
              help="Write the report to a file instead of stdout.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="psi-report")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, output_path: str | None,
        verbose: bool) -> None:
    """PageSpeed Insights report tool — analyze pages and print their scores."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="psi-config.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template psi-config.yaml file."""
    from psi_report.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your API key, URLs and report preferences.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

@cli.command("run")
@click.argument("urls", nargs=-1)
@click.option("--key", "api_key", default=None,
              help="PageSpeed Insights API key (overrides config and PSI_API_KEY).")
@click.option("--mobile/--desktop", "mobile", default=False,
              help="Simulate a mobile or desktop device (overrides config).")
@click.option("--workers", type=int, default=None,
              help="Number of concurrent requests.")
@click.option("--retries", type=int, default=None,
              help="Extra attempts per URL after a failure.")
@click.option("--audits", type=click.Choice(["all", "failed", "none"]), default=None,
              help="Which audits to list under each category.")
@click.option("--max-details", type=int, default=None,
              help="Detail lines per audit (0 hides them, negative shows all).")
@click.option("--detail-width", type=int, default=None,
              help="Elide detail cells longer than this (0 disables).")
@click.option("--full-urls", is_flag=True, default=False,
              help="Show full URLs in the summary instead of paths.")
@click.pass_context
@_handle_client_errors
def run_command(ctx: click.Context, urls: tuple[str, ...], api_key: str | None,
                mobile: bool, workers: int | None, retries: int | None,
                audits: str | None, max_details: int | None, detail_width: int | None,
                full_urls: bool) -> None:
    """Analyze URLS (or the config's `urls` list) and print a text report."""
    from psi_report import orchestrator
    from psi_report.client import PageSpeedClient
    from psi_report.models import AuditFilter, DeviceProfile
    from psi_report.reports.lighthouse import build_report
    from psi_report.reports.text import render

    config = _load_config(ctx)
    if api_key is not None:
        config.api_key = api_key
    if ctx.get_parameter_source("mobile") is not ParameterSource.DEFAULT:
        config.device = DeviceProfile.MOBILE if mobile else DeviceProfile.DESKTOP
    if workers is not None:
        config.workers = workers
    if retries is not None:
        config.retries = retries
    if audits is not None:
        config.audits = AuditFilter(audits)
    if max_details is not None:
        config.max_details = max_details
    if detail_width is not None:
        config.detail_width = detail_width
    if full_urls:
        config.full_urls = True

    targets = list(urls) or config.urls
    if not targets:
        raise click.UsageError("No URLs given on the command line or in the config file.")

    client = PageSpeedClient(api_key=config.api_key)
    profile = config.device

    def fetch(url: str):
        return build_report(client.run_pagespeed(url, profile))

    def on_failure(url: str, attempts: int, error: Exception) -> None:
        click.echo(f"Failed analyzing {url} after {attempts} attempt(s): {error}", err=True)

    if ctx.obj["verbose"]:
        click.echo(
            f"[verbose] Analyzing {len(targets)} URL(s) as {profile.value.lower()} "
            f"with {config.workers} worker(s), {config.retries} retry(ies)",
            err=True,
        )

    reports = orchestrator.run(
        targets, fetch,
        workers=config.workers,
        retries=config.retries,
        on_failure=on_failure,
    )
    _emit_text(render(reports, config.render_options()), ctx)

    if all(rep.failed for rep in reports):
        sys.exit(1)
