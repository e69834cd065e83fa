"""CLI entry point: click group that defaults to the render command."""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from gerritscope.core.aggregate import SuccessPolicy
from gerritscope.core.errors import AggregateFetchError, GerritscopeError
from gerritscope.core.hosts import DEFAULT_HOST, expand_hosts
from gerritscope.core.models import HostSpec, OwnerRef
from gerritscope.core.queries import parse_after
from gerritscope.display.themes import DEFAULT_THEME, THEMES, theme_by_name

console = Console(stderr=True)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class GerritscopeContext:
    """Resolved run configuration passed to commands."""

    def __init__(self, owner: str, hosts: list[HostSpec], after: date | None,
                 output_svg: Path | None, output_md: Path | None, theme: str,
                 multi_color: bool, policy: SuccessPolicy, timeout: float | None,
                 json_output: bool, fmt: str, verbose: bool, skip_reviews: bool = False):
        self.owner = owner
        self.owner_ref = OwnerRef.parse(owner)
        self.hosts = hosts
        self.after = after
        self.output_svg = output_svg
        self.output_md = output_md
        self.theme = theme
        self.multi_color = multi_color
        self.policy = policy
        self.timeout = timeout
        self.json_output = json_output
        self.fmt = fmt
        self.verbose = verbose
        self.skip_reviews = skip_reviews


class GerritscopeGroup(click.Group):
    """Group that runs `render` when invoked as `gerritscope --owner ...`."""

    def parse_args(self, ctx, args):
        if args and args[0].startswith("-") and args[0] not in CONTEXT_SETTINGS["help_option_names"]:
            args = ["render"] + args
        return super().parse_args(ctx, args)


def configure_logging(verbose: bool) -> None:
    handler = RichHandler(console=console, show_time=False, show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _render_options(f):
    """Render options; each also reads the matching GitHub Actions input variable."""
    f = click.option("--verbose", "-v", is_flag=True, help="Verbose output")(f)
    f = click.option("--format", "fmt", type=click.Choice(["rich", "csv", "parquet"]),
                     default="rich", show_default=True, help="Terminal/export format")(f)
    f = click.option("--json", "json_output", is_flag=True, help="Output report as JSON")(f)
    f = click.option("--timeout", type=float, default=None, envvar="INPUT_TIMEOUT",
                     help="HTTP timeout in seconds (default: httpx default)")(f)
    f = click.option("--skip-reviews", is_flag=True, envvar="INPUT_SKIP-REVIEWS",
                     help="Skip fetching review activity (faster, omits review stats)")(f)
    f = click.option("--policy", type=click.Choice([p.value for p in SuccessPolicy]),
                     default=SuccessPolicy.ANY.value, show_default=True, envvar="INPUT_POLICY",
                     help="'any': succeed if one host succeeds; 'all': every host must succeed")(f)
    f = click.option("--svg-multi-color", "multi_color", is_flag=True, envvar="INPUT_SVG-MULTI-COLOR",
                     help="Color each cell by its dominant host/project family")(f)
    f = click.option("--svg-theme", "theme", default=DEFAULT_THEME, show_default=True,
                     envvar="INPUT_SVG-THEME", help=f"SVG theme ({', '.join(THEMES)})")(f)
    f = click.option("--output-md", type=click.Path(dir_okay=False, path_type=Path),
                     envvar="INPUT_OUTPUT-MD", help="Write a markdown report here")(f)
    f = click.option("--output-svg", type=click.Path(dir_okay=False, path_type=Path),
                     envvar="INPUT_OUTPUT-SVG", help="Write the SVG heatmap card here")(f)
    f = click.option("--password", envvar="INPUT_PASSWORD", help="Gerrit HTTP password")(f)
    f = click.option("--username", envvar="INPUT_USERNAME", help="HTTP Basic Auth username")(f)
    f = click.option("--after", envvar="INPUT_AFTER",
                     help="Only changes merged on or after this date (YYYY-MM-DD)")(f)
    f = click.option("--hosts", multiple=True, default=[DEFAULT_HOST], show_default=True,
                     envvar="INPUT_HOSTS",
                     help="Host aliases or URLs; comma-separated and/or repeated")(f)
    f = click.option("--owner", required=True, envvar="INPUT_OWNER",
                     help="Account: email, username, or 'self'")(f)
    return f


def _make_context(owner, hosts, after, username, password, output_svg, output_md,
                  theme, multi_color, policy, timeout, json_output, fmt, verbose,
                  skip_reviews=False):
    credentials = None
    if username and password:
        credentials = (username, password)
    elif username or password:
        logging.getLogger(__name__).warning(
            "both --username and --password are needed for auth; querying anonymously")

    theme_by_name(theme)
    return GerritscopeContext(
        owner=owner,
        hosts=expand_hosts(list(hosts), credentials),
        after=parse_after(after),
        output_svg=output_svg,
        output_md=output_md,
        theme=theme,
        multi_color=multi_color,
        policy=SuccessPolicy(policy),
        timeout=timeout,
        json_output=json_output,
        fmt=fmt,
        verbose=verbose,
        skip_reviews=skip_reviews,
    )


def _fail(err: GerritscopeError) -> None:
    console.print(f"[red]Error:[/] {escape(str(err))}")
    if isinstance(err, AggregateFetchError):
        for r in err.results:
            if r.error is not None:
                console.print(f"  [red]✗ {r.alias}[/] [dim]({r.error.kind})[/] {escape(r.error.message)}")
    sys.exit(1)


@click.group(cls=GerritscopeGroup, context_settings=CONTEXT_SETTINGS)
def main():
    """Gerrit contribution heatmaps from your terminal.

    \b
    Usage:
      gerritscope --owner <email|user|self> [options]   Render (default)
      gerritscope hosts                                 Known host aliases
      gerritscope themes                                SVG themes
    """
    pass


@main.command("render")
@_render_options
def render_cmd(owner, hosts, after, username, password, output_svg, output_md,
               theme, multi_color, skip_reviews, policy, timeout, json_output, fmt, verbose):
    """Fetch merged changes and render heatmap/report outputs."""
    configure_logging(verbose)
    from gerritscope.commands.render import run_render
    try:
        ctx = _make_context(owner, hosts, after, username, password, output_svg, output_md,
                            theme, multi_color, policy, timeout, json_output, fmt, verbose,
                            skip_reviews)
        run_render(ctx)
    except GerritscopeError as e:
        _fail(e)


@main.command("hosts")
def hosts_cmd():
    """List known Gerrit host aliases."""
    from gerritscope.display.tables import display_hosts
    display_hosts()


@main.command("themes")
def themes_cmd():
    """List SVG themes."""
    from gerritscope.display.tables import display_themes
    display_themes()
