"""Command-line entry point: ``setapp install`` and ``setapp list``."""

import asyncio
import locale
import logging
from functools import partial
from pathlib import Path

import httpx
import typer
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from typer.core import TyperGroup

from setapp_cli.cache import CacheStore
from setapp_cli.catalog import CatalogClient, CatalogIndex, build_index
from setapp_cli.constants import CACHE_DIR, CACHE_FILENAME, CATALOG_TIMEOUT, CATALOG_URL, DEST_DIR, USE_SUDO
from setapp_cli.errors import CatalogUnavailable, DestinationUnavailable
from setapp_cli.fetcher import download_archive
from setapp_cli.filesystem import ShellFilesystem
from setapp_cli.installer import InstallPipeline
from setapp_cli.models import InstallTarget
from setapp_cli.orchestrator import InstallSummary, Orchestrator
from setapp_cli.resolver import resolve_all

logger = logging.getLogger(__name__)


class CommandGroup(TyperGroup):
    """Reports unrecognised subcommands along with the ones that exist."""

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if cmd_name and not cmd_name.startswith("-") and self.get_command(ctx, cmd_name) is None:
            available = ", ".join(self.list_commands(ctx))
            ctx.fail(f"Unknown command: {cmd_name}\nAvailable commands: {available}")
        return super().resolve_command(ctx, args)


cli = typer.Typer(
    cls=CommandGroup,
    add_completion=False,
    help="A command-line tool for installing Setapp applications.",
)
console = Console(highlight=False)

RULE = "─" * 50


class Settings(BaseModel):
    catalog_url: str
    cache_dir: Path
    dest_dir: Path
    use_sudo: bool

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / CACHE_FILENAME


@cli.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    catalog_url: str = typer.Option(CATALOG_URL, envvar="SETAPP_CLI_CATALOG_URL", help="Store API endpoint."),
    cache_dir: Path = typer.Option(CACHE_DIR, envvar="SETAPP_CLI_CACHE_DIR", help="Catalog cache directory."),
    dest_dir: Path = typer.Option(DEST_DIR, envvar="SETAPP_CLI_DEST_DIR", help="Where apps are installed."),
    sudo: bool = typer.Option(
        USE_SUDO, "--sudo/--no-sudo", envvar="SETAPP_CLI_USE_SUDO", help="Use sudo to write to the destination."
    ),
):
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        logger.debug("Unable to set collation locale from environment, using C ordering")

    ctx.obj = Settings(catalog_url=catalog_url, cache_dir=cache_dir, dest_dir=dest_dir, use_sudo=sudo)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(1)


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(follow_redirects=True, timeout=CATALOG_TIMEOUT)


async def _load_index(settings: Settings, client: httpx.AsyncClient) -> CatalogIndex:
    catalog = CatalogClient(CacheStore(settings.cache_path), client=client, url=settings.catalog_url)
    return build_index(await catalog.get_catalog())


def _print_targets(targets: list[InstallTarget]) -> None:
    console.print("\n[bold cyan]Installing the following Setapp applications:[/]")
    console.print(f"[dim]{RULE}[/]")
    for target in targets:
        console.print(f"[bold cyan]{escape(target.name)}[/] [dim](ID: {target.id})[/]")
    console.print(f"[dim]{RULE}[/]\n")


def _print_summary(summary: InstallSummary) -> None:
    console.print("\n[bold cyan]Installation summary:[/]")
    console.print(f"[green]Successfully installed: {summary.installed}/{summary.total}[/]")
    if summary.skipped:
        console.print(f"[yellow]Skipped (already installed): {summary.skipped}[/]")
    if summary.failed:
        console.print(f"[red]Failed: {summary.failed}[/]")


async def _install(settings: Settings, identifiers: list[str], by_name: bool, parallel: bool) -> int:
    async with _http_client() as client:
        try:
            index = await _load_index(settings, client)
        except CatalogUnavailable as e:
            console.print(f"[red]{escape(str(e))}[/]")
            return 1

        targets, _ = resolve_all(identifiers, by_name, index)
        if not targets:
            console.print("[red]No valid apps to install.[/]")
            return 1

        pipeline = InstallPipeline(
            settings.dest_dir,
            ShellFilesystem(use_sudo=settings.use_sudo),
            downloader=partial(download_archive, client=client),
        )
        try:
            await pipeline.ensure_destination()
        except DestinationUnavailable as e:
            console.print(f"[red]{escape(str(e))}[/]")
            return 1

        _print_targets(targets)
        results = await Orchestrator(pipeline).run(targets, parallel=parallel)

    _print_summary(InstallSummary.from_results(results))
    return 0


@cli.command(context_settings={"ignore_unknown_options": True})
def install(
    ctx: typer.Context,
    identifiers: list[str] = typer.Argument(None, metavar="<id|name>...", help="App IDs, or names with --name."),
    name: bool = typer.Option(False, "--name", help="Treat every identifier as an app name."),
    parallel: bool = typer.Option(False, "--parallel", help="Install apps concurrently."),
):
    """Install apps by ID (or by name with --name)."""
    if not identifiers:
        typer.echo(ctx.parent.get_help())
        raise typer.Exit(1)
    raise typer.Exit(asyncio.run(_install(ctx.obj, identifiers, name, parallel)))


async def _list(settings: Settings) -> int:
    async with _http_client() as client:
        try:
            index = await _load_index(settings, client)
        except CatalogUnavailable as e:
            console.print(f"[red]{escape(str(e))}[/]")
            return 1

    entries = index.sorted_entries()
    console.print("\n[bold cyan]Available applications:[/]")
    console.print(f"[dim]{RULE}[/]")
    for entry in entries:
        console.print(f"[green]•[/] [bold]{escape(entry.name)}[/] [dim](ID: {entry.id})[/]")
    console.print(f"\n[dim]Total: {len(entries)} applications[/]")
    return 0


@cli.command("list")
def list_apps(ctx: typer.Context):
    """List all available apps."""
    raise typer.Exit(asyncio.run(_list(ctx.obj)))


def main() -> None:
    """Main entry point for the setapp CLI."""
    cli()


if __name__ == "__main__":
    main()
