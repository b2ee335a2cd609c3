"""Network and archive primitives: catalog fetch, archive download and extraction."""

import asyncio
import logging
import os
import stat
import zipfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, nullcontext
from pathlib import Path

import aiofiles
import httpx
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from setapp_cli.constants import CATALOG_TIMEOUT

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _client_scope(client: httpx.AsyncClient | None, **kwargs) -> AsyncIterator[httpx.AsyncClient]:
    """Use the caller's client if given, otherwise a short-lived one."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(follow_redirects=True, **kwargs) as own_client:
        yield own_client


def _progress_bar() -> Progress:
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        transient=True,
    )


async def fetch_catalog(url: str, client: httpx.AsyncClient | None = None) -> httpx.Response:
    """GET the store catalog.

    Raises:
        httpx.HTTPError: on transport errors or a non-2xx response
    """
    async with _client_scope(client, timeout=CATALOG_TIMEOUT) as http:
        response = await http.get(url)
        response.raise_for_status()
    logger.debug(f"Fetched catalog from {url} ({len(response.content)} bytes)")
    return response


async def download_archive(
    url: str,
    output_path: Path,
    *,
    client: httpx.AsyncClient | None = None,
    show_progress: bool = False,
) -> Path:
    """Stream a file from a URL to a local path.

    Args:
        url: The URL to download from
        output_path: Where to save the downloaded file
        client: Shared HTTP client; a temporary one is used if omitted
        show_progress: Render a progress bar while downloading

    Returns:
        The output path

    Raises:
        httpx.HTTPError: on transport errors or a non-2xx response
        OSError: if the file cannot be written
    """
    async with _client_scope(client) as http, http.stream("GET", url) as response:
        response.raise_for_status()
        total = int(response.headers.get("content-length", 0)) or None
        output_path.parent.mkdir(parents=True, exist_ok=True)

        progress = _progress_bar() if show_progress else None
        with progress if progress is not None else nullcontext():
            task = progress.add_task(output_path.name, total=total) if progress is not None else None
            async with aiofiles.open(output_path, "wb") as f:
                async for chunk in response.aiter_bytes():
                    await f.write(chunk)
                    if progress is not None:
                        progress.update(task, advance=len(chunk))

    logger.debug(f"Downloaded {url} to {output_path}")
    return output_path


def _member_path(dest: Path, name: str) -> Path:
    target = Path(os.path.normpath(dest / name))
    # the parent may be a symlink extracted earlier; it must still land inside dest
    real_parent = Path(os.path.realpath(target.parent))
    if not real_parent.is_relative_to(os.path.realpath(dest)):
        raise zipfile.BadZipFile(f"Archive member escapes extraction directory: {name}")
    return target


def _extract_zip(archive: Path, dest: Path) -> None:
    dest.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            target = _member_path(dest, info.filename)
            mode = info.external_attr >> 16
            if stat.S_ISLNK(mode):
                target.parent.mkdir(parents=True, exist_ok=True)
                if not target.is_symlink():
                    target.symlink_to(zf.read(info).decode("utf-8"))
                continue

            zf.extract(info, dest)
            # zipfile drops unix permissions; bundles need their executable bits
            if mode and not info.is_dir():
                target.chmod(stat.S_IMODE(mode))


async def extract_archive(archive_path: Path, dest_dir: Path) -> Path:
    """Unpack a zip archive into dest_dir, keeping permissions and symlinks.

    Raises:
        zipfile.BadZipFile: if the archive is corrupt or not a zip file
        OSError: if the archive cannot be read or written out
    """
    await asyncio.to_thread(_extract_zip, archive_path, dest_dir)
    logger.debug(f"Extracted {archive_path} to {dest_dir}")
    return dest_dir
