"""
Tests for the download and extraction primitives.
"""

import io
import os
import zipfile
from pathlib import Path

import httpx
import pytest

from setapp_cli.fetcher import download_archive, extract_archive, fetch_catalog


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestDownloadArchive:
    @pytest.mark.asyncio
    async def test_streams_to_disk(self, tmp_path: Path):
        payload = os.urandom(200_000)

        async with _client(lambda request: httpx.Response(200, content=payload)) as http:
            out = await download_archive("http://x/a.zip", tmp_path / "dl" / "a.zip", client=http)

        assert out.read_bytes() == payload

    @pytest.mark.asyncio
    async def test_progress_bar_does_not_change_output(self, tmp_path: Path):
        async with _client(lambda request: httpx.Response(200, content=b"abc")) as http:
            out = await download_archive("http://x/a.zip", tmp_path / "a.zip", client=http, show_progress=True)
        assert out.read_bytes() == b"abc"

    @pytest.mark.asyncio
    async def test_http_error_raises(self, tmp_path: Path):
        async with _client(lambda request: httpx.Response(404)) as http:
            with pytest.raises(httpx.HTTPStatusError):
                await download_archive("http://x/missing.zip", tmp_path / "a.zip", client=http)


class TestFetchCatalog:
    @pytest.mark.asyncio
    async def test_returns_response(self):
        async with _client(lambda request: httpx.Response(200, json={"ok": True})) as http:
            response = await fetch_catalog("http://x/api", http)
        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self):
        async with _client(lambda request: httpx.Response(503)) as http:
            with pytest.raises(httpx.HTTPStatusError):
                await fetch_catalog("http://x/api", http)


class TestExtractArchive:
    @pytest.mark.asyncio
    async def test_keeps_permissions_and_symlinks(self, tmp_path: Path, make_zip):
        archive = tmp_path / "a.zip"
        archive.write_bytes(make_zip("Foo.app"))

        dest = await extract_archive(archive, tmp_path / "out")

        exe = dest / "Foo.app" / "Contents" / "MacOS" / "Foo"
        assert exe.read_bytes().startswith(b"#!/bin/sh")
        assert os.access(exe, os.X_OK)
        link = dest / "Foo.app" / "Contents" / "Current"
        assert link.is_symlink()
        assert os.readlink(link) == "MacOS"

    @pytest.mark.asyncio
    async def test_corrupt_archive(self, tmp_path: Path):
        archive = tmp_path / "a.zip"
        archive.write_bytes(b"definitely not a zip")
        with pytest.raises(zipfile.BadZipFile):
            await extract_archive(archive, tmp_path / "out")

    @pytest.mark.asyncio
    async def test_rejects_members_outside_destination(self, tmp_path: Path):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("../escaped.txt", b"nope")
        archive = tmp_path / "a.zip"
        archive.write_bytes(buffer.getvalue())

        with pytest.raises(zipfile.BadZipFile, match="escapes"):
            await extract_archive(archive, tmp_path / "out")
        assert not (tmp_path / "escaped.txt").exists()
