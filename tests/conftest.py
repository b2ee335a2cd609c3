import io
import stat
import zipfile
from pathlib import Path

import pytest

from setapp_cli.catalog import build_index
from setapp_cli.models import CatalogDocument


def app_payload(app_id: int, name: str, *archive_urls: str) -> dict:
    return {
        "id": app_id,
        "type": "application",
        "attributes": {"name": name},
        "relationships": {
            "versions": {"data": [{"id": i, "attributes": {"archive_url": url}} for i, url in enumerate(archive_urls)]}
        },
    }


def catalog_payload(*vendors: list[dict]) -> dict:
    return {
        "data": {
            "id": "store",
            "type": "store",
            "relationships": {
                "vendors": {
                    "data": [
                        {
                            "id": f"vendor-{i}",
                            "type": "vendor",
                            "attributes": {"name": f"Vendor {i}"},
                            "relationships": {"applications": {"data": apps}},
                        }
                        for i, apps in enumerate(vendors)
                    ]
                }
            },
        }
    }


def bundle_zip(*bundle_names: str, extra_files: dict[str, bytes] | None = None) -> bytes:
    """Build a zip holding minimal .app bundles with an executable and a symlink."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for bundle in bundle_names:
            exe = zipfile.ZipInfo(f"{bundle}/Contents/MacOS/{bundle.removesuffix('.app')}")
            exe.external_attr = (stat.S_IFREG | 0o755) << 16
            zf.writestr(exe, b"#!/bin/sh\necho hi\n")

            link = zipfile.ZipInfo(f"{bundle}/Contents/Current")
            link.external_attr = (stat.S_IFLNK | 0o777) << 16
            zf.writestr(link, "MacOS")
        for name, content in (extra_files or {}).items():
            zf.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def make_app():
    return app_payload


@pytest.fixture
def make_catalog():
    return catalog_payload


@pytest.fixture
def make_zip():
    return bundle_zip


@pytest.fixture
def store_payload() -> dict:
    return catalog_payload(
        [
            app_payload(42, "Foo", "http://x/a.zip", "http://x/old.zip"),
            app_payload(7, "Bar Pro", "http://x/bar.zip"),
        ],
        [
            app_payload(99, "Nothing Yet"),
            app_payload(13, "CleanShot X", "http://x/cleanshot.zip"),
        ],
    )


@pytest.fixture
def index(store_payload):
    return build_index(CatalogDocument.model_validate(store_payload))


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Applications" / "Setapp"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path
