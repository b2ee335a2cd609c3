"""Catalog acquisition (with caching) and the in-memory catalog index."""

import logging
from collections.abc import Mapping
from locale import strxfrm

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from setapp_cli.cache import CacheRecord, CacheStore
from setapp_cli.constants import CATALOG_URL, DEFAULT_MAX_AGE
from setapp_cli.errors import CatalogUnavailable
from setapp_cli.fetcher import fetch_catalog
from setapp_cli.models import CatalogDocument, CatalogEntry
from setapp_cli.utils import now_millis, parse_max_age, try_parse_date

logger = logging.getLogger(__name__)


def compute_expiry(headers: Mapping[str, str], fetched_at: int) -> int:
    """Work out when a catalog response goes stale, in epoch milliseconds.

    Uses ``max-age`` from Cache-Control (falling back to DEFAULT_MAX_AGE),
    capped by the Expires header when that is earlier.
    """
    max_age = parse_max_age(headers.get("cache-control"))
    if max_age is None:
        max_age = DEFAULT_MAX_AGE
    expiry = fetched_at + max_age * 1000

    if expires := try_parse_date(headers.get("expires")):
        expiry = min(expiry, int(expires.timestamp() * 1000))
    return expiry


class CatalogClient:
    """Provides the store catalog, from cache while it is fresh."""

    def __init__(
        self,
        store: CacheStore,
        client: httpx.AsyncClient | None = None,
        url: str = CATALOG_URL,
    ):
        self.store = store
        self.client = client
        self.url = url

    async def get_catalog(self, now: int | None = None) -> CatalogDocument:
        if now is None:
            now = now_millis()

        record = await self.store.load()
        if CacheStore.is_valid(record, now):
            try:
                document = CatalogDocument.model_validate(record.document)
            except ValidationError:
                logger.info("Cache file invalid, fetching fresh data...")
            else:
                logger.info("Using cached API data...")
                return document

        return await self._fetch(now)

    async def _fetch(self, now: int) -> CatalogDocument:
        logger.info("Fetching data from Setapp API...")
        try:
            response = await fetch_catalog(self.url, self.client)
            raw = response.json()
            document = CatalogDocument.model_validate(raw)
        except httpx.HTTPError as e:
            raise CatalogUnavailable(f"Unable to fetch catalog from {self.url}: {e}") from e
        except ValueError as e:
            # covers both undecodable JSON and pydantic shape mismatches
            raise CatalogUnavailable(f"Catalog from {self.url} is not in the expected format: {e}") from e

        record = CacheRecord(
            document=raw,
            expiry_epoch_millis=compute_expiry(response.headers, now),
            etag=response.headers.get("etag"),
            last_modified=response.headers.get("last-modified"),
        )
        await self.store.save(record)
        return document


class CatalogIndex(BaseModel):
    """Lookup tables over a catalog: by id, and by lowercased name."""

    model_config = ConfigDict(frozen=True)

    by_id: dict[int, CatalogEntry]
    by_lower_name: dict[str, int]

    def __len__(self) -> int:
        return len(self.by_id)

    def sorted_entries(self) -> list[CatalogEntry]:
        # case-insensitive first, then locale collation (LC_COLLATE, set by the caller) to break ties
        return sorted(
            self.by_id.values(),
            key=lambda entry: (strxfrm(entry.name.casefold()), strxfrm(entry.name)),
        )


def build_index(document: CatalogDocument) -> CatalogIndex:
    """Project a catalog document into a CatalogIndex.

    Applications without versions are skipped. The first listed version is
    taken as the latest; the store API does not give an explicit ordering.
    When two applications share a lowercased name, the later one wins.
    """
    by_id: dict[int, CatalogEntry] = {}
    by_lower_name: dict[str, int] = {}

    for app in document.iter_applications():
        versions = app.relationships.versions.data
        if not versions:
            continue
        entry = CatalogEntry(id=app.id, name=app.attributes.name, archive_url=versions[0].attributes.archive_url)
        by_id[entry.id] = entry
        by_lower_name[entry.name.lower()] = entry.id

    logger.debug(f"Indexed {len(by_id)} applications")
    return CatalogIndex(by_id=by_id, by_lower_name=by_lower_name)
