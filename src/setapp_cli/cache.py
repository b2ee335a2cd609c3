"""On-disk cache for the store catalog document."""

import logging
from pathlib import Path
from typing import Any

import aiofiles
from pydantic import BaseModel, ConfigDict, Field

from setapp_cli.constants import CACHE_DIR, CACHE_FILENAME

logger = logging.getLogger(__name__)


class CacheRecord(BaseModel):
    """A cached catalog document plus its expiry.

    Serialized as ``{data, expiry, etag, lastModified}``; the etag and
    last-modified values are kept for future revalidation requests.
    """

    model_config = ConfigDict(populate_by_name=True)

    document: dict[str, Any] = Field(alias="data")
    expiry_epoch_millis: int = Field(alias="expiry")
    etag: str | None = None
    last_modified: str | None = Field(default=None, alias="lastModified")

    def is_valid(self, now: int) -> bool:
        return self.expiry_epoch_millis > now


class CacheStore:
    """Loads and saves a single CacheRecord at a fixed path.

    Neither operation raises: a missing or malformed file loads as ``None``,
    and a failed save is logged and reported through the return value.
    """

    def __init__(self, path: Path | None = None):
        self.path = path if path is not None else CACHE_DIR / CACHE_FILENAME

    async def load(self) -> CacheRecord | None:
        try:
            async with aiofiles.open(self.path, "rb") as f:
                raw = await f.read()
        except FileNotFoundError:
            logger.debug(f"No catalog cache at {self.path}")
            return None
        except OSError as e:
            logger.debug(f"Unable to read catalog cache {self.path}: {e}")
            return None

        try:
            return CacheRecord.model_validate_json(raw)
        except ValueError as e:
            # ValidationError, or bytes that are not valid UTF-8
            logger.debug(f"Ignoring invalid catalog cache {self.path}: {e}")
            return None

    async def save(self, record: CacheRecord) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
                await f.write(record.model_dump_json(by_alias=True))
        except OSError as e:
            logger.debug(f"Unable to write catalog cache {self.path}: {e}")
            return False
        logger.debug(f"Saved catalog cache to {self.path}")
        return True

    @staticmethod
    def is_valid(record: CacheRecord | None, now: int) -> bool:
        return record is not None and record.is_valid(now)
