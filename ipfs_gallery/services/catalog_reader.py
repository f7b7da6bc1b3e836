"""
Catalog reader
Lists every stored record, newest first
"""

import asyncio
import logging
from typing import List, Optional

from ipfs_gallery.config import Settings
from ipfs_gallery.exceptions import RecordCorruptionError, StoreUnavailableError
from ipfs_gallery.models.catalog import CatalogRecord
from ipfs_gallery.services.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

class CatalogReader:
    """
    List-then-get reader over a MetadataStore

    Entries that vanish between list and get, fail to load, or fail to
    decode are skipped so one bad entry never hides the whole catalog.
    """

    def __init__(self, store: MetadataStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def _fetch(self, key: str, semaphore: asyncio.Semaphore) -> Optional[CatalogRecord]:
        async with semaphore:
            try:
                raw = await self.store.get(key)
            except Exception as e:
                logger.warning(f"Skipping catalog entry {key}: fetch failed: {e}")
                return None

        if raw is None:
            logger.warning(f"Skipping catalog entry {key}: no longer present")
            return None

        try:
            return CatalogRecord.from_json(raw, self.settings.GATEWAY_URL_TEMPLATE)
        except RecordCorruptionError as e:
            logger.warning(f"Skipping catalog entry {key}: {e.message}")
            return None

    async def list_all(self) -> List[CatalogRecord]:
        """
        All readable records sorted by upload time, newest first

        Records with equal timestamps keep their enumeration order.

        Raises:
            StoreUnavailableError: the key listing itself failed
        """
        try:
            keys = await self.store.list_keys()
        except Exception as e:
            logger.error(f"Catalog key listing failed: {e}")
            raise StoreUnavailableError(f"Failed to list catalog: {e}") from e

        semaphore = asyncio.Semaphore(max(1, self.settings.CATALOG_FETCH_CONCURRENCY))
        fetched = await asyncio.gather(*(self._fetch(key, semaphore) for key in keys))

        records = [record for record in fetched if record is not None]
        records.sort(key=lambda record: record.uploaded_at_millis, reverse=True)
        return records
