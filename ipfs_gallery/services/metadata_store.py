"""
Metadata store
Key-value storage for serialized catalog records, keyed by CID
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ipfs_gallery.config import Settings
from ipfs_gallery.database import connect_db, close_db
from ipfs_gallery.exceptions import MetadataStoreError

logger = logging.getLogger(__name__)

class MetadataStore(ABC):
    """
    Async key-value store interface

    Keys are only ever overwritten with a complete value, so backends need
    no read-modify-write support. Concurrent puts to one key: last one wins.
    """

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Stored value, or None when the key is absent"""
        ...

    @abstractmethod
    async def list_keys(self) -> List[str]:
        """All keys currently stored, in no particular order"""
        ...

    async def close(self) -> None:
        """Release backend resources"""
        return None

class InMemoryMetadataStore(MetadataStore):
    """Process-local store for development and tests"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    async def put(self, key: str, value: str) -> None:
        self._values[key] = value

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def list_keys(self) -> List[str]:
        return list(self._values)

class MongoMetadataStore(MetadataStore):
    """
    MongoDB-backed store

    Documents look like {"_id": key, "value": str, "updated_at": datetime}.
    """

    def __init__(self, collection):
        self.collection = collection

    async def put(self, key: str, value: str) -> None:
        try:
            await self.collection.replace_one(
                {"_id": key},
                {"_id": key, "value": value, "updated_at": datetime.now(timezone.utc)},
                upsert=True
            )
        except Exception as e:
            raise MetadataStoreError(f"MongoDB write failed for {key}: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        try:
            doc = await self.collection.find_one({"_id": key})
        except Exception as e:
            raise MetadataStoreError(f"MongoDB read failed for {key}: {e}") from e

        if not doc:
            return None
        return doc.get("value")

    async def list_keys(self) -> List[str]:
        try:
            cursor = self.collection.find({}, {"_id": 1})
            docs = await cursor.to_list(length=None)
        except Exception as e:
            raise MetadataStoreError(f"MongoDB key listing failed: {e}") from e

        return [str(doc["_id"]) for doc in docs]

    async def close(self) -> None:
        await close_db()

async def create_metadata_store(settings: Settings) -> MetadataStore:
    """Build the store selected by METADATA_BACKEND"""
    backend = settings.METADATA_BACKEND.lower()

    if backend == "memory":
        logger.warning("Using in-memory metadata store, catalog is lost on restart")
        return InMemoryMetadataStore()

    if backend == "mongodb":
        db = await connect_db(settings)
        return MongoMetadataStore(db[settings.MONGODB_COLLECTION])

    if backend == "r2":
        from ipfs_gallery.services.r2_storage import R2MetadataStore

        return R2MetadataStore(
            account_id=settings.R2_ACCOUNT_ID,
            access_key=settings.R2_ACCESS_KEY,
            secret_key=settings.R2_SECRET_KEY,
            bucket_name=settings.R2_BUCKET_NAME,
            prefix=settings.R2_PREFIX
        )

    if backend == "kv":
        from ipfs_gallery.services.kv_store import WorkersKVMetadataStore

        return WorkersKVMetadataStore(
            account_id=settings.CF_ACCOUNT_ID,
            namespace_id=settings.CF_KV_NAMESPACE_ID,
            api_token=settings.CF_API_TOKEN,
            base_url=settings.CF_API_BASE_URL
        )

    raise ValueError(f"Unknown METADATA_BACKEND: {settings.METADATA_BACKEND}")
