"""
Upload pipeline
Validate -> pin -> build record -> persist -> confirm
"""

import logging
import time
from typing import Callable, Optional

from ipfs_gallery.config import Settings
from ipfs_gallery.exceptions import InputError, PersistenceFailure, PinFailure
from ipfs_gallery.models.catalog import DEFAULT_MIME_TYPE, CatalogRecord, build_resource_url
from ipfs_gallery.services.metadata_store import MetadataStore
from ipfs_gallery.services.pinning import PinningClient

logger = logging.getLogger(__name__)

def current_millis() -> int:
    return int(time.time() * 1000)

class UploadPipeline:
    """Turns a raw upload into a pinned, cataloged record"""

    def __init__(
        self,
        pinning_client: PinningClient,
        store: MetadataStore,
        settings: Settings,
        clock: Callable[[], int] = current_millis
    ):
        self.pinning_client = pinning_client
        self.store = store
        self.settings = settings
        self.clock = clock

    def _validate(self, payload: Optional[bytes], size: Optional[int]) -> None:
        if payload is None:
            raise InputError("No file uploaded")
        if len(payload) == 0:
            raise InputError("Uploaded file is empty")
        if size is not None and size < 0:
            raise InputError("File size must not be negative")

        self.check_size(len(payload))

    def check_size(self, size: Optional[int]) -> None:
        """Reject sizes over MAX_UPLOAD_BYTES (unknown sizes pass)"""
        max_bytes = self.settings.MAX_UPLOAD_BYTES
        if max_bytes and size is not None and size > max_bytes:
            raise InputError(f"File size exceeds limit: {max_bytes} bytes")

    async def submit(
        self,
        payload: Optional[bytes],
        file_name: str,
        mime_type: Optional[str] = None,
        size: Optional[int] = None
    ) -> CatalogRecord:
        """
        Pin an upload and record it in the catalog

        Args:
            payload: File binary content
            file_name: Original filename, stored as-is
            mime_type: Caller-declared MIME type
            size: Caller-reported size, defaults to len(payload)

        Returns:
            The persisted CatalogRecord

        Raises:
            InputError: payload missing, empty or too large
            PinFailure: the pinning service did not return a CID
            PersistenceFailure: pinned, but the record could not be stored
        """
        self._validate(payload, size)
        mime_type = mime_type or DEFAULT_MIME_TYPE

        try:
            pin_result = await self.pinning_client.pin(payload, mime_type)
        except PinFailure as e:
            logger.warning(f"Pin failed for {file_name!r} ({e.kind}): {e.message}")
            raise

        content_id = pin_result.content_id
        record = CatalogRecord(
            content_id=content_id,
            file_name=file_name,
            uploaded_at_millis=self.clock(),
            size_bytes=len(payload) if size is None else size,
            mime_type=mime_type,
            resource_url=build_resource_url(content_id, self.settings.GATEWAY_URL_TEMPLATE)
        )

        try:
            await self.store.put(content_id, record.to_json())
        except Exception as e:
            # Pinned remotely but not indexed; nothing is unpinned
            logger.error(f"Orphaned content {content_id} ({file_name!r}): metadata write failed: {e}")
            raise PersistenceFailure(
                f"File pinned as {content_id} but its catalog entry could not be saved: {e}",
                content_id=content_id,
                resource_url=record.resource_url
            ) from e

        logger.info(f"Cataloged {file_name!r} as {content_id}")
        return record
