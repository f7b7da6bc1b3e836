"""
Custom exceptions for the IPFS gallery
"""

from typing import Any, Dict, Optional

class GalleryError(Exception):
    """Base exception for all gallery errors"""
    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Error body returned to the caller"""
        return {"error": self.message, "code": self.code}

class InputError(GalleryError):
    """Raised when the upload has no usable file"""
    status_code = 400
    code = "input_error"

class PinFailure(GalleryError):
    """Raised when the pinning service cannot pin the content

    kind is one of "transport", "rejected" or "malformed".
    """
    code = "pin_failed"

    TRANSPORT = "transport"
    REJECTED = "rejected"
    MALFORMED = "malformed"

    def __init__(self, message: str, kind: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.upstream_status = upstream_status

class PersistenceFailure(GalleryError):
    """Raised when a pinned CID could not be written to the metadata store

    The content exists remotely but is not listed in the catalog.
    """
    code = "persist_failed"

    def __init__(self, message: str, content_id: str, resource_url: str):
        super().__init__(message)
        self.content_id = content_id
        self.resource_url = resource_url

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["cid"] = self.content_id
        body["resourceUrl"] = self.resource_url
        return body

class StoreUnavailableError(GalleryError):
    """Raised when the catalog keys cannot be enumerated"""
    code = "store_unavailable"

class MetadataStoreError(GalleryError):
    """Raised by a metadata store backend when an operation fails"""
    code = "store_error"

class RecordCorruptionError(GalleryError):
    """Raised when a stored value is not a valid catalog record"""
    code = "record_corrupt"
