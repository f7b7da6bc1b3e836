"""
Catalog data models
"""

from pydantic import AliasChoices, BaseModel, Field, ValidationError
from typing import Optional, Union

from ipfs_gallery.exceptions import RecordCorruptionError

DEFAULT_MIME_TYPE = "application/octet-stream"

def build_resource_url(content_id: str, template: str) -> str:
    """Gateway URL for a CID, e.g. https://{cid}.ipfs.cf-ipfs.com"""
    return template.format(cid=content_id)

class CatalogRecord(BaseModel):
    """One pinned upload, keyed by its CID in the metadata store"""
    content_id: str = Field(
        ...,
        min_length=1,
        alias="contentId",
        validation_alias=AliasChoices("contentId", "cid"),
    )
    file_name: str = Field(..., alias="fileName")
    uploaded_at_millis: int = Field(
        ...,
        alias="uploadedAtMillis",
        validation_alias=AliasChoices("uploadedAtMillis", "timestamp"),
    )
    size_bytes: int = Field(
        ...,
        ge=0,
        alias="sizeBytes",
        validation_alias=AliasChoices("sizeBytes", "size"),
    )
    mime_type: str = Field(DEFAULT_MIME_TYPE, alias="mimeType")
    resource_url: Optional[str] = Field(
        None,
        alias="resourceUrl",
        validation_alias=AliasChoices("resourceUrl", "ipfsUrl"),
    )

    class Config:
        populate_by_name = True
        frozen = True

    def to_json(self) -> str:
        """Serialized form written to the metadata store"""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: Union[str, bytes], url_template: str) -> "CatalogRecord":
        """
        Decode a stored value

        Records written without a resource URL get one derived from the CID.

        Raises:
            RecordCorruptionError: value is not a valid record
        """
        try:
            record = cls.model_validate_json(raw)
        except ValidationError as e:
            raise RecordCorruptionError(f"Invalid catalog record: {e.error_count()} error(s)") from e

        if not record.resource_url:
            record = record.model_copy(
                update={"resource_url": build_resource_url(record.content_id, url_template)}
            )
        return record

class UploadResponse(BaseModel):
    """Upload confirmation"""
    success: bool = True
    cid: str
    resource_url: str = Field(..., alias="resourceUrl")
    file_name: str = Field(..., alias="fileName")

    class Config:
        populate_by_name = True

    @classmethod
    def from_record(cls, record: CatalogRecord) -> "UploadResponse":
        return cls(
            cid=record.content_id,
            resource_url=record.resource_url,
            file_name=record.file_name,
        )

class ErrorResponse(BaseModel):
    """Error body for failed requests"""
    error: str
    code: str
    cid: Optional[str] = None
    resource_url: Optional[str] = Field(None, alias="resourceUrl")

    class Config:
        populate_by_name = True
