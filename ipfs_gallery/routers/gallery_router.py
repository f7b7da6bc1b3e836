"""
Gallery router
Upload to IPFS and list the catalog
"""

from fastapi import APIRouter, Depends, File, Request, UploadFile
from typing import List, Optional
import logging

from ipfs_gallery.models.catalog import CatalogRecord, ErrorResponse, UploadResponse
from ipfs_gallery.services.catalog_reader import CatalogReader
from ipfs_gallery.services.upload_pipeline import UploadPipeline

logger = logging.getLogger(__name__)
router = APIRouter()

def get_upload_pipeline(request: Request) -> UploadPipeline:
    """Upload pipeline bound to the app's pin client and store"""
    state = request.app.state
    return UploadPipeline(
        pinning_client=state.pinning_client,
        store=state.metadata_store,
        settings=state.settings
    )

def get_catalog_reader(request: Request) -> CatalogReader:
    """Catalog reader bound to the app's store"""
    state = request.app.state
    return CatalogReader(store=state.metadata_store, settings=state.settings)

@router.post(
    "/upload",
    response_model=UploadResponse,
    response_model_by_alias=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    pipeline: UploadPipeline = Depends(get_upload_pipeline)
):
    """
    Upload a file

    - Pins the content on IPFS through Cloudflare
    - Records the CID in the catalog
    """
    payload = None
    if file is not None:
        # Oversize uploads are rejected before the body is read into memory
        pipeline.check_size(file.size)
        payload = await file.read()

    record = await pipeline.submit(
        payload=payload,
        file_name=file.filename if file is not None else "",
        mime_type=file.content_type if file is not None else None,
        size=file.size if file is not None else None
    )

    return UploadResponse.from_record(record)

@router.get(
    "/images",
    response_model=List[CatalogRecord],
    response_model_by_alias=True,
    responses={500: {"model": ErrorResponse}}
)
async def list_images(reader: CatalogReader = Depends(get_catalog_reader)):
    """
    List all uploads, newest first

    - Unreadable entries are left out
    """
    return await reader.list_all()
