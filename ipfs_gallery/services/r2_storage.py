"""
Cloudflare R2 metadata store
S3-compatible object storage, one JSON object per catalog record
"""

import asyncio
import boto3
from botocore.client import Config
from botocore.exceptions import ClientError
from typing import List, Optional
import logging

from ipfs_gallery.exceptions import MetadataStoreError
from ipfs_gallery.services.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

class R2MetadataStore(MetadataStore):
    """Cloudflare R2 storage client"""

    def __init__(
        self,
        account_id: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        bucket_name: str = "ipfs-gallery",
        prefix: str = "catalog/",
        client=None
    ):
        """
        Initialize R2 storage

        Args:
            account_id: Cloudflare account ID
            access_key: R2 access key
            secret_key: R2 secret key
            bucket_name: R2 bucket name
            prefix: Key prefix for catalog objects
            client: Pre-built S3 client (skips client creation)
        """
        self.bucket_name = bucket_name
        self.prefix = prefix

        if client is None:
            if not (account_id and access_key and secret_key):
                raise ValueError("R2_ACCOUNT_ID, R2_ACCESS_KEY and R2_SECRET_KEY are required for the r2 backend")

            # Create S3 client for R2
            client = boto3.client(
                's3',
                endpoint_url=f'https://{account_id}.r2.cloudflarestorage.com',
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=Config(signature_version='s3v4'),
                region_name='auto'
            )

        self.client = client
        logger.info(f"R2 storage initialized for bucket: {bucket_name}")

    def _object_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _put_sync(self, key: str, value: str) -> None:
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=self._object_key(key),
            Body=value.encode('utf-8'),
            ContentType='application/json'
        )

    def _get_sync(self, key: str) -> Optional[str]:
        try:
            response = self.client.get_object(
                Bucket=self.bucket_name,
                Key=self._object_key(key)
            )
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                return None
            raise

        return response['Body'].read().decode('utf-8')

    def _list_sync(self) -> List[str]:
        keys = []
        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=self.prefix):
            for obj in page.get('Contents', []):
                keys.append(obj['Key'][len(self.prefix):])
        return keys

    async def put(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._put_sync, key, value)
        except Exception as e:
            logger.error(f"Failed to store in R2: {e}")
            raise MetadataStoreError(f"R2 write failed for {key}: {e}") from e

        logger.debug(f"Stored record in R2: {key}")

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._get_sync, key)
        except Exception as e:
            logger.error(f"Failed to retrieve from R2: {e}")
            raise MetadataStoreError(f"R2 read failed for {key}: {e}") from e

    async def list_keys(self) -> List[str]:
        try:
            keys = await asyncio.to_thread(self._list_sync)
        except Exception as e:
            logger.error(f"Failed to list R2 objects: {e}")
            raise MetadataStoreError(f"R2 key listing failed: {e}") from e

        logger.debug(f"Listed {len(keys)} objects from R2")
        return keys
