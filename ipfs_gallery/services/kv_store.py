"""
Cloudflare Workers KV metadata store
Talks to the KV namespace through the Cloudflare REST API
"""

import httpx
import logging
from typing import List, Optional
from urllib.parse import quote

from ipfs_gallery.exceptions import MetadataStoreError
from ipfs_gallery.services.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

class WorkersKVMetadataStore(MetadataStore):
    """Workers KV namespace accessed over HTTPS"""

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_token: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0
    ):
        if not namespace_id:
            raise ValueError("CF_KV_NAMESPACE_ID is required for the kv backend")

        self.namespace_url = (
            f"{base_url.rstrip('/')}/accounts/{account_id}/storage/kv/namespaces/{namespace_id}"
        )
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.client.headers["Authorization"] = f"Bearer {api_token}"

    def _value_url(self, key: str) -> str:
        return f"{self.namespace_url}/values/{quote(key, safe='')}"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            errors = response.json().get("errors") or []
            if errors and errors[0].get("message"):
                return errors[0]["message"]
        except (ValueError, AttributeError):
            pass
        return response.text or f"HTTP {response.status_code}"

    async def put(self, key: str, value: str) -> None:
        try:
            response = await self.client.put(
                self._value_url(key),
                content=value.encode("utf-8"),
                headers={"Content-Type": "text/plain"}
            )
        except httpx.HTTPError as e:
            raise MetadataStoreError(f"KV write failed for {key}: {e}") from e

        if response.is_error:
            raise MetadataStoreError(
                f"KV write failed for {key}: {self._error_message(response)}"
            )

    async def get(self, key: str) -> Optional[str]:
        try:
            response = await self.client.get(self._value_url(key))
        except httpx.HTTPError as e:
            raise MetadataStoreError(f"KV read failed for {key}: {e}") from e

        if response.status_code == 404:
            return None
        if response.is_error:
            raise MetadataStoreError(
                f"KV read failed for {key}: {self._error_message(response)}"
            )
        return response.text

    async def list_keys(self) -> List[str]:
        keys = []
        cursor = None

        while True:
            params = {"limit": 1000}
            if cursor:
                params["cursor"] = cursor

            try:
                response = await self.client.get(f"{self.namespace_url}/keys", params=params)
            except httpx.HTTPError as e:
                raise MetadataStoreError(f"KV key listing failed: {e}") from e

            if response.is_error:
                raise MetadataStoreError(
                    f"KV key listing failed: {self._error_message(response)}"
                )

            try:
                body = response.json()
                keys.extend(item["name"] for item in body.get("result") or [])
                cursor = (body.get("result_info") or {}).get("cursor")
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise MetadataStoreError(f"KV key listing returned an unexpected body: {e}") from e

            if not cursor:
                break

        logger.debug(f"Listed {len(keys)} keys from Workers KV")
        return keys

    async def close(self) -> None:
        await self.client.aclose()
