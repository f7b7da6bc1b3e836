"""
IPFS pinning client
Submits uploads to the Cloudflare IPFS pinning API and returns the CID
"""

import httpx
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ipfs_gallery.config import Settings
from ipfs_gallery.exceptions import PinFailure

logger = logging.getLogger(__name__)

ACCOUNT_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$", re.IGNORECASE)

@dataclass(frozen=True)
class PinResult:
    """Successful pin confirmation"""
    content_id: str

class PinningClient(ABC):
    """Pins binary content and returns its content identifier"""

    @abstractmethod
    async def pin(self, data: bytes, mime_type: str) -> PinResult:
        """
        Raises:
            PinFailure: transport error, remote rejection or malformed response
        """

    async def close(self) -> None:
        return None

def _first_error_message(body: Any) -> Optional[str]:
    """errors[0].message from a Cloudflare API envelope, if present"""
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        message = errors[0].get("message")
        if message:
            return str(message)
    return None

class CloudflarePinningClient(PinningClient):
    """Cloudflare IPFS pinning API client (single attempt, no retries)"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.client = client or httpx.AsyncClient(timeout=settings.PIN_TIMEOUT_SECONDS)

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.settings.CF_API_TOKEN}"}

    async def _verify_token(self) -> None:
        """Check the API token before pinning"""
        url = f"{self.settings.CF_API_BASE_URL.rstrip('/')}/user/tokens/verify"
        try:
            response = await self.client.get(url, headers=self._auth_headers())
        except httpx.HTTPError as e:
            raise PinFailure(f"Pinning service unreachable: {e}", kind=PinFailure.TRANSPORT) from e

        if response.is_error:
            try:
                message = _first_error_message(response.json())
            except ValueError:
                message = None
            raise PinFailure(
                f"API token verification failed: {message or 'insufficient permissions'}",
                kind=PinFailure.REJECTED,
                upstream_status=response.status_code
            )

    async def pin(self, data: bytes, mime_type: str) -> PinResult:
        if not ACCOUNT_ID_PATTERN.match(self.settings.CF_ACCOUNT_ID or ""):
            raise PinFailure(
                "CF_ACCOUNT_ID format error (expected a 32-character hex string)",
                kind=PinFailure.REJECTED
            )

        if self.settings.VERIFY_API_TOKEN:
            await self._verify_token()

        api_url = self.settings.pin_api_url
        logger.debug(f"IPFS API URL: {api_url}")

        headers = self._auth_headers()
        headers["Content-Type"] = "application/octet-stream"
        headers["X-Api-User"] = self.settings.PIN_CLIENT_NAME

        try:
            response = await self.client.post(api_url, content=data, headers=headers)
        except httpx.HTTPError as e:
            raise PinFailure(f"Pinning service unreachable: {e}", kind=PinFailure.TRANSPORT) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            if body is None:
                detail = response.text or f"HTTP {response.status_code}"
            else:
                detail = _first_error_message(body) or json.dumps(body)
            raise PinFailure(
                f"IPFS API error: {detail}",
                kind=PinFailure.REJECTED,
                upstream_status=response.status_code
            )

        result = body.get("result") if isinstance(body, dict) else None
        cid = result.get("cid") if isinstance(result, dict) else None
        if not isinstance(cid, str) or not cid:
            raise PinFailure(
                "IPFS API returned an unexpected response (missing result.cid)",
                kind=PinFailure.MALFORMED,
                upstream_status=response.status_code
            )

        logger.info(f"Pinned {len(data)} bytes ({mime_type}) as {cid}")
        return PinResult(content_id=cid)

    async def close(self) -> None:
        await self.client.aclose()
