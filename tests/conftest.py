"""Shared fixtures and fakes for the gallery tests."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from ipfs_gallery.config import Settings
from ipfs_gallery.exceptions import MetadataStoreError
from ipfs_gallery.services.metadata_store import InMemoryMetadataStore
from ipfs_gallery.services.pinning import PinningClient, PinResult

ACCOUNT_ID = "0123456789abcdef0123456789abcdef"
GATEWAY = "https://{cid}.ipfs.gateway.test"


class FakePinningClient(PinningClient):
    """Pinning client that returns a fixed CID or raises a configured error."""

    def __init__(self, cid: str = "bafy123", error: Optional[Exception] = None) -> None:
        self.cid = cid
        self.error = error
        self.calls: List[tuple] = []

    async def pin(self, data: bytes, mime_type: str) -> PinResult:
        self.calls.append((data, mime_type))
        if self.error is not None:
            raise self.error
        return PinResult(content_id=self.cid)


class RecordingStore(InMemoryMetadataStore):
    """In-memory store that counts calls and can be told to fail."""

    def __init__(
        self,
        initial: Optional[Dict[str, str]] = None,
        *,
        fail_put: bool = False,
        fail_list: bool = False,
        fail_get_keys: Optional[set] = None,
        phantom_keys: Optional[List[str]] = None,
    ) -> None:
        super().__init__(initial)
        self.fail_put = fail_put
        self.fail_list = fail_list
        self.fail_get_keys = fail_get_keys or set()
        self.phantom_keys = phantom_keys or []
        self.puts: List[tuple] = []
        self.gets: List[str] = []
        self.list_calls = 0

    async def put(self, key: str, value: str) -> None:
        self.puts.append((key, value))
        if self.fail_put:
            raise MetadataStoreError("store is read-only")
        await super().put(key, value)

    async def get(self, key: str) -> Optional[str]:
        self.gets.append(key)
        if key in self.fail_get_keys:
            raise MetadataStoreError(f"read timeout for {key}")
        return await super().get(key)

    async def list_keys(self) -> List[str]:
        self.list_calls += 1
        if self.fail_list:
            raise MetadataStoreError("listing unavailable")
        # Keys that were listed but deleted before the get
        return await super().list_keys() + list(self.phantom_keys)

    @property
    def total_calls(self) -> int:
        return len(self.puts) + len(self.gets) + self.list_calls


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the process environment."""
    return Settings(
        _env_file=None,
        CF_ACCOUNT_ID=ACCOUNT_ID,
        CF_API_TOKEN="test-token",
        CF_API_BASE_URL="https://api.cloudflare.test/client/v4",
        GATEWAY_URL_TEMPLATE=GATEWAY,
        METADATA_BACKEND="memory",
        VERIFY_API_TOKEN=False,
    )


@pytest.fixture
def pin_client() -> FakePinningClient:
    return FakePinningClient()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()
