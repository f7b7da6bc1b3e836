"""Unit tests for the Workers KV metadata store."""

from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

from ipfs_gallery.exceptions import MetadataStoreError
from ipfs_gallery.services.kv_store import WorkersKVMetadataStore

NAMESPACE_URL = "https://api.cloudflare.test/client/v4/accounts/acct/storage/kv/namespaces/ns1"


def _store(handler: Callable[[httpx.Request], httpx.Response], seen: List[httpx.Request]):
    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return WorkersKVMetadataStore(
        account_id="acct",
        namespace_id="ns1",
        api_token="kv-token",
        base_url="https://api.cloudflare.test/client/v4",
        client=httpx.AsyncClient(transport=httpx.MockTransport(_record)),
    )


@pytest.mark.asyncio
async def test_put_writes_value_under_encoded_key() -> None:
    seen: List[httpx.Request] = []
    store = _store(lambda r: httpx.Response(200, json={"success": True}), seen)

    await store.put("bafy/123", '{"contentId": "bafy/123"}')

    request = seen[0]
    assert request.method == "PUT"
    assert request.url.raw_path.decode() == "/client/v4/accounts/acct/storage/kv/namespaces/ns1/values/bafy%2F123"
    assert request.content == b'{"contentId": "bafy/123"}'
    assert request.headers["Authorization"] == "Bearer kv-token"
    await store.close()


@pytest.mark.asyncio
async def test_put_error_raises() -> None:
    body = {"success": False, "errors": [{"message": "namespace not found"}]}
    store = _store(lambda r: httpx.Response(404, json=body), [])

    with pytest.raises(MetadataStoreError, match="namespace not found"):
        await store.put("k", "v")


@pytest.mark.asyncio
async def test_get_returns_value_or_none() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/values/present"):
            return httpx.Response(200, text='{"a": 1}')
        return httpx.Response(404, json={"success": False, "errors": [{"message": "key not found"}]})

    store = _store(_handler, [])

    assert await store.get("present") == '{"a": 1}'
    assert await store.get("absent") is None


@pytest.mark.asyncio
async def test_get_server_error_raises() -> None:
    store = _store(lambda r: httpx.Response(500, text="boom"), [])

    with pytest.raises(MetadataStoreError, match="boom"):
        await store.get("k")


@pytest.mark.asyncio
async def test_list_keys_follows_cursor() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("cursor") == "page2":
            return httpx.Response(
                200, json={"result": [{"name": "c"}], "result_info": {"cursor": ""}}
            )
        return httpx.Response(
            200,
            json={"result": [{"name": "a"}, {"name": "b"}], "result_info": {"cursor": "page2"}},
        )

    seen: List[httpx.Request] = []
    store = _store(_handler, seen)

    assert await store.list_keys() == ["a", "b", "c"]
    assert len(seen) == 2
    assert all(r.url.path.endswith("/keys") for r in seen)


@pytest.mark.asyncio
async def test_list_keys_unexpected_body_raises() -> None:
    store = _store(lambda r: httpx.Response(200, json={"result": [{"id": "a"}]}), [])

    with pytest.raises(MetadataStoreError):
        await store.list_keys()


@pytest.mark.asyncio
async def test_transport_error_raises() -> None:
    def _fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    store = _store(_fail, [])

    with pytest.raises(MetadataStoreError, match="timed out"):
        await store.get("k")


def test_namespace_is_required() -> None:
    with pytest.raises(ValueError):
        WorkersKVMetadataStore(account_id="acct", namespace_id="", api_token="t")
