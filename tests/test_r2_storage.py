"""Unit tests for the R2 metadata store, stubbed with botocore's Stubber."""

from __future__ import annotations

import io

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import ANY, Stubber

from ipfs_gallery.exceptions import MetadataStoreError
from ipfs_gallery.services.r2_storage import R2MetadataStore

BUCKET = "gallery-test"


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        endpoint_url="https://account.r2.cloudflarestorage.com",
        aws_access_key_id="test",
        aws_secret_access_key="test",
        region_name="auto",
    )


@pytest.fixture
def stubbed(s3_client):
    stubber = Stubber(s3_client)
    store = R2MetadataStore(bucket_name=BUCKET, prefix="catalog/", client=s3_client)
    with stubber:
        yield store, stubber
    stubber.assert_no_pending_responses()


@pytest.mark.asyncio
async def test_put_writes_json_object(stubbed) -> None:
    store, stubber = stubbed
    stubber.add_response(
        "put_object",
        {},
        {
            "Bucket": BUCKET,
            "Key": "catalog/bafy123",
            "Body": ANY,
            "ContentType": "application/json",
        },
    )

    await store.put("bafy123", '{"contentId":"bafy123"}')


@pytest.mark.asyncio
async def test_put_failure_raises_store_error(stubbed) -> None:
    store, stubber = stubbed
    stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)

    with pytest.raises(MetadataStoreError):
        await store.put("bafy123", "{}")


@pytest.mark.asyncio
async def test_get_returns_decoded_body(stubbed) -> None:
    store, stubber = stubbed
    data = b'{"contentId":"bafy123"}'
    stubber.add_response(
        "get_object",
        {"Body": StreamingBody(io.BytesIO(data), len(data))},
        {"Bucket": BUCKET, "Key": "catalog/bafy123"},
    )

    assert await store.get("bafy123") == '{"contentId":"bafy123"}'


@pytest.mark.asyncio
async def test_get_missing_key_returns_none(stubbed) -> None:
    store, stubber = stubbed
    stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

    assert await store.get("gone") is None


@pytest.mark.asyncio
async def test_list_keys_strips_prefix_across_pages(stubbed) -> None:
    store, stubber = stubbed
    stubber.add_response(
        "list_objects_v2",
        {
            "Contents": [{"Key": "catalog/a"}, {"Key": "catalog/b"}],
            "IsTruncated": True,
            "NextContinuationToken": "token-2",
        },
        None,
    )
    stubber.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "catalog/c"}], "IsTruncated": False},
        None,
    )

    assert await store.list_keys() == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_list_keys_of_empty_bucket(stubbed) -> None:
    store, stubber = stubbed
    stubber.add_response(
        "list_objects_v2", {"IsTruncated": False}, None
    )

    assert await store.list_keys() == []


def test_credentials_required_without_client() -> None:
    with pytest.raises(ValueError):
        R2MetadataStore(account_id="acct", access_key=None, secret_key=None)
