"""
Unit tests for ZeroDB authentication and embed-and-store uploads.
"""

import json

import httpx
import pytest

from kb_loader.chunking import Chunk
from kb_loader.indexing import (
    EMBEDDING_MODEL,
    IndexingError,
    authenticate,
    embed_and_store,
    get_zerodb_client,
)


class FakeZeroDB:
    def __init__(self, login_status=200, store_status=200):
        self.login_status = login_status
        self.store_status = store_status
        self.uploads = []

    def __call__(self, request):
        if request.url.path == "/v1/public/auth/login":
            if self.login_status != 200:
                return httpx.Response(self.login_status, text="denied")
            return httpx.Response(200, json={"access_token": "jwt-token"})

        body = json.loads(request.content)
        self.uploads.append((request, body))
        if self.store_status != 200:
            return httpx.Response(self.store_status, text="quota exceeded")
        return httpx.Response(200, json={"vectors_stored": len(body["texts"])})


def make_chunks(count):
    return [
        Chunk(text=f"chunk {i}", metadata={"document_id": f"u-{i}"}, chunk_index=i)
        for i in range(count)
    ]


def test_authenticate_returns_token():
    fake = FakeZeroDB()
    with get_zerodb_client("https://zerodb.test", httpx.MockTransport(fake)) as client:
        assert authenticate(client, "bot@example.com", "pw") == "jwt-token"


def test_authenticate_failure():
    fake = FakeZeroDB(login_status=401)
    with get_zerodb_client("https://zerodb.test", httpx.MockTransport(fake)) as client:
        with pytest.raises(IndexingError) as exc_info:
            authenticate(client, "bot@example.com", "pw")
    assert exc_info.value.status_code == 401


def test_authenticate_requires_credentials():
    with get_zerodb_client("https://zerodb.test", httpx.MockTransport(FakeZeroDB())) as client:
        with pytest.raises(IndexingError):
            authenticate(client, "", "")


def test_embed_and_store_batches():
    fake = FakeZeroDB()
    with get_zerodb_client("https://zerodb.test", httpx.MockTransport(fake)) as client:
        stored = embed_and_store(
            client, "jwt-token", make_chunks(5), project_id="proj-123", batch_size=2
        )

    assert stored == 5
    assert [len(body["texts"]) for _, body in fake.uploads] == [2, 2, 1]

    request, body = fake.uploads[0]
    assert request.url.path == "/v1/public/proj-123/embeddings/embed-and-store"
    assert request.headers["authorization"] == "Bearer jwt-token"
    assert body["namespace"] == "knowledge_base"
    assert body["model"] == EMBEDDING_MODEL
    assert body["project_id"] == "proj-123"
    assert body["metadata_list"] == [{"document_id": "u-0"}, {"document_id": "u-1"}]


def test_embed_and_store_failure_stops_run():
    fake = FakeZeroDB(store_status=500)
    with get_zerodb_client("https://zerodb.test", httpx.MockTransport(fake)) as client:
        with pytest.raises(IndexingError) as exc_info:
            embed_and_store(client, "jwt-token", make_chunks(4), project_id="p", batch_size=2)

    assert exc_info.value.status_code == 500
    assert len(fake.uploads) == 1
