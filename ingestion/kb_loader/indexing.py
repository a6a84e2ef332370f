"""
Indexing module for the ZeroDB knowledge base.

Authenticates against the public login endpoint and uploads chunks through
the embed-and-store endpoint, which embeds them server-side.
"""

import logging
import os

import httpx

from kb_loader.chunking import Chunk

logger = logging.getLogger(__name__)

ZERODB_API_URL = os.getenv("ZERODB_API_URL", "")
ZERODB_PROJECT_ID = os.getenv("ZERODB_PROJECT_ID", "")
ZERODB_EMAIL = os.getenv("ZERODB_EMAIL", "")
ZERODB_PASSWORD = os.getenv("ZERODB_PASSWORD", "")
NAMESPACE = os.getenv("ZERODB_NAMESPACE", "knowledge_base")
EMBEDDING_MODEL = "BAAI/bge-small-en-v1.5"


class IndexingError(Exception):
    """Raised when ZeroDB rejects a login or an upload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def get_zerodb_client(
    base_url: str = ZERODB_API_URL,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create an HTTP client bound to the ZeroDB API."""
    return httpx.Client(base_url=base_url, timeout=60.0, transport=transport)


def authenticate(
    client: httpx.Client,
    email: str = ZERODB_EMAIL,
    password: str = ZERODB_PASSWORD,
) -> str:
    """Exchange service credentials for a bearer token."""
    if not email or not password:
        raise IndexingError("ZERODB_EMAIL and ZERODB_PASSWORD must be set")

    response = client.post(
        "/v1/public/auth/login",
        data={"username": email, "password": password},
    )
    if not response.is_success:
        raise IndexingError(
            f"Authentication failed: {response.status_code}",
            status_code=response.status_code,
        )
    return response.json()["access_token"]


def embed_and_store(
    client: httpx.Client,
    token: str,
    chunks: list[Chunk],
    project_id: str = ZERODB_PROJECT_ID,
    namespace: str = NAMESPACE,
    batch_size: int = 20,
) -> int:
    """
    Embed and store chunks in ZeroDB.

    Args:
        client: HTTP client bound to the ZeroDB API.
        token: Bearer token from ``authenticate``.
        chunks: Chunks with their metadata.
        project_id: ZeroDB project identifier.
        namespace: Vector namespace searched by the chat API.
        batch_size: Number of chunks per upload request.

    Returns:
        Number of vectors ZeroDB reported as stored.
    """
    stored = 0
    total_batches = (len(chunks) + batch_size - 1) // batch_size

    for i in range(0, len(chunks), batch_size):
        batch = chunks[i : i + batch_size]
        logger.info(
            "Uploading batch %d/%d (%d chunks)",
            i // batch_size + 1,
            total_batches,
            len(batch),
        )

        response = client.post(
            f"/v1/public/{project_id}/embeddings/embed-and-store",
            headers={"Authorization": f"Bearer {token}"},
            json={
                "texts": [c.text for c in batch],
                "metadata_list": [c.metadata for c in batch],
                "namespace": namespace,
                "model": EMBEDDING_MODEL,
                "project_id": project_id,
            },
        )
        if not response.is_success:
            raise IndexingError(
                f"ZeroDB embed-and-store failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        result = response.json()
        stored += result.get("vectors_stored", len(batch))
        logger.info(
            "Stored batch (model: %s, dimensions: %s, %sms)",
            result.get("model"),
            result.get("dimensions"),
            result.get("processing_time_ms"),
        )

    logger.info("Stored %d vectors in namespace '%s'.", stored, namespace)
    return stored
