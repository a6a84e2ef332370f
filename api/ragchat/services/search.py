"""
ZeroDB semantic search client.

Sends the latest user utterance to the embeddings search endpoint, which
embeds the query server-side and returns the closest knowledge-base chunks.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ragchat.core.config import Settings
from ragchat.core.exceptions import NetworkError, RetrievalError
from ragchat.core.telemetry import get_tracer

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 5
SIMILARITY_THRESHOLD = 0.7
NAMESPACE = "knowledge_base"
EMBEDDING_MODEL = "BAAI/bge-small-en-v1.5"


@dataclass
class SearchResult:
    """A single search result from the knowledge base."""

    id: str
    text: str
    similarity: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


def resolve_result_text(record: dict[str, Any]) -> str:
    """
    Return the document text of a raw search record.

    ZeroDB returns the chunk under ``text`` or, for vectors stored through
    the vectors API, under ``document``. The first non-empty string wins.
    """
    for key in ("text", "document"):
        value = record.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


class ZeroDBSearchService:
    """Wrapper around the ZeroDB embeddings search endpoint."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._project_id = settings.zerodb_project_id
        self._http = http_client
        self._tracer = get_tracer()

    @property
    def search_path(self) -> str:
        return f"/v1/public/{self._project_id}/embeddings/search"

    async def search(
        self,
        query_text: str,
        token: str,
        similarity_metric: str = "cosine",
    ) -> list[SearchResult]:
        """
        Execute a semantic search scoped to the knowledge-base namespace.

        Args:
            query_text: The latest user message. Sent even when empty.
            token: ZeroDB bearer token.
            similarity_metric: Stored as filter metadata, not validated here.

        Returns:
            List of SearchResult in the order ZeroDB ranked them.
        """
        with self._tracer.start_as_current_span("zerodb.search") as span:
            span.set_attribute("search.similarity_metric", similarity_metric)
            span.set_attribute("search.limit", SEARCH_LIMIT)

            payload = {
                "query": query_text,
                "project_id": self._project_id,
                "limit": SEARCH_LIMIT,
                "threshold": SIMILARITY_THRESHOLD,
                "namespace": NAMESPACE,
                "filter_metadata": {"similarity_metric": similarity_metric},
                "model": EMBEDDING_MODEL,
            }

            try:
                response = await self._http.post(
                    self.search_path,
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"},
                )
            except httpx.RequestError as exc:
                logger.error("ZeroDB search request failed: %s", type(exc).__name__)
                raise NetworkError("ZeroDB search unreachable") from exc

            span.set_attribute("http.status_code", response.status_code)
            if not response.is_success:
                logger.warning(
                    "ZeroDB search failed: %d - %s",
                    response.status_code,
                    response.text[:500],
                )
                raise RetrievalError(
                    f"ZeroDB search failed: {response.status_code}",
                    status_code=response.status_code,
                    body=response.text,
                )

            try:
                body = response.json()
            except ValueError as exc:
                raise RetrievalError(
                    "ZeroDB search returned malformed JSON",
                    status_code=response.status_code,
                    body=response.text,
                ) from exc

            records = (body.get("results") if isinstance(body, dict) else None) or []
            try:
                search_results = [
                    SearchResult(
                        id=str(record.get("id") or record.get("vector_id") or ""),
                        text=resolve_result_text(record),
                        similarity=float(record.get("similarity") or 0.0),
                        metadata=record.get("metadata") or {},
                    )
                    for record in records
                    if isinstance(record, dict)
                ]
            except (TypeError, ValueError) as exc:
                raise RetrievalError(
                    "ZeroDB search returned an invalid result",
                    status_code=response.status_code,
                    body=response.text,
                ) from exc

            span.set_attribute("search.results_count", len(search_results))
            logger.info(
                "Semantic search returned %d results (metric: %s)",
                len(search_results),
                similarity_metric,
            )
            return search_results
