"""
Chat Orchestrator — Core query pipeline.

Coordinates one chat turn:
1. Validate the inbound request (done by ``parse_chat_request``).
2. If RAG is enabled, log in to ZeroDB and search the knowledge base.
3. Wrap the retrieved text in the system prompt.
4. Send the sanitized conversation to the Llama completion API.

Failures at any stage abort the turn; there is no context-free fallback.
"""

import logging
from collections.abc import AsyncIterator
from enum import Enum

from ragchat.core.exceptions import ChatError, RetrievalError
from ragchat.core.telemetry import get_tracer
from ragchat.models.chat import ChatRequest, CompletionResult
from ragchat.services.auth import ZeroDBAuthService
from ragchat.services.completion import CompletionService
from ragchat.services.prompt import build_messages, format_context
from ragchat.services.search import SearchResult, ZeroDBSearchService

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    RETRIEVING = "retrieving"
    ASSEMBLING = "assembling"
    DISPATCHING = "dispatching"
    DONE = "done"
    FAILED = "failed"


class ChatOrchestrator:
    """Orchestrates retrieval, prompt assembly and completion for a chat turn."""

    def __init__(
        self,
        auth_service: ZeroDBAuthService,
        search_service: ZeroDBSearchService,
        completion_service: CompletionService,
    ) -> None:
        self._auth = auth_service
        self._search = search_service
        self._completion = completion_service
        self._tracer = get_tracer()

    async def answer(self, request: ChatRequest) -> CompletionResult:
        """
        Run the full pipeline and return the generated text.

        Args:
            request: Validated chat request.

        Returns:
            CompletionResult from the Llama API.

        Raises:
            ChatError: The original failure of whichever stage broke.
        """
        with self._tracer.start_as_current_span("rag.answer") as span:
            span.set_attribute("rag.use_rag", request.use_rag)
            stage = PipelineStage.RETRIEVING
            try:
                results = await self._retrieve(request) if request.use_rag else []
                stage = PipelineStage.ASSEMBLING
                messages = self._assemble(request, results, span)
                stage = PipelineStage.DISPATCHING
                result = await self._completion.chat_completion(messages, request.model)
            except ChatError as exc:
                self._record_failure(span, stage, exc)
                raise

            span.set_attribute("rag.stage", PipelineStage.DONE.value)
            return result

    async def stream_answer(self, request: ChatRequest) -> AsyncIterator[str]:
        """
        Run retrieval and open a streaming completion.

        Returns an async iterator of text fragments once the upstream stream
        is open, so every pre-stream failure is raised from this call.
        """
        with self._tracer.start_as_current_span("rag.stream_answer") as span:
            span.set_attribute("rag.use_rag", request.use_rag)
            stage = PipelineStage.RETRIEVING
            try:
                results = await self._retrieve(request) if request.use_rag else []
                stage = PipelineStage.ASSEMBLING
                messages = self._assemble(request, results, span)
                stage = PipelineStage.DISPATCHING
                fragments = await self._completion.stream_chat_completion(
                    messages, request.model
                )
            except ChatError as exc:
                self._record_failure(span, stage, exc)
                raise

            span.set_attribute("rag.stage", PipelineStage.DONE.value)
            return fragments

    @staticmethod
    def _assemble(
        request: ChatRequest,
        results: list[SearchResult],
        span,
    ) -> list[dict[str, str]]:
        span.set_attribute("rag.retrieval_count", len(results))
        return build_messages(format_context(results), request.messages)

    async def _retrieve(self, request: ChatRequest) -> list[SearchResult]:
        query = request.latest_content
        token = await self._auth.get_token()
        try:
            return await self._search.search(
                query, token.access_token, request.similarity_metric
            )
        except RetrievalError as exc:
            # Only a cached token gets one re-login and retry.
            if exc.status_code != 401 or not self._auth.cache_enabled:
                raise
            logger.info("Cached ZeroDB token rejected, re-authenticating once.")
            self._auth.invalidate()
            token = await self._auth.get_token()
            return await self._search.search(
                query, token.access_token, request.similarity_metric
            )

    @staticmethod
    def _record_failure(span, stage: PipelineStage, exc: ChatError) -> None:
        span.set_attribute("rag.stage", PipelineStage.FAILED.value)
        span.set_attribute("rag.failed_stage", stage.value)
        span.set_attribute("rag.error_code", exc.error_code)
        logger.warning(
            "Chat pipeline failed during %s: %s (%s)",
            stage.value,
            exc.error_code,
            exc.message,
        )
