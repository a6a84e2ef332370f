"""
Meta Llama chat completion client.

Talks to the OpenAI-compatible Llama API through the ``openai`` SDK with SDK
retries disabled and a hard wall-clock timeout. HTTP outcomes are mapped
onto the pipeline error taxonomy.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AsyncStream,
)

from ragchat.core.config import Settings
from ragchat.core.exceptions import (
    CompletionError,
    CompletionTimeoutError,
    NetworkError,
    ValidationError,
)
from ragchat.core.telemetry import get_tracer
from ragchat.models.chat import CompletionResult

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "Llama-4-Maverick-17B-128E-Instruct-FP8"


class CompletionService:
    """Wrapper around the Llama chat completions endpoint."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._timeout = settings.completion_timeout
        self._max_tokens = settings.completion_max_tokens
        self._tracer = get_tracer()

        self._client = AsyncOpenAI(
            api_key=settings.meta_api_key.get_secret_value(),
            base_url=settings.meta_base_url,
            timeout=settings.completion_timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def close(self) -> None:
        await self._client.close()

    def resolve_model(self, requested: str | None = None) -> str:
        """Request value, then deployment default, then the built-in fallback."""
        return requested or self._settings.meta_model or DEFAULT_MODEL

    async def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
    ) -> CompletionResult:
        """
        Generate a chat completion.

        Args:
            messages: Sanitized conversation (system prompt first).
            model: Optional model override from the request.

        Returns:
            CompletionResult with the first choice's text ("" if absent).
        """
        model_id = self.resolve_model(model)
        with self._tracer.start_as_current_span("llm.chat") as span:
            span.set_attribute("llm.model", model_id)
            span.set_attribute("llm.message_count", len(messages))

            response = await self._create(messages, model_id)

            choices = getattr(response, "choices", None) or []
            message = getattr(choices[0], "message", None) if choices else None
            answer = getattr(message, "content", None) or ""

            usage_data = getattr(response, "usage", None)
            usage = {
                "prompt_tokens": getattr(usage_data, "prompt_tokens", 0) or 0,
                "completion_tokens": getattr(usage_data, "completion_tokens", 0) or 0,
                "total_tokens": getattr(usage_data, "total_tokens", 0) or 0,
            }
            span.set_attribute("llm.total_tokens", usage["total_tokens"])
            logger.info("Chat completion (%s): %d tokens used", model_id, usage["total_tokens"])

            return CompletionResult(text=answer, model=model_id, usage=usage)

    async def stream_chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
    ) -> AsyncIterator[str]:
        """
        Open a streaming completion and return an iterator of text fragments.

        Errors raised while opening the stream (bad status, timeout) surface
        here, before any fragment is produced. The wall-clock bound applies
        to opening the stream; each later read is bounded by the SDK timeout.
        """
        model_id = self.resolve_model(model)
        stream = await self._create(messages, model_id, stream=True)
        return self._iter_fragments(stream)

    async def _iter_fragments(self, stream: AsyncStream) -> AsyncIterator[str]:
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = getattr(chunk.choices[0].delta, "content", None)
                if content:
                    yield content
        except (APIError, httpx.HTTPError) as exc:
            logger.error("Llama stream interrupted: %s", type(exc).__name__)
            raise CompletionError("Meta Llama stream interrupted") from exc
        finally:
            await stream.close()

    async def _create(
        self,
        messages: list[dict[str, str]],
        model_id: str,
        **kwargs: Any,
    ) -> Any:
        if not messages:
            raise ValidationError("At least one message is required")

        try:
            return await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=model_id,
                    messages=messages,
                    max_tokens=self._max_tokens,
                    **kwargs,
                ),
                timeout=self._timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError) as exc:
            logger.error("Llama completion timed out after %.1fs", self._timeout)
            raise CompletionTimeoutError(
                f"Meta Llama API timed out after {self._timeout}s",
                timeout=self._timeout,
            ) from exc
        except APIStatusError as exc:
            logger.error("Llama API error: %d - %s", exc.status_code, exc.response.text[:500])
            raise CompletionError(
                f"Meta Llama API error: {exc.status_code}",
                status_code=exc.status_code,
                body=exc.response.text,
            ) from exc
        except APIConnectionError as exc:
            logger.error("Llama API unreachable: %s", type(exc.__cause__).__name__)
            raise NetworkError("Meta Llama API unreachable") from exc
        except APIError as exc:
            logger.error("Llama API returned an unusable response: %s", type(exc).__name__)
            raise CompletionError("Meta Llama API returned an invalid response") from exc
