"""
Pydantic models for the Chat API request contract.
"""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ragchat.core.exceptions import ValidationError

SimilarityMetric = Literal["cosine", "euclidean", "dot_product"]


class ChatMessage(BaseModel):
    """A single message in the conversation history.

    Client-only fields (ids, timestamps, UI markers) are dropped on parse.
    """

    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant", "system"] = Field(
        ..., description="Message role: 'user', 'assistant' or 'system'"
    )
    content: str = Field(..., description="Message content")


class ChatRequest(BaseModel):
    """Request body for the POST /api/chat endpoint."""

    messages: list[ChatMessage] = Field(
        ..., min_length=1, description="Conversation history (latest message last)"
    )
    use_rag: bool = Field(
        False,
        validation_alias=AliasChoices("useRag", "use_rag"),
        description="Retrieve knowledge-base context before answering",
    )
    model: str | None = Field(
        None,
        validation_alias=AliasChoices("llm", "model"),
        description="Model identifier; falls back to the deployment default",
    )
    # Forwarded to ZeroDB untouched; the vector store decides what it accepts.
    similarity_metric: str = Field(
        "cosine",
        validation_alias=AliasChoices("similarityMetric", "similarity_metric"),
        description="Similarity metric stored as search filter metadata",
    )
    stream: bool = Field(False, description="Stream the answer as it is generated")

    @property
    def latest_content(self) -> str:
        """Content of the last message, used as the retrieval query."""
        return self.messages[-1].content


class CompletionResult(BaseModel):
    """Generated text returned by the completion API."""

    text: str = ""
    model: str = ""
    usage: dict[str, int] = Field(default_factory=dict)


def parse_chat_request(body: bytes | str) -> ChatRequest:
    """
    Parse and validate a raw chat request body.

    Raises:
        ValidationError: If the body is not JSON, ``messages`` is missing,
            not a list or empty, or a message is missing ``role``/``content``.
    """
    try:
        return ChatRequest.model_validate_json(body)
    except PydanticValidationError as exc:
        errors = [
            {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationError("Invalid chat request", errors=errors) from exc
