"""
Prompt assembly for the chat pipeline.

Builds the system message that wraps retrieved knowledge-base text between
START CONTEXT / END CONTEXT markers, and prepends it to the conversation.
"""

from collections.abc import Iterable, Sequence

from ragchat.models.chat import ChatMessage
from ragchat.services.search import SearchResult

CONTEXT_START = "START CONTEXT"
CONTEXT_END = "END CONTEXT"

MISSING_KNOWLEDGE_REPLY = (
    "I don't have that information in my knowledge base, but I can help you "
    "find it in the ZeroDB documentation."
)

SYSTEM_PROMPT_TEMPLATE = """\
You are an AI assistant for AINative Studio, helping users understand ZeroDB \
and our AI infrastructure services. Format responses using markdown where applicable.

You specialize in:
- ZeroDB: Our managed vector database with built-in embeddings API
- Embeddings API: Free HuggingFace-based embeddings (BAAI/bge-small-en-v1.5, 384 dimensions)
- Meta Llama integration: How to use Llama models for chat completions
- RAG (Retrieval-Augmented Generation) systems
- Authentication with JWT tokens

{start}
{context}
{end}

If the answer is not provided in the context, say "{fallback}"
"""


def format_context(results: Iterable[SearchResult]) -> str:
    """Join the text of every search result with newlines."""
    return "\n".join(result.text for result in results)


def build_system_message(context: str) -> ChatMessage:
    """Render the system prompt around ``context`` (which may be empty)."""
    return ChatMessage(
        role="system",
        content=SYSTEM_PROMPT_TEMPLATE.format(
            start=CONTEXT_START,
            context=context,
            end=CONTEXT_END,
            fallback=MISSING_KNOWLEDGE_REPLY,
        ),
    )


def sanitize_messages(messages: Iterable[ChatMessage]) -> list[dict[str, str]]:
    """Reduce each message to exactly its role and content."""
    return [{"role": msg.role, "content": msg.content} for msg in messages]


def build_messages(
    context: str,
    conversation: Sequence[ChatMessage],
) -> list[dict[str, str]]:
    """Assemble the LLM message array: system prompt, then the full history."""
    return sanitize_messages([build_system_message(context), *conversation])
