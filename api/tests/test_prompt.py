"""
Tests for prompt assembly.
"""

from ragchat.models.chat import ChatMessage
from ragchat.services.prompt import (
    CONTEXT_END,
    CONTEXT_START,
    MISSING_KNOWLEDGE_REPLY,
    build_messages,
    build_system_message,
    format_context,
)
from ragchat.services.search import SearchResult


def test_format_context_joins_with_newlines():
    results = [
        SearchResult(id="1", text="first"),
        SearchResult(id="2", text="second"),
    ]
    assert format_context(results) == "first\nsecond"


def test_format_context_empty():
    assert format_context([]) == ""


def test_system_message_wraps_context():
    message = build_system_message("ZeroDB is a vector database")

    assert message.role == "system"
    assert f"{CONTEXT_START}\nZeroDB is a vector database\n{CONTEXT_END}" in message.content
    assert MISSING_KNOWLEDGE_REPLY in message.content


def test_system_message_without_context_keeps_markers():
    message = build_system_message("")

    assert CONTEXT_START in message.content
    assert CONTEXT_END in message.content
    assert MISSING_KNOWLEDGE_REPLY in message.content


def test_system_message_is_deterministic():
    assert build_system_message("ctx") == build_system_message("ctx")


def test_build_messages_strips_extra_fields():
    conversation = [
        ChatMessage.model_validate(
            {"role": "user", "content": "Hi", "id": "m1", "createdAt": "2024-01-01"}
        ),
    ]

    messages = build_messages("", conversation)

    assert messages[1] == {"role": "user", "content": "Hi"}
    assert all(set(m) == {"role", "content"} for m in messages)
