"""
Chat router — POST /api/chat endpoint.

Receives the conversation, runs the RAG pipeline, and returns the
generated answer as plain text (optionally streamed).
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from ragchat.models.chat import parse_chat_request
from ragchat.services.rag import ChatOrchestrator

router = APIRouter(tags=["chat"])


def get_chat_orchestrator(request: Request) -> ChatOrchestrator:
    """
    Dependency injection for the chat orchestrator.
    Initialized once in the app lifespan and stored in app.state.
    """
    return request.app.state.chat_orchestrator


@router.post("/api/chat", response_class=PlainTextResponse)
async def chat(
    request: Request,
    rag: ChatOrchestrator = Depends(get_chat_orchestrator),
):
    """
    Ask the assistant a question.

    The endpoint:
    1. Validates the request body before any upstream call.
    2. Optionally retrieves ZeroDB context (``useRag``).
    3. Returns the Llama completion as ``text/plain``.
    """
    chat_request = parse_chat_request(await request.body())

    if chat_request.stream:
        fragments = await rag.stream_answer(chat_request)
        return StreamingResponse(fragments, media_type="text/plain")

    result = await rag.answer(chat_request)
    return PlainTextResponse(result.text)
