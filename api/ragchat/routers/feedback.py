"""
Feedback router — POST /api/rlhf-feedback endpoint.
"""

from fastapi import APIRouter, Depends, Request

from ragchat.models.feedback import FeedbackResponse, parse_feedback_request
from ragchat.services.feedback import FeedbackService

router = APIRouter(tags=["feedback"])


def get_feedback_service(request: Request) -> FeedbackService:
    return request.app.state.feedback_service


@router.post("/api/rlhf-feedback", response_model=FeedbackResponse)
async def rlhf_feedback(
    request: Request,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackResponse:
    """Record a 1–5 star rating for an assistant message."""
    feedback = parse_feedback_request(await request.body())
    data = await service.submit(feedback)
    return FeedbackResponse(data=data)
