"""
Pydantic models for the RLHF feedback endpoint.
"""

from pydantic import AliasChoices, BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ragchat.core.exceptions import ValidationError


class FeedbackRequest(BaseModel):
    """Star rating for a single assistant message."""

    rating: int = Field(..., ge=1, le=5, description="Rating between 1 and 5")
    message_content: str = Field(
        "", validation_alias=AliasChoices("messageContent", "message_content")
    )
    message_id: str | None = Field(
        None, validation_alias=AliasChoices("messageId", "message_id")
    )
    timestamp: str | int | None = None


class FeedbackResponse(BaseModel):
    success: bool = True
    message: str = "Feedback collected successfully"
    data: dict = Field(default_factory=dict)


def parse_feedback_request(body: bytes | str) -> FeedbackRequest:
    """Parse a feedback body, raising ValidationError on a bad rating or shape."""
    try:
        return FeedbackRequest.model_validate_json(body)
    except PydanticValidationError as exc:
        if any(err["loc"][:1] == ("rating",) for err in exc.errors()):
            raise ValidationError("Rating must be between 1 and 5") from exc
        raise ValidationError("Invalid feedback request") from exc
