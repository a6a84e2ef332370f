"""
RLHF feedback collection.

Forwards a user's star rating of an assistant message to the ZeroDB RLHF
interactions endpoint.
"""

import logging
from typing import Any

import httpx

from ragchat.core.config import Settings
from ragchat.core.exceptions import FeedbackError, NetworkError
from ragchat.core.telemetry import get_tracer
from ragchat.models.feedback import FeedbackRequest
from ragchat.services.auth import ZeroDBAuthService

logger = logging.getLogger(__name__)

PROMPT_PREVIEW_CHARS = 500


class FeedbackService:
    """Records star ratings as ZeroDB RLHF interactions."""

    def __init__(
        self,
        settings: Settings,
        auth_service: ZeroDBAuthService,
        http_client: httpx.AsyncClient,
    ) -> None:
        self._project_id = settings.zerodb_project_id
        self._agent_id = settings.rlhf_agent_id
        self._auth = auth_service
        self._http = http_client
        self._tracer = get_tracer()

    @property
    def interactions_path(self) -> str:
        return f"/v1/public/{self._project_id}/database/rlhf/interactions"

    async def submit(self, feedback: FeedbackRequest) -> dict[str, Any]:
        """
        Send one rating to ZeroDB.

        Returns:
            The JSON body ZeroDB answered with.
        """
        with self._tracer.start_as_current_span("rlhf.feedback") as span:
            span.set_attribute("rlhf.rating", feedback.rating)
            logger.info(
                "Collecting RLHF feedback: rating=%d message_id=%s length=%d",
                feedback.rating,
                feedback.message_id,
                len(feedback.message_content),
            )

            token = await self._auth.get_token()
            payload = {
                "type": "user_feedback",
                "prompt": feedback.message_content[:PROMPT_PREVIEW_CHARS],
                "response": feedback.message_content,
                "rating": feedback.rating,
                "metadata": {
                    "message_id": feedback.message_id,
                    "timestamp": feedback.timestamp,
                    "rating_type": "star_rating",
                    "agent_id": self._agent_id,
                },
            }

            try:
                response = await self._http.post(
                    self.interactions_path,
                    json=payload,
                    headers={"Authorization": f"Bearer {token.access_token}"},
                )
            except httpx.RequestError as exc:
                logger.error("RLHF request failed: %s", type(exc).__name__)
                raise NetworkError("ZeroDB RLHF endpoint unreachable") from exc

            if not response.is_success:
                logger.error(
                    "ZeroDB RLHF API failed: %d - %s",
                    response.status_code,
                    response.text[:500],
                )
                raise FeedbackError(
                    f"RLHF API error: {response.status_code}",
                    status_code=response.status_code,
                    body=response.text,
                )

            try:
                data = response.json()
            except ValueError:
                data = {}
            logger.info("RLHF feedback sent successfully.")
            return data if isinstance(data, dict) else {"result": data}
