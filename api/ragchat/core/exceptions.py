"""
Error taxonomy for the chat pipeline.

Every failure raised by a service derives from ``ChatError`` and carries the
HTTP status the API boundary should answer with. Upstream response bodies
are kept on the exception for logging but never included in ``to_dict()``.
"""

from __future__ import annotations


class ChatError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Diagnostic description (safe to log, never contains secrets).
        http_status: Status code returned to the API caller.
        error_code: Machine-readable error identifier.
        public_message: Text shown to the API caller.
    """

    http_status = 500
    error_code = "INTERNAL_ERROR"
    public_message = "An unexpected error occurred"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def to_dict(self) -> dict[str, object]:
        """Serialise the exception to a JSON-friendly dict."""
        return {"error": self.error_code, "message": self.public_message}


class ValidationError(ChatError):
    """Raised when an inbound request is malformed. No network call is made."""

    http_status = 400
    error_code = "VALIDATION_ERROR"
    public_message = "Invalid request"

    def __init__(
        self,
        message: str = "Invalid request",
        errors: list[dict[str, object]] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"error": self.error_code, "message": self.message}
        if self.errors:
            payload["detail"] = self.errors
        return payload


class UpstreamError(ChatError):
    """An external service answered with a non-2xx status."""

    http_status = 502
    error_code = "UPSTREAM_ERROR"
    public_message = "An upstream service failed"

    def __init__(
        self,
        message: str = "",
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(UpstreamError):
    """The vector store rejected the credential exchange."""

    error_code = "AUTHENTICATION_FAILED"
    public_message = "Knowledge base authentication failed"


class RetrievalError(UpstreamError):
    """The vector store rejected the semantic search."""

    error_code = "RETRIEVAL_FAILED"
    public_message = "Knowledge base search failed"


class CompletionError(UpstreamError):
    """The completion API rejected the request for a reason other than timeout."""

    error_code = "COMPLETION_FAILED"
    public_message = "Language model request failed"


class FeedbackError(UpstreamError):
    """The vector store rejected an RLHF interaction."""

    error_code = "FEEDBACK_FAILED"
    public_message = "Failed to collect feedback"


class CompletionTimeoutError(ChatError, TimeoutError):
    """The completion call exceeded its wall-clock bound."""

    http_status = 504
    error_code = "COMPLETION_TIMEOUT"
    public_message = "Language model request timed out"

    def __init__(self, message: str = "", timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class NetworkError(ChatError):
    """Transport-level failure: DNS, refused connection, dropped socket."""

    http_status = 502
    error_code = "NETWORK_ERROR"
    public_message = "Could not reach an upstream service"
