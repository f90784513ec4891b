"""
Domain error taxonomy.

Every error carries the HTTP status the API boundary answers with, so
services raise at the point of detection and views never pick codes.
"""


class TaskwiseError(Exception):
    """Base class for all expected domain errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(TaskwiseError):
    status_code = 400
    default_message = "Bad request"


class Unauthenticated(TaskwiseError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(TaskwiseError):
    status_code = 403
    default_message = "Access denied"


class NotFound(TaskwiseError):
    status_code = 404
    default_message = "Resource not found"


class InvalidAIResponse(TaskwiseError):
    """The model answered, but the payload is not usable."""

    status_code = 502
    default_message = "AI returned an invalid response"


class ExternalServiceError(TaskwiseError):
    """The model could not be reached or refused to answer."""

    status_code = 503
    default_message = "AI service is unavailable"


class AIAuthenticationError(ExternalServiceError):
    default_message = "Invalid Gemini API key"


class AIQuotaExceededError(ExternalServiceError):
    default_message = "Gemini API quota exceeded"


class AISafetyBlockedError(ExternalServiceError):
    default_message = "Content blocked by Gemini safety filters"
