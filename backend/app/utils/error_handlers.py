"""
Centralized error taxonomy and user-friendly error messages.

Every failure inside the matching service is raised as an AppError subclass and
turned into a JSON body by the handlers registered in main.py.
"""
import logging

from fastapi.responses import JSONResponse

from ..services.ai_client import AIClientError, AIClientHTTPError, AIClientResponseError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or invalid request input."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(AppError):
    """Profile (or other resource) not found."""
    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class NoEmbeddingError(NotFoundError):
    """Match requested before the user's embedding was generated."""
    def __init__(self, message: str = "No embedding found. Generate one first.", details: dict | None = None):
        super().__init__(message, details=details)


class GenerationError(AppError):
    """Embedding generation failed or returned an unusable vector."""
    def __init__(self, message: str = "Embedding generation failed", details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


class InferenceError(AppError):
    """Career-path inference failed or returned an unusable prediction."""
    def __init__(self, message: str = "AI service error", details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


class RateLimitedError(AppError):
    """Upstream completion service is rate limiting us."""
    def __init__(self, message: str = "Rate limited", details: dict | None = None):
        super().__init__(message, status_code=429, details=details)


class QuotaExhaustedError(AppError):
    """Upstream completion service credits are exhausted."""
    def __init__(self, message: str = "AI credits exhausted", details: dict | None = None):
        super().__init__(message, status_code=402, details=details)


class StoreError(AppError):
    """Persistence failure or a stored row that violates the embedding invariants."""
    def __init__(self, message: str = "Database operation failed", details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Requests
    "invalid_action": "Invalid action. Use: embed, match, career_path",
    "user_id_required": "user_id required",
    "invalid_body": "Request body must be a JSON object.",

    # Profiles / embeddings
    "profile_not_found": "Profile not found",
    "no_embedding": "No embedding found. Generate one first.",
    "embedding_up_to_date": "Embedding already up to date",
    "embedding_generated": "Embedding generated",

    # AI services
    "ai_not_configured": "AI_API_KEY not configured",
    "rate_limited": "Rate limited. Please try again in a few moments.",
    "quota_exhausted": "AI credits exhausted. Please try again later.",
    "no_embedding_returned": "No embedding returned",
    "no_prediction_returned": "No prediction returned",
    "ai_failed": "AI service error",

    # General
    "not_found": "The requested resource was not found.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def raise_for_ai_error(
    error: AIClientError,
    fallback: type[AppError],
    *,
    operation: str,
    missing_message: str | None = None,
    status_message: str | None = None,
) -> None:
    """
    Translate a completion-client failure into the matching AppError.

    429 and 402 keep their own kinds so clients can show them as retryable;
    everything else becomes `fallback` (GenerationError / InferenceError).
    `missing_message` replaces the text for an unusable function call and
    `status_message` the text for any other upstream HTTP status.
    """
    if isinstance(error, AIClientHTTPError):
        logger.warning("AI %s failed: HTTP %s", operation, error.status_code)
        if error.status_code == 429:
            raise RateLimitedError(get_error_message("rate_limited"), details={"operation": operation}) from error
        if error.status_code == 402:
            raise QuotaExhaustedError(get_error_message("quota_exhausted"), details={"operation": operation}) from error
        raise fallback(status_message or f"AI error: {error.status_code}") from error

    logger.warning("AI %s failed: %s", operation, error)
    if isinstance(error, AIClientResponseError):
        raise fallback(missing_message or str(error)) from error
    raise fallback(str(error) or get_error_message("ai_failed")) from error


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )
