"""
Error Definitions

Defines custom exception classes used in the application for unified error handling,
and the classifier that maps backend/transport failure text onto a stable,
user-facing taxonomy.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class AppError(Exception):
    """
    Application Base Exception

    Base class for all custom exceptions, containing error message, type, and code.
    The wire shape follows the OpenAI error object: {"error": {message, type, param, code}}.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "app_error",
        code: str = "internal_error",
        param: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            error_type: Error type
            code: Error code
            param: Request parameter the error relates to, if any
            details: Extra error details
            status_code: HTTP status code
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.code = code
        self.param = param
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self, include_details: bool = False) -> dict[str, Any]:
        """
        Convert to dictionary format (for API response)

        Args:
            include_details: Whether to attach the `details` mapping

        Returns:
            dict: Error information dictionary
        """
        result = {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "param": self.param,
                "code": self.code,
            }
        }
        if include_details and self.details:
            result["error"]["details"] = self.details
        return result


class ValidationError(AppError):
    """
    Parameter Validation Error

    Raised when request parameters do not meet requirements.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        code: str = "validation_error",
        param: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="invalid_request_error",
            code=code,
            param=param,
            details=details,
            status_code=400,
        )


class TranslationError(AppError):
    """
    Request Translation Error

    Raised when an inbound chat request cannot be expressed as a backend request
    (e.g., a tool message without tool_call_id). Always raised before any
    backend call is made.
    """

    def __init__(
        self,
        message: str,
        param: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="invalid_request_error",
            code="translation_error",
            param=param,
            details=details,
            status_code=400,
        )


class ServiceError(AppError):
    """
    Service Error

    Raised when internal service processing fails (e.g., provider not configured).
    """

    def __init__(
        self,
        message: str = "Service error",
        code: str = "service_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="service_error",
            code=code,
            details=details,
            status_code=503,
        )


class ErrorCategory(str, Enum):
    """User-facing categories of backend failures."""
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    THROTTLED = "throttled"
    SERVER_ERROR = "server_error"


class ErrorContext(str, Enum):
    """Where a failure happened; the value is the fallback error code."""
    CONNECTION = "connection_error"
    STREAM_RECEIVE = "stream_receive_error"
    SERIALIZATION = "serialization_error"


_CONTEXT_PREFIXES = {
    ErrorContext.CONNECTION: "Connection error",
    ErrorContext.STREAM_RECEIVE: "Stream receive error",
    ErrorContext.SERIALIZATION: "Serialization error",
}


@dataclass(frozen=True)
class ErrorClassification:
    """Result of classifying a backend failure."""
    category: ErrorCategory
    code: str
    message: str
    error_type: str
    status_code: int


def classify_error(
    error_text: str,
    context: ErrorContext = ErrorContext.CONNECTION,
) -> ErrorClassification:
    """
    Classify a backend/transport failure by its description.

    Matching is done on the lower-cased text, first match wins:
    access+(model|denied) -> not found -> throttling -> server error.

    Args:
        error_text: Textual description of the failure
        context: Where the failure happened (selects the fallback code)

    Returns:
        ErrorClassification: Category, stable code and user message
    """
    text = error_text or ""
    lowered = text.lower()

    if "access" in lowered and ("model" in lowered or "denied" in lowered):
        return ErrorClassification(
            category=ErrorCategory.ACCESS_DENIED,
            code="model_access_error",
            message=f"Access to the requested model was denied: {text}",
            error_type="permission_error",
            status_code=403,
        )

    if "not found" in lowered or "does not exist" in lowered:
        return ErrorClassification(
            category=ErrorCategory.NOT_FOUND,
            code="model_not_found",
            message=f"The requested model was not found: {text}",
            error_type="not_found_error",
            status_code=404,
        )

    if any(marker in lowered for marker in ("throttl", "rate", "limit")):
        return ErrorClassification(
            category=ErrorCategory.THROTTLED,
            code="rate_limit_exceeded",
            message=f"Rate limit exceeded, please retry later: {text}",
            error_type="rate_limit_error",
            status_code=429,
        )

    return ErrorClassification(
        category=ErrorCategory.SERVER_ERROR,
        code=context.value,
        message=f"{_CONTEXT_PREFIXES[context]}: {text}",
        error_type="server_error",
        status_code=502 if context is ErrorContext.CONNECTION else 500,
    )


class BackendError(AppError):
    """
    Classified Backend Error

    Base class for failures reported by Bedrock or the OpenAI passthrough.
    The wire representation comes from classify_error().
    """

    context = ErrorContext.CONNECTION

    def __init__(
        self,
        detail: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        classification = classify_error(detail, self.context)
        super().__init__(
            message=classification.message,
            error_type=classification.error_type,
            code=classification.code,
            details=details,
            status_code=status_code or classification.status_code,
        )
        self.detail = detail
        self.classification = classification

    @property
    def category(self) -> ErrorCategory:
        return self.classification.category


class BackendConnectionError(BackendError):
    """
    Backend Connection Error

    Raised when the backend is unreachable or rejects the initial handshake.
    Surfaced once, before any stream byte is produced.
    """

    context = ErrorContext.CONNECTION


class StreamReceiveError(BackendError):
    """
    Stream Receive Error

    Raised when the backend stream fails after it has started.
    """

    context = ErrorContext.STREAM_RECEIVE


class SerializationError(BackendError):
    """
    Serialization Error

    Raised when a response chunk cannot be JSON-encoded for SSE framing.
    """

    context = ErrorContext.SERIALIZATION
