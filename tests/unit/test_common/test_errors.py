"""
Error Classification Unit Tests
"""

import pytest

from converse_gateway.common.errors import (
    AppError,
    BackendConnectionError,
    ErrorCategory,
    ErrorContext,
    SerializationError,
    StreamReceiveError,
    TranslationError,
    classify_error,
)


@pytest.mark.parametrize(
    "text,category,code",
    [
        ("AccessDeniedException: You don't have access to the model", ErrorCategory.ACCESS_DENIED, "model_access_error"),
        ("Access denied", ErrorCategory.ACCESS_DENIED, "model_access_error"),
        ("ResourceNotFoundException: Model not found", ErrorCategory.NOT_FOUND, "model_not_found"),
        ("The provided model identifier does not exist", ErrorCategory.NOT_FOUND, "model_not_found"),
        ("Throttling: rate exceeded", ErrorCategory.THROTTLED, "rate_limit_exceeded"),
        ("Too many requests, limit reached", ErrorCategory.THROTTLED, "rate_limit_exceeded"),
        ("connection reset by peer", ErrorCategory.SERVER_ERROR, "connection_error"),
    ],
)
def test_classify_error_categories(text, category, code):
    result = classify_error(text)
    assert result.category == category
    assert result.code == code
    assert text in result.message


def test_classify_error_is_case_insensitive():
    assert classify_error("THROTTLINGEXCEPTION").category == ErrorCategory.THROTTLED


def test_classify_error_precedence_access_before_not_found():
    # Both markers present: access wins
    result = classify_error("access denied: model not found")
    assert result.category == ErrorCategory.ACCESS_DENIED


def test_classify_error_precedence_not_found_before_throttling():
    result = classify_error("rate plan does not exist")
    assert result.category == ErrorCategory.NOT_FOUND


def test_classify_error_access_needs_model_or_denied():
    # "access" alone is not enough
    result = classify_error("access token expired")
    assert result.category == ErrorCategory.SERVER_ERROR


def test_classify_error_fallback_depends_on_context():
    connection = classify_error("boom", ErrorContext.CONNECTION)
    receive = classify_error("boom", ErrorContext.STREAM_RECEIVE)
    serialization = classify_error("boom", ErrorContext.SERIALIZATION)

    assert connection.code == "connection_error"
    assert connection.message == "Connection error: boom"
    assert connection.status_code == 502
    assert receive.code == "stream_receive_error"
    assert receive.message == "Stream receive error: boom"
    assert serialization.code == "serialization_error"
    assert serialization.message == "Serialization error: boom"


def test_backend_errors_carry_classification():
    error = StreamReceiveError("ThrottlingException: slow down")
    assert error.category == ErrorCategory.THROTTLED
    assert error.code == "rate_limit_exceeded"
    assert error.error_type == "rate_limit_error"
    assert error.status_code == 429
    assert error.detail == "ThrottlingException: slow down"

    assert SerializationError("bad float").code == "serialization_error"


def test_backend_error_explicit_status_code_wins():
    error = BackendConnectionError("OpenAI API error: HTTP 500: oops", status_code=500)
    assert error.status_code == 500
    assert error.code == "connection_error"


def test_app_error_to_dict_has_openai_shape():
    error = TranslationError("Tool message must have tool_call_id", param="messages.tool_call_id")
    assert error.to_dict() == {
        "error": {
            "message": "Tool message must have tool_call_id",
            "type": "invalid_request_error",
            "param": "messages.tool_call_id",
            "code": "translation_error",
        }
    }
    assert error.status_code == 400


def test_app_error_details_only_when_requested():
    error = AppError("x", details={"hint": "y"})
    assert "details" not in error.to_dict()["error"]
    assert error.to_dict(include_details=True)["error"]["details"] == {"hint": "y"}
