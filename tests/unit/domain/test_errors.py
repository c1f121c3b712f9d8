"""
Unit Tests for API error responses
"""

from oncedrop.domain.errors import (
    ERROR_MESSAGES,
    ApplicationError,
    ErrorCategory,
    create_error_response,
)


class TestApplicationError:
    def test_user_facing_fields(self):
        error = ApplicationError(ErrorCategory.TOKEN_EXPIRED, "Token abc123...: expired")

        assert error.technical_message == "Token abc123...: expired"
        assert str(error) == ERROR_MESSAGES[ErrorCategory.TOKEN_EXPIRED]["message"]
        assert error.to_dict() == {
            "error": "token_expired",
            **ERROR_MESSAGES[ErrorCategory.TOKEN_EXPIRED],
        }


class TestCreateErrorResponse:
    def test_third_positional_argument_is_status_code(self):
        body, status = create_error_response(
            ErrorCategory.STORAGE_UNAVAILABLE, "redis down", 503
        )

        assert status == 503
        assert body["error"] == "storage_unavailable"
        assert "redis down" not in body.values()

    def test_defaults_to_bad_request(self):
        body, status = create_error_response(ErrorCategory.INVALID_REQUEST)
        assert status == 400
        assert set(body) == {"error", "title", "message", "action"}
