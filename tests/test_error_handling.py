"""Tests for error classification, exit codes and error reports."""

import json
from unittest.mock import patch

import httpx
import pytest
from hypothesis import given, strategies as st

from steam_cli.services.errors import (
    AppError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    ExitCode,
    LibraryFetchError,
    NetworkError,
    ValidationError,
)


def status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.steampowered.com/IPlayerService/GetOwnedGames/v1/")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"status {status_code}", request=request, response=response)


class TestExitCodes:
    def test_exit_codes_per_error_kind(self) -> None:
        assert AppError("boom").exit_code == ExitCode.ERROR
        assert NetworkError("down").exit_code == ExitCode.ERROR
        assert LibraryFetchError("no library").exit_code == ExitCode.ERROR
        assert ConfigurationError("no key").exit_code == ExitCode.CONFIGURATION
        assert ValidationError("bad filter").exit_code == ExitCode.INVALID_FILTER

    def test_exit_code_values(self) -> None:
        assert [int(code) for code in ExitCode] == [0, 1, 2, 3, 4, 130]

    def test_user_friendly_keeps_exit_code(self) -> None:
        friendly = ConfigurationError("Steam ID not configured.", setting="steam_id").to_user_friendly()

        assert friendly.exit_code == ExitCode.CONFIGURATION
        assert friendly.category is ErrorCategory.CONFIGURATION
        assert friendly.technical_details == "Setting: steam_id"


class TestErrorDetails:
    def test_network_error_suggestions_by_status(self) -> None:
        assert "Check that your Steam Web API key is valid" in NetworkError("x", status_code=403).suggested_actions
        assert NetworkError("x", status_code=429).suggested_actions == ["Wait a few minutes before retrying"]
        assert "Steam is experiencing issues" in NetworkError("x", status_code=502).suggested_actions
        assert "Check your internet connection" in NetworkError("x").suggested_actions

    def test_network_error_technical_details(self) -> None:
        error = NetworkError(
            "down",
            original_error=ValueError("bad"),
            url="https://store.steampowered.com/",
            status_code=500,
        )
        assert error.technical_details == "Status: 500\nURL: https://store.steampowered.com/\nValueError: bad"

    def test_validation_error_details(self) -> None:
        error = ValidationError("bad", field="reviews", value="great", constraints=["1 <= score <= 9"])

        assert error.technical_details == "Field: reviews\nValue: great"
        assert "Ensure: 1 <= score <= 9" in error.suggested_actions

    def test_configuration_error_hint_comes_first(self) -> None:
        error = ConfigurationError("Steam API key not found.", hint="Set STEAM_API_KEY")
        assert error.suggested_actions == ["Set STEAM_API_KEY", "Run: steam-library config show"]


class TestErrorHandlingService:
    def test_app_errors_pass_through(self) -> None:
        service = ErrorHandlingService()
        error = ValidationError("Invalid review filter: great.", field="reviews")

        friendly = service.handle_error(error, "library")

        assert friendly.message == "Invalid review filter: great."
        assert friendly.exit_code == ExitCode.INVALID_FILTER

    @pytest.mark.parametrize(("status_code", "message"), [
        (401, "Steam rejected the API key."),
        (429, "Too many requests. Please wait before trying again."),
        (503, "Steam is temporarily unavailable. Please try again later."),
        (418, "HTTP error 418 occurred."),
    ])
    def test_http_status_errors(self, status_code: int, message: str) -> None:
        friendly = ErrorHandlingService().handle_error(status_error(status_code), "library")

        assert friendly.message == message
        assert friendly.category is ErrorCategory.NETWORK
        assert friendly.exit_code == ExitCode.ERROR

    def test_timeout_error(self) -> None:
        friendly = ErrorHandlingService().handle_error(
            httpx.ReadTimeout("timed out"), "library", {"url": "https://api.steampowered.com/"}
        )

        assert friendly.message == "The request to Steam timed out."
        assert "URL: https://api.steampowered.com/" in (friendly.technical_details or "")

    def test_file_system_error(self) -> None:
        friendly = ErrorHandlingService().handle_error(PermissionError("denied"), "config")

        assert friendly.category is ErrorCategory.FILE_SYSTEM
        assert friendly.exit_code == ExitCode.ERROR

    def test_unexpected_error(self) -> None:
        friendly = ErrorHandlingService().handle_error(RuntimeError(), "library")

        assert friendly.message == "An unexpected error occurred."
        assert friendly.severity is ErrorSeverity.CRITICAL
        assert friendly.technical_details == "RuntimeError: "

    def test_errors_are_logged_with_details(self) -> None:
        service = ErrorHandlingService()

        with patch("steam_cli.services.errors.log") as mock_logger:
            service.handle_error(ConfigurationError("no key", setting="api_key"), "library", {"command": "library"})

        assert mock_logger.error.called
        kwargs = mock_logger.error.call_args.kwargs
        assert kwargs["operation"] == "library"
        assert kwargs["category"] == "configuration"
        assert kwargs["technical_details"] == "Setting: api_key"
        assert kwargs["context"] == {"command": "library"}

    def test_unexpected_errors_are_logged_as_critical(self) -> None:
        with patch("steam_cli.services.errors.log") as mock_logger:
            ErrorHandlingService().handle_error(KeyError("appid"), "library")

        assert mock_logger.critical.called
        assert not mock_logger.error.called
        assert mock_logger.critical.call_args.kwargs["severity"] == "critical"

    def test_user_message_lists_at_most_three_actions(self) -> None:
        service = ErrorHandlingService()
        error = ValidationError("bad", constraints=["a", "b", "c", "d"]).to_user_friendly()

        message = service.create_user_message(error)

        assert message.splitlines() == [
            "Error: bad",
            "  • Review the option's accepted values",
            "  • Ensure: a",
            "  • Ensure: b",
        ]
        assert service.create_user_message(error, include_suggestions=False) == "Error: bad"

    @given(
        message=st.text(min_size=1, max_size=100),
        error_class=st.sampled_from([AppError, NetworkError, ConfigurationError, ValidationError]),
    )
    def test_json_payload_is_a_single_document(self, message: str, error_class: type[AppError]) -> None:
        service = ErrorHandlingService()
        friendly = error_class(message).to_user_friendly()

        payload = service.create_json_payload(friendly)

        assert "\n" not in payload
        parsed = json.loads(payload)
        assert parsed == {
            "error": message,
            "category": friendly.category.value,
            "exit_code": int(friendly.exit_code),
        }
