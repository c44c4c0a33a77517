"""Failure types for the Steam library CLI and how they are reported.

Every fatal condition is raised as an ``AppError`` subclass. Each subclass
carries the process exit status it maps to, a short message for the
terminal and a few hints on how to recover. ``ErrorHandlingService`` sits
at the command boundary: it normalizes whatever escaped a command, logs it
and renders it as text or as a JSON document.
"""

import json
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

import httpx
import structlog

log = structlog.stdlib.get_logger()


class ExitCode(IntEnum):
    """Process exit statuses."""
    OK = 0
    ERROR = 1
    USAGE = 2
    CONFIGURATION = 3
    INVALID_FILTER = 4
    INTERRUPTED = 130


class ErrorCategory(Enum):
    NETWORK = "network"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    FILE_SYSTEM = "file_system"
    UNEXPECTED = "unexpected"


class ErrorSeverity(Enum):
    ERROR = "error"
    CRITICAL = "critical"


_STEAM_STATUS_MESSAGES = {
    400: "Steam rejected the request. Check the configured Steam ID.",
    401: "Steam rejected the API key.",
    403: "Access denied. The API key or profile privacy settings block this request.",
    404: "The requested Steam resource was not found.",
    429: "Too many requests. Please wait before trying again.",
    500: "Steam encountered an error. Please try again later.",
    502: "Steam is temporarily unavailable. Please try again later.",
    503: "Steam is temporarily unavailable. Please try again later.",
}

_CONNECTIVITY_HINTS = ["Check your internet connection", "Try again in a few moments"]
_AUTH_HINTS = [
    "Check that your Steam Web API key is valid",
    "Make sure your profile and game details are public",
]
_RATE_LIMIT_HINTS = ["Wait a few minutes before retrying"]
_OUTAGE_HINTS = ["Steam is experiencing issues", "Try again later"]


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def _join_details(*lines: str | None) -> str | None:
    """Newline-join the non-empty detail lines, or None when there are none."""
    kept = [line for line in lines if line]
    return "\n".join(kept) if kept else None


def _hints_for_status(status_code: int | None) -> list[str]:
    if status_code in (401, 403):
        return list(_AUTH_HINTS)
    if status_code == 429:
        return list(_RATE_LIMIT_HINTS)
    if status_code is not None and status_code >= 500:
        return list(_OUTAGE_HINTS)
    return list(_CONNECTIVITY_HINTS)


@dataclass(frozen=True)
class UserFriendlyError:
    """What the CLI shows for a failed command."""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    suggested_actions: list[str]
    technical_details: str | None = None
    exit_code: ExitCode = ExitCode.ERROR


class AppError(Exception):
    """Root of the CLI's own failures. The class decides the exit status."""

    exit_code: ExitCode = ExitCode.ERROR

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNEXPECTED,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        suggested_actions: list[str] | None = None,
        technical_details: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.suggested_actions = suggested_actions or []
        self.technical_details = technical_details

    def to_user_friendly(self) -> UserFriendlyError:
        return UserFriendlyError(
            message=self.message,
            category=self.category,
            severity=self.severity,
            suggested_actions=self.suggested_actions,
            technical_details=self.technical_details,
            exit_code=self.exit_code,
        )


class NetworkError(AppError):
    """A Steam request failed in a way the command cannot recover from."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        details = _join_details(
            f"Status: {status_code}" if status_code else None,
            f"URL: {url}" if url else None,
            _describe(original_error) if original_error else None,
        )
        super().__init__(
            message,
            ErrorCategory.NETWORK,
            suggested_actions=_hints_for_status(status_code or None),
            technical_details=details,
        )
        self.original_error = original_error
        self.url = url
        self.status_code = status_code


class LibraryFetchError(NetworkError):
    """The owned-games listing could not be retrieved."""


class ValidationError(AppError):
    """A command-line filter or option value was rejected."""

    exit_code = ExitCode.INVALID_FILTER

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        constraints: list[str] | None = None,
    ) -> None:
        self.field = field
        self.value = value
        self.constraints = constraints or []

        hints = ["Review the option's accepted values"]
        hints += [f"Ensure: {rule}" for rule in self.constraints]
        super().__init__(
            message,
            ErrorCategory.VALIDATION,
            suggested_actions=hints,
            technical_details=_join_details(
                f"Field: {field}" if field else None,
                f"Value: {str(value)[:100]}" if value is not None else None,
            ),
        )


class ConfigurationError(AppError):
    """Credentials or settings are missing or unusable."""

    exit_code = ExitCode.CONFIGURATION

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        hint: str | None = None,
    ) -> None:
        self.setting = setting
        hints = [hint] if hint else []
        hints.append("Run: steam-library config show")
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            suggested_actions=hints,
            technical_details=f"Setting: {setting}" if setting else None,
        )


class ErrorHandlingService:
    """Turns exceptions escaping a command into logged, printable reports."""

    MAX_SUGGESTIONS = 3

    def handle_error(
        self,
        error: Exception,
        operation: str,
        context: dict[str, Any] | None = None,
    ) -> UserFriendlyError:
        """Normalize ``error``, log it against ``operation`` and return the report.

        ``context`` is attached to the log event. Its ``url`` entry, when
        present, is used for transport failures that carry no request.
        """
        app_error = self.classify(error, context or {})
        (log.critical if app_error.severity is ErrorSeverity.CRITICAL else log.error)(
            "Command failed",
            error_message=app_error.message,
            category=app_error.category.value,
            severity=app_error.severity.value,
            operation=operation,
            technical_details=app_error.technical_details,
            context=context,
        )
        return app_error.to_user_friendly()

    def classify(self, error: Exception, context: dict[str, Any]) -> AppError:
        if isinstance(error, AppError):
            return error

        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            return NetworkError(
                _STEAM_STATUS_MESSAGES.get(status, f"HTTP error {status} occurred."),
                original_error=error,
                url=str(error.request.url),
                status_code=status,
            )
        if isinstance(error, httpx.HTTPError):
            message = (
                "The request to Steam timed out."
                if isinstance(error, httpx.TimeoutException)
                else "A network error occurred. Please check your connection."
            )
            return NetworkError(message, original_error=error, url=context.get("url"))
        if isinstance(error, OSError):
            return AppError(
                f"A file system error occurred: {error}",
                ErrorCategory.FILE_SYSTEM,
                suggested_actions=["Check the file path and permissions"],
                technical_details=_describe(error),
            )

        return AppError(
            str(error) or "An unexpected error occurred.",
            ErrorCategory.UNEXPECTED,
            ErrorSeverity.CRITICAL,
            technical_details=_describe(error),
        )

    def create_user_message(
        self,
        error: UserFriendlyError,
        include_suggestions: bool = True,
    ) -> str:
        lines = [f"Error: {error.message}"]
        if include_suggestions:
            lines += [f"  • {action}" for action in error.suggested_actions[:self.MAX_SUGGESTIONS]]
        return "\n".join(lines)

    def create_json_payload(self, error: UserFriendlyError) -> str:
        """One-line JSON document for ``--json`` runs."""
        return json.dumps({
            "error": error.message,
            "category": error.category.value,
            "exit_code": int(error.exit_code),
        })
