"""Service layer for business logic and external integrations."""

from .config import ConfigurationService, ValidationResult
from .enrichment import EnrichmentOrchestrator, MetadataGateway
from .errors import (
    AppError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    ExitCode,
    LibraryFetchError,
    NetworkError,
    UserFriendlyError,
    ValidationError,
)
from .filters import matches, parse_deck_compat_filter, parse_review_filter
from .http_client import HttpClientService
from .library import LibraryQuery, LibraryService, QueryPlan, plan_query
from .sorting import sort_games
from .steam_api import PlayerSummary, SteamApiService

__all__ = [
    "AppError",
    "ConfigurationError",
    "ConfigurationService",
    "EnrichmentOrchestrator",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "ExitCode",
    "HttpClientService",
    "LibraryFetchError",
    "LibraryQuery",
    "LibraryService",
    "MetadataGateway",
    "NetworkError",
    "PlayerSummary",
    "QueryPlan",
    "SteamApiService",
    "UserFriendlyError",
    "ValidationError",
    "ValidationResult",
    "matches",
    "parse_deck_compat_filter",
    "parse_review_filter",
    "plan_query",
    "sort_games",
]
