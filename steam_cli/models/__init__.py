"""Data models for the Steam library CLI."""

from .config import AppConfig
from .game import (
    REVIEW_SCORE_LABELS,
    DeckCompatibility,
    DeckCompatTier,
    GameRecord,
    GenreTags,
    ReviewSummary,
)
from .progress import EnrichmentProgress
from .query import EnrichmentSpec, FilterSpec, SortKey

__all__ = [
    "AppConfig",
    "DeckCompatibility",
    "DeckCompatTier",
    "EnrichmentProgress",
    "EnrichmentSpec",
    "FilterSpec",
    "GameRecord",
    "GenreTags",
    "REVIEW_SCORE_LABELS",
    "ReviewSummary",
    "SortKey",
]
