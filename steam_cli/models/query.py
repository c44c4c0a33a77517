"""Enrichment, filter and sort specifications."""

from dataclasses import dataclass
from enum import Enum

from .game import DeckCompatTier


@dataclass(frozen=True)
class EnrichmentSpec:
    """Which secondary store lookups to perform per game."""
    reviews: bool = False
    deck_compat: bool = False
    genres_tags: bool = False

    @property
    def any(self) -> bool:
        return self.reviews or self.deck_compat or self.genres_tags

    def describe(self) -> str:
        parts = [
            name for name, enabled in (
                ("reviews", self.reviews),
                ("deck compat", self.deck_compat),
                ("tags", self.genres_tags),
            )
            if enabled
        ]
        return " + ".join(parts)


@dataclass(frozen=True)
class FilterSpec:
    """Conjunctive constraints on enriched games. None means no constraint."""
    review_scores: frozenset[int] | None = None
    min_review_score: int | None = None
    max_review_score: int | None = None
    deck_compat_tiers: frozenset[DeckCompatTier] | None = None
    genres: tuple[str, ...] | None = None  # substrings, any may match
    tags: tuple[str, ...] | None = None  # substrings, any may match

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.review_scores,
                self.min_review_score,
                self.max_review_score,
                self.deck_compat_tiers,
                self.genres,
                self.tags,
            )
        )


class SortKey(Enum):
    """Sort orders available for game listings."""
    NAME = "name"
    PLAYTIME = "playtime"
    DECK = "deck"
    REVIEWS = "reviews"
    COMPAT = "compat"

    @classmethod
    def parse(cls, value: str) -> "SortKey":
        """Parse a sort name, falling back to NAME for unknown values."""
        try:
            return cls(value.lower())
        except ValueError:
            return cls.NAME
