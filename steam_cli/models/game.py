"""Game-related data models."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


REVIEW_SCORE_LABELS: dict[int, str] = {
    1: "Overwhelmingly Negative",
    2: "Very Negative",
    3: "Negative",
    4: "Mostly Negative",
    5: "Mixed",
    6: "Mostly Positive",
    7: "Positive",
    8: "Very Positive",
    9: "Overwhelmingly Positive",
}


class DeckCompatTier(IntEnum):
    """Steam Deck compatibility category as reported by the store."""
    UNKNOWN = 0
    UNSUPPORTED = 1
    PLAYABLE = 2
    VERIFIED = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class ReviewSummary:
    """Aggregate user review data for a game."""
    score: int | None  # 1-9 ordinal, None when the game has no reviews
    label: str
    positive: int = 0
    negative: int = 0
    total: int = 0


@dataclass(frozen=True)
class DeckCompatibility:
    """Steam Deck compatibility report for a game."""
    tier: DeckCompatTier

    @property
    def label(self) -> str:
        return self.tier.label


@dataclass(frozen=True)
class GenreTags:
    """Store genres and user tags for a game."""
    genres: tuple[str, ...]
    tags: tuple[str, ...]


@dataclass
class GameRecord:
    """An owned game, optionally enriched with store metadata.

    Base fields come from the owned-games listing. Each enrichment group is
    either None (not fetched, or the fetch failed) or a complete value.
    """
    app_id: int
    name: str
    playtime: int = 0  # minutes
    playtime_deck: int = 0  # minutes
    playtime_recent: int = 0  # minutes, last two weeks
    img_icon_url: str | None = None
    img_logo_url: str | None = None
    reviews: ReviewSummary | None = None
    deck_compat: DeckCompatibility | None = None
    genre_tags: GenreTags | None = None

    @property
    def review_score(self) -> int | None:
        return self.reviews.score if self.reviews else None

    @property
    def deck_tier(self) -> DeckCompatTier | None:
        return self.deck_compat.tier if self.deck_compat else None

    @property
    def genres(self) -> tuple[str, ...] | None:
        return self.genre_tags.genres if self.genre_tags else None

    @property
    def tags(self) -> tuple[str, ...] | None:
        return self.genre_tags.tags if self.genre_tags else None

    def to_dict(self) -> dict[str, Any]:
        """Flatten the record for JSON output.

        Enrichment keys are only present for groups that were populated.
        """
        data: dict[str, Any] = {
            "app_id": self.app_id,
            "name": self.name,
            "playtime": self.playtime,
            "playtime_deck": self.playtime_deck,
            "playtime_recent": self.playtime_recent,
            "img_icon_url": self.img_icon_url,
            "img_logo_url": self.img_logo_url,
        }
        if self.reviews is not None:
            data["review_score"] = self.reviews.score
            data["review_score_desc"] = self.reviews.label
            data["review_positive"] = self.reviews.positive
            data["review_negative"] = self.reviews.negative
        if self.deck_compat is not None:
            data["deck_compat"] = int(self.deck_compat.tier)
            data["deck_compat_desc"] = self.deck_compat.label
        if self.genre_tags is not None:
            data["genres"] = list(self.genre_tags.genres)
            data["tags"] = list(self.genre_tags.tags)
        return data
