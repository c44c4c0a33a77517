"""Game filtering: filter argument parsing and the filter predicate."""

import re

from ..models.game import DeckCompatTier, GameRecord
from ..models.query import FilterSpec
from .errors import ValidationError

REVIEW_CATEGORY_SCORES: dict[str, int] = {
    "overwhelmingly-negative": 1,
    "very-negative": 2,
    "negative": 3,
    "mostly-negative": 4,
    "mixed": 5,
    "mostly-positive": 6,
    "positive": 7,
    "very-positive": 8,
    "overwhelmingly-positive": 9,
}

REVIEW_GROUP_SCORES: dict[str, frozenset[int]] = {
    "positive+": frozenset({7, 8, 9}),
    "positive-or-better": frozenset({7, 8, 9}),
    "positive-any": frozenset({6, 7, 8, 9}),
    "any-positive": frozenset({6, 7, 8, 9}),
    "negative-any": frozenset({1, 2, 3, 4}),
    "any-negative": frozenset({1, 2, 3, 4}),
}

DECK_COMPAT_GROUPS: dict[str, frozenset[DeckCompatTier]] = {
    "verified": frozenset({DeckCompatTier.VERIFIED}),
    "playable": frozenset({DeckCompatTier.PLAYABLE}),
    "unsupported": frozenset({DeckCompatTier.UNSUPPORTED}),
    "unknown": frozenset({DeckCompatTier.UNKNOWN}),
    "ok": frozenset({DeckCompatTier.PLAYABLE, DeckCompatTier.VERIFIED}),
    "any": frozenset({DeckCompatTier.UNSUPPORTED, DeckCompatTier.PLAYABLE, DeckCompatTier.VERIFIED}),
}


def parse_review_filter(value: str) -> frozenset[int]:
    """Translate a review category name, group name or 1-9 score into scores.

    Raises:
        ValidationError: If the value is not recognised
    """
    normalized = re.sub(r"\s+", "-", value.strip().lower())

    if normalized in REVIEW_CATEGORY_SCORES:
        return frozenset({REVIEW_CATEGORY_SCORES[normalized]})
    if normalized in REVIEW_GROUP_SCORES:
        return REVIEW_GROUP_SCORES[normalized]
    if normalized.isdigit() and 1 <= int(normalized) <= 9:
        return frozenset({int(normalized)})

    raise ValidationError(
        f"Invalid review filter: {value}. Use a category name "
        f"(e.g. \"very-positive\", \"mixed\", \"positive+\") or a score 1-9.",
        field="reviews",
        value=value,
    )


def parse_deck_compat_filter(value: str) -> frozenset[DeckCompatTier]:
    """Translate a Deck status name or 0-3 tier into tiers.

    Raises:
        ValidationError: If the value is not recognised
    """
    normalized = value.strip().lower()

    if normalized in DECK_COMPAT_GROUPS:
        return DECK_COMPAT_GROUPS[normalized]
    if normalized.isdigit() and 0 <= int(normalized) <= 3:
        return frozenset({DeckCompatTier(int(normalized))})

    raise ValidationError(
        f"Invalid deck compat filter: {value}. "
        f"Use: verified, playable, unsupported, unknown, ok (playable+verified), any.",
        field="deck_compat",
        value=value,
    )


def validate_review_bound(value: int | None, field: str) -> int | None:
    """Check a minimum/maximum review score is on the 1-9 scale."""
    if value is not None and not 1 <= value <= 9:
        raise ValidationError(
            f"Review score must be between 1 and 9, got {value}.",
            field=field,
            value=value,
            constraints=["1 <= score <= 9"],
        )
    return value


def _any_term_matches(terms: tuple[str, ...], values: tuple[str, ...]) -> bool:
    lowered = [v.lower() for v in values]
    return any(term.lower() in value for term in terms for value in lowered)


def matches(game: GameRecord, spec: FilterSpec) -> bool:
    """Return True when the game satisfies every constraint in the spec.

    A constraint on data the game lacks (never fetched, or the lookup
    failed) is not satisfied.
    """
    score = game.review_score

    if spec.review_scores is not None:
        if score is None or score not in spec.review_scores:
            return False

    if spec.min_review_score is not None:
        if score is None or score < spec.min_review_score:
            return False

    if spec.max_review_score is not None:
        if score is None or score > spec.max_review_score:
            return False

    if spec.deck_compat_tiers is not None:
        tier = game.deck_tier
        if tier is None or tier not in spec.deck_compat_tiers:
            return False

    if spec.genres is not None:
        genres = game.genres
        if genres is None or not _any_term_matches(spec.genres, genres):
            return False

    if spec.tags is not None:
        tags = game.tags
        if tags is None or not _any_term_matches(spec.tags, tags):
            return False

    return True


def filter_local(
    games: list[GameRecord],
    unplayed: bool = False,
    min_hours: float | None = None,
    max_hours: float | None = None,
    deck_played: bool = False,
) -> list[GameRecord]:
    """Apply the filters that need no store lookups."""
    result = games

    if unplayed:
        result = [g for g in result if g.playtime == 0]

    if min_hours is not None:
        min_minutes = min_hours * 60
        result = [g for g in result if g.playtime >= min_minutes]

    if max_hours is not None:
        max_minutes = max_hours * 60
        result = [g for g in result if g.playtime <= max_minutes]

    if deck_played:
        result = [g for g in result if g.playtime_deck > 0]

    return result
