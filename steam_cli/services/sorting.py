"""Deterministic ordering of game listings."""

from collections.abc import Callable, Iterable
from typing import Any

from ..models.game import GameRecord
from ..models.query import SortKey


def _name_key(game: GameRecord) -> str:
    return (game.name or "").casefold()


def _descending(value: Callable[[GameRecord], int | None]) -> Callable[[GameRecord], tuple[int, int, str]]:
    """Build a key that sorts high values first and missing values last."""
    def key(game: GameRecord) -> tuple[int, int, str]:
        v = value(game)
        if v is None:
            return (1, 0, _name_key(game))
        return (0, -v, _name_key(game))
    return key


_SORT_KEYS: dict[SortKey, Callable[[GameRecord], Any]] = {
    SortKey.NAME: _name_key,
    SortKey.PLAYTIME: _descending(lambda g: g.playtime),
    SortKey.DECK: _descending(lambda g: g.playtime_deck),
    SortKey.REVIEWS: _descending(lambda g: g.review_score),
    SortKey.COMPAT: _descending(lambda g: None if g.deck_tier is None else int(g.deck_tier)),
}


def sort_games(games: Iterable[GameRecord], key: SortKey) -> list[GameRecord]:
    """Return a new list of games in the order defined by key.

    Names sort ascending; numeric keys sort descending with missing values
    last. Ties fall back to name, then to the original relative order.
    """
    return sorted(games, key=_SORT_KEYS[key])
