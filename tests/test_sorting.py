"""Tests for game ordering."""

from hypothesis import given, strategies as st

from steam_cli.models import (
    DeckCompatibility,
    DeckCompatTier,
    GameRecord,
    ReviewSummary,
    SortKey,
)
from steam_cli.services.sorting import sort_games


def names(games: list[GameRecord]) -> list[str]:
    return [g.name for g in games]


def test_name_sort_is_ascending_and_case_insensitive() -> None:
    games = [
        GameRecord(app_id=1, name="B", playtime=120),
        GameRecord(app_id=2, name="A", playtime=0),
        GameRecord(app_id=3, name="c", playtime=600),
    ]
    assert names(sort_games(games, SortKey.NAME)) == ["A", "B", "c"]


def test_sort_returns_new_list() -> None:
    games = [GameRecord(app_id=1, name="B"), GameRecord(app_id=2, name="A")]
    result = sort_games(games, SortKey.NAME)
    assert result is not games
    assert names(games) == ["B", "A"]


def test_playtime_sort_is_descending() -> None:
    games = [
        GameRecord(app_id=1, name="B", playtime=120),
        GameRecord(app_id=2, name="A", playtime=0),
        GameRecord(app_id=3, name="C", playtime=600),
    ]
    assert names(sort_games(games, SortKey.PLAYTIME)) == ["C", "B", "A"]


def test_deck_sort_uses_deck_playtime() -> None:
    games = [
        GameRecord(app_id=1, name="A", playtime=900, playtime_deck=10),
        GameRecord(app_id=2, name="B", playtime=5, playtime_deck=50),
    ]
    assert names(sort_games(games, SortKey.DECK)) == ["B", "A"]


def test_review_sort_puts_missing_last() -> None:
    games = [
        GameRecord(app_id=1, name="Unknown"),
        GameRecord(app_id=2, name="Mixed", reviews=ReviewSummary(score=5, label="Mixed")),
        GameRecord(app_id=3, name="Great", reviews=ReviewSummary(score=9, label="Overwhelmingly Positive")),
        GameRecord(app_id=4, name="Empty", reviews=ReviewSummary(score=None, label="No user reviews")),
    ]
    assert names(sort_games(games, SortKey.REVIEWS)) == ["Great", "Mixed", "Empty", "Unknown"]


def test_compat_sort_ranks_tiers() -> None:
    games = [
        GameRecord(app_id=1, name="Unsupported", deck_compat=DeckCompatibility(DeckCompatTier.UNSUPPORTED)),
        GameRecord(app_id=2, name="Missing"),
        GameRecord(app_id=3, name="Verified", deck_compat=DeckCompatibility(DeckCompatTier.VERIFIED)),
        GameRecord(app_id=4, name="Unknown", deck_compat=DeckCompatibility(DeckCompatTier.UNKNOWN)),
    ]
    assert names(sort_games(games, SortKey.COMPAT)) == ["Verified", "Unsupported", "Unknown", "Missing"]


def test_ties_fall_back_to_name() -> None:
    games = [
        GameRecord(app_id=1, name="Zeta", playtime=60),
        GameRecord(app_id=2, name="alpha", playtime=60),
        GameRecord(app_id=3, name="Beta", playtime=60),
    ]
    assert names(sort_games(games, SortKey.PLAYTIME)) == ["alpha", "Beta", "Zeta"]


def test_fully_equal_keys_keep_input_order() -> None:
    first = GameRecord(app_id=1, name="Alpha", playtime=5)
    second = GameRecord(app_id=2, name="alpha", playtime=5)

    assert [g.app_id for g in sort_games([first, second], SortKey.PLAYTIME)] == [1, 2]
    assert [g.app_id for g in sort_games([second, first], SortKey.PLAYTIME)] == [2, 1]
    assert [g.app_id for g in sort_games([second, first], SortKey.NAME)] == [2, 1]


def test_unknown_sort_name_falls_back_to_name() -> None:
    assert SortKey.parse("bogus") is SortKey.NAME
    assert SortKey.parse("Reviews") is SortKey.REVIEWS


game_strategy = st.builds(
    GameRecord,
    app_id=st.integers(min_value=1, max_value=10**6),
    name=st.text(min_size=1, max_size=12),
    playtime=st.integers(min_value=0, max_value=10**5),
    playtime_deck=st.integers(min_value=0, max_value=10**5),
)


@given(games=st.lists(game_strategy, max_size=30), key=st.sampled_from(list(SortKey)))
def test_sort_is_a_permutation(games: list[GameRecord], key: SortKey) -> None:
    result = sort_games(games, key)
    assert sorted(id(g) for g in result) == sorted(id(g) for g in games)


@given(games=st.lists(game_strategy, max_size=30), key=st.sampled_from(list(SortKey)))
def test_sort_is_idempotent(games: list[GameRecord], key: SortKey) -> None:
    once = sort_games(games, key)
    assert sort_games(once, key) == once


@given(games=st.lists(game_strategy, max_size=30))
def test_playtime_order_is_non_increasing(games: list[GameRecord]) -> None:
    result = sort_games(games, SortKey.PLAYTIME)
    playtimes = [g.playtime for g in result]
    assert playtimes == sorted(playtimes, reverse=True)
