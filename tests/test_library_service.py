"""Tests for query planning and the library query pipeline."""

from unittest.mock import AsyncMock

import pytest

from steam_cli.models import (
    DeckCompatibility,
    DeckCompatTier,
    EnrichmentSpec,
    GameRecord,
    ReviewSummary,
    SortKey,
)
from steam_cli.services.enrichment import EnrichmentOrchestrator
from steam_cli.services.errors import ValidationError
from steam_cli.services.library import (
    LibraryQuery,
    LibraryService,
    derive_enrichment,
    plan_query,
)


class RecordingGateway:
    def __init__(self, scores: dict[int, int]) -> None:
        self.scores = scores
        self.looked_up: list[int] = []

    async def fetch_reviews(self, app_id: int) -> ReviewSummary | None:
        self.looked_up.append(app_id)
        score = self.scores.get(app_id)
        return ReviewSummary(score=score, label="x") if score else None

    async def fetch_deck_compat(self, app_id: int) -> DeckCompatibility | None:
        self.looked_up.append(app_id)
        return DeckCompatibility(DeckCompatTier.VERIFIED)

    async def fetch_genres_tags(self, app_id: int) -> None:
        self.looked_up.append(app_id)
        return None


def make_service(gateway: RecordingGateway) -> LibraryService:
    steam_api = AsyncMock()
    return LibraryService(steam_api, EnrichmentOrchestrator(gateway, request_delay=0.0))


def make_library() -> list[GameRecord]:
    return [
        GameRecord(app_id=1, name="Delta", playtime=50),
        GameRecord(app_id=2, name="alpha", playtime=0),
        GameRecord(app_id=3, name="Charlie", playtime=900, playtime_deck=30),
        GameRecord(app_id=4, name="Bravo", playtime=300),
    ]


class TestPlanQuery:
    def test_plain_query_needs_no_lookups(self) -> None:
        plan = plan_query(LibraryQuery(limit=5, unplayed=True, sort=SortKey.PLAYTIME))

        assert not plan.enrich.any
        assert plan.filters.is_empty
        assert not plan.capped

    def test_review_filter(self) -> None:
        plan = plan_query(LibraryQuery(reviews="very positive", limit=3))

        assert plan.filters.review_scores == frozenset({8})
        assert plan.enrich == EnrichmentSpec(reviews=True)
        assert plan.capped

    def test_tags_and_genres(self) -> None:
        plan = plan_query(LibraryQuery(genres=("rpg",), tags=("roguelike", "deckbuilder")))

        assert plan.filters.genres == ("rpg",)
        assert plan.filters.tags == ("roguelike", "deckbuilder")
        assert plan.enrich == EnrichmentSpec(genres_tags=True)
        assert not plan.capped

    @pytest.mark.parametrize(("query", "expected"), [
        (LibraryQuery(show_reviews=True), EnrichmentSpec(reviews=True)),
        (LibraryQuery(sort=SortKey.REVIEWS), EnrichmentSpec(reviews=True)),
        (LibraryQuery(min_reviews=7), EnrichmentSpec(reviews=True)),
        (LibraryQuery(show_compat=True), EnrichmentSpec(deck_compat=True)),
        (LibraryQuery(sort=SortKey.COMPAT), EnrichmentSpec(deck_compat=True)),
        (LibraryQuery(deck_compat="ok"), EnrichmentSpec(deck_compat=True)),
        (LibraryQuery(show_tags=True), EnrichmentSpec(genres_tags=True)),
        (LibraryQuery(show_deck_hours=True, sort=SortKey.DECK), EnrichmentSpec()),
    ])
    def test_enrichment_follows_filters_sort_and_columns(self, query: LibraryQuery, expected: EnrichmentSpec) -> None:
        assert derive_enrichment(query) == expected

    @pytest.mark.parametrize("query", [
        LibraryQuery(limit=0),
        LibraryQuery(min_hours=-1),
        LibraryQuery(max_hours=-0.5),
        LibraryQuery(reviews="stellar"),
        LibraryQuery(deck_compat="maybe"),
        LibraryQuery(min_reviews=0),
        LibraryQuery(max_reviews=10),
    ])
    def test_invalid_options(self, query: LibraryQuery) -> None:
        with pytest.raises(ValidationError):
            plan_query(query)


class TestRunQuery:
    @pytest.mark.asyncio
    async def test_local_filters_sort_and_limit(self) -> None:
        gateway = RecordingGateway({})
        service = make_service(gateway)
        query = LibraryQuery(min_hours=0.5, sort=SortKey.PLAYTIME, limit=2)

        result = await service.run_query(plan_query(query), make_library(), query)

        assert [g.name for g in result] == ["Charlie", "Bravo"]
        assert gateway.looked_up == []

    @pytest.mark.asyncio
    async def test_default_sort_is_name(self) -> None:
        service = make_service(RecordingGateway({}))
        query = LibraryQuery()

        result = await service.run_query(plan_query(query), make_library(), query)

        assert [g.name for g in result] == ["alpha", "Bravo", "Charlie", "Delta"]

    @pytest.mark.asyncio
    async def test_deck_played_filter(self) -> None:
        service = make_service(RecordingGateway({}))
        query = LibraryQuery(deck_played=True)

        result = await service.run_query(plan_query(query), make_library(), query)

        assert [g.app_id for g in result] == [3]

    @pytest.mark.asyncio
    async def test_filter_with_limit_sorts_before_lookups(self) -> None:
        """Lookups follow sort order and stop once the limit is met."""
        gateway = RecordingGateway({1: 8, 2: 8, 3: 8, 4: 8})
        service = make_service(gateway)
        query = LibraryQuery(reviews="very-positive", limit=2)

        result = await service.run_query(plan_query(query), make_library(), query)

        assert [g.name for g in result] == ["alpha", "Bravo"]
        assert gateway.looked_up == [2, 4]

    @pytest.mark.asyncio
    async def test_limit_without_filter_enriches_everything(self) -> None:
        """A sort that needs lookups sees the whole library before the cut."""
        gateway = RecordingGateway({1: 5, 2: 9, 3: 7})
        service = make_service(gateway)
        query = LibraryQuery(sort=SortKey.REVIEWS, limit=2)

        result = await service.run_query(plan_query(query), make_library(), query)

        assert [g.name for g in result] == ["alpha", "Charlie"]
        assert sorted(gateway.looked_up) == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_filter_without_limit_returns_all_matches_sorted(self) -> None:
        gateway = RecordingGateway({1: 9, 2: 3, 3: 9, 4: 9})
        service = make_service(gateway)
        query = LibraryQuery(reviews="overwhelmingly-positive", sort=SortKey.PLAYTIME)

        result = await service.run_query(plan_query(query), make_library(), query)

        assert [g.name for g in result] == ["Charlie", "Bravo", "Delta"]
        assert gateway.looked_up == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_local_filters_run_before_lookups(self) -> None:
        gateway = RecordingGateway({1: 9, 2: 9, 3: 9, 4: 9})
        service = make_service(gateway)
        query = LibraryQuery(unplayed=True, show_reviews=True)

        result = await service.run_query(plan_query(query), make_library(), query)

        assert [g.app_id for g in result] == [2]
        assert gateway.looked_up == [2]

    @pytest.mark.asyncio
    async def test_fetch_library_delegates_to_gateway(self) -> None:
        service = make_service(RecordingGateway({}))
        service.steam_api.fetch_owned_games.return_value = make_library()

        games = await service.fetch_library("76561197960287930")

        assert len(games) == 4
        service.steam_api.fetch_owned_games.assert_awaited_once_with("76561197960287930")
