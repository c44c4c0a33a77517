"""Library query service: from command options to an ordered game list."""

import asyncio
from dataclasses import dataclass

import structlog

from ..models.game import GameRecord
from ..models.query import EnrichmentSpec, FilterSpec, SortKey
from .enrichment import EnrichmentOrchestrator, ProgressCallback
from .errors import ValidationError
from .filters import (
    filter_local,
    parse_deck_compat_filter,
    parse_review_filter,
    validate_review_bound,
)
from .sorting import sort_games
from .steam_api import SteamApiService

log = structlog.stdlib.get_logger()


@dataclass(frozen=True)
class LibraryQuery:
    """Options of a library listing, as given on the command line."""
    limit: int | None = None
    unplayed: bool = False
    min_hours: float | None = None
    max_hours: float | None = None
    deck_played: bool = False
    deck_compat: str | None = None
    reviews: str | None = None
    min_reviews: int | None = None
    max_reviews: int | None = None
    genres: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    sort: SortKey = SortKey.NAME
    show_deck_hours: bool = False
    show_reviews: bool = False
    show_compat: bool = False
    show_tags: bool = False


@dataclass(frozen=True)
class QueryPlan:
    """Validated filter and enrichment settings for a LibraryQuery."""
    filters: FilterSpec
    enrich: EnrichmentSpec
    limit: int | None
    sort: SortKey

    @property
    def capped(self) -> bool:
        """Whether enrichment can stop early at the limit."""
        return self.limit is not None and not self.filters.is_empty


def build_filter_spec(query: LibraryQuery) -> FilterSpec:
    """Parse and validate the filter options.

    Raises:
        ValidationError: If any filter argument is invalid
    """
    return FilterSpec(
        review_scores=parse_review_filter(query.reviews) if query.reviews else None,
        min_review_score=validate_review_bound(query.min_reviews, "min_reviews"),
        max_review_score=validate_review_bound(query.max_reviews, "max_reviews"),
        deck_compat_tiers=parse_deck_compat_filter(query.deck_compat) if query.deck_compat else None,
        genres=query.genres or None,
        tags=query.tags or None,
    )


def derive_enrichment(query: LibraryQuery) -> EnrichmentSpec:
    """Decide which lookups the active filters, sort and columns need."""
    return EnrichmentSpec(
        reviews=bool(
            query.reviews
            or query.min_reviews is not None
            or query.max_reviews is not None
            or query.show_reviews
            or query.sort is SortKey.REVIEWS
        ),
        deck_compat=bool(query.deck_compat or query.show_compat or query.sort is SortKey.COMPAT),
        genres_tags=bool(query.genres or query.tags or query.show_tags),
    )


def plan_query(query: LibraryQuery) -> QueryPlan:
    """Validate a query before any network activity.

    Raises:
        ValidationError: If any option is invalid
    """
    if query.limit is not None and query.limit < 1:
        raise ValidationError("Limit must be a positive number.", field="limit", value=query.limit)
    for field, hours in (("min_hours", query.min_hours), ("max_hours", query.max_hours)):
        if hours is not None and hours < 0:
            raise ValidationError("Hours cannot be negative.", field=field, value=hours)

    return QueryPlan(
        filters=build_filter_spec(query),
        enrich=derive_enrichment(query),
        limit=query.limit,
        sort=query.sort,
    )


class LibraryService:
    """Runs library queries against a Steam account."""

    def __init__(
        self,
        steam_api: SteamApiService,
        orchestrator: EnrichmentOrchestrator,
    ) -> None:
        self.steam_api: SteamApiService = steam_api
        self.orchestrator: EnrichmentOrchestrator = orchestrator

    async def fetch_library(self, steam_id: str | None) -> list[GameRecord]:
        """Fetch the owned-games listing."""
        return await self.steam_api.fetch_owned_games(steam_id)

    async def run_query(
        self,
        plan: QueryPlan,
        games: list[GameRecord],
        query: LibraryQuery,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[GameRecord]:
        """Filter, enrich, sort and cap an already fetched library.

        When both filters and a limit are active the library is sorted
        before enrichment so early exit keeps the first matches in sort
        order. This is approximate when the sort key itself comes from
        enrichment (e.g. sorting by reviews), since unenriched games sort
        as missing.
        """
        games = filter_local(
            games,
            unplayed=query.unplayed,
            min_hours=query.min_hours,
            max_hours=query.max_hours,
            deck_played=query.deck_played,
        )

        if not plan.enrich.any:
            games = sort_games(games, plan.sort)
            return games[:plan.limit] if plan.limit is not None else games

        if plan.capped:
            games = sort_games(games, plan.sort)

        log.info(
            "Running enrichment",
            candidates=len(games),
            lookups=plan.enrich.describe(),
            capped=plan.capped,
        )

        games = await self.orchestrator.run(
            games,
            plan.enrich,
            plan.filters,
            limit=plan.limit if plan.capped else None,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )

        if not plan.capped:
            games = sort_games(games, plan.sort)
            if plan.limit is not None:
                games = games[:plan.limit]

        return games
