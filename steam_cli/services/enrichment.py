"""Enrichment pipeline: per-game store lookups, filtering and early exit."""

import asyncio
from collections.abc import Callable, Sequence
from typing import Protocol

import structlog

from ..models.game import DeckCompatibility, GameRecord, GenreTags, ReviewSummary
from ..models.query import EnrichmentSpec, FilterSpec
from .filters import matches

log = structlog.stdlib.get_logger()

ProgressCallback = Callable[[int, int, int], None]


class MetadataGateway(Protocol):
    """Per-game store lookups. Each returns None instead of raising."""

    async def fetch_reviews(self, app_id: int) -> ReviewSummary | None: ...

    async def fetch_deck_compat(self, app_id: int) -> DeckCompatibility | None: ...

    async def fetch_genres_tags(self, app_id: int) -> GenreTags | None: ...


class EnrichmentOrchestrator:
    """Enrich, filter and collect games in a single pass.

    Games are visited one at a time in input order. For each game only the
    lookups named by the EnrichmentSpec are issued, concurrently, and all of
    them finish before the next game starts. With a limit, iteration stops
    as soon as enough games have matched, so the rest of the library is
    never looked up.
    """

    def __init__(
        self,
        gateway: MetadataGateway,
        request_delay: float = 0.05,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            gateway: Source of per-game store metadata
            request_delay: Pause between games in seconds (set to 0 for testing)
        """
        self.gateway: MetadataGateway = gateway
        self.request_delay: float = request_delay

    async def run(
        self,
        games: Sequence[GameRecord],
        enrich: EnrichmentSpec,
        filters: FilterSpec,
        limit: int | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[GameRecord]:
        """Enrich games in order and return those matching the filters.

        Args:
            games: Candidate games, in the order they should be checked
            enrich: Which lookups to perform per game
            filters: Constraints a game must satisfy to be collected
            limit: Stop once this many games have matched
            on_progress: Called as (processed, matched, total) after each game
            cancel_event: When set, stop and return what has been collected

        Returns:
            Matching games in traversal order
        """
        total = len(games)
        found: list[GameRecord] = []

        log.info(
            "Starting enrichment",
            total_games=total,
            lookups=enrich.describe() or "none",
            limit=limit,
        )

        for index, game in enumerate(games):
            if limit is not None and len(found) >= limit:
                log.info("Result limit reached", checked=index, limit=limit)
                break
            if cancel_event is not None and cancel_event.is_set():
                log.info("Enrichment cancelled", checked=index, matched=len(found))
                break

            await self._enrich_game(game, enrich)

            if matches(game, filters):
                found.append(game)

            processed = index + 1
            if on_progress is not None:
                on_progress(processed, len(found), total)

            more_work = processed < total and (limit is None or len(found) < limit)
            if more_work and enrich.any and self.request_delay > 0:
                await asyncio.sleep(self.request_delay)

        log.info("Enrichment completed", matched=len(found), total_games=total)
        return found

    async def _enrich_game(self, game: GameRecord, enrich: EnrichmentSpec) -> None:
        """Run the requested lookups for one game and merge the results."""
        if not enrich.any:
            return

        reviews_task = compat_task = genres_task = None
        async with asyncio.TaskGroup() as group:
            if enrich.reviews:
                reviews_task = group.create_task(self.gateway.fetch_reviews(game.app_id))
            if enrich.deck_compat:
                compat_task = group.create_task(self.gateway.fetch_deck_compat(game.app_id))
            if enrich.genres_tags:
                genres_task = group.create_task(self.gateway.fetch_genres_tags(game.app_id))

        if reviews_task is not None:
            game.reviews = reviews_task.result()
        if compat_task is not None:
            game.deck_compat = compat_task.result()
        if genres_task is not None:
            game.genre_tags = genres_task.result()

        log.debug(
            "Game enriched",
            app_id=game.app_id,
            name=game.name,
            review_score=game.review_score,
            deck_tier=game.deck_tier,
        )
