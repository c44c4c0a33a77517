"""Steam Web API and store gateway.

The owned-games listing and the account lookups are fatal on failure. The
per-game store lookups (reviews, Deck compatibility, genres and tags) never
raise: any failure is logged and reported as None so one game's missing
metadata cannot abort a library-wide query.
"""

import asyncio
import math
import re
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from bs4 import BeautifulSoup

from ..models.game import (
    DeckCompatibility,
    DeckCompatTier,
    GameRecord,
    GenreTags,
    ReviewSummary,
)
from .errors import ConfigurationError, LibraryFetchError, NetworkError
from .http_client import HttpClientService

log = structlog.stdlib.get_logger()

WEB_API_URL = "https://api.steampowered.com"
STORE_DOMAIN = "store.steampowered.com"
STORE_URL = f"https://{STORE_DOMAIN}"

# Skip the store's age gate when fetching app pages
AGE_GATE_COOKIES = {
    "birthtime": "0",
    "lastagecheckage": "1-0-1900",
    "wants_mature_content": "1",
}

# Store genres that are not game genres
NON_GAME_GENRE_IDS = frozenset({
    "Accounting", "Audio Production", "Education", "Photo Editing",
    "Software Training", "Utilities", "Video Production", "Web Publishing",
    "Mac OS X", "Linux", "Controller support", "genre_demos",
})

_LOOKUP_ERRORS = (httpx.HTTPError, ValueError, OverflowError, KeyError, TypeError, AttributeError)


def _whole_number(value: Any) -> int:
    """int() for payload numbers. NaN and infinities are malformed data."""
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"expected a finite number, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class PlayerSummary:
    """Public profile information for a Steam account."""
    steam_id: str
    persona_name: str
    profile_url: str
    avatar: str | None = None
    real_name: str | None = None
    persona_state: int = 0
    time_created: int | None = None
    last_logoff: int | None = None


def parse_owned_games(payload: dict[str, Any]) -> list[GameRecord]:
    """Build GameRecords from a GetOwnedGames response.

    A private profile answers with an empty response object, which yields an
    empty library rather than an error.
    """
    games = payload.get("response", {}).get("games", []) or []
    return [
        GameRecord(
            app_id=int(game["appid"]),
            name=game.get("name") or "",
            playtime=int(game.get("playtime_forever") or 0),
            playtime_deck=int(game.get("playtime_deck_forever") or 0),
            playtime_recent=int(game.get("playtime_2weeks") or 0),
            img_icon_url=game.get("img_icon_url") or None,
            img_logo_url=game.get("img_logo_url") or None,
        )
        for game in games
    ]


def parse_review_summary(payload: dict[str, Any]) -> ReviewSummary | None:
    """Extract the review aggregate from an appreviews response."""
    summary = payload.get("query_summary")
    if not summary:
        return None

    raw_score = _whole_number(summary.get("review_score") or 0)
    score = raw_score if 1 <= raw_score <= 9 else None
    return ReviewSummary(
        score=score,
        label=summary.get("review_score_desc") or "No Reviews",
        positive=int(summary.get("total_positive") or 0),
        negative=int(summary.get("total_negative") or 0),
        total=int(summary.get("total_reviews") or 0),
    )


def parse_deck_compat(payload: dict[str, Any]) -> DeckCompatibility | None:
    """Extract the resolved Deck category from a compatibility report.

    Games Valve has not reviewed come back without results; they are
    reported as UNKNOWN, which is itself a tier. A category that is not a
    finite number raises ValueError.
    """
    if payload.get("success") != 1:
        return None

    results = payload.get("results") or {}
    category = _whole_number(results.get("resolved_category", 0) if isinstance(results, dict) else 0)
    try:
        tier = DeckCompatTier(category)
    except ValueError:
        tier = DeckCompatTier.UNKNOWN
    return DeckCompatibility(tier=tier)


def parse_app_genres(payload: dict[str, Any], app_id: int) -> tuple[str, ...] | None:
    """Extract genre names from an appdetails response."""
    entry = payload.get(str(app_id))
    if not entry or not entry.get("success"):
        return None

    data = entry.get("data") or {}
    # appdetails returns [] instead of {} when a filtered section is empty
    if not isinstance(data, dict):
        return ()
    return tuple(
        genre["description"] for genre in data.get("genres", []) if genre.get("description")
    )


def parse_store_tags(html: str) -> tuple[str, ...]:
    """Extract user-applied tags from a store app page."""
    soup = BeautifulSoup(html, "html.parser")
    tags: list[str] = []
    for link in soup.find_all("a", class_="app_tag"):
        name = re.sub(r"\s+", " ", link.get_text()).strip()
        if name and name != "+" and name not in tags:  # "+" is the add-tag button
            tags.append(name)
    return tuple(tags)


class SteamApiService:
    """Gateway to the Steam Web API and store endpoints."""

    def __init__(
        self,
        http_client: HttpClientService,
        api_key: str | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            http_client: Shared HTTP client
            api_key: Steam Web API key, required for Web API calls only
        """
        self.http_client: HttpClientService = http_client
        self.api_key: str | None = api_key
        self.http_client.set_cookies(AGE_GATE_COOKIES, domain=STORE_DOMAIN)

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "Steam API key not found.",
                setting="api_key",
                hint="Set STEAM_API_KEY or run: steam-library config set-key <key>",
            )
        return self.api_key

    async def fetch_owned_games(self, steam_id: str | None) -> list[GameRecord]:
        """Fetch the user's owned games with app info and Deck playtime.

        Raises:
            ConfigurationError: If the API key or Steam ID is missing
            LibraryFetchError: If the listing cannot be retrieved
        """
        api_key = self._require_api_key()
        if not steam_id:
            raise ConfigurationError(
                "Steam ID not configured.",
                setting="steam_id",
                hint="Run: steam-library config set-user <username>",
            )

        url = f"{WEB_API_URL}/IPlayerService/GetOwnedGames/v1/"
        try:
            payload = await self.http_client.get_json(url, params={
                "key": api_key,
                "steamid": steam_id,
                "include_appinfo": 1,
                "include_played_free_games": 1,
                "format": "json",
            })
            games = parse_owned_games(payload)
        except httpx.HTTPStatusError as e:
            raise LibraryFetchError(
                "Could not fetch your Steam library.",
                original_error=e,
                url=url,
                status_code=e.response.status_code,
            ) from e
        except _LOOKUP_ERRORS as e:
            raise LibraryFetchError(
                "Could not fetch your Steam library.",
                original_error=e,
                url=url,
            ) from e

        log.info("Owned games fetched", steam_id=steam_id, game_count=len(games))
        return games

    async def fetch_reviews(self, app_id: int) -> ReviewSummary | None:
        """Fetch the review aggregate for a game, or None on any failure."""
        try:
            payload = await self.http_client.get_json(
                f"{STORE_URL}/appreviews/{app_id}",
                params={
                    "json": 1,
                    "language": "all",
                    "purchase_type": "all",
                    "num_per_page": 0,
                },
            )
            return parse_review_summary(payload)
        except _LOOKUP_ERRORS as e:
            log.warning("Review lookup failed", app_id=app_id, error=str(e), error_type=type(e).__name__)
            return None

    async def fetch_deck_compat(self, app_id: int) -> DeckCompatibility | None:
        """Fetch the Steam Deck compatibility tier, or None on any failure."""
        try:
            payload = await self.http_client.get_json(
                f"{STORE_URL}/saleaction/ajaxgetdeckappcompatibilityreport",
                params={"nAppID": app_id, "l": "english"},
            )
            return parse_deck_compat(payload)
        except _LOOKUP_ERRORS as e:
            log.warning("Deck compatibility lookup failed", app_id=app_id, error=str(e), error_type=type(e).__name__)
            return None

    async def fetch_genres_tags(self, app_id: int) -> GenreTags | None:
        """Fetch store genres and user tags together.

        Both lookups run concurrently; if either fails the whole group is
        reported as None.
        """
        async with asyncio.TaskGroup() as group:
            genres_task = group.create_task(self._fetch_genres(app_id))
            tags_task = group.create_task(self._fetch_tags(app_id))

        genres, tags = genres_task.result(), tags_task.result()
        if genres is None or tags is None:
            return None
        return GenreTags(genres=genres, tags=tags)

    async def _fetch_genres(self, app_id: int) -> tuple[str, ...] | None:
        try:
            payload = await self.http_client.get_json(
                f"{STORE_URL}/api/appdetails",
                params={"appids": app_id, "filters": "genres"},
            )
            return parse_app_genres(payload, app_id)
        except _LOOKUP_ERRORS as e:
            log.warning("Genre lookup failed", app_id=app_id, error=str(e), error_type=type(e).__name__)
            return None

    async def _fetch_tags(self, app_id: int) -> tuple[str, ...] | None:
        try:
            response = await self.http_client.get(
                f"{STORE_URL}/app/{app_id}/",
                params={"l": "english"},
            )
            return parse_store_tags(response.text)
        except _LOOKUP_ERRORS as e:
            log.warning("Tag lookup failed", app_id=app_id, error=str(e), error_type=type(e).__name__)
            return None

    async def resolve_user(self, username_or_id: str) -> str:
        """Resolve a vanity name to a 64-bit Steam ID.

        All-digit input is taken to already be a Steam ID.

        Raises:
            ConfigurationError: If the name does not resolve
            NetworkError: If the lookup request fails
        """
        if username_or_id.isdigit():
            return username_or_id

        url = f"{WEB_API_URL}/ISteamUser/ResolveVanityURL/v1/"
        try:
            payload = await self.http_client.get_json(url, params={
                "key": self._require_api_key(),
                "vanityurl": username_or_id,
            })
        except (httpx.HTTPError, ValueError) as e:
            raise NetworkError("Could not resolve Steam user.", original_error=e, url=url) from e

        response = payload.get("response", {})
        if response.get("success") != 1 or not response.get("steamid"):
            raise ConfigurationError(
                f"No Steam user found for '{username_or_id}'.",
                setting="username",
                hint="Use your custom profile URL name or your 64-bit Steam ID",
            )
        return str(response["steamid"])

    async def fetch_player_summary(self, steam_id: str) -> PlayerSummary | None:
        """Fetch the public profile for a Steam ID.

        Raises:
            NetworkError: If the request fails
        """
        url = f"{WEB_API_URL}/ISteamUser/GetPlayerSummaries/v2/"
        try:
            payload = await self.http_client.get_json(url, params={
                "key": self._require_api_key(),
                "steamids": steam_id,
            })
        except (httpx.HTTPError, ValueError) as e:
            raise NetworkError("Could not fetch player info.", original_error=e, url=url) from e

        players = payload.get("response", {}).get("players") or []
        if not players:
            return None
        player = players[0]
        return PlayerSummary(
            steam_id=str(player.get("steamid", steam_id)),
            persona_name=player.get("personaname", ""),
            profile_url=player.get("profileurl", ""),
            avatar=player.get("avatar"),
            real_name=player.get("realname"),
            persona_state=int(player.get("personastate") or 0),
            time_created=player.get("timecreated"),
            last_logoff=player.get("lastlogoff"),
        )

    async def fetch_genre_list(self) -> list[str]:
        """Fetch all store game genres, sorted by name.

        Raises:
            NetworkError: If the request fails
        """
        url = f"{STORE_URL}/api/getgenrelist"
        try:
            payload = await self.http_client.get_json(url)
            genres = payload["genres"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise NetworkError("Could not fetch Steam genres.", original_error=e, url=url) from e

        names = [g["name"] for g in genres if g.get("id") not in NON_GAME_GENRE_IDS]
        return sorted(names, key=str.casefold)

    async def fetch_popular_tags(self) -> list[str]:
        """Fetch all popular store tags, sorted by name.

        Raises:
            NetworkError: If the request fails
        """
        url = f"{STORE_URL}/tagdata/populartags/english"
        try:
            payload = await self.http_client.get_json(url)
            names = [tag["name"] for tag in payload]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise NetworkError("Could not fetch Steam tags.", original_error=e, url=url) from e

        return sorted(names, key=str.casefold)
