"""Rendering of game listings and account info to the terminal."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from ..models.game import DeckCompatTier, GameRecord, ReviewSummary
from ..services.steam_api import PlayerSummary


class OutputMode(Enum):
    """How a game listing is written."""
    TABLE = "table"
    PLAIN = "plain"
    JSON = "json"


@dataclass(frozen=True)
class DisplayColumns:
    """Optional columns shown alongside name, playtime and app id."""
    deck_hours: bool = False
    reviews: bool = False
    compat: bool = False
    tags: bool = False


REVIEW_STYLES: dict[int, str] = {
    9: "bright_green",
    8: "green",
    7: "green",
    6: "yellow",
    5: "yellow",
    4: "red",
    3: "red",
    2: "bright_red",
    1: "bright_red",
}

COMPAT_STYLES: dict[DeckCompatTier, str] = {
    DeckCompatTier.VERIFIED: "green",
    DeckCompatTier.PLAYABLE: "yellow",
    DeckCompatTier.UNSUPPORTED: "red",
    DeckCompatTier.UNKNOWN: "bright_black",
}

PERSONA_STATES = [
    "Offline",
    "Online",
    "Busy",
    "Away",
    "Snooze",
    "Looking to trade",
    "Looking to play",
]

MAX_TAGS_SHOWN = 3


def format_playtime(minutes: int) -> str:
    """Format minutes as e.g. '2h', '1h 5m', '45m' or 'Never played'."""
    if minutes <= 0:
        return "Never played"

    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def format_total_hours(minutes: int) -> str:
    """Format a large playtime total in whole or thousands of hours."""
    hours = minutes // 60
    if hours < 1000:
        return f"{hours} hours"
    return f"{hours / 1000:.1f}k hours"


def _playtime_text(minutes: int) -> Text:
    return Text(format_playtime(minutes), style="bright_black" if minutes <= 0 else "")


def _review_text(reviews: ReviewSummary | None) -> Text:
    if reviews is None or reviews.score is None:
        return Text("No reviews", style="bright_black")
    return Text(reviews.label, style=REVIEW_STYLES.get(reviews.score, "bright_black"))


def _compat_text(game: GameRecord) -> Text:
    tier = game.deck_tier
    if tier is None:
        return Text("N/A", style="bright_black")
    return Text(tier.label, style=COMPAT_STYLES[tier])


def _tags_text(game: GameRecord) -> str:
    tags = game.tags
    if not tags:
        return ""
    return ", ".join(tags[:MAX_TAGS_SHOWN])


def render_table(games: list[GameRecord], columns: DisplayColumns, console: Console) -> None:
    """Render games as a fixed-width table."""
    table = Table(header_style="cyan")
    table.add_column("Name", width=40, no_wrap=True, overflow="ellipsis")
    table.add_column("Playtime", width=15)
    if columns.deck_hours:
        table.add_column("Deck Time", width=15)
    if columns.reviews:
        table.add_column("Reviews", width=25)
    if columns.compat:
        table.add_column("Deck", width=12)
    if columns.tags:
        table.add_column("Tags", width=30, no_wrap=True, overflow="ellipsis")
    table.add_column("App ID", width=12)

    for game in games:
        row: list[Text] = [Text(game.name or "(Unknown)"), _playtime_text(game.playtime)]
        if columns.deck_hours:
            row.append(_playtime_text(game.playtime_deck))
        if columns.reviews:
            row.append(_review_text(game.reviews))
        if columns.compat:
            row.append(_compat_text(game))
        if columns.tags:
            row.append(Text(_tags_text(game)))
        row.append(Text(str(game.app_id)))
        table.add_row(*row)

    console.print(table)


def render_list(games: list[GameRecord], columns: DisplayColumns, console: Console) -> None:
    """Render one line per game with bracketed annotations."""
    for game in games:
        line = Text()
        line.append(game.name or "(Unknown)", style="bold")
        line.append(" - ")
        line.append_text(_playtime_text(game.playtime))

        if columns.deck_hours and game.playtime_deck:
            line.append(f" [Deck: {format_playtime(game.playtime_deck)}]", style="green")
        if columns.reviews:
            line.append(" [")
            line.append_text(_review_text(game.reviews))
            line.append("]")
        if columns.compat:
            line.append(" [Deck: ")
            line.append_text(_compat_text(game))
            line.append("]")
        if columns.tags and game.tags:
            line.append(f" [{_tags_text(game)}]", style="magenta")

        line.append(" (")
        line.append(str(game.app_id), style="bright_black")
        line.append(")")
        console.print(line, highlight=False, soft_wrap=True)


def render_json(data: object, console: Console) -> None:
    """Write machine-readable JSON without markup or highlighting."""
    console.out(json.dumps(data, indent=2, ensure_ascii=False), highlight=False)


def render_games(
    games: list[GameRecord],
    mode: OutputMode,
    columns: DisplayColumns,
    console: Console,
) -> None:
    """Write a finished game listing in the requested mode."""
    if mode is OutputMode.JSON:
        render_json([game.to_dict() for game in games], console)
    elif mode is OutputMode.PLAIN:
        render_list(games, columns, console)
    else:
        render_table(games, columns, console)


def render_name_list(names: list[str], mode: OutputMode, noun: str, console: Console, columns: int = 1) -> None:
    """Render a sorted list of genre or tag names."""
    if mode is OutputMode.JSON:
        render_json(names, console)
        return

    console.print(f"\n[bold]{len(names)} {noun} available:[/bold]\n")
    if columns <= 1:
        for name in names:
            console.print(Text(f"  {name}", style="cyan"))
        return

    grid = Table.grid(padding=(0, 2))
    for _ in range(columns):
        grid.add_column(width=28, no_wrap=True, overflow="ellipsis")
    for i in range(0, len(names), columns):
        row = [Text(name) for name in names[i:i + columns]]
        grid.add_row(*row, *[Text()] * (columns - len(row)))
    console.print(grid)


def _format_date(timestamp: int | None) -> str | None:
    if not timestamp:
        return None
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return f"{moment:%B} {moment.day}, {moment.year}"


@dataclass(frozen=True)
class ProfileSummary:
    """A player's profile together with library totals."""
    player: PlayerSummary
    total_games: int
    played_games: int
    total_playtime: int  # minutes

    @classmethod
    def build(cls, player: PlayerSummary, games: list[GameRecord]) -> "ProfileSummary":
        return cls(
            player=player,
            total_games=len(games),
            played_games=sum(1 for g in games if g.playtime > 0),
            total_playtime=sum(g.playtime for g in games),
        )

    @property
    def status(self) -> str:
        state = self.player.persona_state
        return PERSONA_STATES[state] if 0 <= state < len(PERSONA_STATES) else "Unknown"

    @property
    def unplayed_games(self) -> int:
        return self.total_games - self.played_games

    def to_dict(self) -> dict[str, object]:
        return {
            "steam_id": self.player.steam_id,
            "display_name": self.player.persona_name,
            "real_name": self.player.real_name,
            "profile_url": self.player.profile_url,
            "status": self.status,
            "member_since": _format_date(self.player.time_created),
            "last_online": _format_date(self.player.last_logoff),
            "games": {
                "total": self.total_games,
                "played": self.played_games,
                "unplayed": self.unplayed_games,
            },
            "total_playtime": {
                "minutes": self.total_playtime,
                "hours": self.total_playtime // 60,
                "formatted": format_total_hours(self.total_playtime),
            },
        }


def render_profile(profile: ProfileSummary, mode: OutputMode, console: Console) -> None:
    """Render a player's profile and library totals."""
    if mode is OutputMode.JSON:
        render_json(profile.to_dict(), console)
        return

    player = profile.player
    played_pct = round(profile.played_games / profile.total_games * 100) if profile.total_games else 0
    member_since = _format_date(player.time_created)

    header = Text(player.persona_name, style="bold cyan")
    if player.real_name:
        header.append(f" ({player.real_name})", style="bright_black")

    console.print()
    console.print(header)
    console.print(Rule(style="bright_black"), width=40)
    console.print(f"Steam ID:      {player.steam_id}", highlight=False)
    console.print(f"Status:        {profile.status}", highlight=False)
    console.print(f"Profile:       {player.profile_url}", highlight=False)
    if member_since:
        console.print(f"Member since:  {member_since}", highlight=False)
    console.print()
    console.print("[bold]Library[/bold]")
    console.print(Rule(style="bright_black"), width=40)
    console.print(f"Total games:   {profile.total_games}", highlight=False)
    console.print(f"Played:        {profile.played_games} ({played_pct}%)", highlight=False)
    console.print(f"Unplayed:      {profile.unplayed_games}", highlight=False)
    console.print(f"Total time:    {format_total_hours(profile.total_playtime)}", highlight=False)
    console.print()
