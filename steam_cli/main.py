"""Command-line entry point for ``steam-library``.

Parses arguments, wires the services together on an ``ApplicationContext``,
dispatches to one handler per sub-command and maps failures to exit codes.
The first Ctrl-C during enrichment stops lookups and prints what was found.
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

import structlog
from rich.console import Console

from steam_cli import __version__
from steam_cli.models import AppConfig, SortKey
from steam_cli.services.config import ConfigurationService
from steam_cli.services.enrichment import EnrichmentOrchestrator
from steam_cli.services.errors import ErrorHandlingService, ExitCode, NetworkError
from steam_cli.services.http_client import HttpClientService
from steam_cli.services.library import LibraryQuery, LibraryService, plan_query
from steam_cli.services.logging import setup_logging
from steam_cli.services.steam_api import SteamApiService
from steam_cli.ui import (
    DisplayColumns,
    OutputMode,
    ProfileSummary,
    ProgressReporter,
    render_games,
    render_name_list,
    render_profile,
)


log = structlog.stdlib.get_logger()


class ApplicationContext:
    """Container for application services and state.

    Services are built lazily, once, and shared by every command. The HTTP
    client is the only resource that needs cleanup.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        out: Console | None = None,
        err: Console | None = None,
    ) -> None:
        self._config_path: Path | None = config_path
        self.out: Console = out or Console()
        self.err: Console = err or Console(stderr=True)

        self._config_service: ConfigurationService | None = None
        self._config: AppConfig | None = None
        self._http_client: HttpClientService | None = None
        self._steam_api: SteamApiService | None = None
        self._library_service: LibraryService | None = None
        self.error_service: ErrorHandlingService = ErrorHandlingService()

        self._loop: asyncio.AbstractEventLoop | None = None
        self._cancel_event: asyncio.Event | None = None

    @property
    def config_service(self) -> ConfigurationService:
        """Created on first use."""
        if self._config_service is None:
            self._config_service = ConfigurationService(config_path=self._config_path)
        return self._config_service

    @property
    def config(self) -> AppConfig:
        """Settings loaded from disk, cached for the run."""
        if self._config is None:
            self._config = self.config_service.load_config()
        return self._config

    @property
    def http_client(self) -> HttpClientService:
        """Shared pooled client, created on first use."""
        if self._http_client is None:
            self._http_client = HttpClientService(timeout=self.config.request_timeout)
        return self._http_client

    @property
    def steam_api(self) -> SteamApiService:
        """Get the Steam gateway (lazy initialization)."""
        if self._steam_api is None:
            self._steam_api = SteamApiService(
                http_client=self.http_client,
                api_key=self.config_service.get_api_key(self.config),
            )
        return self._steam_api

    @property
    def library_service(self) -> LibraryService:
        """Get the library service (lazy initialization)."""
        if self._library_service is None:
            self._library_service = LibraryService(
                steam_api=self.steam_api,
                orchestrator=EnrichmentOrchestrator(
                    gateway=self.steam_api,
                    request_delay=self.config.request_delay,
                ),
            )
        return self._library_service

    def cancel_event(self) -> asyncio.Event:
        """Event set when the user interrupts a running enrichment."""
        if self._cancel_event is None:
            self._loop = asyncio.get_running_loop()
            self._cancel_event = asyncio.Event()
        return self._cancel_event

    def request_shutdown(self) -> bool:
        """Ask a running enrichment to stop.

        Returns:
            False when there is nothing to stop gracefully
        """
        if self._cancel_event is None or self._loop is None or self._cancel_event.is_set():
            return False
        self._loop.call_soon_threadsafe(self._cancel_event.set)
        log.info("Shutdown requested")
        return True

    @property
    def shutdown_requested(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    async def cleanup(self) -> None:
        """Close the HTTP client if one was opened."""
        if self._http_client is not None:
            await self._http_client.close()
            self._http_client = None
        log.debug("Application cleanup complete")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="steam-library",
        description="Browse and filter your Steam library from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  steam-library config set-key <key>             Store your Steam Web API key
  steam-library config set-user <name>           Store your Steam user
  steam-library library --unplayed --limit 10    Ten unplayed games
  steam-library library --deck-compat verified --reviews positive+ --limit 5
  steam-library library --tag roguelike --show-tags --json
        """
    )

    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ~/.steam-cli/config.json)"
    )
    _ = parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set the logging level (default: from config, WARNING)"
    )
    _ = parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Also write JSON logs to this directory"
    )

    commands = parser.add_subparsers(dest="command", required=True, metavar="<command>")

    library = commands.add_parser("library", help="Browse your Steam library")
    _ = library.add_argument("-l", "--limit", type=int, help="Limit number of results")
    _ = library.add_argument("--unplayed", action="store_true", help="Show only unplayed games")
    _ = library.add_argument("--min-hours", type=float, help="Minimum playtime in hours")
    _ = library.add_argument("--max-hours", type=float, help="Maximum playtime in hours")
    _ = library.add_argument("--deck", action="store_true", help="Show only games played on Steam Deck")
    _ = library.add_argument("--deck-hours", action="store_true", help="Show Steam Deck playtime in output")
    _ = library.add_argument(
        "--deck-compat",
        metavar="STATUS",
        help="Filter by Deck compatibility: verified, playable, unsupported, unknown, ok, any",
    )
    _ = library.add_argument("--show-compat", action="store_true", help="Show Deck compatibility in output")
    _ = library.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=SortKey.NAME.value,
        help="Sort order (default: name)",
    )
    output = library.add_mutually_exclusive_group()
    _ = output.add_argument("--plain", action="store_true", help="Plain list output (no table)")
    _ = output.add_argument("--json", action="store_true", help="Output as JSON")
    _ = library.add_argument(
        "--reviews",
        metavar="CATEGORY",
        help="Filter by review category (e.g. very-positive, mixed, positive+)",
    )
    _ = library.add_argument("--min-reviews", type=int, metavar="SCORE", help="Minimum review score (1-9)")
    _ = library.add_argument("--max-reviews", type=int, metavar="SCORE", help="Maximum review score (1-9)")
    _ = library.add_argument("--show-reviews", action="store_true", help="Show review scores in output")
    _ = library.add_argument(
        "--genre",
        action="append",
        default=[],
        help="Filter by genre (partial match, repeat to accept any of several)",
    )
    _ = library.add_argument(
        "--tag",
        action="append",
        default=[],
        help="Filter by tag (partial match, repeat to accept any of several)",
    )
    _ = library.add_argument("--show-tags", action="store_true", help="Show tags in output")

    config = commands.add_parser("config", help="Configure Steam CLI settings")
    config_commands = config.add_subparsers(dest="config_command", required=True, metavar="<action>")
    set_key = config_commands.add_parser("set-key", help="Set your Steam Web API key")
    _ = set_key.add_argument("api_key")
    set_user = config_commands.add_parser("set-user", help="Set your Steam username or ID")
    _ = set_user.add_argument("username")
    _ = config_commands.add_parser("show", help="Show current configuration")

    for name, help_text in (
        ("whoami", "Show current Steam user info"),
        ("genres", "List all Steam genres"),
        ("tags", "List all Steam tags"),
    ):
        command = commands.add_parser(name, help=help_text)
        _ = command.add_argument("--json", action="store_true", help="Output as JSON")

    return parser


def query_from_args(ns: argparse.Namespace) -> LibraryQuery:
    """Build a LibraryQuery from parsed library arguments."""
    return LibraryQuery(
        limit=ns.limit,
        unplayed=bool(ns.unplayed),
        min_hours=ns.min_hours,
        max_hours=ns.max_hours,
        deck_played=bool(ns.deck),
        deck_compat=ns.deck_compat,
        reviews=ns.reviews,
        min_reviews=ns.min_reviews,
        max_reviews=ns.max_reviews,
        genres=tuple(ns.genre),
        tags=tuple(ns.tag),
        sort=SortKey(ns.sort),
        show_deck_hours=bool(ns.deck_hours),
        show_reviews=bool(ns.show_reviews),
        show_compat=bool(ns.show_compat),
        show_tags=bool(ns.show_tags),
    )


def output_mode(ns: argparse.Namespace) -> OutputMode:
    if getattr(ns, "json", False):
        return OutputMode.JSON
    if getattr(ns, "plain", False):
        return OutputMode.PLAIN
    return OutputMode.TABLE


async def run_library(context: ApplicationContext, ns: argparse.Namespace) -> ExitCode:
    """Fetch, enrich, filter, sort and print the user's library."""
    query = query_from_args(ns)
    mode = output_mode(ns)
    quiet = mode is OutputMode.JSON

    plan = plan_query(query)
    _, steam_id = context.config_service.require_credentials(context.config)

    if not quiet:
        context.err.print("[blue]Fetching your Steam library...[/blue]")
    games = await context.library_service.fetch_library(steam_id)

    if plan.enrich.any and not quiet:
        limit_note = f" (stopping at {plan.limit})" if plan.capped else ""
        context.err.print(
            f"[blue]Fetching {plan.enrich.describe()} for up to {len(games)} games{limit_note}...[/blue]"
        )

    with ProgressReporter(context.err, limit=plan.limit if plan.capped else None, enabled=not quiet) as progress:
        games = await context.library_service.run_query(
            plan,
            games,
            query,
            on_progress=progress,
            cancel_event=context.cancel_event(),
        )

    if not quiet:
        if context.shutdown_requested:
            context.err.print("[yellow]Interrupted, showing games checked so far.[/yellow]")
        context.err.print(f"\n[bold]Found {len(games)} games:[/bold]\n")

    render_games(
        games,
        mode,
        DisplayColumns(
            deck_hours=query.show_deck_hours,
            reviews=query.show_reviews,
            compat=query.show_compat,
            tags=query.show_tags,
        ),
        context.out,
    )
    return ExitCode.INTERRUPTED if context.shutdown_requested else ExitCode.OK


async def run_config(context: ApplicationContext, ns: argparse.Namespace) -> ExitCode:
    """Show or change stored settings."""
    service = context.config_service

    if ns.config_command == "set-key":
        _ = service.update_config(api_key=ns.api_key)
        context.out.print("[green]✓ API key saved successfully[/green]")
    elif ns.config_command == "set-user":
        steam_id = await context.steam_api.resolve_user(ns.username)
        _ = service.update_config(steam_id=steam_id, username=ns.username)
        context.out.print(f"[green]✓ User set to: {ns.username} ({steam_id})[/green]", highlight=False)
    else:
        config = service.load_config()
        not_set = "[bright_black]Not set[/bright_black]"
        key_state = "[green]Set[/green]" if service.get_api_key(config) else "[red]Not set[/red]"
        context.out.print("[bold]Current configuration:[/bold]")
        context.out.print(f"  API Key: {key_state}")
        context.out.print(f"  Username: {config.username or not_set}", highlight=False)
        context.out.print(f"  Steam ID: {config.steam_id or not_set}", highlight=False)
        context.out.print(f"  Config file: {service.config_path}", highlight=False)
    return ExitCode.OK


async def run_whoami(context: ApplicationContext, ns: argparse.Namespace) -> ExitCode:
    """Show the configured user's profile and library totals."""
    mode = output_mode(ns)
    _, steam_id = context.config_service.require_credentials(context.config)

    if mode is not OutputMode.JSON:
        context.err.print("[blue]Fetching profile...[/blue]")

    player, games = await asyncio.gather(
        context.steam_api.fetch_player_summary(steam_id),
        context.steam_api.fetch_owned_games(steam_id),
    )
    if player is None:
        raise NetworkError("Could not fetch player info.")

    render_profile(ProfileSummary.build(player, games), mode, context.out)
    return ExitCode.OK


async def run_genres(context: ApplicationContext, ns: argparse.Namespace) -> ExitCode:
    """List store genres."""
    mode = output_mode(ns)
    if mode is not OutputMode.JSON:
        context.err.print("[blue]Fetching Steam genres...[/blue]")
    render_name_list(await context.steam_api.fetch_genre_list(), mode, "genres", context.out)
    return ExitCode.OK


async def run_tags(context: ApplicationContext, ns: argparse.Namespace) -> ExitCode:
    """List popular store tags."""
    mode = output_mode(ns)
    if mode is not OutputMode.JSON:
        context.err.print("[blue]Fetching Steam tags...[/blue]")
    render_name_list(await context.steam_api.fetch_popular_tags(), mode, "tags", context.out, columns=3)
    return ExitCode.OK


COMMANDS = {
    "library": run_library,
    "config": run_config,
    "whoami": run_whoami,
    "genres": run_genres,
    "tags": run_tags,
}


async def run_command(context: ApplicationContext, ns: argparse.Namespace) -> int:
    """Run the selected command and turn failures into an exit status.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    handler = COMMANDS[ns.command]
    try:
        return int(await handler(context, ns))
    except Exception as e:
        error = context.error_service.handle_error(e, operation=ns.command)
        if output_mode(ns) is OutputMode.JSON:
            context.err.out(context.error_service.create_json_payload(error), highlight=False)
        else:
            context.err.print(context.error_service.create_user_message(error), style="red", highlight=False)
        return int(error.exit_code)
    finally:
        await context.cleanup()


def setup_signal_handlers(context: ApplicationContext) -> None:
    """Make the first Ctrl-C stop enrichment and keep partial results."""
    def signal_handler(signum: int, frame: object) -> None:
        _ = frame
        log.info("Received signal", signal=signal.Signals(signum).name)
        if not context.request_shutdown():
            raise KeyboardInterrupt

    _ = signal.signal(signal.SIGINT, signal_handler)
    _ = signal.signal(signal.SIGTERM, signal_handler)


def main(argv: list[str] | None = None) -> None:
    """Console-script entry point."""
    ns = build_parser().parse_args(argv)

    _ = setup_logging(log_level=ns.log_level or "WARNING", log_dir=ns.log_dir)

    context = ApplicationContext(config_path=ns.config)
    if ns.log_level is None and context.config.log_level != "WARNING":
        _ = setup_logging(log_level=context.config.log_level, log_dir=ns.log_dir)
    log.debug("Starting steam-library", version=__version__, command=ns.command)

    setup_signal_handlers(context)

    try:
        exit_code = asyncio.run(run_command(context, ns))
    except KeyboardInterrupt:
        log.info("Application interrupted by user")
        exit_code = int(ExitCode.INTERRUPTED)

    log.debug("Application exiting", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
