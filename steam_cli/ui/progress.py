"""Transient progress line for enrichment runs."""

from types import TracebackType

from rich.console import Console
from rich.live import Live
from rich.text import Text

from ..models.progress import EnrichmentProgress


class ProgressReporter:
    """Shows enrichment progress as a single overwritable status line.

    Only active on an interactive console; otherwise every update is
    dropped. The line is cleared when the reporter exits.
    """

    def __init__(self, console: Console, limit: int | None = None, enabled: bool = True) -> None:
        self.console = console
        self.limit = limit
        self.enabled = enabled and console.is_terminal
        self.updates = 0
        self._live: Live | None = None

    def __enter__(self) -> "ProgressReporter":
        if self.enabled:
            self._live = Live(
                Text(""),
                console=self.console,
                transient=True,
                auto_refresh=False,
            )
            self._live.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    def __call__(self, processed: int, matched: int, total: int) -> None:
        self.updates += 1
        if self._live is None:
            return
        progress = EnrichmentProgress(processed=processed, matched=matched, total=total, limit=self.limit)
        self._live.update(Text(progress.status_line(), style="bright_black"), refresh=True)
