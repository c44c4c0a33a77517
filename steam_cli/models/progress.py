"""Progress tracking data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EnrichmentProgress:
    """Progress information for an enrichment run."""
    processed: int
    matched: int
    total: int
    limit: int | None = None

    def status_line(self) -> str:
        if self.limit is not None:
            return f"Checked {self.processed}/{self.total}, found {self.matched}/{self.limit}"
        return f"Progress: {self.processed}/{self.total}"
