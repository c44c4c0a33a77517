"""Terminal presentation for the Steam library CLI."""

from .display import (
    DisplayColumns,
    OutputMode,
    ProfileSummary,
    format_playtime,
    render_games,
    render_name_list,
    render_profile,
)
from .progress import ProgressReporter

__all__ = [
    "DisplayColumns",
    "OutputMode",
    "ProfileSummary",
    "ProgressReporter",
    "format_playtime",
    "render_games",
    "render_name_list",
    "render_profile",
]
