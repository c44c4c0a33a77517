"""Command-line browser for Steam game libraries."""

__version__ = "0.1.0"
