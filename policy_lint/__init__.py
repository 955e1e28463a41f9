"""Rule engine for Markdown coding-standard and review policies."""

__version__ = "0.1.0"
