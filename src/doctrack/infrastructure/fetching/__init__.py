"""Content fetchers."""
