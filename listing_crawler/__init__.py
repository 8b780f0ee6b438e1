"""Keyword scraper for paginated classified-listing sites."""

__version__ = "1.1.0"
