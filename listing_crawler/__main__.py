"""Allow running as `python -m listing_crawler`."""

from .cli import main

main()
