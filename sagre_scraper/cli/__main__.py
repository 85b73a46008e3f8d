"""Entry point for running CLI as module.

Usage:
    python -m sagre_scraper.cli crawl --source assosagre
    python -m sagre_scraper.cli sources
"""

from sagre_scraper.cli.main import main

if __name__ == "__main__":
    main()
