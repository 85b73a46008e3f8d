"""Application settings and source configuration."""

from sagre_scraper.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
