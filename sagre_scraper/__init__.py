"""Italian festival ("sagre") scraper.

Extracts festival records from regional listing sites, normalizes them into a
single validated shape and optionally forwards them to a Strapi content store.
"""

__version__ = "0.1.0"
