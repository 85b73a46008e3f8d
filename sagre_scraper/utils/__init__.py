"""Utility modules for the sagre scraper.

Provides shared utilities for:
- Text cleaning and slug generation
- Italian date parsing
- URL validation and map-link coordinate extraction
- Festival deduplication
- Past-event detection
"""
