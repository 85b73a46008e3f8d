"""Command-line interface for the sagre scraper."""
