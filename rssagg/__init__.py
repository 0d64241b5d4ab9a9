"""RSS aggregator: a JSON HTTP API over SQLite for users, feeds and follows, plus a background feed scraper."""

__version__ = "0.1.0"