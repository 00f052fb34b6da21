"""LaLiga Fantasy market trends: scraping, name matching and trend lookups."""

__version__ = "0.1.0"
