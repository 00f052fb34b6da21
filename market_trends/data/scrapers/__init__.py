"""Scraper exports."""

from .futbolfantasy import MarketPageFetcher, MarketTrendsParser, extract_team_mapping

__all__ = ["MarketPageFetcher", "MarketTrendsParser", "extract_team_mapping"]
