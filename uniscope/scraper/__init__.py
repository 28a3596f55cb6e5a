"""Scraper package: fetch, structured extraction, crawling and search seeding."""

from uniscope.scraper.crawler import CrawlReport, DomainCrawler
from uniscope.scraper.extractor import ContentExtractor, is_content_page
from uniscope.scraper.fetcher import FetchEngine
from uniscope.scraper.models import FetchFailure, FetchResult, RawPage, StructuredContent

__all__ = [
    "FetchEngine",
    "ContentExtractor",
    "DomainCrawler",
    "CrawlReport",
    "is_content_page",
    "RawPage",
    "FetchResult",
    "FetchFailure",
    "StructuredContent",
]
