"""Scraper package - fetches match pages and writes the game artifact."""
from .manager import ScrapeManager, ScrapeSummary
from .sink import ResultSink
from .workers import ScrapeResult, WorkerPool

__all__ = [
    "ScrapeManager",
    "ScrapeSummary",
    "ResultSink",
    "ScrapeResult",
    "WorkerPool",
]
