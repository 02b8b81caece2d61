from speedwayrs.scraper.base.scraper import BaseScraper
from speedwayrs.scraper.base.rate_limiter import RateLimiter
from speedwayrs.scraper.base.retry import with_retry

__all__ = ["BaseScraper", "RateLimiter", "with_retry"]
