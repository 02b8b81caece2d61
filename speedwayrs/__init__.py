"""Polish speedway match scraper and relational loader."""

__version__ = "0.1.0"
