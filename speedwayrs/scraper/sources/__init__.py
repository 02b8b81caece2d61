from speedwayrs.scraper.sources.sportowefakty import (
    SportoweFaktyScraper,
    SportoweFaktyParser,
    Season,
    GameSite,
)

__all__ = [
    "SportoweFaktyScraper", "SportoweFaktyParser",
    "Season", "GameSite",
]
