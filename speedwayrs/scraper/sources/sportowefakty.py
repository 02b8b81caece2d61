"""SportoweFakty (PGE Ekstraliga) scraper implementation."""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from speedwayrs.core.config import settings
from speedwayrs.core.exceptions import ExtractionError
from speedwayrs.schemas.game import (
    GameInfo,
    Helmet,
    Player,
    PlayerResult,
    PlayerRunScore,
    Run,
    Team,
    RUN_COUNT,
    RIDERS_PER_RUN,
)
from speedwayrs.scraper.base import BaseScraper

logger = logging.getLogger(__name__)

# Month names as they appear in dates ("12 lipca 2023, 19:00")
POLISH_MONTHS = {
    "stycznia": 1,
    "lutego": 2,
    "marca": 3,
    "kwietnia": 4,
    "maja": 5,
    "czerwca": 6,
    "lipca": 7,
    "sierpnia": 8,
    "września": 9,
    "października": 10,
    "listopada": 11,
    "grudnia": 12,
}

SEASON_RE = re.compile(r"Sezon\s+(\d+)", re.I)
SCORE_RE = re.compile(r"(\d+)\D*(\d+)")
DATE_RE = re.compile(r"(\d{1,2})\s+(\w+)\s+(\d{4}),?\s+(\d{1,2}):(\d{2})")
TIME_RE = re.compile(r"(\d+)(?:[.,](\d+))?\s*sek\.")
RIDER_RE = re.compile(r"\s*(\S+) (\S+)")

# Roster cells after the shirt number and the name
MAX_ROUNDS = 7


@dataclass
class Season:
    """A season index page listed in the schedule filter."""
    year: int
    url: str


@dataclass
class GameSite:
    """A discovered match page."""
    url: str


class SportoweFaktyParser:
    """Parser for SportoweFakty HTML."""

    CURRENT_SEASON = "li.filtersitem:nth-child(1) > div:nth-child(1)"
    SEASON_DROPDOWN = "li.filtersitem:nth-child(1) > div:nth-child(2) > ul:nth-child(2)"
    MATCH_LINK = ".cmatch__link"

    TEAM_NAME = ".mclabel__name > .name"
    HEADLINE_SCORE = ".matchcoverage__result"
    DATE_ITEM = ".matchcoverage__info > li:nth-of-type(1)"
    STADIUM_ITEM = ".matchcoverage__info > li:nth-of-type(2)"
    ROSTER_TABLE = ".coveragetab__speedwaytables > div:nth-child({}) > table:nth-child(2) > tbody:nth-child(2)"

    RUN_LIST = ".coveragelist"
    RUN_TIME = ".coventry__time"
    COMPETITOR = ".competitor"
    COMPETITOR_NAME = ".competitor__name"
    COMPETITOR_SCORE = ".competitor__score"
    COMPETITOR_HELMET = ".icon-helmet"

    def __init__(self, base_url: str = None):
        self.base_url = base_url or settings.BASE_SITE

    # -- schedule pages -----------------------------------------------------

    def parse_seasons(self, html: str, url: str) -> List[Season]:
        """Extract the current season and every season in the filter dropdown.

        Args:
            html: Raw HTML of the schedule root page
            url: Address of that page; the current season points back to it

        Returns:
            Seasons in page order, current season first
        """
        soup = BeautifulSoup(html, 'html.parser')

        current = soup.select_one(self.CURRENT_SEASON)
        if current is None:
            raise ExtractionError(url, "Unable to find current season info.")
        seasons = [Season(year=self._season_year(current.get_text(strip=True), url), url=url)]

        dropdown = soup.select_one(self.SEASON_DROPDOWN)
        if dropdown is None:
            raise ExtractionError(url, "Unable to find dropdown menu with season dates.")

        for item in dropdown.find_all('li'):
            link = item.find('a')
            if link is None:
                raise ExtractionError(url, "Unable to find <a> element in season list.")
            href = link.get('href')
            if not href:
                raise ExtractionError(url, "Season link has no href.")
            year = self._season_year(link.get_text(strip=True), url)
            seasons.append(Season(year=year, url=urljoin(self.base_url, href)))

        return seasons

    def _season_year(self, label: str, url: str) -> int:
        match = SEASON_RE.search(label)
        if not match:
            raise ExtractionError(url, f"Season string is invalid. Expected 'Sezon <year>', got [{label}].")
        return int(match.group(1))

    def parse_schedule(self, html: str, url: str) -> List[GameSite]:
        """Extract match page links from a season schedule."""
        soup = BeautifulSoup(html, 'html.parser')
        sites = []

        for link in soup.select(self.MATCH_LINK):
            href = link.get('href')
            if not href:
                raise ExtractionError(url, "Unable to find href attribute of game site.")
            sites.append(GameSite(url=urljoin(self.base_url, href)))

        return sites

    # -- match page -----------------------------------------------------------

    def parse_game(self, html: str, url: str) -> GameInfo:
        """Extract a full match record from a match page.

        Raises:
            ExtractionError: if any expected element is missing or a value
                cannot be decoded.
        """
        soup = BeautifulSoup(html, 'html.parser')

        names = soup.select(self.TEAM_NAME)
        if len(names) < 2:
            raise ExtractionError(url, "Unable to find both team names.")
        team1_name = names[0].get_text(strip=True)
        team2_name = names[1].get_text(strip=True)

        score1, score2 = self.parse_score(self._text(soup, self.HEADLINE_SCORE, url, "score"), url)
        date = self.parse_date(self._text(soup, self.DATE_ITEM, url, "match date"), url)
        stadium = self._text(soup, self.STADIUM_ITEM, url, "stadium")
        if not stadium:
            raise ExtractionError(url, "Stadium description is empty.")

        team1 = Team(name=team1_name, points=score1, players=self._parse_roster(soup, 1, url))
        team2 = Team(name=team2_name, points=score2, players=self._parse_roster(soup, 2, url))

        for team in (team1, team2):
            roster_points = team.roster_points()
            if roster_points != team.points:
                logger.debug(
                    f"{team.name}: roster points {roster_points} differ from headline {team.points} on {url}"
                )

        return GameInfo(
            team1=team1,
            team2=team2,
            stadium=stadium,
            date=date,
            runs=self.parse_runs(soup, url),
        )

    def _text(self, soup: BeautifulSoup, selector: str, url: str, what: str) -> str:
        elem = soup.select_one(selector)
        if elem is None:
            raise ExtractionError(url, f"Unable to find {what}.")
        return elem.get_text(" ", strip=True)

    def parse_score(self, text: str, url: str) -> Tuple[int, int]:
        match = SCORE_RE.search(text)
        if not match:
            raise ExtractionError(url, f"Unable to parse match score [{text}].")
        return int(match.group(1)), int(match.group(2))

    def parse_date(self, text: str, url: str) -> datetime:
        """Decode dates like '12 lipca 2023, 19:00'."""
        match = DATE_RE.search(text)
        if not match:
            raise ExtractionError(url, f"Unable to parse match date [{text}].")

        day, month_name, year, hour, minute = match.groups()
        month = POLISH_MONTHS.get(month_name.lower())
        if month is None:
            raise ExtractionError(url, f"Unknown month [{month_name}].")

        try:
            return datetime(int(year), month, int(day), int(hour), int(minute))
        except ValueError as e:
            raise ExtractionError(url, f"Invalid match date [{text}]: {e}") from e

    def _parse_roster(self, soup: BeautifulSoup, index: int, url: str) -> List[Player]:
        table = soup.select_one(self.ROSTER_TABLE.format(index))
        if table is None:
            raise ExtractionError(url, f"Unable to find team {index} players.")
        return [self.parse_player(row, url) for row in table.find_all('tr')]

    def parse_player(self, row: Tag, url: str) -> Player:
        """Parse one roster row: shirt number, name link, round scores."""
        cells = row.find_all('td')
        if len(cells) < 2:
            raise ExtractionError(url, "Roster row is missing number or name cell.")

        number_text = cells[0].get_text(strip=True)
        if not number_text.isdigit():
            raise ExtractionError(url, f"Invalid shirt number [{number_text}].")

        link = cells[1].find('a')
        credentials = link.get('title') if link is not None else None
        if not credentials:
            credentials = cells[1].get_text(" ", strip=True)
        parts = credentials.split()
        if len(parts) < 2:
            raise ExtractionError(url, f"Unable to split rider name [{credentials}].")

        scores = []
        for cell in cells[2:2 + MAX_ROUNDS]:
            scores.append(self._decode(cell.get_text(strip=True), url))

        return Player(name=parts[0], surname=parts[1], number=int(number_text), scores=scores)

    def parse_runs(self, soup: BeautifulSoup, url: str) -> List[Run]:
        """Parse the 15 heats.

        The coverage list shows the latest heat first, so the first block on
        the page is heat 15.
        """
        container = soup.select_one(self.RUN_LIST)
        if container is None:
            raise ExtractionError(url, "Unable to find heat list.")

        times = container.select(self.RUN_TIME)
        competitors = container.select(self.COMPETITOR)
        if len(times) < RUN_COUNT:
            raise ExtractionError(url, f"Expected {RUN_COUNT} heat times, found {len(times)}.")
        if len(competitors) < RUN_COUNT * RIDERS_PER_RUN:
            raise ExtractionError(
                url, f"Expected {RUN_COUNT * RIDERS_PER_RUN} heat entries, found {len(competitors)}."
            )

        runs = []
        for i in range(RUN_COUNT):
            riders = competitors[i * RIDERS_PER_RUN:(i + 1) * RIDERS_PER_RUN]
            runs.append(Run(
                number=RUN_COUNT - i,
                time=self.parse_time(times[i].get_text(strip=True), url),
                player_score=[self.parse_competitor(rider, url) for rider in riders],
            ))
        return runs

    def parse_time(self, text: str, url: str) -> Optional[Tuple[int, int]]:
        """Decode '58.12 sek.' into (58, 12); empty text means no time."""
        if not text:
            return None
        match = TIME_RE.search(text)
        if not match:
            raise ExtractionError(url, f"Unable to parse heat time [{text}].")
        return int(match.group(1)), int(match.group(2) or 0)

    def parse_competitor(self, element: Tag, url: str) -> PlayerRunScore:
        name_elem = element.select_one(self.COMPETITOR_NAME)
        if name_elem is None:
            raise ExtractionError(url, "Unable to load rider name.")
        match = RIDER_RE.search(name_elem.get_text())
        if not match:
            raise ExtractionError(url, f"Unable to parse rider name from [{name_elem.get_text()}].")

        score_elem = element.select_one(self.COMPETITOR_SCORE)
        if score_elem is None:
            raise ExtractionError(url, "Unable to load rider's score.")
        code = score_elem.get_text(strip=True)[:2]

        helmet_elem = element.select_one(self.COMPETITOR_HELMET)
        if helmet_elem is None:
            raise ExtractionError(url, "Unable to find helmet color.")
        helmet = Helmet.from_class_names(" ".join(helmet_elem.get('class', [])).lower())

        return PlayerRunScore(
            name=f"{match.group(1)} {match.group(2)}",
            score=self._decode(code, url),
            helmet=helmet,
        )

    def _decode(self, code: str, url: str) -> PlayerResult:
        try:
            return PlayerResult.parse(code)
        except ValueError as e:
            raise ExtractionError(url, str(e)) from e


class SportoweFaktyScraper(BaseScraper):
    """Scraper for the SportoweFakty speedway schedule."""

    def __init__(self, base_url: str = None, schedule_path: str = None, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url or settings.BASE_SITE
        self.schedule_url = urljoin(self.base_url, schedule_path or settings.SCHEDULE_PATH)
        self._parser = SportoweFaktyParser(self.base_url)

    async def get_seasons(self) -> List[Season]:
        """Get every season listed on the schedule root page."""
        html = await self.fetch(self.schedule_url)
        return self._parser.parse_seasons(html, self.schedule_url)

    async def get_game_sites(self, season: Season) -> List[GameSite]:
        """Get match page links for a season."""
        html = await self.fetch(season.url)
        return self._parser.parse_schedule(html, season.url)

    async def get_game(self, site: GameSite) -> GameInfo:
        """Fetch and parse a single match page."""
        html = await self.fetch(site.url)
        return self._parser.parse_game(html, site.url)
