"""
nflverse weekly player stats fetcher.

Locates the season's ``player_week`` CSV among the nflverse-data GitHub
release assets, downloads it and maps the rows of a single week into
normalized game logs.
"""

import io
import logging
import re
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import requests

from nfl_parlay.config import settings
from nfl_parlay.data.cache import CacheStore, MemoryCacheStore
from nfl_parlay.data.stats_schema import normalize_game_log
from nfl_parlay.schemas import GameLog
from nfl_parlay.utils.season_utils import approximate_game_date

logger = logging.getLogger(__name__)

SOURCE_URL_TTL_SECONDS = 7 * 24 * 60 * 60
BODY_PREVIEW_CHARS = 200

# First matching nflverse column wins
COLUMN_CANDIDATES: Dict[str, List[str]] = {
    'player_id': ['player_id', 'gsis_id', 'id'],
    'player_name': ['player_name', 'player_display_name', 'name', 'full_name'],
    'position': ['position'],
    'team': ['team', 'team_abbr', 'recent_team'],
    'opponent': ['opponent', 'opponent_team'],
    'game_id': ['game_id'],
    'game_date': ['game_date', 'date'],
    'snaps': ['snaps', 'offense_snaps'],
    'passing_yards': ['passing_yards', 'pass_yards'],
    'rushing_yards': ['rushing_yards', 'rush_yards'],
    'receiving_yards': ['receiving_yards', 'rec_yards'],
    'receptions': ['receptions', 'rec'],
    'passing_tds': ['passing_tds', 'pass_tds'],
    'targets': ['targets'],
    'rushing_attempts': ['carries', 'rushing_attempts', 'rush_attempts'],
}


@dataclass
class FetchErrorDetail:
    """One failed HTTP call."""
    url: str
    error_message: str
    method: str = "GET"
    status_code: Optional[int] = None
    response_body_preview: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class GameLogFetchError(Exception):
    """Raised when weekly player stats cannot be located or downloaded."""

    def __init__(
        self,
        message: str,
        fetch_errors: Optional[List[FetchErrorDetail]] = None,
        available_seasons: Optional[List[int]] = None,
        suggested_season: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.fetch_errors = fetch_errors or []
        self.available_seasons = available_seasons or []
        self.suggested_season = suggested_season


def _error_detail(url: str, error: requests.exceptions.RequestException) -> FetchErrorDetail:
    response = getattr(error, 'response', None)
    status_code = getattr(response, 'status_code', None)
    preview = None
    if response is not None:
        preview = (getattr(response, 'text', '') or '')[:BODY_PREVIEW_CHARS]
    return FetchErrorDetail(
        url=url,
        error_message=str(error),
        status_code=status_code,
        response_body_preview=preview,
    )


def _first_present(row: Dict[str, Any], candidates: List[str]) -> Any:
    for column in candidates:
        value = row.get(column)
        if value is None or (isinstance(value, float) and pd.isna(value)):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        # numpy scalars are not JSON-serializable once cached
        return value.item() if isinstance(value, np.generic) else value
    return None


def map_player_week_row(row: Dict[str, Any], season: int, week: int) -> GameLog:
    """Map one nflverse player-week row into a normalized GameLog."""
    raw = {field: _first_present(row, candidates) for field, candidates in COLUMN_CANDIDATES.items()}
    raw = {field: value for field, value in raw.items() if value is not None}

    raw['season'] = season
    raw['week'] = week
    raw.setdefault('player_id', "")
    if 'game_id' not in raw:
        raw['game_id'] = f"{season}_{week}_{raw.get('team') or 'UNK'}"
    if 'game_date' not in raw:
        raw['game_date'] = approximate_game_date(season, week)

    return normalize_game_log(raw)


class NflverseFetcher:
    """Downloads weekly player stats from nflverse-data releases."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        store: Optional[CacheStore] = None,
        max_retries: Optional[int] = None,
        backoff: Optional[float] = None,
    ) -> None:
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": settings.USER_AGENT})
        self.session = session
        self.store = store if store is not None else MemoryCacheStore()
        self.max_retries = max_retries if max_retries is not None else settings.REQUEST_RETRIES
        self.backoff = backoff if backoff is not None else settings.REQUEST_BACKOFF

    def _get_with_retries(self, url: str) -> requests.Response:
        """GET a URL, retrying with exponential backoff.

        Raises:
            requests.exceptions.RequestException: After the final attempt fails
        """
        attempts = max(self.max_retries, 1)
        for attempt in range(attempts):
            try:
                resp = self.session.get(url, timeout=settings.REQUEST_TIMEOUT)
                resp.raise_for_status()
                return resp
            except requests.exceptions.RequestException as e:
                if attempt < attempts - 1:
                    wait_time = self.backoff ** attempt
                    logger.warning(
                        f"Fetch failed (attempt {attempt + 1}/{attempts}): {e}. "
                        f"Retrying in {wait_time}s..."
                    )
                    time.sleep(wait_time)
                else:
                    logger.error(f"Fetch failed after {attempts} attempts: {url}")
                    raise

    def discover_source_url(self, season: int) -> str:
        """Find the download URL of the season's player_week CSV.

        Raises:
            GameLogFetchError: If the release listing fails or no asset matches
        """
        cache_key = f"source_url_{season}"
        cached = self.store.get(cache_key)
        if cached:
            return cached

        releases_url = settings.NFLVERSE_RELEASES_URL
        try:
            releases = self._get_with_retries(releases_url).json()
        except requests.exceptions.RequestException as e:
            raise GameLogFetchError(
                f"Failed to list nflverse releases: {e}",
                fetch_errors=[_error_detail(releases_url, e)],
            ) from e
        except ValueError as e:
            raise GameLogFetchError(
                f"nflverse release listing is not valid JSON: {e}",
                fetch_errors=[FetchErrorDetail(url=releases_url, error_message=str(e))],
            ) from e

        seasons_seen = set()
        candidates: List[Tuple[str, str]] = []
        for release in releases or []:
            for asset in release.get('assets', []) or []:
                name = asset.get('name', '')
                if 'player_week' not in name:
                    continue
                seasons_seen.update(int(year) for year in re.findall(r'(?<!\d)(\d{4})(?!\d)', name))
                if str(season) in name and asset.get('browser_download_url'):
                    candidates.append((name, asset['browser_download_url']))

        if not candidates:
            available = sorted(seasons_seen)
            raise GameLogFetchError(
                f"No player_week stats found for season {season}",
                available_seasons=available,
                suggested_season=available[-1] if available else None,
            )

        # Prefer the plain CSV over parquet/compressed variants
        candidates.sort(key=lambda item: (not item[0].endswith('.csv'), item[0]))
        source_url = candidates[0][1]
        self.store.set(cache_key, source_url, SOURCE_URL_TTL_SECONDS)
        logger.info(f"Using nflverse source for {season}: {candidates[0][0]}")
        return source_url

    def fetch_week(self, season: int, week: int) -> Tuple[List[GameLog], str]:
        """Download the season CSV and return the given week's game logs.

        Returns:
            Tuple of (game logs, source URL)

        Raises:
            GameLogFetchError: If the source cannot be found, downloaded or parsed
        """
        source_url = self.discover_source_url(season)
        try:
            resp = self._get_with_retries(source_url)
        except requests.exceptions.RequestException as e:
            raise GameLogFetchError(
                f"Failed to download player stats for {season}: {e}",
                fetch_errors=[_error_detail(source_url, e)],
            ) from e

        try:
            frame = pd.read_csv(io.StringIO(resp.text), low_memory=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise GameLogFetchError(
                f"Failed to parse player stats CSV: {e}",
                fetch_errors=[FetchErrorDetail(
                    url=source_url,
                    error_message=str(e),
                    status_code=getattr(resp, 'status_code', None),
                    response_body_preview=resp.text[:BODY_PREVIEW_CHARS],
                )],
            ) from e

        if 'week' in frame.columns:
            frame = frame[pd.to_numeric(frame['week'], errors='coerce') == week]
        if 'season' in frame.columns:
            frame = frame[pd.to_numeric(frame['season'], errors='coerce') == season]

        logs = [map_player_week_row(row, season, week) for row in frame.to_dict(orient='records')]
        logger.info(f"Fetched {len(logs)} game logs for {season} week {week}")
        return logs, source_url
