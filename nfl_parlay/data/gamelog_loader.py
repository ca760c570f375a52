"""
Game-log loading from local JSON files and the per-week nflverse cache.

Accepted JSON shapes:
- a top-level array of game-log records
- an object with a ``gamelogs`` or ``data`` array
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from nfl_parlay.config import settings
from nfl_parlay.data.cache import CacheStore, MemoryCacheStore
from nfl_parlay.data.fetcher import GameLogFetchError, NflverseFetcher
from nfl_parlay.data.stats_schema import normalize_game_logs
from nfl_parlay.schemas import GameLog

logger = logging.getLogger(__name__)


class GameLogLoadError(Exception):
    """Raised when a game-log file is missing, empty or malformed."""

    def __init__(self, error: str, file_path: Union[str, Path], details: Optional[str] = None):
        message = f"{error}: {file_path}"
        if details:
            message = f"{message} ({details})"
        super().__init__(message)
        self.error = error
        self.file_path = str(file_path)
        self.details = details


@dataclass
class LoadGameLogsResult:
    game_logs: List[GameLog]
    file_path: str


@dataclass
class GameLogRangeResult:
    """Logs for a week range plus where each week came from."""
    game_logs: List[GameLog] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _extract_records(payload: Any, path: Path) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        records = payload
    elif isinstance(payload, dict) and isinstance(payload.get('gamelogs'), list):
        records = payload['gamelogs']
    elif isinstance(payload, dict) and isinstance(payload.get('data'), list):
        records = payload['data']
    else:
        raise GameLogLoadError(
            "Invalid game log format",
            path,
            "expected an array, or an object with a 'gamelogs' or 'data' array",
        )

    if not records:
        raise GameLogLoadError("Game log file contains no records", path)
    if not all(isinstance(record, dict) for record in records):
        raise GameLogLoadError("Invalid game log format", path, "every record must be an object")
    return records


def load_game_logs_file(path: Optional[Union[str, Path]] = None) -> LoadGameLogsResult:
    """Load and normalize game logs from a JSON file.

    Args:
        path: JSON file (default: settings.GAMELOGS_FILE)

    Returns:
        LoadGameLogsResult with normalized logs

    Raises:
        GameLogLoadError: If the file is missing, empty, unparseable or malformed
    """
    path = Path(path) if path is not None else settings.GAMELOGS_FILE

    if not path.exists():
        raise GameLogLoadError("Game log file not found", path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise GameLogLoadError("Failed to read game log file", path, str(e)) from e

    if not text.strip():
        raise GameLogLoadError("Game log file is empty", path)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise GameLogLoadError("Failed to parse game log JSON", path, str(e)) from e

    logs = normalize_game_logs(_extract_records(payload, path))
    logger.info(f"Loaded {len(logs)} game logs from {path}")
    return LoadGameLogsResult(game_logs=logs, file_path=str(path))


def load_game_logs_for_range(
    season: int,
    start_week: int,
    end_week: int,
    fetcher: Optional[NflverseFetcher] = None,
    store: Optional[CacheStore] = None,
    ttl_seconds: Optional[float] = None,
) -> GameLogRangeResult:
    """Game logs for weeks ``start_week..end_week`` of a season.

    Each week is served from the store when cached (key
    ``gamelogs_{season}_{week}``), otherwise fetched and cached. A week that
    fails to fetch is recorded in ``errors`` and skipped.
    """
    if start_week > end_week:
        raise ValueError(f"start_week ({start_week}) must not exceed end_week ({end_week})")

    store = store if store is not None else MemoryCacheStore()
    fetcher = fetcher if fetcher is not None else NflverseFetcher(store=store)
    ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.CACHE_TTL_SECONDS

    result = GameLogRangeResult()
    for week in range(start_week, end_week + 1):
        cache_key = f"gamelogs_{season}_{week}"
        cached = store.get(cache_key)
        if cached is not None:
            result.game_logs.extend(normalize_game_logs(cached))
            result.sources.append(f"cache:{cache_key}")
            continue

        try:
            logs, source_url = fetcher.fetch_week(season, week)
        except GameLogFetchError as e:
            logger.warning(f"Skipping {season} week {week}: {e}")
            result.errors.append(f"week {week}: {e}")
            continue

        store.set(cache_key, [log.model_dump(mode="json") for log in logs], ttl_seconds)
        result.game_logs.extend(logs)
        result.sources.append(source_url)

    logger.info(
        f"Loaded {len(result.game_logs)} game logs for {season} weeks {start_week}-{end_week} "
        f"({len(result.errors)} failed)"
    )
    return result
