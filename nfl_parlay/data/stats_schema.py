"""
Canonical Game-Log Schema and Stat Normalizer

All game-log sources (local JSON, nflverse CSV, user imports) are mapped onto
the fixed-shape ``GameLog`` record defined in ``nfl_parlay.schemas``.

Key rules:
1. Alternate stat keys (``passing_yards``, ``rec``, ...) fill a canonical stat
   only when the canonical value is absent or null. Canonical values always win.
2. Any tracked stat still absent afterwards is 0, never "unknown".
3. Unrecognised fields are kept in ``extras`` for debugging only.
4. Normalizing an already-canonical log returns an equal log.
"""

import math
import numbers
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from nfl_parlay.constants import (
    FIELD_ALIASES,
    STAT_ALIASES,
    TRACKED_STATS,
    USAGE_ALIASES,
)
from nfl_parlay.schemas import GameLog

CANONICAL_COLUMNS = [
    # Identifiers
    "player_id",
    "player_name",
    "game_date",
    "game_id",
    "week",
    "season",
    "team",
    "opponent",
    "position",
    "snaps",
    # Tracked stats
    "pass_yards",
    "rush_yards",
    "rec_yards",
    "receptions",
    "pass_tds",
    # Usage
    "targets",
    "rush_attempts",
]

_TEXT_FIELDS = ["player_name", "game_id", "team", "opponent", "position"]
_INT_FIELDS = ["week", "season"]
_FLOAT_FIELDS = ["snaps", "targets", "rush_attempts"]


def _to_number(value: Any) -> Optional[float]:
    """Coerce a source value to float; None when absent or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _to_int(value: Any) -> Optional[int]:
    number = _to_number(value)
    return int(number) if number is not None else None


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value)
    return text if text else None


def _raw_fields(record: Union[Mapping[str, Any], GameLog]) -> Dict[str, Any]:
    if isinstance(record, GameLog):
        return {**record.model_dump(exclude={"extras"}), "extras": dict(record.extras)}
    return dict(record)


def normalize_game_log(record: Union[Mapping[str, Any], GameLog]) -> GameLog:
    """Map a raw game-log record onto the canonical ``GameLog``.

    Args:
        record: Raw mapping (arbitrary extra fields allowed) or a ``GameLog``

    Returns:
        Canonical GameLog with all five tracked stats numeric
    """
    raw = _raw_fields(record)
    canonical: Dict[str, Any] = {}
    extras: Dict[str, Any] = {}

    for key, value in raw.items():
        if key == "extras" and isinstance(value, Mapping):
            extras.update(value)
        elif key in CANONICAL_COLUMNS:
            canonical[key] = value
        else:
            extras[key] = value

    # camelCase identifiers only fill what snake_case left empty
    for alias, field_name in FIELD_ALIASES.items():
        if alias in raw and canonical.get(field_name) is None:
            canonical[field_name] = raw[alias]
            extras.pop(alias, None)

    for field_name in TRACKED_STATS + _FLOAT_FIELDS:
        canonical[field_name] = _to_number(canonical.get(field_name))

    for aliases in (STAT_ALIASES, USAGE_ALIASES):
        for alt_key, field_name in aliases.items():
            if canonical[field_name] is None and alt_key in extras:
                canonical[field_name] = _to_number(extras[alt_key])

    for field_name in TRACKED_STATS:
        if canonical[field_name] is None:
            canonical[field_name] = 0.0

    for field_name in _TEXT_FIELDS:
        canonical[field_name] = _to_text(canonical.get(field_name))
    for field_name in _INT_FIELDS:
        canonical[field_name] = _to_int(canonical.get(field_name))
    canonical["player_id"] = _to_text(canonical.get("player_id")) or ""
    canonical["game_date"] = _to_text(canonical.get("game_date")) or ""

    return GameLog(**canonical, extras=extras)


def normalize_game_logs(records: Iterable[Union[Mapping[str, Any], GameLog]]) -> List[GameLog]:
    """Normalize a sequence of game-log records."""
    return [normalize_game_log(record) for record in records]


def game_date_key(log: GameLog) -> float:
    """Sort key for a log's date (unparseable dates sort as oldest)."""
    timestamp = pd.to_datetime(log.game_date, errors="coerce", utc=True)
    if pd.isna(timestamp):
        return float("-inf")
    return float(timestamp.value)


def sort_by_date_desc(logs: Iterable[GameLog]) -> List[GameLog]:
    """Most recent game first; equal dates keep input order."""
    return sorted(logs, key=game_date_key, reverse=True)


def game_logs_to_frame(logs: Iterable[GameLog]) -> pd.DataFrame:
    """Build a DataFrame in canonical column order."""
    records = [log.model_dump(exclude={"extras"}) for log in logs]
    return pd.DataFrame(records, columns=CANONICAL_COLUMNS)
