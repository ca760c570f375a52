"""Imported odds parsing and matching against model legs.

CSV columns (case-insensitive): playerName, statType, line, and optionally
overOdds, underOdds, book. Odds are American. The fair probability is the
de-vigged over probability when both sides are quoted.
"""

import io
import logging
from typing import List, Optional, Sequence

import pandas as pd

from nfl_parlay.constants import ODDS_STAT_ALIASES
from nfl_parlay.parlay.odds_calculator import american_to_implied_prob, devig
from nfl_parlay.schemas import ImportedOdd, Leg, MatchedLeg
from nfl_parlay.utils.player_names import normalize_player_name

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['playername', 'stattype', 'line']


def normalize_stat_type(stat_type: str) -> str:
    """Map common stat phrasings ('rec yards', 'passing touchdowns') onto stat types."""
    normalized = stat_type.lower().strip()
    return ODDS_STAT_ALIASES.get(normalized, normalized)


def _cell(row: pd.Series, column: str) -> str:
    if column not in row.index:
        return ""
    value = row[column]
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _parse_float(text: str) -> Optional[float]:
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_odds_csv(csv_text: str) -> List[ImportedOdd]:
    """Parse an odds CSV into ``ImportedOdd`` records.

    Args:
        csv_text: CSV content with a header row

    Returns:
        Parsed odds; rows missing player, stat or a numeric line, and rows
        with more fields than the header, are skipped

    Raises:
        ValueError: If a required column is missing
    """
    if not csv_text.strip():
        return []

    malformed: List[List[str]] = []

    def _skip_malformed(fields: List[str]) -> None:
        malformed.append(fields)
        return None

    frame = pd.read_csv(
        io.StringIO(csv_text.strip()),
        dtype=str,
        keep_default_na=False,
        engine="python",
        on_bad_lines=_skip_malformed,
    )
    if malformed:
        logger.warning(f"Skipped {len(malformed)} odds rows with too many fields (unquoted comma?)")
    frame.columns = [str(column).strip().lower() for column in frame.columns]

    missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
    if missing:
        raise ValueError(f"CSV must contain columns: {', '.join(REQUIRED_COLUMNS)} (missing: {', '.join(missing)})")

    odds: List[ImportedOdd] = []
    skipped = 0

    for _, row in frame.iterrows():
        player_name = _cell(row, 'playername')
        stat_type = _cell(row, 'stattype')
        line = _parse_float(_cell(row, 'line'))
        if not player_name or not stat_type or line is None:
            skipped += 1
            continue

        over_odds = _parse_float(_cell(row, 'overodds'))
        under_odds = _parse_float(_cell(row, 'underodds'))
        over_implied = american_to_implied_prob(over_odds) if over_odds is not None else None
        under_implied = american_to_implied_prob(under_odds) if under_odds is not None else None

        if over_implied is not None and under_implied is not None:
            fair = devig(over_implied, under_implied)
        elif over_implied is not None:
            fair = over_implied
        elif under_implied is not None:
            fair = 1 - under_implied
        else:
            fair = None

        odds.append(ImportedOdd(
            player_name=player_name,
            stat_type=stat_type,
            line=line,
            over_odds=over_odds,
            under_odds=under_odds,
            book=_cell(row, 'book') or "Unknown",
            over_implied_prob=over_implied,
            under_implied_prob=under_implied,
            fair_implied_prob=fair,
        ))

    if skipped:
        logger.info(f"Skipped {skipped} odds rows missing player, stat or line")
    return odds


def match_odds_to_legs(odds: Sequence[ImportedOdd], legs: Sequence[Leg]) -> List[MatchedLeg]:
    """Match each imported odd to the model leg with the closest threshold.

    Args:
        odds: Imported odds
        legs: Model legs (typically generated with no probability floor)

    Returns:
        Matches sorted by edge (model smoothed prob - fair implied prob) desc
    """
    matches: List[MatchedLeg] = []

    for odd in odds:
        if odd.fair_implied_prob is None:
            continue

        name = normalize_player_name(odd.player_name)
        stat_type = normalize_stat_type(odd.stat_type)
        candidates = [
            leg for leg in legs
            if normalize_player_name(leg.player_name or "") == name
            and normalize_stat_type(leg.stat_type.value) == stat_type
        ]
        if not candidates:
            continue

        closest = min(candidates, key=lambda leg: abs(leg.threshold - odd.line))
        matches.append(MatchedLeg(
            imported_odd=odd,
            leg=closest,
            edge=closest.smoothed_prob - odd.fair_implied_prob,
            line_diff=abs(closest.threshold - odd.line),
        ))

    matches.sort(key=lambda match: -match.edge)
    logger.info(f"Matched {len(matches)} of {len(odds)} imported odds to model legs")
    return matches
