"""
Season and week detection.

The season detection logic follows the NFL calendar:
- August-December → current year is the season
- January-July → previous year is the season (playoffs/offseason)

Week is a rough approximation: whole weeks since September 1st, plus one,
clamped to the 18-week regular season.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional

from nfl_parlay.config import settings
from nfl_parlay.constants import REGULAR_SEASON_WEEKS


def get_current_season(now: Optional[datetime] = None) -> int:
    """
    Detect current NFL season based on date.

    Examples:
        >>> get_current_season(datetime(2025, 11, 14))
        2025
        >>> get_current_season(datetime(2026, 1, 15))
        2025
    """
    now = now or datetime.now()
    if now.month >= 8:
        return now.year
    return now.year - 1


def calculate_current_week(now: Optional[datetime] = None) -> int:
    """
    Approximate regular-season week for a date.

    Examples:
        >>> calculate_current_week(datetime(2025, 9, 1))
        1
        >>> calculate_current_week(datetime(2025, 9, 15))
        3
    """
    now = now or datetime.now()
    season_start = datetime(now.year, 9, 1)
    if now < season_start:
        return 1

    days_since_start = (now - season_start).days
    week = days_since_start // 7 + 1
    return min(max(week, 1), REGULAR_SEASON_WEEKS)


def approximate_game_date(season: int, week: int) -> str:
    """ISO date for a week's games when a source carries no game date."""
    return (datetime(season, 9, 1) + timedelta(days=7 * (week - 1))).date().isoformat()


def get_current_week_data(now: Optional[datetime] = None) -> Dict[str, int]:
    """Current week and season, honouring CURRENT_WEEK/CURRENT_SEASON overrides."""
    return {
        'week': settings.CURRENT_WEEK or calculate_current_week(now),
        'season': settings.CURRENT_SEASON or get_current_season(now),
    }
