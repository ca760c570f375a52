"""Player name normalization utilities"""

import re


def normalize_player_name(name):
    """
    Normalize player name for matching imported odds against model legs.

    Handles:
    - Periods, commas and quotes (A.J. vs AJ, D'Andre vs DAndre)
    - Case insensitivity
    - Extra whitespace

    Args:
        name: Player name string

    Returns:
        Normalized lowercase name suitable for matching

    Examples:
        >>> normalize_player_name("A.J. Brown")
        'aj brown'
        >>> normalize_player_name("  Ja'Marr   Chase ")
        'jamarr chase'
    """
    if not isinstance(name, str):
        return ""

    name = name.lower()
    name = re.sub(r"[.,'\"]", "", name)
    return ' '.join(name.split())
