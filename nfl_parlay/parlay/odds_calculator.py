"""American odds conversion and bookmaker margin removal."""


def american_to_implied_prob(american_odds: float) -> float:
    """Convert American odds to implied probability.

    Args:
        american_odds: American odds (e.g., -118, +145)

    Returns:
        Implied probability [0, 1]
    """
    if american_odds > 0:
        return 100 / (american_odds + 100)
    return abs(american_odds) / (abs(american_odds) + 100)


def implied_prob_to_american(prob: float) -> int:
    """Convert implied probability to American odds.

    Args:
        prob: Probability (0, 1)

    Returns:
        American odds (rounded integer)
    """
    if not 0.0 < prob < 1.0:
        raise ValueError(f"prob must be strictly between 0 and 1, got {prob}")
    if prob >= 0.5:
        return int(round(-100 * prob / (1 - prob)))
    return int(round(100 * (1 - prob) / prob))


def american_to_decimal(american_odds: float) -> float:
    """Convert American odds to decimal odds."""
    if american_odds < 0:
        return 100 / abs(american_odds) + 1
    return american_odds / 100 + 1


def devig(over_prob: float, under_prob: float) -> float:
    """Fair over probability with the two-way margin removed.

    Normalizes the two implied probabilities to sum to 1.0.
    """
    total = over_prob + under_prob
    if total > 0:
        return over_prob / total
    return over_prob
