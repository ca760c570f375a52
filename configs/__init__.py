"""
NFL Parlay Configuration Package.

Frozen tuning parameters for leg generation and parlay construction.
"""
from configs.leg_config import LEG_CONFIG, LegConfig
from configs.parlay_config import PARLAY_CONFIG, ParlayConfig

__all__ = [
    "LEG_CONFIG",
    "LegConfig",
    "PARLAY_CONFIG",
    "ParlayConfig",
]
