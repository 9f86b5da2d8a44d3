"""Fair probabilities from bookmaker odds.

This module removes the bookmaker margin (vigorish) from decimal odds.

Exported functions:
    - normalize_odds: Fair probabilities and vigorish of one market
    - normalize_match_odds: Same, for every market of a match
    - multiplicative_method: Proportional normalization on arrays
    - power_method: Power-based normalization
    - shin_method: Shin's method for market-consistent probabilities

"""

from .implied import (
    InsufficientOdds,
    NormalizedOdds,
    OddsResult,
    is_valid_quote,
    multiplicative_method,
    normalize_match_odds,
    normalize_odds,
    power_method,
    shin_method,
)

__all__ = [
    "InsufficientOdds",
    "NormalizedOdds",
    "OddsResult",
    "is_valid_quote",
    "multiplicative_method",
    "normalize_match_odds",
    "normalize_odds",
    "power_method",
    "shin_method",
]
