"""Recommendation selection.

This module turns rule evaluation results into one recommendation per
market, with a reproducible confidence score.

Submodules:
    - bets: Recommendation and match odds structures
    - select_bets: Per-market selection of the active recommendation
    - confidence: Match-seeded confidence scores

"""

from .bets import MatchOdds, Recommendation
from .confidence import ConfidenceScorer, confidence_score
from .select_bets import select_recommendations

__all__ = [
    "ConfidenceScorer",
    "MatchOdds",
    "Recommendation",
    "confidence_score",
    "select_recommendations",
]
