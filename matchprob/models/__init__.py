"""Scoreline models for football matches.

Available models:
    - dixon_coles: Dixon-Coles Poisson model calibrated from fair market probabilities
    - score_matrix: Scoreline probability matrix utilities

"""

from .dixon_coles import (
    ScorelineModel,
    compute_scoreline_model,
    dixon_coles_correlation,
    estimate_lambdas,
    estimate_rho,
)
from .score_matrix import GoalMatrix

__all__ = [
    "GoalMatrix",
    "ScorelineModel",
    "compute_scoreline_model",
    "dixon_coles_correlation",
    "estimate_lambdas",
    "estimate_rho",
]
