from enum import Enum
from typing import NamedTuple

import numpy as np

ArrayLikeF = list[float] | np.ndarray


class Market(str, Enum):
    """Betting markets handled by the engine."""

    ONE_X_TWO = "1x2"
    BTTS = "btts"
    OU25 = "ou25"

    @property
    def outcomes(self) -> tuple[str, ...]:
        return MARKET_OUTCOMES[self]


MARKET_OUTCOMES: dict[Market, tuple[str, ...]] = {
    Market.ONE_X_TWO: ("home", "draw", "away"),
    Market.BTTS: ("yes", "no"),
    Market.OU25: ("over", "under"),
}


class ProbaResult(NamedTuple):
    """Named tuple for Probabilities."""

    proba_home: float
    proba_draw: float
    proba_away: float


class PoissonModelParameters(NamedTuple):
    """Goal-rate parameters of a single match.

    Attributes:
        lambda_home (float): expected goals scored by the home team.
        lambda_away (float): expected goals scored by the away team.
        rho (float): Dixon-Coles low-score correlation coefficient.

    """

    lambda_home: float
    lambda_away: float
    rho: float


class ScorelineProbability(NamedTuple):
    home_goals: int
    away_goals: int
    probability: float


class MarketProbabilities(NamedTuple):
    """Market probabilities re-aggregated from a scoreline matrix."""

    proba_home: float
    proba_draw: float
    proba_away: float
    proba_btts_yes: float
    proba_btts_no: float
    proba_over_25: float
    proba_under_25: float
    proba_under_35: float

    def result_1x2(self) -> ProbaResult:
        return ProbaResult(
            proba_home=self.proba_home, proba_draw=self.proba_draw, proba_away=self.proba_away
        )
