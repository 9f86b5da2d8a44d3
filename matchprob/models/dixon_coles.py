import logging
from dataclasses import dataclass

import numpy as np

import matchprob.models.utils as model_utils
from matchprob.config import ScorelineConfig
from matchprob.models.score_matrix import GoalMatrix
from matchprob.utils.typing import (
    MarketProbabilities,
    PoissonModelParameters,
    ProbaResult,
    ScorelineProbability,
)

logger = logging.getLogger(name=__name__)

__all__ = [
    "ScorelineModel",
    "compute_scoreline_model",
    "dixon_coles_correlation",
    "estimate_lambdas",
    "estimate_rho",
]


def _expected_total_goals(proba_over_25: float, config: ScorelineConfig) -> float:
    if proba_over_25 > config.over_high:
        return config.baseline_total_goals + (proba_over_25 - 0.5) * config.total_goals_slope
    if proba_over_25 < config.over_low:
        return config.baseline_total_goals - (0.5 - proba_over_25) * config.total_goals_slope
    return config.baseline_total_goals


def estimate_lambdas(
    probas_1x2: ProbaResult,
    proba_btts_yes: float = 0.5,
    proba_over_25: float = 0.5,
    config: ScorelineConfig = ScorelineConfig(),
) -> tuple[float, float]:
    """Estimate the expected goals of both teams from fair market probabilities.

    The expected total comes from the Over 2.5 probability and is split with the
    home/away win ratio times the home advantage. The BTTS probability then
    scales both lambdas, which are finally clamped to the configured bounds.

    Args:
        probas_1x2 (ProbaResult): fair home, draw and away probabilities.
        proba_btts_yes (float): fair BTTS-yes probability.
        proba_over_25 (float): fair Over 2.5 probability.
        config (ScorelineConfig): model constants.

    Returns:
        tuple[float, float]: ``(lambda_home, lambda_away)``.

    Raises:
        ValueError: if a 1X2 probability is negative or all of them are zero.

    """
    total_prob = sum(probas_1x2)
    if total_prob <= 0 or min(probas_1x2) < 0:
        raise ValueError(f"Invalid 1X2 probabilities for lambda estimation: {probas_1x2}")
    normalized_home = probas_1x2.proba_home / total_prob
    normalized_away = probas_1x2.proba_away / total_prob

    if normalized_away == 0:
        # Infinite home/away ratio: both lambdas sit on their clamp bounds.
        logger.debug("Zero away probability, lambdas clamped to their bounds")
        return config.lambda_max, config.lambda_min

    expected_total = _expected_total_goals(proba_over_25, config)

    ratio = normalized_home / normalized_away
    lambda_away = expected_total / (config.home_advantage * ratio + 1)
    lambda_home = lambda_away * config.home_advantage * ratio

    if proba_btts_yes > config.btts_high:
        lambda_home = max(lambda_home, config.btts_lambda_floor) * config.btts_up
        lambda_away = max(lambda_away, config.btts_lambda_floor) * config.btts_up
    elif proba_btts_yes < config.btts_low:
        lambda_home *= config.btts_down
        lambda_away *= config.btts_down

    clamped_home = min(config.lambda_max, max(config.lambda_min, lambda_home))
    clamped_away = min(config.lambda_max, max(config.lambda_min, lambda_away))
    if (clamped_home, clamped_away) != (lambda_home, lambda_away):
        logger.debug(
            "Lambdas (%.3f, %.3f) clamped to (%.3f, %.3f)",
            lambda_home,
            lambda_away,
            clamped_home,
            clamped_away,
        )
    return clamped_home, clamped_away


def estimate_rho(proba_draw: float, config: ScorelineConfig = ScorelineConfig()) -> float:
    """Dixon-Coles rho from the draw probability: a likelier draw means a
    lower-scoring game and a stronger low-score correlation."""
    for threshold, rho in config.rho_tiers:
        if proba_draw > threshold:
            return rho
    return config.rho_default


def dixon_coles_correlation(
    lambda_home: float, lambda_away: float, rho: float, n_goals: int
) -> np.ndarray:
    """Dixon-Coles ``tau`` factors on a ``(n_goals, n_goals)`` grid.

    Only the 0-0, 0-1, 1-0 and 1-1 cells differ from 1.
    """
    corr_matrix = np.ones((n_goals, n_goals), dtype=float)
    corr_matrix[0, 0] = 1 - rho * lambda_home * lambda_away
    corr_matrix[0, 1] = 1 + rho * lambda_home
    corr_matrix[1, 0] = 1 + rho * lambda_away
    corr_matrix[1, 1] = 1 - rho
    return corr_matrix


@dataclass(frozen=True)
class ScorelineModel:
    """Calibrated scoreline model of one match.

    Attributes:
        parameters (PoissonModelParameters): lambdas and rho.
        goal_matrix (GoalMatrix): the truncated scoreline matrix.
        market_probabilities (MarketProbabilities): markets re-aggregated from
            the matrix, for consistency checks against the de-vigged odds.

    """

    parameters: PoissonModelParameters
    goal_matrix: GoalMatrix
    market_probabilities: MarketProbabilities
    top_n: int = 5

    @property
    def lambda_home(self) -> float:
        return self.parameters.lambda_home

    @property
    def lambda_away(self) -> float:
        return self.parameters.lambda_away

    @property
    def rho(self) -> float:
        return self.parameters.rho

    @property
    def scoreline_matrix(self) -> list[ScorelineProbability]:
        return self.goal_matrix.scorelines()

    def top_scores(self, n: int | None = None) -> list[ScorelineProbability]:
        return self.goal_matrix.top_scores(self.top_n if n is None else n)

    def to_dict(self) -> dict:
        return {
            "lambda_home": self.lambda_home,
            "lambda_away": self.lambda_away,
            "rho": self.rho,
            "top_scores": [s._asdict() for s in self.top_scores()],
            "market_probabilities": self.market_probabilities._asdict(),
        }


def compute_scoreline_model(
    fair_probabilities_1x2,
    fair_probability_btts_yes: float | None = None,
    fair_probability_over_2_5: float | None = None,
    config: ScorelineConfig = ScorelineConfig(),
) -> ScorelineModel:
    """Calibrate a Dixon-Coles scoreline model from fair market probabilities.

    Args:
        fair_probabilities_1x2: home, draw and away fair probabilities, as a
            ``ProbaResult``, a mapping or a sequence.
        fair_probability_btts_yes (float, optional): fair BTTS-yes probability,
            neutral (0.5) when the market is not quoted.
        fair_probability_over_2_5 (float, optional): fair Over 2.5 probability,
            neutral (0.5) when the market is not quoted.
        config (ScorelineConfig): model constants.

    Returns:
        ScorelineModel: parameters, the ``(max_goals + 1)^2`` matrix and the
        re-aggregated market probabilities.

    Example:
        >>> model = compute_scoreline_model([0.45, 0.27, 0.28], 0.55, 0.52)
        >>> model.top_scores(1)[0]
        ScorelineProbability(home_goals=1, away_goals=0, probability=...)

    """
    probas_1x2 = model_utils.as_proba_result(fair_probabilities_1x2)
    btts_yes = 0.5 if fair_probability_btts_yes is None else float(fair_probability_btts_yes)
    over_25 = 0.5 if fair_probability_over_2_5 is None else float(fair_probability_over_2_5)

    lambda_home, lambda_away = estimate_lambdas(
        probas_1x2, proba_btts_yes=btts_yes, proba_over_25=over_25, config=config
    )
    rho = estimate_rho(probas_1x2.proba_draw, config=config)

    n_goals = config.max_goals + 1
    goal_matrix = GoalMatrix(
        home_goals_probs=model_utils.poisson_proba(lambda_param=lambda_home, k=n_goals),
        away_goals_probs=model_utils.poisson_proba(lambda_param=lambda_away, k=n_goals),
        correlation_matrix=dixon_coles_correlation(lambda_home, lambda_away, rho, n_goals),
    )
    return ScorelineModel(
        parameters=PoissonModelParameters(lambda_home, lambda_away, rho),
        goal_matrix=goal_matrix,
        market_probabilities=goal_matrix.market_probabilities(),
        top_n=config.top_n,
    )
