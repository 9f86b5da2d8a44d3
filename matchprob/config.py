"""Configuration bundles for the match engine.

Every constant of the engine lives in one of the frozen dataclasses below.
Override a single value with :func:`dataclasses.replace`::

    from dataclasses import replace
    from matchprob.config import ScorelineConfig

    cfg = replace(ScorelineConfig(), home_advantage=1.25)

"""

from dataclasses import dataclass, field
from typing import Literal

DevigMethod = Literal["proportional", "power", "shin"]


@dataclass(frozen=True, slots=True)
class ScorelineConfig:
    """Constants of the Dixon-Coles scoreline model.

    Attributes:
        baseline_total_goals: expected total goals of a neutral game.
        over_high / over_low: Over-2.5 probabilities above / below which the
            expected total is moved away from the baseline.
        total_goals_slope: goals added per unit of Over-2.5 probability above 0.5.
        home_advantage: multiplier applied to the home/away win ratio.
        btts_high / btts_low: BTTS-yes probabilities triggering the lambda scaling.
        btts_up / btts_down: multiplicative lambda adjustments.
        btts_lambda_floor: lambda floor applied before ``btts_up``.
        lambda_min / lambda_max: clamp bounds for both lambdas.
        rho_tiers: ``(draw_threshold, rho)`` pairs checked in order.
        rho_default: rho when no tier matches.
        max_goals: highest goal count per side in the matrix.
        top_n: default number of scorelines returned by ``top_scores``.

    """

    baseline_total_goals: float = 2.5
    over_high: float = 0.6
    over_low: float = 0.4
    total_goals_slope: float = 2.0
    home_advantage: float = 1.35
    btts_high: float = 0.6
    btts_low: float = 0.4
    btts_up: float = 1.1
    btts_down: float = 0.9
    btts_lambda_floor: float = 1.0
    lambda_min: float = 0.5
    lambda_max: float = 4.0
    rho_tiers: tuple[tuple[float, float], ...] = ((0.28, 0.15), (0.24, 0.10))
    rho_default: float = 0.05
    max_goals: int = 6
    top_n: int = 5

    def __post_init__(self) -> None:
        if self.lambda_min <= 0 or self.lambda_max < self.lambda_min:
            raise ValueError("Lambda bounds must satisfy 0 < lambda_min <= lambda_max.")
        if self.max_goals < 2:
            raise ValueError("max_goals must be at least 2 to cover the Over/Under 2.5 line.")


@dataclass(frozen=True, slots=True)
class RuleEngineConfig:
    """Constants of the rule evaluator.

    Attributes:
        equality_epsilon: tolerance of the ``=`` and ``!=`` operators.
        missing_connector: connector used when a group lists fewer than n-1.

    """

    equality_epsilon: float = 0.01
    missing_connector: Literal["AND", "OR"] = "AND"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    devig_method: DevigMethod = "proportional"
    exclude_negative_vigorish: bool = True
    scoreline: ScorelineConfig = field(default_factory=ScorelineConfig)
    rules: RuleEngineConfig = field(default_factory=RuleEngineConfig)
