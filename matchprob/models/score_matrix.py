from dataclasses import dataclass, field

import matplotlib.pyplot as plt
import numpy as np

from matchprob.utils.typing import (
    ArrayLikeF,
    MarketProbabilities,
    ProbaResult,
    ScorelineProbability,
)


@dataclass
class GoalMatrix:
    """Scoreline probabilities of one match, indexed ``[home_goals, away_goals]``.

    The matrix is the outer product of the two goal distributions, optionally
    multiplied cell by cell by a correlation matrix (Dixon-Coles). It is a
    truncation of the full distribution: mass beyond the last goal count is
    dropped, the matrix is not renormalized, so ``matrix_array.sum() <= 1``.
    """

    home_goals_probs: ArrayLikeF
    away_goals_probs: ArrayLikeF
    correlation_matrix: np.ndarray | None = None
    matrix_array: np.ndarray = field(init=False)

    def __post_init__(self):
        self._checks_init()
        self.matrix_array = np.outer(self.home_goals_probs, self.away_goals_probs)
        if self.correlation_matrix is not None:
            self.matrix_array = self.matrix_array * self.correlation_matrix

    def _checks_init(self):
        self.home_goals_probs = np.asarray(self.home_goals_probs, dtype=float)
        self.away_goals_probs = np.asarray(self.away_goals_probs, dtype=float)
        if (self.home_goals_probs.ndim > 1) or (self.away_goals_probs.ndim > 1):
            raise ValueError("home_goals_probs and away_goals_probs must be 1D arrays")
        if len(self.home_goals_probs) != len(self.away_goals_probs):
            raise ValueError("home_goals_probs and away_goals_probs must have the same length")
        for name, probs in (
            ("home_goals_probs", self.home_goals_probs),
            ("away_goals_probs", self.away_goals_probs),
        ):
            if not np.isfinite(probs).all():
                raise ValueError(f"{name} must contain only finite values")
            if (probs < 0).any():
                raise ValueError(f"{name} must be non-negative")
        if self.correlation_matrix is not None:
            self.correlation_matrix = np.asarray(self.correlation_matrix, dtype=float)
            n = len(self.home_goals_probs)
            if self.correlation_matrix.shape != (n, n):
                raise ValueError(
                    "correlation_matrix must have shape (n, n) matching probabilities length"
                )
            if (self.correlation_matrix < 0).any():
                raise ValueError("correlation_matrix must be non-negative")

    @property
    def max_goals(self) -> int:
        return len(self.home_goals_probs) - 1

    def _goal_grids(self) -> tuple[np.ndarray, np.ndarray]:
        n = len(self.home_goals_probs)
        return np.indices((n, n))

    def total_mass(self) -> float:
        return float(self.matrix_array.sum())

    def return_probas(self) -> ProbaResult:
        """Return results probabilities in this order: home_win, draw, away_win.

        The mass cut off by the truncation is shared among the three outcomes
        in proportion to their truncated probabilities, so the result sums to 1.

        Returns:
            ProbaResult: NamedTuple of probabilities
        """
        home_win = float(np.sum(np.tril(self.matrix_array, -1)))
        draw = float(np.sum(np.diag(self.matrix_array)))
        away_win = float(np.sum(np.triu(self.matrix_array, 1)))

        s = home_win + draw + away_win
        tail_mass = 1.0 - s
        if tail_mass > 0 and s > 0:
            home_win, draw, away_win = (
                home_win + tail_mass * (home_win / s),
                draw + tail_mass * (draw / s),
                away_win + tail_mass * (away_win / s),
            )
        return ProbaResult(proba_home=home_win, proba_draw=draw, proba_away=away_win)

    def more_25_goals(self) -> float:
        """Probability of at least 3 goals, summed over the matrix cells."""
        self.assert_format(min_goals=3, method="more_25_goals")
        home, away = self._goal_grids()
        return float(self.matrix_array[home + away > 2].sum())

    def less_25_goals(self) -> float:
        """Complement of :meth:`more_25_goals`.

        The truncated tail (7+ goals) lands here rather than in Over 2.5, unlike
        :meth:`return_probas` which spreads it proportionally. Kept on purpose so
        the market values match the dashboard.
        """
        return 1.0 - self.more_25_goals()

    def less_15_goals(self) -> float:
        self.assert_format(min_goals=2, method="less_15_goals")
        return float(self.matrix_array[0, 0] + self.matrix_array[0, 1] + self.matrix_array[1, 0])

    def more_15_goals(self) -> float:
        return 1.0 - self.less_15_goals()

    def less_35_goals(self) -> float:
        """Probability of at most 3 goals, summed over the matrix cells."""
        self.assert_format(min_goals=4, method="less_35_goals")
        home, away = self._goal_grids()
        return float(self.matrix_array[home + away < 4].sum())

    def assert_format(self, min_goals: int, method: str) -> None:
        if len(self.home_goals_probs) < min_goals:
            raise ValueError(f"Goal probabilities must have length >= {min_goals} for {method}")

    def probability_both_teams_scores(self) -> float:
        return float(np.sum(self.matrix_array[1:, 1:]))

    def market_probabilities(self) -> MarketProbabilities:
        """Re-aggregate the 1X2, BTTS and Over/Under markets from the matrix.

        BTTS-no and Under 2.5 are complements, so they absorb the truncated tail.
        """
        probas = self.return_probas()
        btts_yes = self.probability_both_teams_scores()
        over_25 = self.more_25_goals()
        return MarketProbabilities(
            proba_home=probas.proba_home,
            proba_draw=probas.proba_draw,
            proba_away=probas.proba_away,
            proba_btts_yes=btts_yes,
            proba_btts_no=1.0 - btts_yes,
            proba_over_25=over_25,
            proba_under_25=1.0 - over_25,
            proba_under_35=self.less_35_goals(),
        )

    def double_chance(self) -> tuple[float, float, float]:
        """Calculates the double chance probabilities (1X, X2, 12).

        Returns:
            tuple[float, float, float]: Home or Draw, Draw or Away, Home or Away.

        """
        probas = self.return_probas()
        p_1_x = probas.proba_home + probas.proba_draw
        p_x_2 = probas.proba_draw + probas.proba_away
        p_1_2 = probas.proba_home + probas.proba_away
        return p_1_x, p_x_2, p_1_2

    def asian_handicap_results(self, handicap: float) -> ProbaResult:
        """1X2 of the matrix once ``handicap`` goals are added to the home side.

        Half-goal lines leave no draw. The tail mass is not redistributed.

        Returns:
            ProbaResult: home win, push and away win probabilities.

        """
        n = len(self.home_goals_probs)
        tol = 1e-6

        home_indices = np.arange(n)[:, None] + handicap
        away_indices = np.arange(n)
        diff_matrix = home_indices - away_indices

        home_win = float(np.sum(self.matrix_array[diff_matrix > tol]))
        away_win = float(np.sum(self.matrix_array[diff_matrix < -tol]))
        draw = float(np.sum(self.matrix_array[np.abs(diff_matrix) <= tol]))

        return ProbaResult(proba_home=home_win, proba_draw=draw, proba_away=away_win)

    def scorelines(self) -> list[ScorelineProbability]:
        """All cells of the matrix, row by row (home goals, then away goals)."""
        n = len(self.home_goals_probs)
        return [
            ScorelineProbability(home_goals=h, away_goals=a, probability=float(self.matrix_array[h, a]))
            for h in range(n)
            for a in range(n)
        ]

    def top_scores(self, n: int = 5) -> list[ScorelineProbability]:
        """Return the ``n`` most probable scorelines.

        Ties are broken by the lower total goal count, then by the higher
        number of home goals.
        """
        if n < 0:
            raise ValueError("n must be non-negative")
        ranked = sorted(
            self.scorelines(),
            key=lambda s: (-s.probability, s.home_goals + s.away_goals, -s.home_goals),
        )
        return ranked[:n]

    def get_probable_score(self) -> tuple[int, int]:
        """Return the most probable score (home_goals, away_goals).

        Examples
        --------
        >>> gm = GoalMatrix(home_goals_probs, away_goals_probs)
        >>> gm.get_probable_score()
        (1, 0)

        """
        best = self.top_scores(1)[0]
        return best.home_goals, best.away_goals

    def visualize(self, n_goals: int = 5, ax: "plt.Axes | None" = None) -> "plt.Axes":
        """Heatmap of the first ``n_goals`` rows and columns, in percent.

        The axes are returned so callers decide whether to show or save the figure.
        """
        n = len(self.home_goals_probs)
        if n_goals > n:
            raise ValueError(f"Cannot draw {n_goals} goals from a {n}x{n} matrix.")
        window = self.matrix_array[:n_goals, :n_goals]
        if ax is None:
            _, ax = plt.subplots()
        ax.matshow(window, cmap="coolwarm")
        for (h, a), proba in np.ndenumerate(window):
            ax.text(a, h, f"{100 * proba:.1f}", ha="center", va="center", color="w")
        ax.set_xlabel("Away goals")
        ax.set_ylabel("Home goals")
        return ax

    def __str__(self) -> str:
        home, away = self.get_probable_score()
        n = len(self.home_goals_probs)
        return (
            f"GoalMatrix({n}x{n}, mass={self.total_mass():.4f}, "
            f"most probable score {home}-{away})"
        )
