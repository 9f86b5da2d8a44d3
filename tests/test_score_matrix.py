import math

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pytest

from matchprob.models.score_matrix import GoalMatrix
from matchprob.utils.typing import MarketProbabilities, ProbaResult


class TestGoalMatrixInitialization:
    """Tests for GoalMatrix initialization and validation."""

    def test_basic_initialization(self):
        home_probs = [0.1, 0.3, 0.4, 0.2]
        away_probs = [0.2, 0.3, 0.35, 0.15]
        gm = GoalMatrix(home_probs, away_probs)

        assert isinstance(gm.matrix_array, np.ndarray)
        assert gm.matrix_array.shape == (4, 4)
        assert gm.correlation_matrix is None
        assert gm.max_goals == 3

    def test_initialization_with_correlation(self):
        home_probs = [0.1, 0.3, 0.4, 0.2]
        away_probs = [0.2, 0.3, 0.35, 0.15]
        corr_matrix = np.full((4, 4), 2.0)
        gm = GoalMatrix(home_probs, away_probs, correlation_matrix=corr_matrix)

        assert np.allclose(gm.matrix_array, 2.0 * np.outer(home_probs, away_probs))

    def test_truncated_matrix_is_not_renormalized(self):
        gm = GoalMatrix([0.5, 0.3], [0.5, 0.3])
        assert gm.total_mass() == pytest.approx(0.64)

    def test_mismatched_array_lengths(self):
        with pytest.raises(
            ValueError, match="home_goals_probs and away_goals_probs must have the same length"
        ):
            GoalMatrix([0.2, 0.5, 0.3], [0.3, 0.4])

    def test_multidimensional_probs(self):
        with pytest.raises(ValueError, match="must be 1D arrays"):
            GoalMatrix([[0.2, 0.5], [0.3, 0.2]], [0.3, 0.4, 0.3])

    def test_mismatched_correlation_matrix_size(self):
        with pytest.raises(
            ValueError,
            match=r"correlation_matrix must have shape \(n, n\) matching probabilities length",
        ):
            GoalMatrix([0.2, 0.5, 0.3], [0.3, 0.4, 0.3], correlation_matrix=np.eye(4))

    def test_negative_probabilities_raise(self):
        with pytest.raises(ValueError, match="home_goals_probs must be non-negative"):
            GoalMatrix([-0.1, 1.1], [0.5, 0.5])

    def test_nan_probabilities_raise(self):
        with pytest.raises(ValueError, match="away_goals_probs must contain only finite values"):
            GoalMatrix([0.5, 0.5], [np.nan, 1.0])

    def test_negative_correlation_matrix_raise(self):
        corr_matrix = np.array([[1.0, -1.0], [1.0, 1.0]])
        with pytest.raises(ValueError, match="correlation_matrix must be non-negative"):
            GoalMatrix([0.5, 0.5], [0.5, 0.5], correlation_matrix=corr_matrix)


class TestReturnProbas:
    def test_return_probas_values(self):
        gm = GoalMatrix([0.6, 0.4], [0.6, 0.4])

        result = gm.return_probas()

        assert isinstance(result, ProbaResult)
        # Draw: 0.36 + 0.16, home win: 0.24, away win: 0.24
        assert math.isclose(result.proba_draw, 0.52, rel_tol=1e-9)
        assert math.isclose(result.proba_home, 0.24, rel_tol=1e-9)

    def test_tail_mass_is_redistributed(self):
        gm = GoalMatrix([0.5, 0.3], [0.5, 0.3])

        result = gm.return_probas()

        assert math.isclose(sum(result), 1.0, rel_tol=1e-12)
        assert math.isclose(result.proba_home, result.proba_away, rel_tol=1e-12)


class TestGoalMarketMethods:
    def test_exactly_three_goals_is_over(self):
        # All the mass on 1-2.
        gm = GoalMatrix([0.0, 1.0, 0.0, 0.0], [0.0, 0.0, 1.0, 0.0])
        assert gm.more_25_goals() == pytest.approx(1.0)
        assert gm.less_25_goals() == pytest.approx(0.0)
        assert gm.less_35_goals() == pytest.approx(1.0)

    def test_more_25_goals_sums_cells(self):
        probs = [0.3, 0.3, 0.2, 0.2]
        gm = GoalMatrix(probs, probs)
        expected = sum(
            gm.matrix_array[h, a] for h in range(4) for a in range(4) if h + a > 2
        )
        assert gm.more_25_goals() == pytest.approx(expected)

    def test_less_15_goals(self):
        probs = [0.3, 0.3, 0.2, 0.2]
        gm = GoalMatrix(probs, probs)
        expected = gm.matrix_array[0, 0] + gm.matrix_array[0, 1] + gm.matrix_array[1, 0]
        assert math.isclose(gm.less_15_goals(), expected)
        assert math.isclose(gm.more_15_goals() + gm.less_15_goals(), 1.0)

    def test_insufficient_length(self):
        gm = GoalMatrix([0.5, 0.5], [0.5, 0.5])
        with pytest.raises(ValueError, match="must have length >= 3 for more_25_goals"):
            gm.more_25_goals()

    def test_both_teams_score_excludes_blanks(self):
        probs = [0.3, 0.3, 0.2, 0.2]
        gm = GoalMatrix(probs, probs)
        assert gm.probability_both_teams_scores() == pytest.approx(0.7 * 0.7)

    def test_market_probabilities(self):
        probs = [0.3, 0.3, 0.2, 0.1, 0.05]
        gm = GoalMatrix(probs, probs)

        markets = gm.market_probabilities()

        assert isinstance(markets, MarketProbabilities)
        assert markets.proba_btts_yes + markets.proba_btts_no == pytest.approx(1.0)
        assert markets.proba_over_25 + markets.proba_under_25 == pytest.approx(1.0)
        assert sum(markets.result_1x2()) == pytest.approx(1.0)


class TestAsianHandicap:
    def test_asian_handicap_no_handicap(self):
        gm = GoalMatrix([0.5, 0.5], [0.5, 0.5])

        ah_result = gm.asian_handicap_results(0)
        probas_result = gm.return_probas()

        assert math.isclose(ah_result.proba_home, probas_result.proba_home, rel_tol=1e-5)
        assert math.isclose(ah_result.proba_draw, probas_result.proba_draw, rel_tol=1e-5)

    def test_half_goal_handicap_has_no_draw(self):
        gm = GoalMatrix([0.3, 0.3, 0.2, 0.2], [0.3, 0.3, 0.2, 0.2])
        ah_result = gm.asian_handicap_results(0.5)
        assert ah_result.proba_draw == 0.0
        assert math.isclose(ah_result.proba_home + ah_result.proba_away, 1.0, rel_tol=1e-9)


class TestDoubleChance:
    def test_double_chance_sum(self):
        gm = GoalMatrix([0.3, 0.3, 0.2, 0.2], [0.3, 0.3, 0.2, 0.2])

        probas = gm.return_probas()
        p_1x, p_x2, p_12 = gm.double_chance()

        assert math.isclose(p_1x, probas.proba_home + probas.proba_draw, rel_tol=1e-9)
        assert math.isclose(p_x2, probas.proba_draw + probas.proba_away, rel_tol=1e-9)
        assert math.isclose(p_12, probas.proba_home + probas.proba_away, rel_tol=1e-9)


class TestTopScores:
    def test_ties_prefer_fewer_goals_then_home_goals(self):
        third = 1.0 / 3.0
        gm = GoalMatrix([third] * 3, [third] * 3)

        ranked = [(s.home_goals, s.away_goals) for s in gm.top_scores(6)]

        assert ranked == [(0, 0), (1, 0), (0, 1), (2, 0), (1, 1), (0, 2)]

    def test_sorted_by_probability(self):
        gm = GoalMatrix([0.1, 0.6, 0.3], [0.5, 0.3, 0.2])

        top = gm.top_scores(3)

        assert (top[0].home_goals, top[0].away_goals) == (1, 0)
        assert [s.probability for s in top] == sorted((s.probability for s in top), reverse=True)
        assert gm.get_probable_score() == (1, 0)

    def test_scorelines_cover_matrix(self):
        gm = GoalMatrix([0.1, 0.6, 0.3], [0.5, 0.3, 0.2])
        cells = gm.scorelines()
        assert len(cells) == 9
        assert sum(c.probability for c in cells) == pytest.approx(gm.total_mass())

    def test_negative_n(self):
        gm = GoalMatrix([0.5, 0.5], [0.5, 0.5])
        with pytest.raises(ValueError):
            gm.top_scores(-1)


class TestDisplay:
    def test_visualize_returns_axes(self):
        matplotlib.use("Agg")
        gm = GoalMatrix([0.3, 0.3, 0.2, 0.2], [0.5, 0.3, 0.1, 0.1])

        ax = gm.visualize(n_goals=3)

        assert ax.get_xlabel() == "Away goals"
        assert len(ax.texts) == 9
        plt.close("all")

    def test_visualize_too_many_goals(self):
        gm = GoalMatrix([0.5, 0.5], [0.5, 0.5])
        with pytest.raises(ValueError, match="Cannot draw 5 goals"):
            gm.visualize(n_goals=5)

    def test_str(self):
        gm = GoalMatrix([0.1, 0.6, 0.3], [0.5, 0.3, 0.2])
        assert str(gm) == "GoalMatrix(3x3, mass=1.0000, most probable score 1-0)"
