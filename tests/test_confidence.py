import pytest

from matchprob.rules import ActionType
from matchprob.strategy import Recommendation
from matchprob.strategy.confidence import (
    ConfidenceScorer,
    confidence_score,
    match_seed,
    seeded_unit,
)
from matchprob.utils.typing import Market


def reference_hash(text: str) -> int:
    data = text.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        h = (h * 31 + int.from_bytes(data[i : i + 2], "little")) % 2**32
    if h >= 2**31:
        h -= 2**32
    return abs(h)


class TestMatchSeed:
    @pytest.mark.parametrize(("text", "expected"), [("", 0), ("a", 97), ("ab", 3105), ("é", 233)])
    def test_small_values(self, text, expected):
        assert match_seed(text) == expected

    def test_surrogate_pairs_count_as_two_units(self):
        assert match_seed("\U0001F600") == 0xD83D * 31 + 0xDE00

    @pytest.mark.parametrize(
        "text",
        ["Paris Saint-Germain - Olympique de Marseille", "match-2024-08-17-psg-om", "x" * 50],
    )
    def test_wraps_to_signed_32_bits(self, text):
        assert match_seed(text) == reference_hash(text)
        assert 0 <= match_seed(text) <= 2**31


class TestConfidenceScore:
    @pytest.mark.parametrize(
        "match_id", ["", "a", "Lyon - Nantes", "match-2024-08-17-psg-om", "x" * 200]
    )
    def test_range_and_precision(self, match_id):
        score = confidence_score(match_id)
        assert 70.0 <= score <= 89.5
        assert round(score, 1) == score

    def test_deterministic(self):
        assert confidence_score("Lyon - Nantes") == confidence_score("Lyon - Nantes")

    def test_matches_seeded_formula(self):
        unit = seeded_unit(match_seed("Lyon - Nantes"), 2)
        assert confidence_score("Lyon - Nantes") == pytest.approx(70 + unit * 19.5, abs=0.05)

    def test_empty_identifier(self):
        # frac(sin(2) * 10000) = 0.97427
        assert confidence_score("") == 89.0

    def test_ignores_recommendation_content(self):
        assert confidence_score("m1", {"selection": "home"}) == confidence_score("m1")

    @pytest.mark.parametrize(("confidence", "expected"), [(0.95, 89.5), (0.8, 80.0), (0.7234, 72.3)])
    def test_explicit_confidence(self, confidence, expected):
        assert confidence_score("m1", {"confidence": confidence}) == expected

    @pytest.mark.parametrize(("confidence", "expected"), [(0.3, 70.0), (0.01, 70.0), (1, 89.5)])
    def test_explicit_confidence_is_clamped(self, confidence, expected):
        assert confidence_score("m1", {"confidence": confidence}) == expected

    @pytest.mark.parametrize("confidence", [0, -0.5, 1.5, 78.3, True, "0.8", float("nan")])
    def test_unusable_explicit_confidence(self, confidence):
        assert confidence_score("m1", {"confidence": confidence}) == confidence_score("m1")

    def test_percentage_confidence_of_a_recommendation_is_ignored(self):
        recommendation = Recommendation(
            match_id="m1",
            market=Market.ONE_X_TWO,
            action=ActionType.RECOMMEND_HOME,
            rule_id="r1",
            selection="home",
            probability=0.5,
            odds=1.9,
            confidence=78.3,
            priority=1,
        )
        assert confidence_score("m1", recommendation) == confidence_score("m1")

    def test_custom_range(self):
        scorer = ConfidenceScorer(low=50.0, span=10.0)
        assert scorer.high == 60.0
        assert 50.0 <= scorer.score("Lyon - Nantes") <= 60.0


class TestSeededUnit:
    @pytest.mark.parametrize("seed", [0, 1, 97, 2**31 - 1])
    def test_unit_interval(self, seed):
        assert 0.0 <= seeded_unit(seed, 2) < 1.0
