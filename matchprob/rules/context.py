from collections.abc import Mapping
from dataclasses import dataclass

from matchprob.implied_odds import NormalizedOdds, OddsResult, is_valid_quote
from matchprob.rules.conditions import ConditionType
from matchprob.utils.typing import Market


class UnknownConditionField(LookupError):
    """A condition references a signal the evaluation context does not define."""


_VIGORISH_FIELDS = {
    Market.ONE_X_TWO: "vigorish_1x2",
    Market.BTTS: "vigorish_btts",
    Market.OU25: "vigorish_ou25",
}

# Probability fields per market, in the order of the market's outcomes.
_PROBABILITY_FIELDS = {
    Market.ONE_X_TWO: ("probability_home", "probability_draw", "probability_away"),
    Market.BTTS: ("probability_btts_yes", "probability_btts_no"),
    Market.OU25: ("probability_over25", "probability_under25"),
}

_ODDS_FIELDS = {
    Market.ONE_X_TWO: ("odds_home", "odds_draw", "odds_away"),
    Market.BTTS: ("odds_btts_yes", "odds_btts_no"),
    Market.OU25: ("odds_over25", "odds_under25"),
}


@dataclass(frozen=True)
class RuleEvaluationContext:
    """Flat numeric snapshot of one match read by rule conditions.

    Probabilities and vigorish are stored as fractions (0.52, 0.045). Rule
    thresholds are written on a 0-100 scale, the conversion happens in
    :meth:`value_for`. A ``None`` field means the signal is not available.
    """

    vigorish_1x2: float | None = None
    vigorish_btts: float | None = None
    vigorish_ou25: float | None = None

    probability_home: float | None = None
    probability_draw: float | None = None
    probability_away: float | None = None
    probability_btts_yes: float | None = None
    probability_btts_no: float | None = None
    probability_over25: float | None = None
    probability_under25: float | None = None

    odds_home: float | None = None
    odds_draw: float | None = None
    odds_away: float | None = None
    odds_btts_yes: float | None = None
    odds_btts_no: float | None = None
    odds_over25: float | None = None
    odds_under25: float | None = None

    def value_for(self, condition_type: ConditionType | str, market: Market) -> float | None:
        """Value of a signal in the scale rule thresholds use.

        Probabilities and vigorish come back as percentages, odds as decimal
        odds. ``vigorish`` resolves to the vigorish of ``market``.

        Raises:
            UnknownConditionField: ``condition_type`` is not a known signal.

        """
        try:
            signal = ConditionType(condition_type)
        except ValueError as exc:
            raise UnknownConditionField(str(condition_type)) from exc

        if signal is ConditionType.VIGORISH:
            raw = getattr(self, _VIGORISH_FIELDS[Market(market)])
        else:
            raw = getattr(self, signal.value)
        if raw is None:
            return None
        return raw * 100.0 if signal.is_percentage else raw

    def outcomes(self, market: Market) -> dict[str, tuple[float | None, float | None]]:
        """``{outcome: (fair probability, odds)}`` for one market."""
        market = Market(market)
        return {
            outcome: (getattr(self, prob_field), getattr(self, odds_field))
            for outcome, prob_field, odds_field in zip(
                market.outcomes, _PROBABILITY_FIELDS[market], _ODDS_FIELDS[market]
            )
        }


def build_context(
    normalized: Mapping[Market, OddsResult],
    odds_by_market: Mapping[Market | str, Mapping[str, float | None]],
) -> RuleEvaluationContext:
    """Flatten the normalized markets and raw odds of a match into a context.

    Markets whose normalization failed leave their vigorish and probabilities
    empty. Odds are only kept when they are valid quotes.

    Args:
        normalized: result of :func:`~matchprob.implied_odds.normalize_match_odds`.
        odds_by_market: the raw odds the normalization was computed from.

    Returns:
        RuleEvaluationContext: the evaluation snapshot of the match.

    """
    fields: dict[str, float | None] = {}
    for market_key, market_odds in odds_by_market.items():
        market = Market(market_key)
        for outcome, odds_field in zip(market.outcomes, _ODDS_FIELDS[market]):
            odd = market_odds.get(outcome)
            fields[odds_field] = float(odd) if is_valid_quote(odd) else None  # type: ignore[arg-type]

    for market, result in normalized.items():
        market = Market(market)
        if not isinstance(result, NormalizedOdds):
            continue
        fields[_VIGORISH_FIELDS[market]] = result.vigorish
        for outcome, prob_field in zip(market.outcomes, _PROBABILITY_FIELDS[market]):
            fields[prob_field] = result.fair.get(outcome)
    return RuleEvaluationContext(**fields)
