"""End-to-end analysis of matches.

raw odds -> fair probabilities and vigorish -> scoreline model
         -> rule evaluation -> one recommendation per market with a confidence.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from matchprob.config import EngineConfig
from matchprob.implied_odds import NormalizedOdds, OddsResult, normalize_match_odds
from matchprob.models import ScorelineModel, compute_scoreline_model
from matchprob.rules import (
    ConditionalRule,
    RuleEvaluationContext,
    RuleEvaluationResult,
    build_context,
    default_rules,
    evaluate_rules,
)
from matchprob.strategy import MatchOdds, Recommendation, select_recommendations
from matchprob.utils.decorators import verify_required_column
from matchprob.utils.typing import Market

logger = logging.getLogger(name=__name__)

__all__ = ["MatchAnalysis", "analyse_frame", "analyse_match", "analyse_matches"]

_ODDS_COLUMNS = {
    Market.ONE_X_TWO: {"home": "odds_home", "draw": "odds_draw", "away": "odds_away"},
    Market.BTTS: {"yes": "odds_btts_yes", "no": "odds_btts_no"},
    Market.OU25: {"over": "odds_over25", "under": "odds_under25"},
}


@dataclass(frozen=True)
class MatchAnalysis:
    """Everything the engine derived for one match.

    Attributes:
        match_id (str): match identifier.
        normalized (dict[Market, OddsResult]): de-vig result of each quoted market.
        context (RuleEvaluationContext): snapshot the rules were evaluated on.
        scoreline (ScorelineModel | None): ``None`` when the 1X2 market is not
            usable.
        results (list[RuleEvaluationResult]): every enabled rule, priority order.
        recommendations (list[Recommendation]): at most one per market.
        excluded_reason (str | None): why recommendations were withheld.

    """

    match_id: str
    normalized: dict[Market, OddsResult]
    context: RuleEvaluationContext
    scoreline: ScorelineModel | None
    results: list[RuleEvaluationResult] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    excluded_reason: str | None = None

    def fair(self, market: Market) -> NormalizedOdds | None:
        result = self.normalized.get(Market(market))
        return result if isinstance(result, NormalizedOdds) else None

    def recommendation(self, market: Market) -> Recommendation | None:
        market = Market(market)
        return next((r for r in self.recommendations if r.market is market), None)


def _is_complete(result: OddsResult | None, market: Market) -> bool:
    return isinstance(result, NormalizedOdds) and set(market.outcomes) <= result.fair.keys()


def _exclusion_reason(normalized: dict[Market, OddsResult], config: EngineConfig) -> str | None:
    if not _is_complete(normalized.get(Market.ONE_X_TWO), Market.ONE_X_TWO):
        return "incomplete 1X2 odds"
    if config.exclude_negative_vigorish:
        flagged = [
            market.value
            for market, result in normalized.items()
            if isinstance(result, NormalizedOdds) and result.negative_vigorish
        ]
        if flagged:
            return f"negative vigorish on {', '.join(flagged)}"
    return None


def analyse_match(
    match: MatchOdds,
    rules: Iterable[ConditionalRule] | None = None,
    config: EngineConfig = EngineConfig(),
) -> MatchAnalysis:
    """Run the whole engine on one match.

    Args:
        match (MatchOdds): the bookmaker odds of the match.
        rules (Iterable[ConditionalRule], optional): rule snapshot, the built-in
            rules when omitted.
        config (EngineConfig): engine constants.

    Returns:
        MatchAnalysis: fair probabilities, scoreline model, rule results and
        recommendations. Rules are always evaluated; recommendations are
        withheld when the 1X2 market is unusable or, if configured, when a
        market has a negative vigorish.

    """
    rule_set = tuple(default_rules() if rules is None else rules)
    normalized = normalize_match_odds(match.odds, method=config.devig_method)
    context = build_context(normalized, match.odds)

    scoreline = None
    one_x_two = normalized.get(Market.ONE_X_TWO)
    if isinstance(one_x_two, NormalizedOdds) and _is_complete(one_x_two, Market.ONE_X_TWO):
        btts = normalized.get(Market.BTTS)
        ou25 = normalized.get(Market.OU25)
        scoreline = compute_scoreline_model(
            one_x_two.fair,
            btts.fair.get("yes") if isinstance(btts, NormalizedOdds) else None,
            ou25.fair.get("over") if isinstance(ou25, NormalizedOdds) else None,
            config=config.scoreline,
        )

    results = evaluate_rules(context, rule_set, config=config.rules)
    reason = _exclusion_reason(normalized, config)
    if reason is not None:
        logger.info("No recommendation for %s: %s", match.match_id, reason)
        recommendations: list[Recommendation] = []
    else:
        recommendations = select_recommendations(match.match_id, results, context)

    return MatchAnalysis(
        match_id=match.match_id,
        normalized=normalized,
        context=context,
        scoreline=scoreline,
        results=results,
        recommendations=recommendations,
        excluded_reason=reason,
    )


def analyse_matches(
    matches: Iterable[MatchOdds],
    rules: Iterable[ConditionalRule] | None = None,
    config: EngineConfig = EngineConfig(),
) -> list[MatchAnalysis]:
    """Analyse a batch of matches against one rule snapshot.

    Matches are independent: callers can split the batch across workers.
    """
    rule_set = tuple(default_rules() if rules is None else rules)
    return [analyse_match(match, rule_set, config) for match in matches]


def _row_odds(row: pd.Series) -> dict[str, dict[str, float | None]]:
    odds: dict[str, dict[str, float | None]] = {}
    for market, columns in _ODDS_COLUMNS.items():
        if not any(column in row.index for column in columns.values()):
            continue
        odds[market.value] = {outcome: row.get(column) for outcome, column in columns.items()}
    return odds


def _summary(analysis: MatchAnalysis, markets: Sequence[Market]) -> dict:
    summary: dict = {"match_id": analysis.match_id}
    for market in markets:
        fair = analysis.fair(market)
        for outcome in market.outcomes:
            summary[f"p_{market.value}_{outcome}_fair"] = (
                fair.fair.get(outcome, np.nan) if fair is not None else np.nan
            )
        summary[f"vig_{market.value}"] = fair.vigorish if fair is not None else np.nan

    scoreline = analysis.scoreline
    summary["lambda_home"] = scoreline.lambda_home if scoreline else np.nan
    summary["lambda_away"] = scoreline.lambda_away if scoreline else np.nan
    summary["rho"] = scoreline.rho if scoreline else np.nan
    if scoreline:
        best = scoreline.top_scores(1)[0]
        summary["top_score"] = f"{best.home_goals}-{best.away_goals}"
    else:
        summary["top_score"] = np.nan

    for market in markets:
        recommendation = analysis.recommendation(market)
        summary[f"rec_{market.value}"] = recommendation.selection if recommendation else np.nan
        summary[f"confidence_{market.value}"] = (
            recommendation.confidence if recommendation else np.nan
        )
    return summary


@verify_required_column(column_names=["match_id", "odds_home", "odds_draw", "odds_away"])
def analyse_frame(
    df: pd.DataFrame,
    rules: Iterable[ConditionalRule] | None = None,
    config: EngineConfig = EngineConfig(),
) -> pd.DataFrame:
    """Analyse a DataFrame of matches, one row per match.

    Required columns are ``match_id, odds_home, odds_draw, odds_away``.
    ``odds_btts_yes, odds_btts_no, odds_over25, odds_under25`` are optional;
    empty cells are treated as missing quotes.

    Returns:
        pd.DataFrame: one row per match with fair probabilities, vigorish,
        scoreline parameters, the most probable score and the selection and
        confidence of each market.
        Missing values are NaN in every column, text columns included.

    """
    rule_set = tuple(default_rules() if rules is None else rules)
    markets = list(Market)
    rows = []
    for _, row in df.iterrows():
        match = MatchOdds(
            home_team=str(row.get("home_team", "")),
            away_team=str(row.get("away_team", "")),
            odds=_row_odds(row),
            identifier=str(row["match_id"]),
        )
        rows.append(_summary(analyse_match(match, rule_set, config), markets))
    return pd.DataFrame(rows)
