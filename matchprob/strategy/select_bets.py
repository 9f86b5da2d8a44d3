import logging
from collections.abc import Iterable

from matchprob.rules.actions import resolve_action
from matchprob.rules.conditions import ActionType
from matchprob.rules.context import RuleEvaluationContext
from matchprob.rules.engine import RuleEvaluationResult, select_active_results
from matchprob.strategy.bets import Recommendation
from matchprob.strategy.confidence import ConfidenceScorer
from matchprob.utils.typing import Market

logger = logging.getLogger(name=__name__)


def select_recommendations(
    match_id: str,
    results: Iterable[RuleEvaluationResult],
    context: RuleEvaluationContext,
    scorer: ConfidenceScorer = ConfidenceScorer(),
) -> list[Recommendation]:
    """Pick the active recommendation of each market.

    For every market, the highest-priority matching rule wins, after the
    ``no_recommendation`` veto. A vetoed market, or a winning action that
    cannot be resolved for this match, gives no recommendation.

    Args:
        match_id (str): stable match identifier, seeds the confidence.
        results (Iterable[RuleEvaluationResult]): output of ``evaluate_rules``.
        context (RuleEvaluationContext): the snapshot the rules were evaluated on.
        scorer (ConfidenceScorer): confidence scorer.

    Returns:
        list[Recommendation]: at most one per market, in priority order.

    """
    selections: list[Recommendation] = []
    seen: set[Market] = set()
    for result in select_active_results(results):
        if result.market in seen:
            continue
        seen.add(result.market)
        if result.action == ActionType.NO_RECOMMENDATION:
            logger.debug("No recommendation for %s on market %s", match_id, result.market.value)
            continue

        selection = resolve_action(result.action, context, result.market)
        if selection is None:
            logger.debug(
                "Rule %s matched %s but its action cannot be resolved", result.rule_id, match_id
            )
            continue
        selections.append(
            Recommendation(
                match_id=match_id,
                market=result.market,
                action=result.action,
                rule_id=result.rule_id,
                selection=selection.label,
                probability=selection.probability,
                odds=selection.odds,
                confidence=scorer.score(match_id, result),
                priority=result.priority,
            )
        )
    return selections
