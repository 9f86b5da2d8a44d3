import logging
from typing import NamedTuple

from matchprob.rules.conditions import ActionType
from matchprob.rules.context import RuleEvaluationContext
from matchprob.utils.typing import Market

logger = logging.getLogger(name=__name__)

# Double chance labels in the 1X2 outcome order.
_DOUBLE_CHANCE = {
    frozenset(("home", "draw")): "1X",
    frozenset(("home", "away")): "12",
    frozenset(("draw", "away")): "X2",
}

_FIXED_OUTCOMES = {
    ActionType.RECOMMEND_HOME: (Market.ONE_X_TWO, "home"),
    ActionType.RECOMMEND_DRAW: (Market.ONE_X_TWO, "draw"),
    ActionType.RECOMMEND_AWAY: (Market.ONE_X_TWO, "away"),
    ActionType.RECOMMEND_BTTS_YES: (Market.BTTS, "yes"),
    ActionType.RECOMMEND_BTTS_NO: (Market.BTTS, "no"),
    ActionType.RECOMMEND_OVER25: (Market.OU25, "over"),
    ActionType.RECOMMEND_UNDER25: (Market.OU25, "under"),
}

_FIXED_DOUBLE_CHANCES = {
    ActionType.RECOMMEND_DOUBLE_CHANCE_1X: ("home", "draw"),
    ActionType.RECOMMEND_DOUBLE_CHANCE_12: ("home", "away"),
    ActionType.RECOMMEND_DOUBLE_CHANCE_X2: ("draw", "away"),
}


class Selection(NamedTuple):
    """Concrete bet behind an action.

    Attributes:
        label (str): outcome label (``"home"``, ``"yes"``, ``"1X"``, ``"DNB home"``).
        probability (float): fair probability of the selection.
        odds (float | None): bookmaker odds, ``None`` for combined selections
            the match has no quote for.

    """

    label: str
    probability: float
    odds: float | None


def _ranked(context: RuleEvaluationContext, market: Market) -> list[tuple[str, float, float | None]]:
    """Quoted outcomes of a market, most probable first (ties keep market order)."""
    outcomes = [
        (name, prob, odds)
        for name, (prob, odds) in context.outcomes(market).items()
        if prob is not None
    ]
    return sorted(outcomes, key=lambda o: -o[1])


def _double_chance(
    context: RuleEvaluationContext, outcomes: tuple[str, str]
) -> Selection | None:
    probas = context.outcomes(Market.ONE_X_TWO)
    probs = [probas[o][0] for o in outcomes]
    if any(p is None for p in probs):
        return None
    return Selection(_DOUBLE_CHANCE[frozenset(outcomes)], float(sum(probs)), None)  # type: ignore[arg-type]


def resolve_action(
    action: ActionType | str,
    context: RuleEvaluationContext,
    market: Market,
) -> Selection | None:
    """Turn a rule action into the selection it recommends for this match.

    Args:
        action: the rule action.
        context (RuleEvaluationContext): the match snapshot.
        market (Market): the rule market, used by the market-relative actions
            (most/least probable, invert).

    Returns:
        Selection | None: ``None`` for ``no_recommendation``, unknown actions
        or when the needed probabilities are missing.

    """
    market = Market(market)
    try:
        action = ActionType(action)
    except ValueError:
        logger.warning("Unknown action %r, no selection", action)
        return None

    if action is ActionType.NO_RECOMMENDATION:
        return None

    if action in _FIXED_OUTCOMES:
        action_market, outcome = _FIXED_OUTCOMES[action]
        prob, odds = context.outcomes(action_market)[outcome]
        return None if prob is None else Selection(outcome, prob, odds)

    if action in _FIXED_DOUBLE_CHANCES:
        return _double_chance(context, _FIXED_DOUBLE_CHANCES[action])

    ranked = _ranked(context, market)
    if len(ranked) < len(market.outcomes):
        return None

    if action is ActionType.RECOMMEND_MOST_PROBABLE:
        return Selection(*ranked[0])
    if action is ActionType.RECOMMEND_LEAST_PROBABLE:
        return Selection(*ranked[-1])

    if action is ActionType.INVERT_RECOMMENDATION:
        if market is Market.ONE_X_TWO:
            # Against the favourite: the double chance on the two others.
            others = tuple(name for name in market.outcomes if name != ranked[0][0])
            return _double_chance(context, others)  # type: ignore[arg-type]
        return Selection(*ranked[-1])

    if market is not Market.ONE_X_TWO:
        logger.debug("Action %s only applies to the 1X2 market", action.value)
        return None

    if action is ActionType.RECOMMEND_DOUBLE_CHANCE_MOST_PROBABLE:
        pair = tuple(name for name in market.outcomes if name in {o[0] for o in ranked[:2]})
        return _double_chance(context, pair)  # type: ignore[arg-type]
    if action is ActionType.RECOMMEND_DOUBLE_CHANCE_LEAST_PROBABLE:
        pair = tuple(name for name in market.outcomes if name in {o[0] for o in ranked[1:]})
        return _double_chance(context, pair)  # type: ignore[arg-type]

    # Draw no bet on the likelier of the two teams.
    probas = context.outcomes(Market.ONE_X_TWO)
    (p_home, _), (p_away, _) = probas["home"], probas["away"]
    team = "home" if p_home >= p_away else "away"  # type: ignore[operator]
    p_team = p_home if team == "home" else p_away
    return Selection(f"DNB {team}", p_team / (p_home + p_away), None)  # type: ignore[operator]
