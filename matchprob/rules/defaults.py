"""Built-in rule set, used when no rule configuration is available."""

from matchprob.rules.conditions import (
    ActionType,
    Condition,
    ConditionalRule,
    ConditionType,
    LogicalConnector,
    Operator,
)
from matchprob.utils.typing import Market


def default_rules() -> list[ConditionalRule]:
    """Fallback rules. Thresholds are on the 0-100 scale for probabilities
    and vigorish, decimal odds otherwise."""
    return [
        # Balanced BTTS markets carry no signal.
        ConditionalRule(
            id="anti-btts-5050",
            name="Anti BTTS 50/50",
            market=Market.BTTS,
            conditions=(
                Condition(
                    type=ConditionType.PROBABILITY_BTTS_YES,
                    operator=Operator.BETWEEN,
                    value=48.0,
                    value_max=52.0,
                    id="cond-1",
                ),
            ),
            connectors=(),
            action=ActionType.NO_RECOMMENDATION,
            priority=1,
        ),
        ConditionalRule(
            id="default-1x2-low-vig",
            name="Low vigorish 1X2",
            market=Market.ONE_X_TWO,
            conditions=(
                Condition(type=ConditionType.VIGORISH, operator=Operator.LT, value=6.0, id="cond-1"),
            ),
            connectors=(),
            action=ActionType.RECOMMEND_MOST_PROBABLE,
            priority=2,
        ),
        ConditionalRule(
            id="default-btts-high-prob",
            name="BTTS high probability",
            market=Market.BTTS,
            conditions=(
                Condition(
                    type=ConditionType.PROBABILITY_BTTS_YES,
                    operator=Operator.GT,
                    value=55.0,
                    id="cond-1",
                ),
                Condition(type=ConditionType.ODDS_BTTS_YES, operator=Operator.GT, value=1.8, id="cond-2"),
            ),
            connectors=(LogicalConnector.AND,),
            action=ActionType.RECOMMEND_BTTS_YES,
            priority=3,
        ),
        ConditionalRule(
            id="default-ou25-over",
            name="Over 2.5 high probability",
            market=Market.OU25,
            conditions=(
                Condition(
                    type=ConditionType.PROBABILITY_OVER25,
                    operator=Operator.GT,
                    value=60.0,
                    id="cond-1",
                ),
                Condition(type=ConditionType.ODDS_OVER25, operator=Operator.GT, value=1.7, id="cond-2"),
            ),
            connectors=(LogicalConnector.AND,),
            action=ActionType.RECOMMEND_OVER25,
            priority=4,
        ),
    ]
