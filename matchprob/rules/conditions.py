from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from matchprob.utils.typing import Market


class ConditionType(str, Enum):
    """Numeric signals a condition can read from a match."""

    VIGORISH = "vigorish"
    PROBABILITY_HOME = "probability_home"
    PROBABILITY_DRAW = "probability_draw"
    PROBABILITY_AWAY = "probability_away"
    PROBABILITY_BTTS_YES = "probability_btts_yes"
    PROBABILITY_BTTS_NO = "probability_btts_no"
    PROBABILITY_OVER25 = "probability_over25"
    PROBABILITY_UNDER25 = "probability_under25"
    ODDS_HOME = "odds_home"
    ODDS_DRAW = "odds_draw"
    ODDS_AWAY = "odds_away"
    ODDS_BTTS_YES = "odds_btts_yes"
    ODDS_BTTS_NO = "odds_btts_no"
    ODDS_OVER25 = "odds_over25"
    ODDS_UNDER25 = "odds_under25"

    @property
    def is_percentage(self) -> bool:
        return not self.value.startswith("odds_")


class Operator(str, Enum):
    GT = ">"
    LT = "<"
    EQ = "="
    GE = ">="
    LE = "<="
    NE = "!="
    BETWEEN = "between"


class LogicalConnector(str, Enum):
    AND = "AND"
    OR = "OR"


class ActionType(str, Enum):
    RECOMMEND_HOME = "recommend_home"
    RECOMMEND_DRAW = "recommend_draw"
    RECOMMEND_AWAY = "recommend_away"
    RECOMMEND_DOUBLE_CHANCE_1X = "recommend_double_chance_1x"
    RECOMMEND_DOUBLE_CHANCE_12 = "recommend_double_chance_12"
    RECOMMEND_DOUBLE_CHANCE_X2 = "recommend_double_chance_x2"
    RECOMMEND_DOUBLE_CHANCE_LEAST_PROBABLE = "recommend_double_chance_least_probable"
    RECOMMEND_DOUBLE_CHANCE_MOST_PROBABLE = "recommend_double_chance_most_probable"
    RECOMMEND_REFUND_IF_DRAW = "recommend_refund_if_draw"
    RECOMMEND_BTTS_YES = "recommend_btts_yes"
    RECOMMEND_BTTS_NO = "recommend_btts_no"
    RECOMMEND_OVER25 = "recommend_over25"
    RECOMMEND_UNDER25 = "recommend_under25"
    RECOMMEND_MOST_PROBABLE = "recommend_most_probable"
    RECOMMEND_LEAST_PROBABLE = "recommend_least_probable"
    INVERT_RECOMMENDATION = "invert_recommendation"
    NO_RECOMMENDATION = "no_recommendation"


@dataclass(frozen=True)
class Condition:
    """Leaf predicate over one named numeric signal.

    ``type`` and ``operator`` are kept as raw strings when a stored rule
    references a value this version does not know; such a condition
    evaluates to false instead of failing the whole rule.
    """

    kind: ClassVar[str] = "condition"

    type: ConditionType | str
    operator: Operator | str
    value: float
    value_max: float | None = None
    id: str | None = None


@dataclass(frozen=True)
class ConditionGroup:
    """Ordered children combined left to right by ``n - 1`` connectors."""

    kind: ClassVar[str] = "group"

    conditions: tuple[ConditionNode, ...]
    connectors: tuple[LogicalConnector, ...] = ()
    id: str | None = None


ConditionNode = Union[Condition, ConditionGroup]


@dataclass(frozen=True)
class ConditionalRule:
    id: str
    name: str
    market: Market
    conditions: tuple[ConditionNode, ...]
    connectors: tuple[LogicalConnector, ...]
    action: ActionType | str
    priority: int
    enabled: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "market", Market(self.market))

    def as_group(self) -> ConditionGroup:
        """The rule's top level as a group, the unit the evaluator folds."""
        return ConditionGroup(conditions=self.conditions, connectors=self.connectors, id=self.id)
