"""Evaluation of conditional rules against a match context.

Conditions are combined by a flat left fold over their connectors, without
any precedence between AND and OR: ``A OR B AND C`` is ``(A OR B) AND C``.
Every child is evaluated, there is no short-circuit.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass

from matchprob.config import RuleEngineConfig
from matchprob.rules.conditions import (
    ActionType,
    Condition,
    ConditionalRule,
    ConditionGroup,
    ConditionNode,
    ConditionType,
    LogicalConnector,
    Operator,
)
from matchprob.rules.context import RuleEvaluationContext, UnknownConditionField
from matchprob.utils.typing import Market

logger = logging.getLogger(name=__name__)

__all__ = [
    "RuleEvaluationResult",
    "active_recommendation",
    "evaluate_condition",
    "evaluate_group",
    "evaluate_rule",
    "evaluate_rules",
    "select_active_results",
]


@dataclass(frozen=True)
class RuleEvaluationResult:
    """Outcome of one enabled rule for one match.

    Attributes:
        rule_id (str): identifier of the rule.
        rule_name (str): display name of the rule.
        market (Market): market the rule applies to.
        action (ActionType | str): action to take when the rule matches.
        priority (int): lower is stronger.
        conditions_met (bool): whether the rule matched.
        explanation (str): per-condition trace of the evaluation.

    """

    rule_id: str
    rule_name: str
    market: Market
    action: ActionType | str
    priority: int
    conditions_met: bool
    explanation: str

    def to_dict(self) -> dict:
        return asdict(self)


def _compare(observed: float, condition: Condition, epsilon: float) -> bool:
    try:
        operator = Operator(condition.operator)
    except ValueError:
        logger.warning("Unknown operator %r in condition %s", condition.operator, condition.id)
        return False

    value = condition.value
    if operator is Operator.GT:
        return observed > value
    if operator is Operator.LT:
        return observed < value
    if operator is Operator.GE:
        return observed >= value
    if operator is Operator.LE:
        return observed <= value
    if operator is Operator.EQ:
        return abs(observed - value) < epsilon
    if operator is Operator.NE:
        return abs(observed - value) >= epsilon
    # between
    return condition.value_max is not None and value <= observed <= condition.value_max


def _evaluate_leaf(
    condition: Condition,
    context: RuleEvaluationContext,
    market: Market,
    config: RuleEngineConfig,
) -> tuple[bool, float | None]:
    try:
        observed = context.value_for(condition.type, market)
    except UnknownConditionField:
        logger.warning(
            "Condition %s references unknown field %r, evaluating it as false",
            condition.id,
            condition.type,
        )
        return False, None
    if observed is None:
        return False, None
    return _compare(observed, condition, config.equality_epsilon), observed


def _format_value(condition_type: ConditionType | str, value: float | None) -> str:
    if value is None:
        return "N/A"
    try:
        is_percentage = ConditionType(condition_type).is_percentage
    except ValueError:
        is_percentage = False
    return f"{value:.1f}%" if is_percentage else f"{value:.2f}"


def _describe_leaf(condition: Condition, observed: float | None, met: bool) -> str:
    ctype = getattr(condition.type, "value", condition.type)
    operator = getattr(condition.operator, "value", condition.operator)
    threshold = _format_value(condition.type, condition.value)
    if condition.value_max is not None and operator == Operator.BETWEEN.value:
        threshold = f"{threshold}..{_format_value(condition.type, condition.value_max)}"
    mark = "✓" if met else "✗"
    return f"{ctype}: {_format_value(condition.type, observed)} {operator} {threshold} {mark}"


def _connectors_for(
    connectors: Sequence[LogicalConnector], n_children: int, config: RuleEngineConfig
) -> list[LogicalConnector]:
    expected = max(n_children - 1, 0)
    if len(connectors) != expected:
        logger.debug(
            "Got %d connector(s) for %d condition(s), padding with %s",
            len(connectors),
            n_children,
            config.missing_connector,
        )
    fallback = LogicalConnector(config.missing_connector)
    padded = []
    for raw in connectors[:expected]:
        try:
            padded.append(LogicalConnector(raw))
        except ValueError:
            logger.warning("Unknown logical connector %r, using %s", raw, fallback.value)
            padded.append(fallback)
    padded += [fallback] * (expected - len(padded))
    return padded


def _fold(
    nodes: Sequence[ConditionNode],
    connectors: Sequence[LogicalConnector],
    context: RuleEvaluationContext,
    market: Market,
    config: RuleEngineConfig,
) -> tuple[bool, str]:
    if not nodes:
        return False, "no condition"

    result, text = _evaluate_node(nodes[0], context, market, config)
    parts = [text]
    for connector, node in zip(_connectors_for(connectors, len(nodes), config), nodes[1:]):
        met, text = _evaluate_node(node, context, market, config)
        if connector is LogicalConnector.AND:
            result = result and met
        else:
            result = result or met
        parts.extend((connector.value, text))
    return result, " ".join(parts)


def _evaluate_node(
    node: ConditionNode,
    context: RuleEvaluationContext,
    market: Market,
    config: RuleEngineConfig,
) -> tuple[bool, str]:
    if isinstance(node, ConditionGroup):
        met, text = _fold(node.conditions, node.connectors, context, market, config)
        return met, f"({text})"
    met, observed = _evaluate_leaf(node, context, market, config)
    return met, _describe_leaf(node, observed, met)


def evaluate_condition(
    condition: Condition,
    context: RuleEvaluationContext,
    market: Market = Market.ONE_X_TWO,
    config: RuleEngineConfig = RuleEngineConfig(),
) -> bool:
    """Evaluate one leaf condition. Missing or unknown fields give ``False``."""
    return _evaluate_leaf(condition, context, market, config)[0]


def evaluate_group(
    group: ConditionGroup,
    context: RuleEvaluationContext,
    market: Market = Market.ONE_X_TWO,
    config: RuleEngineConfig = RuleEngineConfig(),
) -> bool:
    """Left-fold the children of ``group`` with its connectors. An empty group is false."""
    return _fold(group.conditions, group.connectors, context, market, config)[0]


def evaluate_rule(
    rule: ConditionalRule,
    context: RuleEvaluationContext,
    config: RuleEngineConfig = RuleEngineConfig(),
) -> RuleEvaluationResult:
    conditions_met, trace = _fold(rule.conditions, rule.connectors, context, rule.market, config)
    verdict = "MET" if conditions_met else "NOT MET"
    logger.debug("Rule %s (%s): %s", rule.id, rule.market.value, verdict)
    return RuleEvaluationResult(
        rule_id=rule.id,
        rule_name=rule.name,
        market=rule.market,
        action=rule.action,
        priority=rule.priority,
        conditions_met=conditions_met,
        explanation=f"{trace} -> {verdict}",
    )


def evaluate_rules(
    context: RuleEvaluationContext,
    rules: Iterable[ConditionalRule],
    config: RuleEngineConfig = RuleEngineConfig(),
) -> list[RuleEvaluationResult]:
    """Evaluate every enabled rule against a match context.

    Args:
        context (RuleEvaluationContext): the match snapshot.
        rules (Iterable[ConditionalRule]): the rule configuration. Disabled
            rules are skipped.
        config (RuleEngineConfig): evaluator constants.

    Returns:
        list[RuleEvaluationResult]: one result per enabled rule, ordered by
        ascending priority. Rules sharing a priority keep their input order.
        The first result with ``conditions_met`` for a market is its active
        recommendation.

    """
    results = [evaluate_rule(rule, context, config) for rule in rules if rule.enabled]
    return sorted(results, key=lambda r: r.priority)


def select_active_results(results: Iterable[RuleEvaluationResult]) -> list[RuleEvaluationResult]:
    """Keep the matching results, applying the ``no_recommendation`` veto.

    A matching ``no_recommendation`` rule on a market silences every other
    matching rule of that market, whatever their priorities.

    Returns:
        list[RuleEvaluationResult]: matching results in priority order.

    """
    matched = [r for r in results if r.conditions_met]
    vetoed = {r.market for r in matched if r.action == ActionType.NO_RECOMMENDATION}
    for result in matched:
        if result.market in vetoed and result.action != ActionType.NO_RECOMMENDATION:
            logger.debug(
                "Rule %s ignored: market %s has an active no_recommendation rule",
                result.rule_id,
                result.market.value,
            )
    active = [
        r
        for r in matched
        if r.market not in vetoed or r.action == ActionType.NO_RECOMMENDATION
    ]
    return sorted(active, key=lambda r: r.priority)


def active_recommendation(
    results: Iterable[RuleEvaluationResult], market: Market
) -> RuleEvaluationResult | None:
    """First active result of ``market`` after the veto, or ``None``."""
    market = Market(market)
    return next((r for r in select_active_results(results) if r.market is market), None)
