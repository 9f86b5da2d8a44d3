"""Configurable rules turning calibrated probabilities into recommendations.

Submodules:
    - conditions: Condition tree types and enums
    - context: Per-match evaluation snapshot
    - engine: Left-fold evaluation of rules, priority ordering and veto
    - parsing: Stored record <-> typed rule conversion
    - actions: Resolution of a rule action into a concrete selection
    - defaults: Built-in fallback rules

"""

from .actions import Selection, resolve_action
from .conditions import (
    ActionType,
    Condition,
    ConditionalRule,
    ConditionGroup,
    ConditionNode,
    ConditionType,
    LogicalConnector,
    Operator,
)
from .context import RuleEvaluationContext, UnknownConditionField, build_context
from .defaults import default_rules
from .engine import (
    RuleEvaluationResult,
    active_recommendation,
    evaluate_condition,
    evaluate_group,
    evaluate_rule,
    evaluate_rules,
    select_active_results,
)
from .parsing import RuleParseError, rule_from_record, rule_to_record, rules_from_records

__all__ = [
    "ActionType",
    "Condition",
    "ConditionGroup",
    "ConditionNode",
    "ConditionType",
    "ConditionalRule",
    "LogicalConnector",
    "Operator",
    "RuleEvaluationContext",
    "RuleEvaluationResult",
    "RuleParseError",
    "Selection",
    "UnknownConditionField",
    "active_recommendation",
    "build_context",
    "default_rules",
    "evaluate_condition",
    "evaluate_group",
    "evaluate_rule",
    "evaluate_rules",
    "resolve_action",
    "rule_from_record",
    "rule_to_record",
    "rules_from_records",
    "select_active_results",
]
