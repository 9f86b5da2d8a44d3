"""Conversion between stored rule records and the typed condition tree.

Stored records are plain mappings (decoded JSON)::

    {
        "id": "btts-high",
        "name": "BTTS high probability",
        "market": "btts",
        "conditions": [
            {"id": "c1", "type": "probability_btts_yes", "operator": ">", "value": 55},
            {"id": "g1", "type": "group",
             "conditions": [...], "logical_connectors": ["OR"]},
        ],
        "logical_connectors": ["AND"],
        "action": "recommend_btts_yes",
        "priority": 3,
        "enabled": true,
    }

Both ``logical_connectors``/``logicalConnectors`` and ``value_max``/``valueMax``
spellings are accepted.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, TypeVar

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
from matchprob.utils.typing import Market

E = TypeVar("E", bound=Enum)


class RuleParseError(ValueError):
    """A stored rule record cannot be turned into a rule."""


def _get(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return default


def _lenient_enum(enum_cls: type[E], raw: Any) -> E | str:
    """Enum member when known, raw string otherwise (evaluated later as false)."""
    try:
        return enum_cls(raw)
    except ValueError:
        return str(raw)


def _as_float(raw: Any, what: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise RuleParseError(f"{what} must be numeric, got {raw!r}") from exc


def _parse_connectors(raw: Any) -> tuple[LogicalConnector, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str) or not isinstance(raw, Iterable):
        raise RuleParseError(f"Logical connectors must be a list, got {raw!r}")
    try:
        return tuple(LogicalConnector(str(c).upper()) for c in raw)
    except ValueError as exc:
        raise RuleParseError(f"Unknown logical connector in {raw!r}") from exc


def _parse_nodes(raw: Any) -> tuple[ConditionNode, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (str, Mapping)) or not isinstance(raw, Iterable):
        raise RuleParseError(f"Conditions must be a list, got {raw!r}")
    return tuple(node_from_record(item) for item in raw)


def node_from_record(record: Mapping[str, Any]) -> ConditionNode:
    """Parse one condition or group record (groups carry ``type == "group"``)."""
    if not isinstance(record, Mapping):
        raise RuleParseError(f"Condition record must be a mapping, got {record!r}")
    if "type" not in record:
        raise RuleParseError(f"Condition record without type: {dict(record)!r}")

    if record["type"] == ConditionGroup.kind:
        return ConditionGroup(
            conditions=_parse_nodes(record.get("conditions")),
            connectors=_parse_connectors(_get(record, "logical_connectors", "logicalConnectors")),
            id=record.get("id"),
        )

    if "operator" not in record or "value" not in record:
        raise RuleParseError(f"Condition record needs operator and value: {dict(record)!r}")
    value_max = _get(record, "value_max", "valueMax")
    return Condition(
        type=_lenient_enum(ConditionType, record["type"]),
        operator=_lenient_enum(Operator, record["operator"]),
        value=_as_float(record["value"], "Condition value"),
        value_max=None if value_max is None else _as_float(value_max, "Condition value_max"),
        id=record.get("id"),
    )


def rule_from_record(record: Mapping[str, Any]) -> ConditionalRule:
    """Parse a stored rule record.

    Raises:
        RuleParseError: a required key is missing, the market is unknown or a
            value has the wrong type.

    """
    missing = [key for key in ("id", "market", "action", "priority") if key not in record]
    if missing:
        raise RuleParseError(f"Rule record is missing {', '.join(missing)}")
    try:
        market = Market(record["market"])
    except ValueError as exc:
        raise RuleParseError(f"Unknown market {record['market']!r}") from exc
    try:
        priority = int(record["priority"])
    except (TypeError, ValueError) as exc:
        raise RuleParseError(f"Rule priority must be an integer, got {record['priority']!r}") from exc

    return ConditionalRule(
        id=str(record["id"]),
        name=str(record.get("name") or record["id"]),
        market=market,
        conditions=_parse_nodes(record.get("conditions")),
        connectors=_parse_connectors(_get(record, "logical_connectors", "logicalConnectors")),
        action=_lenient_enum(ActionType, record["action"]),
        priority=priority,
        enabled=bool(record.get("enabled", True)),
    )


def rules_from_records(records: Iterable[Mapping[str, Any]]) -> list[ConditionalRule]:
    return [rule_from_record(record) for record in records]


def _enum_value(item: Any) -> Any:
    return item.value if isinstance(item, Enum) else item


def node_to_record(node: ConditionNode) -> dict[str, Any]:
    if isinstance(node, ConditionGroup):
        return {
            "id": node.id,
            "type": ConditionGroup.kind,
            "conditions": [node_to_record(child) for child in node.conditions],
            "logical_connectors": [c.value for c in node.connectors],
        }
    record: dict[str, Any] = {
        "id": node.id,
        "type": _enum_value(node.type),
        "operator": _enum_value(node.operator),
        "value": node.value,
    }
    if node.value_max is not None:
        record["value_max"] = node.value_max
    return record


def rule_to_record(rule: ConditionalRule) -> dict[str, Any]:
    """Plain mapping of a rule, in the stored record layout."""
    return {
        "id": rule.id,
        "name": rule.name,
        "market": rule.market.value,
        "conditions": [node_to_record(node) for node in rule.conditions],
        "logical_connectors": [c.value for c in rule.connectors],
        "action": _enum_value(rule.action),
        "priority": rule.priority,
        "enabled": rule.enabled,
    }
