import logging

import pytest

from matchprob.config import RuleEngineConfig
from matchprob.rules import (
    ActionType,
    Condition,
    ConditionalRule,
    ConditionGroup,
    ConditionType,
    LogicalConnector,
    Operator,
    RuleEvaluationContext,
    active_recommendation,
    evaluate_condition,
    evaluate_group,
    evaluate_rule,
    evaluate_rules,
    select_active_results,
)
from matchprob.utils.typing import Market

AND = LogicalConnector.AND
OR = LogicalConnector.OR

TRUE_A = Condition(type=ConditionType.PROBABILITY_HOME, operator=Operator.GT, value=40, id="a")
FALSE_B = Condition(type=ConditionType.PROBABILITY_HOME, operator=Operator.GT, value=60, id="b")
TRUE_C = Condition(type=ConditionType.ODDS_HOME, operator=Operator.GT, value=1.5, id="c")
FALSE_D = Condition(type=ConditionType.ODDS_HOME, operator=Operator.LT, value=1.5, id="d")


@pytest.fixture
def context():
    return RuleEvaluationContext(
        vigorish_1x2=0.04,
        vigorish_btts=0.08,
        vigorish_ou25=0.05,
        probability_home=0.5,
        probability_draw=0.27,
        probability_away=0.23,
        probability_btts_yes=0.56,
        probability_btts_no=0.44,
        probability_over25=0.51,
        probability_under25=0.49,
        odds_home=1.9,
        odds_draw=3.5,
        odds_away=4.1,
    )


def make_rule(rule_id, conditions, connectors=(), market=Market.ONE_X_TWO, priority=1, **kwargs):
    return ConditionalRule(
        id=rule_id,
        name=kwargs.pop("name", rule_id),
        market=market,
        conditions=tuple(conditions),
        connectors=tuple(connectors),
        action=kwargs.pop("action", ActionType.RECOMMEND_HOME),
        priority=priority,
        **kwargs,
    )


class TestLeafEvaluation:
    @pytest.mark.parametrize(
        ("operator", "value", "expected"),
        [
            (Operator.GT, 49.9, True),
            (Operator.GT, 50.0, False),
            (Operator.LT, 50.1, True),
            (Operator.GE, 50.0, True),
            (Operator.LE, 49.9, False),
            (Operator.EQ, 50.005, True),
            (Operator.EQ, 50.02, False),
            (Operator.NE, 50.005, False),
            (Operator.NE, 51.0, True),
        ],
    )
    def test_operators_on_percentages(self, context, operator, value, expected):
        condition = Condition(type=ConditionType.PROBABILITY_HOME, operator=operator, value=value)
        assert evaluate_condition(condition, context) is expected

    def test_between(self, context):
        condition = Condition(
            type=ConditionType.PROBABILITY_HOME, operator=Operator.BETWEEN, value=40, value_max=60
        )
        assert evaluate_condition(condition, context)
        outside = RuleEvaluationContext(probability_home=0.65)
        assert not evaluate_condition(condition, outside)

    def test_between_without_upper_bound(self, context):
        condition = Condition(type=ConditionType.PROBABILITY_HOME, operator=Operator.BETWEEN, value=40)
        assert not evaluate_condition(condition, context)

    def test_odds_are_raw_decimal(self, context):
        condition = Condition(type=ConditionType.ODDS_HOME, operator=Operator.EQ, value=1.9)
        assert evaluate_condition(condition, context)

    def test_vigorish_follows_the_market(self, context):
        condition = Condition(type=ConditionType.VIGORISH, operator=Operator.GT, value=6)
        assert evaluate_condition(condition, context, Market.BTTS)
        assert not evaluate_condition(condition, context, Market.ONE_X_TWO)
        assert not evaluate_condition(condition, context, Market.OU25)

    def test_missing_field_is_false(self, context):
        condition = Condition(type=ConditionType.ODDS_BTTS_YES, operator=Operator.GT, value=1.0)
        assert not evaluate_condition(condition, context)

    def test_unknown_field_is_false(self, context, caplog):
        condition = Condition(type="expected_goals_home", operator=Operator.GT, value=0, id="xg")
        with caplog.at_level(logging.WARNING, logger="matchprob.rules.engine"):
            assert not evaluate_condition(condition, context)
        assert "unknown field 'expected_goals_home'" in caplog.text

    def test_unknown_operator_is_false(self, context):
        condition = Condition(type=ConditionType.PROBABILITY_HOME, operator="~", value=50)
        assert not evaluate_condition(condition, context)

    def test_custom_epsilon(self, context):
        condition = Condition(type=ConditionType.PROBABILITY_HOME, operator=Operator.EQ, value=50.5)
        assert not evaluate_condition(condition, context)
        assert evaluate_condition(
            condition, context, config=RuleEngineConfig(equality_epsilon=1.0)
        )


class TestGroupEvaluation:
    def test_left_fold_or_then_and(self, context):
        group = ConditionGroup(conditions=(TRUE_A, FALSE_B, TRUE_C), connectors=(OR, AND))
        # (true OR false) AND true
        assert evaluate_group(group, context)

    def test_left_fold_and_then_or(self, context):
        group = ConditionGroup(conditions=(TRUE_A, FALSE_B, TRUE_C), connectors=(AND, OR))
        # (true AND false) OR true
        assert evaluate_group(group, context)

    def test_fold_has_no_precedence(self, context):
        # A OR B AND C is (A OR B) AND C, not A OR (B AND C).
        group = ConditionGroup(conditions=(TRUE_A, FALSE_B, FALSE_D), connectors=(OR, AND))
        assert not evaluate_group(group, context)

    def test_nested_group_is_one_child(self, context):
        inner = ConditionGroup(conditions=(FALSE_B, TRUE_C), connectors=(OR,))
        outer = ConditionGroup(conditions=(TRUE_A, inner), connectors=(AND,))
        assert evaluate_group(outer, context)

        inner_false = ConditionGroup(conditions=(FALSE_B, FALSE_D), connectors=(OR,))
        outer_false = ConditionGroup(conditions=(TRUE_A, inner_false), connectors=(AND,))
        assert not evaluate_group(outer_false, context)

    def test_empty_group_is_false(self, context):
        assert not evaluate_group(ConditionGroup(conditions=()), context)

    def test_missing_connectors_default_to_and(self, context):
        group = ConditionGroup(conditions=(TRUE_A, TRUE_C, FALSE_B), connectors=(OR,))
        assert not evaluate_group(group, context)

    def test_missing_connectors_configurable(self, context):
        group = ConditionGroup(conditions=(TRUE_A, TRUE_C, FALSE_B), connectors=(OR,))
        assert evaluate_group(group, context, config=RuleEngineConfig(missing_connector="OR"))

    def test_extra_connectors_are_ignored(self, context):
        group = ConditionGroup(conditions=(TRUE_A, TRUE_C), connectors=(AND, OR, OR))
        assert evaluate_group(group, context)


class TestRuleEvaluation:
    def test_rule_without_conditions_never_matches(self, context):
        result = evaluate_rule(make_rule("empty", []), context)
        assert not result.conditions_met

    def test_unknown_field_only_degrades_its_condition(self, context):
        unknown = Condition(type="corners_home", operator=Operator.GT, value=3)
        rules = [
            make_rule("broken", [unknown, TRUE_A], [OR], priority=1),
            make_rule("healthy", [TRUE_A, TRUE_C], [AND], priority=2),
        ]
        results = evaluate_rules(context, rules)
        assert [r.conditions_met for r in results] == [True, True]

    def test_unknown_connector_does_not_stop_other_rules(self, context, caplog):
        rules = [
            make_rule("xor", [TRUE_A, FALSE_B], ["XOR"], priority=1),
            make_rule("healthy", [TRUE_A, TRUE_C], [AND], priority=2),
        ]
        with caplog.at_level(logging.WARNING, logger="matchprob.rules.engine"):
            results = evaluate_rules(context, rules)

        # The unknown connector falls back to AND.
        assert [(r.rule_id, r.conditions_met) for r in results] == [
            ("xor", False),
            ("healthy", True),
        ]
        assert "Unknown logical connector 'XOR'" in caplog.text

    def test_market_given_as_string(self, context):
        rule = make_rule("plain", [TRUE_A], market="1x2")
        assert rule.market is Market.ONE_X_TWO

        results = evaluate_rules(context, [rule])
        assert results[0].conditions_met
        assert select_active_results(results)[0].market is Market.ONE_X_TWO

    def test_unknown_market_is_rejected(self):
        with pytest.raises(ValueError):
            make_rule("corners", [TRUE_A], market="corners")

    def test_results_sorted_by_priority(self, context):
        rules = [
            make_rule("third", [TRUE_A], priority=7),
            make_rule("first", [FALSE_B], priority=1),
            make_rule("second", [TRUE_C], priority=3),
            make_rule("second-bis", [TRUE_C], priority=3),
        ]
        results = evaluate_rules(context, rules)
        assert [r.rule_id for r in results] == ["first", "second", "second-bis", "third"]
        assert [r.conditions_met for r in results] == [False, True, True, True]

    def test_disabled_rules_are_skipped(self, context):
        rules = [make_rule("on", [TRUE_A]), make_rule("off", [TRUE_A], enabled=False)]
        assert [r.rule_id for r in evaluate_rules(context, rules)] == ["on"]

    def test_evaluation_is_deterministic(self, context):
        rules = [
            make_rule("r1", [TRUE_A, FALSE_B], [OR], priority=2),
            make_rule("r2", [FALSE_D], priority=1, market=Market.BTTS),
        ]
        assert evaluate_rules(context, rules) == evaluate_rules(context, rules)

    def test_result_fields(self, context):
        rule = make_rule("r1", [TRUE_A], market=Market.ONE_X_TWO, priority=4, name="Home favourite")
        result = evaluate_rule(rule, context)
        assert result.rule_name == "Home favourite"
        assert result.market is Market.ONE_X_TWO
        assert result.action is ActionType.RECOMMEND_HOME
        assert result.priority == 4
        assert result.to_dict()["conditions_met"] is True

    def test_explanation(self, context):
        inner = ConditionGroup(conditions=(FALSE_B, TRUE_C), connectors=(OR,))
        result = evaluate_rule(make_rule("r1", [TRUE_A, inner], [AND]), context)
        assert result.explanation == (
            "probability_home: 50.0% > 40.0% ✓ AND "
            "(probability_home: 50.0% > 60.0% ✗ OR odds_home: 1.90 > 1.50 ✓) -> MET"
        )

    def test_explanation_of_missing_value(self, context):
        condition = Condition(type=ConditionType.ODDS_BTTS_YES, operator=Operator.GT, value=1.8)
        result = evaluate_rule(make_rule("r1", [condition], market=Market.BTTS), context)
        assert result.explanation == "odds_btts_yes: N/A > 1.80 ✗ -> NOT MET"


class TestActiveResults:
    def test_no_recommendation_vetoes_its_market(self, context):
        rules = [
            make_rule("veto", [TRUE_A], market=Market.BTTS, priority=5,
                      action=ActionType.NO_RECOMMENDATION),
            make_rule("btts", [TRUE_A], market=Market.BTTS, priority=1,
                      action=ActionType.RECOMMEND_BTTS_YES),
            make_rule("home", [TRUE_A], market=Market.ONE_X_TWO, priority=2),
            make_rule("miss", [FALSE_B], market=Market.ONE_X_TWO, priority=0),
        ]
        active = select_active_results(evaluate_rules(context, rules))
        assert [r.rule_id for r in active] == ["home", "veto"]

    def test_active_recommendation(self, context):
        rules = [
            make_rule("late", [TRUE_A], priority=9, action=ActionType.RECOMMEND_DRAW),
            make_rule("early", [TRUE_C], priority=2),
            make_rule("missed", [FALSE_B], priority=1),
        ]
        results = evaluate_rules(context, rules)
        assert active_recommendation(results, Market.ONE_X_TWO).rule_id == "early"
        assert active_recommendation(results, Market.OU25) is None
