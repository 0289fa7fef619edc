from unittest.mock import MagicMock

from emote_reactor.models import ReactionRule
from emote_reactor.rules import ConditionEvaluator, RuleMatcher


def rule(rule_id, conditions=None, action="heart", **extra):
    data = {"id": rule_id, "conditions": conditions, "action": action, **extra}
    return ReactionRule.model_validate(data)


def test_first_match_wins_in_authored_order(make_facts):
    rules = [
        rule("close_friend", {"friendship_greater_than_or_equal_to": 2000}, "heart-back"),
        rule("villager", {"character_type": "Villager"}, "happy"),
        rule("fallback", None, "question"),
    ]
    matcher = RuleMatcher()

    assert matcher.find_first_match(rules, make_facts(relationship=2200)).rule_id == "close_friend"
    assert matcher.find_first_match(rules, make_facts(relationship=100)).rule_id == "villager"
    # Swapping the order changes the winner: no specificity scoring.
    assert matcher.find_first_match(list(reversed(rules)), make_facts(relationship=2200)).rule_id == "fallback"


def test_no_match_returns_none(make_facts):
    rules = [rule("pets_only", {"character_type": "Pet"})]
    assert RuleMatcher().find_first_match(rules, make_facts()) is None
    assert RuleMatcher().find_first_match([], make_facts()) is None


def test_malformed_and_disabled_rules_are_skipped(make_facts):
    broken = ReactionRule.malformed("heart.reactions[0]", "Rule failed validation")
    disabled = rule("disabled", None, "angry", enabled=False)
    rules = [broken, disabled, rule("fallback", None, "question")]
    assert RuleMatcher().find_first_match(rules, make_facts()).rule_id == "fallback"


def test_evaluator_error_skips_only_that_rule(make_facts, caplog):
    evaluator = ConditionEvaluator()
    real_check = evaluator.check
    calls = {"n": 0}

    def flaky(condition, facts):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("boom")
        return real_check(condition, facts)

    evaluator.check = MagicMock(side_effect=flaky)
    rules = [rule("explodes"), rule("survivor")]

    matched = RuleMatcher(evaluator).find_first_match(rules, make_facts())

    assert matched.rule_id == "survivor"
    assert evaluator.check.call_count == 2
    assert "failed during evaluation" in caplog.text
