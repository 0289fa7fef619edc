import threading

import pytest

from emote_reactor.combo import ComboStateMachine, ReactionStateTable
from emote_reactor.config import ComboCountMode, ReactorConfig
from emote_reactor.feature_flags import EMOTE_COMBO, FeatureFlagsManager
from emote_reactor.models import ComboRule
from emote_reactor.rules import ConditionEvaluator, RuleMatcher


def combo(rule_id="wave_spam", trigger_count=3, conditions=None, action="blush"):
    return ComboRule.model_validate(
        {"id": rule_id, "trigger_count": trigger_count, "conditions": conditions, "action": action}
    )


@pytest.fixture
def table():
    return ReactionStateTable()


@pytest.fixture
def flags():
    return FeatureFlagsManager()


@pytest.fixture
def machine(table, flags, clock):
    return ComboStateMachine(ReactorConfig(), table, RuleMatcher(ConditionEvaluator(flags)), flags, clock)


def test_three_in_a_row_triggers_once_and_resets_to_zero(machine, table, make_facts, clock):
    facts = make_facts()
    rules = [combo(trigger_count=3)]

    results = []
    for _ in range(3):
        results.append(machine.step(facts, "wave", rules))
        clock.advance(500)

    assert results[:2] == [None, None]
    assert results[2].rule_id == "wave_spam"
    assert table.get("farmer", "abigail").streak_count == 0

    # Two more waves are not enough for a second trigger...
    assert machine.step(facts, "wave", rules) is None
    clock.advance(500)
    assert machine.step(facts, "wave", rules) is None
    clock.advance(500)
    # ...the third one is.
    assert machine.step(facts, "wave", rules) is not None


def test_different_signal_restarts_streak_at_one(machine, table, make_facts):
    facts = make_facts()
    rules = [combo()]
    machine.step(facts, "wave", rules, now=0)
    machine.step(facts, "heart", rules, now=100)

    state = table.get("farmer", "abigail")
    assert state.last_signal == "heart"
    assert state.streak_count == 1


def test_timeout_restarts_streak(machine, table, make_facts):
    facts = make_facts()
    rules = [combo()]
    timeout = machine.config.combo_timeout_ms

    machine.step(facts, "wave", rules, now=0)
    machine.step(facts, "wave", rules, now=timeout + 1)
    assert table.get("farmer", "abigail").streak_count == 1

    # Exactly on the boundary still counts as in time.
    machine.step(facts, "wave", rules, now=2 * timeout + 1)
    assert table.get("farmer", "abigail").streak_count == 2


def test_streaks_are_per_pair(machine, table, make_facts):
    rules = [combo()]
    machine.step(make_facts(), "wave", rules, now=0)
    machine.step(make_facts(target_id="pierre", target_name="Pierre"), "wave", rules, now=10)
    machine.step(make_facts(initiator_id="sam"), "wave", rules, now=20)

    assert len(table) == 3
    assert table.get("farmer", "abigail").streak_count == 1


def test_rule_without_trigger_count_uses_global_target(table, flags, make_facts):
    config = ReactorConfig(global_combo_target=2)
    machine = ComboStateMachine(config, table, RuleMatcher(ConditionEvaluator(flags)), flags)
    rules = [combo(trigger_count=None)]
    assert machine.step(make_facts(), "wave", rules, now=0) is None
    assert machine.step(make_facts(), "wave", rules, now=100) is not None


def test_fixed_mode_ignores_per_rule_trigger_count(table, flags, make_facts):
    config = ReactorConfig(combo_count_mode=ComboCountMode.FIXED, global_combo_target=2)
    machine = ComboStateMachine(config, table, RuleMatcher(ConditionEvaluator(flags)), flags)
    rule = combo(trigger_count=5)
    assert machine.trigger_target(rule) == 2
    machine.step(make_facts(), "wave", [rule], now=0)
    assert machine.step(make_facts(), "wave", [rule], now=100) is not None


def test_first_matching_combo_rule_sets_threshold(machine, table, make_facts):
    rules = [
        combo("spouse_spam", trigger_count=2, conditions={"is_spouse": True}),
        combo("anyone_spam", trigger_count=4),
    ]
    facts = make_facts()
    for t in range(3):
        assert machine.step(facts, "wave", rules, now=t * 100) is None
    assert table.get("farmer", "abigail").reset_threshold == 4
    assert machine.step(facts, "wave", rules, now=300).rule_id == "anyone_spam"


def test_no_combo_rules_or_disabled_flag_leaves_streak_alone(machine, table, flags, make_facts):
    assert machine.step(make_facts(), "wave", [], now=0) is None
    assert table.get("farmer", "abigail") is None

    flags.set_flag(EMOTE_COMBO, False)
    assert machine.step(make_facts(), "wave", [combo(trigger_count=1)], now=0) is None
    assert table.get("farmer", "abigail") is None


def test_busy_flags(table):
    assert table.try_acquire("abigail")
    assert table.is_busy("abigail")
    assert not table.try_acquire("abigail")
    table.release("abigail")
    assert not table.is_busy("abigail")
    assert table.try_acquire("abigail")


def test_concurrent_steps_trigger_exactly_once_per_run(machine, table, make_facts):
    facts = make_facts()
    rules = [combo(trigger_count=3)]
    fired = []
    fired_lock = threading.Lock()

    def wave_many(times):
        for _ in range(times):
            if machine.step(facts, "wave", rules, now=0) is not None:
                with fired_lock:
                    fired.append(1)

    workers = [threading.Thread(target=wave_many, args=(50,)) for _ in range(6)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert len(fired) == 100
    assert table.get("farmer", "abigail").streak_count == 0
