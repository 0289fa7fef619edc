from unittest.mock import MagicMock

import pytest

from emote_reactor.adapters import InMemoryRelationships, RecordingEffects
from emote_reactor.rewards import RewardGate, RewardLedger


@pytest.fixture
def relationships():
    return InMemoryRelationships({("farmer", "abigail"): 500})


@pytest.fixture
def gate(relationships):
    return RewardGate(relationships, RewardLedger())


def test_once_per_day(gate, relationships):
    assert gate.try_grant("farmer", "abigail", 10)
    assert not gate.try_grant("farmer", "abigail", 10)
    assert relationships.get("farmer", "abigail") == 510

    gate.start_new_day()
    assert gate.try_grant("farmer", "abigail", 10)
    assert relationships.get("farmer", "abigail") == 520


def test_ledger_is_per_pair(gate, relationships):
    relationships.scores[("farmer", "pierre")] = 0
    relationships.scores[("sam", "abigail")] = 0
    assert gate.try_grant("farmer", "abigail", 10)
    assert gate.try_grant("farmer", "pierre", 10)
    assert gate.try_grant("sam", "abigail", 10)
    assert len(gate.ledger) == 3


def test_unknown_relationship_gets_nothing_except_companions(gate, relationships):
    assert not gate.try_grant("farmer", "stranger", 10)
    assert not gate.ledger.has("farmer", "stranger")

    assert gate.try_grant("farmer", "biscuit", 10, companion=True)
    assert relationships.get("farmer", "biscuit") == 10


def test_zero_amount_is_not_a_grant(gate):
    assert not gate.try_grant("farmer", "abigail", 0)
    assert not gate.ledger.has("farmer", "abigail")


def test_failed_grant_is_rolled_back():
    relationships = MagicMock()
    relationships.get.return_value = 100
    relationships.grant.side_effect = RuntimeError("save file locked")
    gate = RewardGate(relationships)

    with pytest.raises(RuntimeError):
        gate.try_grant("farmer", "abigail", 10)
    assert not gate.ledger.has("farmer", "abigail")


def test_notification_only_for_local_initiator(relationships):
    effects = RecordingEffects()
    gate = RewardGate(relationships, notifications=effects)

    gate.try_grant("farmer", "abigail", 10, display_name="Abigail", notify_local=False)
    assert effects.of_kind("notify") == []

    gate.start_new_day()
    gate.try_grant("farmer", "abigail", 10, display_name="Abigail", notify_local=True)
    assert effects.of_kind("notify") == [("notify", "farmer", "+10 Abigail")]


def test_notification_can_be_switched_off(relationships):
    effects = RecordingEffects()
    gate = RewardGate(relationships, notifications=effects, show_message=False)
    assert gate.try_grant("farmer", "abigail", 10, notify_local=True)
    assert effects.events == []


def test_notification_failure_does_not_undo_grant(relationships, caplog):
    notifications = MagicMock()
    notifications.notify.side_effect = RuntimeError("hud gone")
    gate = RewardGate(relationships, notifications=notifications)

    assert gate.try_grant("farmer", "abigail", 10, notify_local=True)
    assert gate.ledger.has("farmer", "abigail")
    assert "Reward notification" in caplog.text
