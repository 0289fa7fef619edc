import logging
import random

import pytest
from pydantic import ValidationError

from emote_reactor import models
from emote_reactor.models import (
    ActorType,
    ComboRule,
    Condition,
    OneOrMany,
    ReactionAction,
    ReactionRule,
    resolve_choice,
)


def test_one_or_many_accepts_single_value_and_lists():
    assert OneOrMany.model_validate("heart").options == ("heart",)
    assert OneOrMany.model_validate(["heart", "happy"]).options == ("heart", "happy")
    assert OneOrMany.model_validate(None).options == ()
    assert OneOrMany.model_validate(["", "sad"]).options == ("sad",)
    assert "sad" in OneOrMany.model_validate(["sad"])


def test_resolve_choice():
    assert resolve_choice(None) is None
    assert resolve_choice(OneOrMany()) is None
    assert resolve_choice(OneOrMany.model_validate("blush")) == "blush"

    rng = random.Random(3)
    picks = {resolve_choice(OneOrMany.model_validate(["a", "b", "c"]), rng) for _ in range(60)}
    assert picks == {"a", "b", "c"}


def test_action_shorthand_and_pascal_case_keys():
    assert ReactionAction.model_validate("heart").emote.options == ("heart",)
    assert ReactionAction.model_validate(["heart", "happy"]).emote.options == ("heart", "happy")

    action = ReactionAction.model_validate({"Emote": ["happy", "anim_wave"], "DisplayText": "reply.wave"})
    assert action.emote.options == ("happy", "anim_wave")
    assert action.display_text.options == ("reply.wave",)
    assert not action.is_empty
    assert ReactionAction().is_empty


def test_action_rejects_unknown_keys():
    with pytest.raises(ValidationError):
        ReactionAction.model_validate({"emote": "heart", "colour": "red"})


def test_rule_accepts_legacy_pascal_case_shape():
    logging.info("--- Running PascalCase rule test ---")
    rule = ComboRule.model_validate({
        "Id": "wave_spam",
        "Conditions": {"IsSpouse": True, "CharacterType": ["Villager"], "FriendshipGreaterThanOrEqualTo": 2000},
        "TriggerCount": 3,
        "Action": {"Emote": "blush"},
    })
    assert rule.rule_id == "wave_spam"
    assert rule.trigger_count == 3
    assert rule.condition.is_spouse is True
    assert rule.condition.friendship_greater_than_or_equal_to == 2000
    assert "Villager" in rule.condition.character_type
    assert rule.action.emote.options == ("blush",)
    assert not rule.is_malformed
    logging.info("✓ PascalCase rule parsed.")


def test_combo_trigger_count_must_be_positive():
    with pytest.raises(ValidationError):
        ComboRule.model_validate({"trigger_count": 0, "action": "blush"})


def test_condition_keeps_unknown_fields():
    cond = Condition.model_validate({"is_spouse": True, "mood": "grumpy"})
    assert cond.unknown_fields == ["mood"]
    assert cond.uses_actor_fields


def test_malformed_placeholder():
    rule = ReactionRule.malformed("heart.reactions[2]", "bad")
    assert rule.is_malformed
    assert rule.rule_id == "heart.reactions[2]"
    assert rule.action.is_empty

    combo = ComboRule.malformed("wave.combos[0]", "bad")
    assert isinstance(combo, ComboRule)
    assert combo.trigger_count is None


def test_rules_are_frozen():
    rule = ReactionRule.model_validate({"id": "r", "action": "heart"})
    with pytest.raises(ValidationError):
        rule.rule_id = "other"


def test_fact_snapshot_derived_properties(make_facts):
    villager = make_facts(target_display_name="Abby")
    assert villager.name == "Abigail"
    assert villager.display_name == "Abby"
    assert villager.pet_subtype == models.NOT_A_PET
    assert not villager.is_companion

    dog = make_facts(target_id="biscuit", target_name=None, actor_type=ActorType.PET, pet_type="dog")
    assert dog.name == "biscuit"
    assert dog.is_companion
    assert dog.pet_subtype == "dog"

    assert make_facts(actor_type=ActorType.BABY).is_baby


def test_outcome_text_and_emitted():
    outcome = models.ReactionOutcome(target_id="abigail", origin="reaction")
    assert not outcome.emitted
    outcome.text_fragments.extend(["X", "Y"])
    assert outcome.emitted
    assert outcome.text == "X Y"


def test_farm_animals_are_not_actors_by_default(make_facts):
    cow = models.FactSnapshot(initiator_id="farmer", target_id="cow_1", target_name="Daisy", actor_type=ActorType.FARM_ANIMAL)
    assert not cow.is_actor

    authored = models.FactSnapshot.model_validate({"initiator_id": "farmer", "target_id": "cow_2", "actor_type": "FarmAnimal"})
    assert not authored.is_actor

    assert make_facts().is_actor
    assert models.FactSnapshot(initiator_id="farmer", target_id="abigail", actor_type=ActorType.VILLAGER).is_actor
    # An explicit flag always wins, in both directions.
    assert models.FactSnapshot(initiator_id="farmer", target_id="scarecrow", actor_type=ActorType.OTHER, is_actor=False).is_actor is False
    assert models.FactSnapshot(initiator_id="farmer", target_id="cow_3", actor_type=ActorType.FARM_ANIMAL, is_actor=True).is_actor


@pytest.mark.parametrize("key", ["defect", "Defect"])
def test_rule_files_cannot_mark_a_rule_malformed(key):
    with pytest.raises(ValidationError):
        ReactionRule.model_validate({"id": "r", "action": "heart", key: "authored"})

    rule = ReactionRule.model_validate({"id": "r", "action": "heart"})
    assert rule.defect is None
    assert "defect" not in rule.model_dump()
