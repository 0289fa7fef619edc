# emote_reactor/models.py
from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr, RootModel, model_validator
from pydantic.alias_generators import to_pascal

__all__: list[str] = [
    "ActorType",
    "OneOrMany",
    "resolve_choice",
    "Condition",
    "ReactionAction",
    "ReactionRule",
    "ComboRule",
    "SignalRules",
    "InitiatorProfile",
    "FactSnapshot",
    "ReactionOutcome",
]

NOT_A_PET: str = "NotAPet"

# Rule files may use the snake_case names below or the PascalCase keys of the
# legacy JSON rule format ("IsSpouse", "CharacterType", ...).
_AUTHORED = ConfigDict(frozen=True, alias_generator=to_pascal, populate_by_name=True)


class ActorType(str, Enum):
    VILLAGER = "Villager"
    PET = "Pet"
    FARM_ANIMAL = "FarmAnimal"
    BABY = "Baby"
    OTHER = "Other"


_NON_ACTOR_TYPES = frozenset({ActorType.FARM_ANIMAL})


class OneOrMany(RootModel[Tuple[str, ...]]):
    """Either a single value or a list of alternatives.

    Authored as ``"heart"`` or ``["heart", "happy"]``; always stored as a tuple so
    callers never have to inspect the shape.  Empty strings are dropped.
    """

    root: Tuple[str, ...] = ()
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,) if value else ()
        if isinstance(value, (list, tuple)):
            return tuple(v for v in value if v != "")
        return value

    @property
    def options(self) -> Tuple[str, ...]:
        return self.root

    def __len__(self) -> int:
        return len(self.root)

    def __contains__(self, item: object) -> bool:
        return item in self.root


def resolve_choice(choices: Optional[OneOrMany], rng: Optional[random.Random] = None) -> Optional[str]:
    """Return None for no alternatives, the value for one, a uniform pick for many."""
    if choices is None or not choices.options:
        return None
    options = choices.options
    if len(options) == 1:
        return options[0]
    return (rng or random).choice(options)


class Condition(BaseModel):
    """AND-ed predicate fields; ``None`` means the field imposes no constraint.

    Unknown keys are kept in ``model_extra`` so the evaluator can fail the rule
    closed instead of silently ignoring a typo.
    """

    model_config = ConfigDict(**_AUTHORED, extra="allow")

    name: Optional[str] = None
    is_spouse: Optional[bool] = None
    is_dateable: Optional[bool] = None
    is_baby: Optional[bool] = None
    friendship_greater_than_or_equal_to: Optional[int] = None
    friendship_less_than: Optional[int] = None
    character_type: Optional[OneOrMany] = None
    pet_type: Optional[str] = None
    season: Optional[str] = None
    weather: Optional[str] = None

    @property
    def unknown_fields(self) -> List[str]:
        return sorted(self.model_extra or {})

    @property
    def uses_actor_fields(self) -> bool:
        return any(
            v is not None
            for v in (
                self.name,
                self.is_spouse,
                self.is_dateable,
                self.friendship_greater_than_or_equal_to,
                self.friendship_less_than,
            )
        )


class ReactionAction(BaseModel):
    model_config = ConfigDict(**_AUTHORED, extra="forbid")

    emote: OneOrMany = Field(default_factory=OneOrMany)
    display_text: OneOrMany = Field(default_factory=OneOrMany)

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, value: Any) -> Any:
        # `action: heart` is shorthand for `action: {emote: heart}`
        if value is None:
            return {}
        if isinstance(value, (str, list)):
            return {"emote": value}
        return value

    @property
    def is_empty(self) -> bool:
        return not self.emote.options and not self.display_text.options


class ReactionRule(BaseModel):
    model_config = ConfigDict(**_AUTHORED, extra="forbid")

    rule_id: str = Field("", validation_alias=AliasChoices("id", "Id", "rule_id"))
    description: Optional[str] = None
    enabled: bool = True
    condition: Optional[Condition] = Field(
        None, validation_alias=AliasChoices("conditions", "Conditions", "condition")
    )
    action: ReactionAction = Field(
        default_factory=ReactionAction, validation_alias=AliasChoices("action", "Action")
    )
    _defect: Optional[str] = PrivateAttr(default=None)

    @property
    def defect(self) -> Optional[str]:
        return self._defect

    @property
    def is_malformed(self) -> bool:
        return self.defect is not None

    @classmethod
    def malformed(cls, rule_id: str, defect: str) -> "ReactionRule":
        """Placeholder that keeps a broken rule's slot in the list but never matches."""
        rule = cls.model_construct(
            rule_id=rule_id,
            description=None,
            enabled=True,
            condition=None,
            action=ReactionAction(),
        )
        rule._defect = defect
        return rule


class ComboRule(ReactionRule):
    trigger_count: Optional[int] = Field(None, ge=1)

    @classmethod
    def malformed(cls, rule_id: str, defect: str) -> "ComboRule":
        rule = cls.model_construct(
            rule_id=rule_id,
            description=None,
            enabled=True,
            condition=None,
            action=ReactionAction(),
            trigger_count=None,
        )
        rule._defect = defect
        return rule


class SignalRules(BaseModel):
    """Both rule lists authored for one signal, in authored order."""

    model_config = ConfigDict(frozen=True)

    signal: str
    reactions: Tuple[ReactionRule, ...] = ()
    combos: Tuple[ComboRule, ...] = ()


class InitiatorProfile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    farm_name: str = ""
    favorite_thing: str = ""
    pet_name: Optional[str] = None
    is_male: bool = True
    is_local: bool = True


class FactSnapshot(BaseModel):
    """Resolved world facts for one (initiator, target) pair at signal time."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    initiator_id: str
    target_id: str
    target_name: Optional[str] = None
    target_display_name: Optional[str] = None
    actor_type: ActorType = ActorType.OTHER
    is_actor: bool = True
    pet_type: Optional[str] = None
    is_spouse: bool = False
    is_dateable: bool = False
    relationship: int = 0
    season: str = ""
    weather: str = ""
    distance: Optional[float] = Field(None, ge=0.0, description="Tiles between initiator and target")
    spouse_display_name: Optional[str] = None
    initiator: InitiatorProfile = Field(default_factory=InitiatorProfile)

    @model_validator(mode="before")
    @classmethod
    def _default_is_actor(cls, data: Any) -> Any:
        # Animals are never actors unless the host says otherwise.
        if isinstance(data, dict) and "is_actor" not in data:
            try:
                kind = ActorType(data.get("actor_type", ActorType.OTHER))
            except ValueError:
                return data
            if kind in _NON_ACTOR_TYPES:
                return {**data, "is_actor": False}
        return data

    @property
    def name(self) -> str:
        return self.target_name or self.target_id

    @property
    def display_name(self) -> str:
        return self.target_display_name or self.name

    @property
    def is_baby(self) -> bool:
        return self.actor_type is ActorType.BABY

    @property
    def is_companion(self) -> bool:
        return self.actor_type is ActorType.PET

    @property
    def pet_subtype(self) -> str:
        if self.actor_type is ActorType.PET and self.pet_type:
            return self.pet_type
        return NOT_A_PET


@dataclass(slots=True)
class ReactionOutcome:
    target_id: str
    origin: str
    signal: Optional[str] = None
    text_fragments: List[str] = field(default_factory=list)
    reward: int = 0

    @property
    def emitted(self) -> bool:
        return self.signal is not None or bool(self.text_fragments)

    @property
    def text(self) -> str:
        return " ".join(self.text_fragments)
