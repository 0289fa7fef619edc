# emote_reactor/rules/conditions.py
from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..feature_flags import (
    ENABLE_FRIENDSHIP_CONDITIONS,
    ENABLE_SEASON_CONDITIONS,
    ENABLE_WEATHER_CONDITIONS,
    FeatureFlagsManager,
)
from ..models import Condition, FactSnapshot

logger = logging.getLogger(__name__)

__all__ = ["ConditionEvaluator"]


class ConditionEvaluator:
    """Pure predicate over a :class:`Condition` and a :class:`FactSnapshot`.

    Every set field must hold; unset fields are vacuously true.  Season, weather
    and friendship checks can be switched off globally through feature flags, in
    which case those fields are ignored for every rule.
    """

    def __init__(self, flags: Optional[FeatureFlagsManager] = None) -> None:
        self.flags = flags or FeatureFlagsManager()

    def evaluate(self, condition: Optional[Condition], facts: FactSnapshot) -> bool:
        return self.check(condition, facts)[0]

    def check(self, condition: Optional[Condition], facts: FactSnapshot) -> Tuple[bool, str]:
        """Evaluates and returns a tuple of (bool, reason_string)."""
        if condition is None:
            return (True, 'No conditions')

        if condition.unknown_fields:
            logger.warning('Condition has unknown field(s) %s - treated as non-matching', condition.unknown_fields)
            return (False, f'Unknown condition field(s): {", ".join(condition.unknown_fields)}')

        # --- Character type ---
        if condition.character_type is not None and facts.actor_type.value not in condition.character_type:
            return (False, f"CharacterType {facts.actor_type.value!r} not in {list(condition.character_type.options)}")

        if condition.pet_type is not None and facts.pet_subtype != condition.pet_type:
            return (False, f"PetType {facts.pet_subtype!r} != {condition.pet_type!r}")

        # --- Actor-only facts ---
        if facts.is_actor:
            ok, reason = self._check_actor_fields(condition, facts)
            if not ok:
                return (False, reason)
        elif condition.uses_actor_fields:
            return (False, 'Actor-only condition on a non-actor target')

        if condition.is_baby is not None and facts.is_baby != condition.is_baby:
            return (False, f'IsBaby {facts.is_baby} != {condition.is_baby}')

        # --- World state ---
        if (
            condition.season is not None
            and self.flags.is_enabled(ENABLE_SEASON_CONDITIONS)
            and facts.season.lower() != condition.season.lower()
        ):
            return (False, f'Season {facts.season!r} != {condition.season!r}')

        if (
            condition.weather is not None
            and self.flags.is_enabled(ENABLE_WEATHER_CONDITIONS)
            and facts.weather.lower() != condition.weather.lower()
        ):
            return (False, f'Weather {facts.weather!r} != {condition.weather!r}')

        return (True, 'All conditions met')

    def _check_actor_fields(self, condition: Condition, facts: FactSnapshot) -> Tuple[bool, str]:
        if condition.name is not None and facts.name != condition.name:
            return (False, f'Name {facts.name!r} != {condition.name!r}')
        if condition.is_spouse is not None and facts.is_spouse != condition.is_spouse:
            return (False, f'IsSpouse {facts.is_spouse} != {condition.is_spouse}')
        if condition.is_dateable is not None and facts.is_dateable != condition.is_dateable:
            return (False, f'IsDateable {facts.is_dateable} != {condition.is_dateable}')

        if self.flags.is_enabled(ENABLE_FRIENDSHIP_CONDITIONS):
            lower = condition.friendship_greater_than_or_equal_to
            if lower is not None and facts.relationship < lower:
                return (False, f'Friendship {facts.relationship} < {lower}')
            upper = condition.friendship_less_than
            if upper is not None and facts.relationship >= upper:
                return (False, f'Friendship {facts.relationship} >= {upper}')

        return (True, '')
