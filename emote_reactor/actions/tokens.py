# emote_reactor/actions/tokens.py
"""Dialogue token substitution for reaction text.

Supported tokens, applied to each text fragment on its own:

``a^b``              gender branch: ``a`` for male initiators, ``b`` otherwise
``@``                initiator name
``%farm``            initiator's farm name
``%favorite_thing``  initiator's favourite thing
``%pet``             initiator's pet name (left as-is when there is no pet)
``%spouse``          the speaking target's partner (left as-is when unmarried)
"""
from __future__ import annotations

from typing import List

from ..models import FactSnapshot

__all__ = ["apply_tokens", "split_fragments"]

GENDER_BRANCH = "^"


def apply_tokens(text: str, facts: FactSnapshot) -> str:
    initiator = facts.initiator
    if GENDER_BRANCH in text:
        parts = text.split(GENDER_BRANCH)
        text = parts[1] if len(parts) >= 2 and not initiator.is_male else parts[0]

    text = text.replace("@", initiator.name)
    text = text.replace("%farm", initiator.farm_name)
    text = text.replace("%favorite_thing", initiator.favorite_thing)
    if initiator.pet_name:
        text = text.replace("%pet", initiator.pet_name)
    if facts.spouse_display_name:
        text = text.replace("%spouse", facts.spouse_display_name)
    return text


def split_fragments(text: str, splitter: str = "|") -> List[str]:
    if splitter in text:
        return text.split(splitter)
    return [text]
