"""Protocols for the collaborators the reactor talks to.

Keeps the engine free of any game or rendering dependency: hosts plug concrete
adapters in at construction time.
"""
from __future__ import annotations

from .effect_ports import AnimationPort, NotificationPort, SignalPort, SoundPort, TextPort
from .fact_provider_port import FactProviderPort
from .localization_port import LocalizationPort
from .relationship_port import RelationshipPort
from .rule_store_port import RuleStorePort

__all__ = [
    "AnimationPort",
    "FactProviderPort",
    "LocalizationPort",
    "NotificationPort",
    "RelationshipPort",
    "RuleStorePort",
    "SignalPort",
    "SoundPort",
    "TextPort",
]
