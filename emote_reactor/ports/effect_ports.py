# emote_reactor/ports/effect_ports.py
"""
Output side of the reactor: everything a reaction can make happen on screen or
through the speakers.  Implementations are thin rendering wrappers owned by the
host; the reactor only decides *what* to request and *when*.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SignalPort(Protocol):
    """Shows a reply emote bubble over the target."""

    def perform(self, target_id: str, signal_id: str) -> None:
        ...


@runtime_checkable
class AnimationPort(Protocol):
    """Plays a named full-body animation (``anim_laugh`` arrives as ``laugh``)."""

    def perform_named(self, target_id: str, animation_name: str) -> None:
        ...


@runtime_checkable
class TextPort(Protocol):
    """Shows one transient text fragment above the target."""

    def show(self, target_id: str, text: str) -> None:
        ...


@runtime_checkable
class SoundPort(Protocol):
    def play(self, effect_id: str) -> None:
        ...


@runtime_checkable
class NotificationPort(Protocol):
    """Local-only HUD message, e.g. ``+10 Abigail`` after a reward."""

    def notify(self, initiator_id: str, message: str) -> None:
        ...
