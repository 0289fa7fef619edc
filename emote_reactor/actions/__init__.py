"""Action execution: the timed emote / text / reward pipeline for one target.

Token substitution lives in :mod:`emote_reactor.actions.tokens` so hosts can
preview rendered text without running a reaction.
"""
from __future__ import annotations

from .executor import ActionExecutor, ReactionPorts

__all__: list[str] = ["ActionExecutor", "ReactionPorts"]
