"""Reactor engines.

`MainReactorEngine` wires signals through the combo state machine, the rule
matcher and the action executor.

Example
-------
>>> from emote_reactor.engine import MainReactorEngine
"""
from __future__ import annotations

from .base import ReactorEngine
from .main import MainReactorEngine  # re-export

__all__ = ["MainReactorEngine", "ReactorEngine"]
