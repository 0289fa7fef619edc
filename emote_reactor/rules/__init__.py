"""Condition evaluation and first-match rule search.

Import side effects are avoided; only the two public classes are exposed.
"""
from __future__ import annotations

from .conditions import ConditionEvaluator
from .matcher import RuleMatcher

__all__ = ["ConditionEvaluator", "RuleMatcher"]
