# emote_reactor/rules/matcher.py
from __future__ import annotations

import logging
from typing import Optional, Sequence, TypeVar

from ..models import FactSnapshot, ReactionRule
from .conditions import ConditionEvaluator

logger = logging.getLogger(__name__)

__all__ = ["RuleMatcher"]

R = TypeVar("R", bound=ReactionRule)


class RuleMatcher:
    """First match wins.

    Rules are scanned in authored order and the first one whose condition holds is
    returned.  There is no priority or scoring: authors express specificity by
    putting the narrower rule first.
    """

    def __init__(self, evaluator: Optional[ConditionEvaluator] = None) -> None:
        self.evaluator = evaluator or ConditionEvaluator()

    def find_first_match(self, rules: Sequence[R], facts: FactSnapshot) -> Optional[R]:
        for index, rule in enumerate(rules):
            if rule.is_malformed:
                logger.debug("  Rule '%s' skipped (malformed: %s)", rule.rule_id, rule.defect)
                continue
            if not rule.enabled:
                logger.debug("  Rule '%s' skipped (disabled)", rule.rule_id)
                continue
            try:
                is_match, reason = self.evaluator.check(rule.condition, facts)
            except Exception as exc:
                logger.exception("Rule '%s' failed during evaluation: %s", rule.rule_id or index, exc)
                continue
            if is_match:
                logger.debug("Rule '%s' MATCHED target '%s'", rule.rule_id, facts.target_id)
                return rule
            logger.debug("  Rule '%s' skipped for target '%s'. Reason: %s", rule.rule_id, facts.target_id, reason)
        return None
