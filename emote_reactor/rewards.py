# emote_reactor/rewards.py
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Set

from .ports import NotificationPort, RelationshipPort

logger = logging.getLogger(__name__)

__all__ = ["RewardLedger", "RewardGate"]


class RewardLedger:
    """Which targets each initiator has already been rewarded for today."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rewarded: Dict[str, Set[str]] = {}

    def mark(self, initiator_id: str, target_id: str) -> bool:
        """Record a reward; False when the pair was already rewarded today."""
        with self._lock:
            targets = self._rewarded.setdefault(initiator_id, set())
            if target_id in targets:
                return False
            targets.add(target_id)
            return True

    def unmark(self, initiator_id: str, target_id: str) -> None:
        with self._lock:
            self._rewarded.get(initiator_id, set()).discard(target_id)

    def has(self, initiator_id: str, target_id: str) -> bool:
        with self._lock:
            return target_id in self._rewarded.get(initiator_id, ())

    def clear(self) -> None:
        with self._lock:
            self._rewarded.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(t) for t in self._rewarded.values())


class RewardGate:
    """Grants the reaction reward at most once per (initiator, target) per day.

    Targets the initiator has never met get nothing, except companions (pets),
    which start out without a relationship record.
    """

    def __init__(
        self,
        relationships: RelationshipPort,
        ledger: Optional[RewardLedger] = None,
        notifications: Optional[NotificationPort] = None,
        show_message: bool = True,
    ) -> None:
        self.relationships = relationships
        self.ledger = ledger if ledger is not None else RewardLedger()
        self.notifications = notifications
        self.show_message = show_message

    def try_grant(
        self,
        initiator_id: str,
        target_id: str,
        amount: int,
        *,
        companion: bool = False,
        display_name: Optional[str] = None,
        notify_local: bool = False,
    ) -> bool:
        if amount <= 0:
            return False
        if not companion and self.relationships.get(initiator_id, target_id) is None:
            logger.debug("No relationship record for %s -> %s; no reward", initiator_id, target_id)
            return False
        if not self.ledger.mark(initiator_id, target_id):
            logger.debug("%s already rewarded for %s today", initiator_id, target_id)
            return False

        try:
            self.relationships.grant(initiator_id, target_id, amount)
        except Exception:
            self.ledger.unmark(initiator_id, target_id)
            raise

        if self.show_message and notify_local and self.notifications is not None:
            try:
                self.notifications.notify(initiator_id, f"+{amount} {display_name or target_id}")
            except Exception as exc:
                logger.warning("Reward notification for %s failed: %s", target_id, exc)

        logger.info("Granted +%d relationship %s -> %s", amount, initiator_id, target_id)
        return True

    def start_new_day(self) -> None:
        self.ledger.clear()
        logger.info("Reward ledger cleared for the new day")
