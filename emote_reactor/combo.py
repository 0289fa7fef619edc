# emote_reactor/combo.py
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Set, Tuple

from .config import ComboCountMode, ReactorConfig
from .feature_flags import EMOTE_COMBO, FeatureFlagsManager
from .models import ComboRule, FactSnapshot
from .rules.matcher import RuleMatcher

logger = logging.getLogger(__name__)

__all__ = ["ComboState", "ReactionStateTable", "ComboStateMachine", "monotonic_ms"]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(slots=True)
class ComboState:
    last_signal: Optional[str] = None
    streak_count: int = 0
    reset_threshold: Optional[int] = None
    last_timestamp: float = 0.0


class ReactionStateTable:
    """Process-wide per-actor state: combo streaks and busy flags.

    Streaks are keyed by (initiator_id, target_id) and created on first contact.
    Busy flags are keyed by target alone so a target never runs two reactions
    at once, whoever triggered them.  Both survive rule reloads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._streaks: Dict[Tuple[str, str], ComboState] = {}
        self._busy: Set[str] = set()

    # ------------------------------------------------------------------ #
    def get(self, initiator_id: str, target_id: str) -> Optional[ComboState]:
        with self._lock:
            return self._streaks.get((initiator_id, target_id))

    def update(self, key: Tuple[str, str], fn: Callable[[Optional[ComboState]], ComboState]) -> ComboState:
        with self._lock:
            state = fn(self._streaks.get(key))
            self._streaks[key] = state
            return state

    def __len__(self) -> int:
        with self._lock:
            return len(self._streaks)

    # ------------------------------------------------------------------ #
    def try_acquire(self, target_id: str) -> bool:
        with self._lock:
            if target_id in self._busy:
                return False
            self._busy.add(target_id)
            return True

    def release(self, target_id: str) -> None:
        with self._lock:
            self._busy.discard(target_id)

    def is_busy(self, target_id: str) -> bool:
        with self._lock:
            return target_id in self._busy


class ComboStateMachine:
    """
    Counts repeats of the same signal at the same target.  When the streak reaches
    the threshold of the first matching combo rule, that rule is returned for
    execution and the streak drops back to zero.

    Timeouts are lazy: a stale streak is only noticed when the next signal arrives.
    """

    def __init__(
        self,
        config: ReactorConfig,
        table: ReactionStateTable,
        matcher: RuleMatcher,
        flags: Optional[FeatureFlagsManager] = None,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.config = config
        self.table = table
        self.matcher = matcher
        self.flags = flags or matcher.evaluator.flags
        self.clock = clock

    def _advance(self, state: Optional[ComboState], signal: str, now: float) -> ComboState:
        if state is None:
            return ComboState(last_signal=signal, streak_count=1, last_timestamp=now)
        if state.last_signal != signal or now - state.last_timestamp > self.config.combo_timeout_ms:
            state.last_signal = signal
            state.streak_count = 1
        else:
            state.streak_count += 1
        state.last_timestamp = now
        return state

    def observe(self, initiator_id: str, target_id: str, signal: str, now: float) -> ComboState:
        state = self.table.update((initiator_id, target_id), lambda s: self._advance(s, signal, now))
        logger.debug(
            "Streak %s -> %s: '%s' x%d", initiator_id, target_id, signal, state.streak_count
        )
        return state

    def trigger_target(self, rule: ComboRule) -> int:
        if self.config.combo_count_mode is ComboCountMode.FIXED:
            return self.config.global_combo_target
        if rule.trigger_count is None:
            return self.config.global_combo_target
        return rule.trigger_count

    def step(
        self,
        facts: FactSnapshot,
        signal: str,
        combo_rules: Sequence[ComboRule],
        now: Optional[float] = None,
    ) -> Optional[ComboRule]:
        """Advance the streak and return the combo rule to run, if it triggered.

        Counting, the threshold check and the reset happen under the table lock,
        so concurrent callers for the same pair trigger exactly once per run.
        """
        if not combo_rules or not self.flags.is_enabled(EMOTE_COMBO):
            return None

        now = self.clock() if now is None else now
        rule = self.matcher.find_first_match(combo_rules, facts)
        threshold = self.trigger_target(rule) if rule is not None else None
        fired = False

        def advance_and_check(state: Optional[ComboState]) -> ComboState:
            nonlocal fired
            state = self._advance(state, signal, now)
            if threshold is not None:
                state.reset_threshold = threshold
                if state.streak_count >= threshold:
                    state.streak_count = 0
                    fired = True
            return state

        state = self.table.update((facts.initiator_id, facts.target_id), advance_and_check)
        if not fired:
            logger.debug(
                "Combo '%s' on %s at %d/%s", signal, facts.target_id, state.streak_count, threshold or '-'
            )
            return None

        logger.info("Combo '%s' triggered on %s (rule '%s', threshold %d)", signal, facts.target_id, rule.rule_id, threshold)
        return rule
