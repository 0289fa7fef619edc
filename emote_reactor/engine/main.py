from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from ..actions.executor import ActionExecutor, ReactionPorts, SleepFn
from ..combo import ComboStateMachine, ReactionStateTable, monotonic_ms
from ..config import ReactorConfig
from ..feature_flags import FeatureFlagsManager
from ..models import FactSnapshot, ReactionAction, SignalRules
from ..ports import FactProviderPort, RuleStorePort
from ..rewards import RewardGate, RewardLedger
from ..rules import ConditionEvaluator, RuleMatcher

logger = logging.getLogger(__name__)


class MainReactorEngine:
    """
    Entry point for the host's update loop.

    ``process_signal`` never raises because of a single target: missing facts,
    broken rules and failing ports only mute that target's reaction.
    """

    def __init__(
        self,
        rule_store: RuleStorePort,
        fact_provider: FactProviderPort,
        ports: ReactionPorts,
        *,
        config: Optional[ReactorConfig] = None,
        flags: Optional[FeatureFlagsManager] = None,
        state_table: Optional[ReactionStateTable] = None,
        ledger: Optional[RewardLedger] = None,
        rng: Optional[random.Random] = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.config = config or ReactorConfig()
        self.rule_store = rule_store
        self.fact_provider = fact_provider
        self.flags = flags or FeatureFlagsManager(self.config.feature_flags)
        self.state_table = state_table or ReactionStateTable()
        self.ledger = ledger if ledger is not None else RewardLedger()

        self.evaluator = ConditionEvaluator(self.flags)
        self.matcher = RuleMatcher(self.evaluator)
        self.combos = ComboStateMachine(self.config, self.state_table, self.matcher, self.flags, clock)
        self.reward_gate = RewardGate(
            ports.relationships,
            self.ledger,
            ports.notifications,
            show_message=self.config.show_reward_message,
        )
        self.executor = ActionExecutor(
            self.config, ports, self.state_table, self.reward_gate, rng=rng, sleep=sleep
        )
        self._tasks: Set[asyncio.Task] = set()
        logger.info(
            'MainReactorEngine ready - %d signal(s) with rules, combo mode=%s, combo timeout=%dms',
            len(list(rule_store.signals())), self.config.combo_count_mode.value, self.config.combo_timeout_ms,
        )

    # ------------------------------------------------------------------ #
    async def process_signal(self, signal: str, initiator_id: str, target_ids: Iterable[str]) -> List[asyncio.Task]:
        """React to ``signal`` from ``initiator_id`` for every nearby target.

        Returns the reaction tasks spawned in this step; they run on their own and
        can be awaited with :meth:`drain`.
        """
        rules = self._rules_for(signal)
        if rules is None:
            return []

        logger.debug("Processing signal '%s' from %s", signal, initiator_id)
        spawned: List[asyncio.Task] = []
        for target_id in target_ids:
            if target_id == initiator_id:
                continue
            try:
                task = self._react(signal, initiator_id, target_id, rules)
            except Exception as exc:
                logger.exception("Reaction to '%s' for %s failed: %s", signal, target_id, exc)
                continue
            if task is not None:
                spawned.append(task)

        if not spawned:
            logger.debug("Emote '%s': No one in range or no matching reaction.", signal)
        return spawned

    def _react(self, signal: str, initiator_id: str, target_id: str, rules: SignalRules) -> Optional[asyncio.Task]:
        facts = self._facts(initiator_id, target_id)
        if facts is None or not self._in_range(facts):
            return None

        # Combos first; a triggered combo replaces the immediate reaction.
        combo_rule = self.combos.step(facts, signal, rules.combos)
        if combo_rule is not None:
            return self._spawn(facts, combo_rule.action, origin='combo')

        rule = self.matcher.find_first_match(rules.reactions, facts)
        if rule is None:
            return None
        return self._spawn(facts, rule.action, origin='reaction')

    def _rules_for(self, signal: str) -> Optional[SignalRules]:
        try:
            return self.rule_store.rules_for(signal)
        except Exception as exc:
            logger.warning("Rule lookup for '%s' failed: %s", signal, exc)
            return None

    def _facts(self, initiator_id: str, target_id: str) -> Optional[FactSnapshot]:
        try:
            facts = self.fact_provider.snapshot(initiator_id, target_id)
        except Exception as exc:
            logger.warning('Fact lookup for %s -> %s failed: %s', initiator_id, target_id, exc)
            return None
        if facts is None:
            logger.debug('No facts for %s -> %s; skipped', initiator_id, target_id)
        return facts

    def _in_range(self, facts: FactSnapshot) -> bool:
        if facts.distance is not None and facts.distance > self.config.event_distance:
            logger.debug('%s out of range (%.1f > %.1f)', facts.target_id, facts.distance, self.config.event_distance)
            return False
        return True

    def _spawn(self, facts: FactSnapshot, action: ReactionAction, origin: str) -> asyncio.Task:
        task = asyncio.create_task(
            self.executor.execute(facts, action, origin=origin),
            name=f'{origin}:{facts.target_id}',
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error('Reaction task %s failed: %s', task.get_name(), exc, exc_info=exc)

    # ------------------------------------------------------------------ #
    async def drain(self) -> None:
        """Wait until every reaction spawned so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def start_new_day(self) -> None:
        self.reward_gate.start_new_day()

    def reload_rules(self) -> None:
        try:
            self.rule_store.reload()
        except Exception as exc:
            logger.exception('Rule reload failed; keeping the current rules: %s', exc)
            return
        logger.info('Reaction and combo rules have been reloaded and applied.')

    # ------------------------------------------------------------------ #
    def inspect(self, signal: str, facts: FactSnapshot) -> Dict[str, Any]:
        """Predict what ``signal`` would do to the target described by ``facts``.

        Read-only: streaks, busy flags and the reward ledger are not touched.
        """
        report: Dict[str, Any] = {
            'signal': signal,
            'target': facts.target_id,
            'character_type': facts.actor_type.value,
            'friendship': facts.relationship,
            'is_spouse': facts.is_spouse,
            'is_dateable': facts.is_dateable,
            'busy': self.state_table.is_busy(facts.target_id),
            'rewarded_today': self.ledger.has(facts.initiator_id, facts.target_id),
            'has_rules': False,
            'reaction': None,
            'combo': None,
        }
        rules = self._rules_for(signal)
        if rules is None:
            return report
        report['has_rules'] = True

        reaction = self.matcher.find_first_match(rules.reactions, facts)
        if reaction is not None:
            report['reaction'] = {
                'rule_id': reaction.rule_id,
                'action': reaction.action.model_dump(mode='json'),
            }

        combo = self.matcher.find_first_match(rules.combos, facts)
        if combo is not None:
            state = self.state_table.get(facts.initiator_id, facts.target_id)
            report['combo'] = {
                'rule_id': combo.rule_id,
                'trigger_count': self.combos.trigger_target(combo),
                'streak': state.streak_count if state and state.last_signal == signal else 0,
                'action': combo.action.model_dump(mode='json'),
            }
        return report
