# emote_reactor/actions/executor.py
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ..combo import ReactionStateTable
from ..config import ReactorConfig
from ..exceptions import PortError
from ..models import FactSnapshot, ReactionAction, ReactionOutcome, resolve_choice
from ..ports import (
    AnimationPort,
    LocalizationPort,
    NotificationPort,
    RelationshipPort,
    SignalPort,
    SoundPort,
    TextPort,
)
from ..rewards import RewardGate
from .tokens import apply_tokens, split_fragments

logger = logging.getLogger(__name__)

__all__ = ["ReactionPorts", "ActionExecutor"]

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass
class ReactionPorts:
    """The collaborators a reaction can reach.  Optional ports may be left out."""
    signals: SignalPort
    text: TextPort
    localization: LocalizationPort
    relationships: RelationshipPort
    animations: Optional[AnimationPort] = None
    sound: Optional[SoundPort] = None
    notifications: Optional[NotificationPort] = None


class ActionExecutor:
    """
    Plays one matched action on one target:

    1. wait ``emote_delay_ms`` plus a little random jitter,
    2. pick a reply emote (``anim_*`` names go to the animation port),
    3. pick a text key,
    4. wait ``text_pause_ms`` if both an emote and text are coming,
    5. show the localized text, fragment by fragment on ``|``,
    6. grant the daily reward if anything was shown.

    A target that is still busy with an earlier reaction drops the new one.
    Port failures degrade the step they happen in and nothing else.
    """

    def __init__(
        self,
        config: ReactorConfig,
        ports: ReactionPorts,
        table: ReactionStateTable,
        reward_gate: RewardGate,
        *,
        rng: Optional[random.Random] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.config = config
        self.ports = ports
        self.table = table
        self.reward_gate = reward_gate
        self.rng = rng or random.Random()
        self.sleep = sleep
        self._catalog = frozenset(config.signal_catalog) if config.signal_catalog is not None else None

    async def execute(
        self, facts: FactSnapshot, action: ReactionAction, *, origin: str = "reaction"
    ) -> Optional[ReactionOutcome]:
        target_id = facts.target_id
        if not self.table.try_acquire(target_id):
            logger.debug("%s is busy - dropping %s", target_id, origin)
            return None
        try:
            return await self._run(facts, action, origin)
        finally:
            self.table.release(target_id)

    # ------------------------------------------------------------------ #
    async def _run(self, facts: FactSnapshot, action: ReactionAction, origin: str) -> ReactionOutcome:
        outcome = ReactionOutcome(target_id=facts.target_id, origin=origin)

        await self._pause(self.config.emote_delay_ms + self._jitter())

        signal = resolve_choice(action.emote, self.rng)
        if signal is not None and self._perform_signal(facts, signal):
            outcome.signal = signal

        text_key = resolve_choice(action.display_text, self.rng)
        if outcome.signal is not None and text_key is not None:
            await self._pause(self.config.text_pause_ms)

        if text_key is not None:
            await self._show_text(facts, text_key, outcome)

        if not outcome.emitted:
            logger.debug("%s on %s produced no output", origin, facts.target_id)
            return outcome

        self._reward(facts, outcome)
        logger.info(
            "Emote %s -> target=%s, signal=%s, text=%r, reward=%+d",
            origin, facts.target_id, outcome.signal, outcome.text, outcome.reward,
        )
        return outcome

    async def _pause(self, milliseconds: float) -> None:
        await self.sleep(max(milliseconds, 0) / 1000.0)

    def _jitter(self) -> int:
        if self.config.reaction_jitter_ms <= 0:
            return 0
        return self.rng.randrange(self.config.reaction_jitter_ms)

    @staticmethod
    def _call(port: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception as exc:
            raise PortError(str(exc) or type(exc).__name__, port=port) from exc

    # ------------------------------------------------------------------ #
    def _perform_signal(self, facts: FactSnapshot, signal: str) -> bool:
        prefix = self.config.animation_prefix
        try:
            if signal.startswith(prefix) and facts.is_actor:
                if self.ports.animations is None:
                    logger.warning("No animation port configured; cannot play '%s'", signal)
                    return False
                self._call("animation", self.ports.animations.perform_named, facts.target_id, signal[len(prefix):])
                return True

            if self._catalog is not None and signal not in self._catalog:
                logger.debug("Unknown reply signal '%s' - not performed", signal)
                return False
            self._call("signal", self.ports.signals.perform, facts.target_id, signal)
            return True
        except PortError as exc:
            logger.warning("Reply '%s' on %s failed: %s", signal, facts.target_id, exc)
            return False

    async def _show_text(self, facts: FactSnapshot, text_key: str, outcome: ReactionOutcome) -> None:
        if not facts.is_actor:
            logger.debug("%s cannot show text; skipping '%s'", facts.target_id, text_key)
            return

        try:
            raw = self._call("localization", self.ports.localization.resolve, text_key)
        except PortError as exc:
            logger.warning("Text lookup for '%s' failed: %s", text_key, exc)
            return
        if not raw:
            logger.warning("No translation for '%s'", text_key)
            return

        fragments = split_fragments(raw, self.config.text_splitter)
        for i, fragment in enumerate(fragments):
            parsed = apply_tokens(fragment, facts)
            try:
                self._call("text", self.ports.text.show, facts.target_id, parsed)
                outcome.text_fragments.append(parsed)
            except PortError as exc:
                logger.warning("Showing text on %s failed: %s", facts.target_id, exc)

            if i < len(fragments) - 1:
                await self._pause(self.config.fragment_pause_ms)

    def _reward(self, facts: FactSnapshot, outcome: ReactionOutcome) -> None:
        amount = self.config.friendship_gain_amount
        try:
            granted = self.reward_gate.try_grant(
                facts.initiator_id,
                facts.target_id,
                amount,
                companion=facts.is_companion,
                display_name=facts.display_name,
                notify_local=facts.initiator.is_local,
            )
        except Exception as exc:
            logger.warning("Reward for %s -> %s failed: %s", facts.initiator_id, facts.target_id, exc)
            return
        if not granted:
            return

        outcome.reward = amount
        if self.config.play_reply_sound and self.ports.sound is not None:
            try:
                self._call("sound", self.ports.sound.play, self.config.reply_sound)
            except PortError as exc:
                logger.warning("Reply sound failed: %s", exc)
