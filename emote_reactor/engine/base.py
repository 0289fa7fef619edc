# emote_reactor/engine/base.py
from __future__ import annotations

import abc
import asyncio
from typing import Iterable, List, Protocol, runtime_checkable


@runtime_checkable
class ReactorEngine(Protocol):
    @abc.abstractmethod
    async def process_signal(
        self, signal: str, initiator_id: str, target_ids: Iterable[str]
    ) -> List["asyncio.Task"]: ...

    @abc.abstractmethod
    def start_new_day(self) -> None: ...

    @abc.abstractmethod
    def reload_rules(self) -> None: ...
