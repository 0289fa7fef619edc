# emote_reactor/ports/rule_store_port.py
from __future__ import annotations

from typing import Iterable, Optional, Protocol, TYPE_CHECKING, runtime_checkable

if TYPE_CHECKING:
    from ..models import SignalRules


@runtime_checkable
class RuleStorePort(Protocol):
    """
    Supplies the immediate and combo rule lists for a signal.

    ``reload()`` swaps the lists wholesale; anything the engine keeps per actor
    (streaks, busy flags, the reward ledger) is not touched.
    """

    def rules_for(self, signal: str) -> Optional["SignalRules"]:
        ...

    def signals(self) -> Iterable[str]:
        ...

    def reload(self) -> None:
        ...
