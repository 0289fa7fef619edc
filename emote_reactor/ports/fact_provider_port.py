# emote_reactor/ports/fact_provider_port.py
from __future__ import annotations

from typing import Optional, Protocol, TYPE_CHECKING, runtime_checkable

if TYPE_CHECKING:
    from ..models import FactSnapshot


@runtime_checkable
class FactProviderPort(Protocol):
    """
    Resolves the world facts a rule can look at for one (initiator, target) pair.

    Returning ``None`` means the target cannot react right now (despawned, out of
    range, mid-cutscene, ...); the engine skips it silently.
    """

    def snapshot(self, initiator_id: str, target_id: str) -> Optional["FactSnapshot"]:
        ...
