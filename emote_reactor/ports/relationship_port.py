# emote_reactor/ports/relationship_port.py
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class RelationshipPort(Protocol):
    """Read and change the initiator's relationship score with a target."""

    def get(self, initiator_id: str, target_id: str) -> Optional[int]:
        """Current score, or ``None`` when the initiator has no record for the target yet."""
        ...

    def grant(self, initiator_id: str, target_id: str, amount: int) -> None:
        ...
