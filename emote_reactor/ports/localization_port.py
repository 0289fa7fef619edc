# emote_reactor/ports/localization_port.py
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class LocalizationPort(Protocol):
    """Resolves a translation key for the current locale.

    ``None`` (or raising) means the key is unknown; the reaction then shows no text.
    """

    def resolve(self, text_key: str) -> Optional[str]:
        ...
