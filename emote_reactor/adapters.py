# emote_reactor/adapters.py
"""In-memory port implementations.

Used by the command line tools to dry-run rule files, and handy for hosts that
want to record what the reactor asked for instead of rendering it.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import FactSnapshot

logger = logging.getLogger(__name__)

__all__ = ["StaticFactProvider", "MappingLocalization", "InMemoryRelationships", "RecordingEffects"]


def _load_yaml_mapping(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")
    return data


class StaticFactProvider:
    """Serves fixed snapshots keyed by (initiator_id, target_id)."""

    def __init__(self, snapshots: Iterable[FactSnapshot] = ()) -> None:
        self._facts: Dict[Tuple[str, str], FactSnapshot] = {}
        for snap in snapshots:
            self.put(snap)

    def put(self, snapshot: FactSnapshot) -> None:
        self._facts[(snapshot.initiator_id, snapshot.target_id)] = snapshot

    def snapshot(self, initiator_id: str, target_id: str) -> Optional[FactSnapshot]:
        return self._facts.get((initiator_id, target_id))

    def targets(self, initiator_id: str) -> List[str]:
        return [t for (i, t) in self._facts if i == initiator_id]

    def all(self) -> List[FactSnapshot]:
        return list(self._facts.values())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StaticFactProvider":
        """
        ``initiator_id``, ``initiator``, ``season`` and ``weather`` at the top level
        are shared by every entry under ``targets``.
        """
        shared = {k: data[k] for k in ("initiator_id", "initiator", "season", "weather") if k in data}
        targets = data.get("targets") or []
        if not isinstance(targets, list):
            raise ConfigurationError("'targets' must be a list of fact entries")

        snapshots = []
        for index, entry in enumerate(targets):
            if not isinstance(entry, dict):
                raise ConfigurationError(f"targets[{index}] must be a mapping, got {type(entry).__name__}")
            try:
                snapshots.append(FactSnapshot.model_validate({**shared, **entry}))
            except ValidationError as exc:
                raise ConfigurationError(
                    f"Invalid facts for targets[{index}]: {exc}", target_id=entry.get("target_id")
                ) from exc
        return cls(snapshots)

    @classmethod
    def from_yaml(cls, path: Path) -> "StaticFactProvider":
        return cls.from_mapping(_load_yaml_mapping(path))


class MappingLocalization:
    def __init__(self, strings: Optional[Mapping[str, str]] = None) -> None:
        self.strings: Dict[str, str] = dict(strings or {})

    def resolve(self, text_key: str) -> Optional[str]:
        return self.strings.get(text_key)

    @classmethod
    def from_yaml(cls, path: Path) -> "MappingLocalization":
        return cls({str(k): str(v) for k, v in _load_yaml_mapping(path).items()})


class InMemoryRelationships:
    def __init__(self, scores: Optional[Mapping[Tuple[str, str], int]] = None) -> None:
        self.scores: Dict[Tuple[str, str], int] = dict(scores or {})

    def get(self, initiator_id: str, target_id: str) -> Optional[int]:
        return self.scores.get((initiator_id, target_id))

    def grant(self, initiator_id: str, target_id: str, amount: int) -> None:
        key = (initiator_id, target_id)
        self.scores[key] = self.scores.get(key, 0) + amount


class RecordingEffects:
    """Signal, animation, text, sound and notification port in one.

    Every request is appended to ``events`` as ``(kind, *args)`` and logged.
    """

    def __init__(self) -> None:
        self.events: List[Tuple[str, ...]] = []

    def _record(self, *event: str) -> None:
        self.events.append(event)
        logger.info("  %s", " ".join(event))

    def perform(self, target_id: str, signal_id: str) -> None:
        self._record("signal", target_id, signal_id)

    def perform_named(self, target_id: str, animation_name: str) -> None:
        self._record("animation", target_id, animation_name)

    def show(self, target_id: str, text: str) -> None:
        self._record("text", target_id, text)

    def play(self, effect_id: str) -> None:
        self._record("sound", effect_id)

    def notify(self, initiator_id: str, message: str) -> None:
        self._record("notify", initiator_id, message)

    def of_kind(self, kind: str) -> List[Tuple[str, ...]]:
        return [e for e in self.events if e[0] == kind]
