# emote_reactor/loader.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type

import yaml
from pydantic import ValidationError

from .exceptions import RuleDefinitionError
from .models import ComboRule, ReactionRule, SignalRules

logger = logging.getLogger(__name__)

__all__ = ["RuleLoader", "RuleStore", "FileRuleStore"]

REACTIONS = "reactions"
COMBOS = "combos"

_RULE_CLASSES: Dict[str, Type[ReactionRule]] = {REACTIONS: ReactionRule, COMBOS: ComboRule}

# Section names of the legacy JSON rule files: {"wave": {"Reactions": [...], "ComboReactions": [...]}}
_LEGACY_SECTIONS: Dict[str, str] = {
    "reactions": REACTIONS,
    "comboreactions": COMBOS,
    "combo_reactions": COMBOS,
    "combos": COMBOS,
}

ParsedRules = Dict[str, Dict[str, List[ReactionRule]]]


class RuleLoader:
    """Load YAML (or JSON) rule files into per-signal rule lists."""

    # ------------------------------------------------------------------ #
    def load_rules_from_file(self, filepath: Path) -> ParsedRules:
        logger.info("Loading rules from file: %s", filepath)
        try:
            data = yaml.safe_load(Path(filepath).read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            logger.error("YAML error in %s: %s", filepath, exc)
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to read %s: %s", filepath, exc)
            return {}

        if not data:
            logger.debug("%s is empty - skipped", Path(filepath).name)
            return {}
        try:
            parsed = self.parse(data, source=Path(filepath).name)
        except RuleDefinitionError as exc:
            logger.error("%s", exc)
            return {}

        counts = {s: {k: len(v) for k, v in kinds.items()} for s, kinds in parsed.items()}
        logger.info("Loaded rules from %s: %s", Path(filepath).name, counts)
        return parsed

    def load_rules_from_directory(self, directory_path: Path) -> Dict[str, SignalRules]:
        if not directory_path.is_dir():
            logger.warning("Rule directory not found: %s", directory_path)
            return {}

        parts = [
            self.load_rules_from_file(fp)
            for fp in sorted(directory_path.rglob("*"))
            if fp.suffix.lower() in (".yml", ".yaml", ".json")
        ]
        return self.merge(parts)

    # ------------------------------------------------------------------ #
    def parse(self, data: Any, source: str = "<memory>") -> ParsedRules:
        if not isinstance(data, dict):
            raise RuleDefinitionError(f"Rule file must contain a mapping, got {type(data).__name__}", source=source)

        if (ver := str(data.get("version", "1.0"))) != "1.0":
            logger.warning("Unexpected version '%s' in %s", ver, source)

        parsed: ParsedRules = {}
        if REACTIONS in data or COMBOS in data:
            for kind in (REACTIONS, COMBOS):
                section = data.get(kind) or {}
                if not isinstance(section, dict):
                    raise RuleDefinitionError(f"'{kind}' must map signals to rule lists", source=source)
                for signal, rules in section.items():
                    parsed.setdefault(str(signal), {})[kind] = self._build_rules(kind, str(signal), rules, source)
            return parsed

        # Legacy layout: signal -> {"Reactions": [...], "ComboReactions": [...]}
        for signal, sections in data.items():
            if signal == "version":
                continue
            if not isinstance(sections, dict):
                logger.error("Signal '%s' in %s must map to rule sections - skipped", signal, source)
                continue
            for section, rules in sections.items():
                kind = _LEGACY_SECTIONS.get(str(section).lower())
                if kind is None:
                    logger.warning("Unknown section '%s' for signal '%s' in %s", section, signal, source)
                    continue
                parsed.setdefault(str(signal), {})[kind] = self._build_rules(kind, str(signal), rules, source)
        return parsed

    def _build_rules(self, kind: str, signal: str, rules: Any, source: str) -> List[ReactionRule]:
        if rules is None:
            return []
        if not isinstance(rules, list):
            logger.error("%s for '%s' in %s must be a list - skipped", kind, signal, source)
            return []

        built: List[ReactionRule] = []
        seen_ids: set[str] = set()
        for index, cfg in enumerate(rules):
            rule = self._build_rule(_RULE_CLASSES[kind], cfg, f"{signal}.{kind}[{index}]", source)
            if rule is None:
                continue
            if rule.rule_id in seen_ids:
                logger.warning("DUPLICATE RULE ID '%s' for signal '%s' in %s", rule.rule_id, signal, source)
            seen_ids.add(rule.rule_id)
            built.append(rule)
        return built

    @staticmethod
    def _build_rule(cls: Type[ReactionRule], cfg: Any, default_id: str, source: str) -> Optional[ReactionRule]:
        rule_id = default_id
        if isinstance(cfg, dict):
            rule_id = str(cfg.get("id") or cfg.get("Id") or default_id)
            if not cfg.get("enabled", cfg.get("Enabled", True)):
                logger.debug("Rule %s disabled - skipping", rule_id)
                return None
        else:
            err = RuleDefinitionError(f"Rule must be a mapping, got {type(cfg).__name__}", rule_id=rule_id, source=source)
            logger.error("%s", err)
            return cls.malformed(rule_id, str(err))

        try:
            rule = cls.model_validate(cfg)
        except ValidationError as exc:
            err = RuleDefinitionError(
                f"Rule failed validation with {exc.error_count()} error(s)", rule_id=rule_id, source=source
            )
            logger.error("%s: %s", err, exc)
            return cls.malformed(rule_id, str(err))

        if not rule.rule_id:
            rule = rule.model_copy(update={"rule_id": rule_id})
        return rule

    # ------------------------------------------------------------------ #
    @staticmethod
    def merge(parts: Iterable[ParsedRules]) -> Dict[str, SignalRules]:
        """Combine parsed files; a later file replaces a signal's list of the same kind."""
        merged: Dict[str, Dict[str, List[ReactionRule]]] = {}
        for part in parts:
            for signal, kinds in part.items():
                merged.setdefault(signal, {}).update(kinds)
        return {
            signal: SignalRules(
                signal=signal,
                reactions=tuple(kinds.get(REACTIONS, ())),
                combos=tuple(kinds.get(COMBOS, ())),
            )
            for signal, kinds in merged.items()
        }


class RuleStore:
    """Holds the current rule book; ``replace`` swaps it in one assignment."""

    def __init__(self, rule_book: Optional[Mapping[str, SignalRules]] = None) -> None:
        self._book: Dict[str, SignalRules] = dict(rule_book or {})

    @classmethod
    def from_mapping(
        cls,
        reactions: Optional[Mapping[str, List[Any]]] = None,
        combos: Optional[Mapping[str, List[Any]]] = None,
    ) -> "RuleStore":
        """Build a store from raw rule definitions, as they would appear in a file."""
        data: Dict[str, Any] = {REACTIONS: dict(reactions or {}), COMBOS: dict(combos or {})}
        return cls(RuleLoader.merge([RuleLoader().parse(data)]))

    def rules_for(self, signal: str) -> Optional[SignalRules]:
        return self._book.get(signal)

    def signals(self) -> List[str]:
        return sorted(self._book)

    def replace(self, rule_book: Mapping[str, SignalRules]) -> None:
        self._book = dict(rule_book)
        logger.info("Rule book replaced: %d signal(s)", len(self._book))

    def reload(self) -> None:
        logger.debug("In-memory rule store has nothing to reload")


class FileRuleStore(RuleStore):
    """Rules backed by a reactions file and a combos file.

    Missing files are created empty so authors have something to edit.
    """

    def __init__(self, reactions_path: Path, combos_path: Path, loader: Optional[RuleLoader] = None) -> None:
        super().__init__()
        self.reactions_path = Path(reactions_path)
        self.combos_path = Path(combos_path)
        self.loader = loader or RuleLoader()
        self.reload()

    def reload(self) -> None:
        parts = []
        for path, kind in ((self.reactions_path, REACTIONS), (self.combos_path, COMBOS)):
            self._ensure_file(path, kind)
            parts.append(self.loader.load_rules_from_file(path))
        self.replace(self.loader.merge(parts))

    def reset(self) -> None:
        """Delete both rule files and start over from empty defaults."""
        for path in (self.reactions_path, self.combos_path):
            if path.exists():
                path.unlink()
                logger.info("Deleted rule file %s", path)
        self.reload()

    @staticmethod
    def _ensure_file(path: Path, kind: str) -> None:
        if path.exists():
            return
        logger.warning("Could not find '%s'. A default one will be created.", path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump({"version": "1.0", kind: {}}, sort_keys=False), encoding="utf-8")
