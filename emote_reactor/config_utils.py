import copy
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class ConfigMerger:
    @staticmethod
    def merge(
        base: Dict[str, Any],
        override: Dict[str, Any],
        context_description: str = "ConfigMerge",
        strict_keys: bool = False,
    ) -> Dict[str, Any]:
        """
        Merges an 'override' dictionary into a 'base' dictionary.
        - Nested dictionaries (e.g. ``feature_flags``) are merged recursively.
        - Any other override value replaces the base value.
        - With ``strict_keys`` an override key missing from base raises ValueError,
          which is how unknown settings in a config file are caught.
        """
        if not isinstance(base, dict):
            logger.error(
                f"[{context_description}] Base for merge is not a dictionary (type: {type(base)}). "
                f"Returning override if dict, else empty."
            )
            return copy.deepcopy(override) if isinstance(override, dict) else {}

        if not isinstance(override, dict):
            logger.warning(
                f"[{context_description}] Override for merge is not a dictionary (type: {type(override)}). "
                f"Returning base."
            )
            return copy.deepcopy(base)

        merged = copy.deepcopy(base)
        for key, override_value in override.items():
            if key not in merged:
                if strict_keys:
                    raise ValueError(f"[{context_description}] Unknown setting '{key}'")
                merged[key] = copy.deepcopy(override_value)
                logger.debug(f"[{context_description}] Added new key '{key}'")
            elif isinstance(merged[key], dict) and isinstance(override_value, dict):
                # Nested sections may introduce keys the defaults don't list (new flags).
                merged[key] = ConfigMerger.merge(
                    merged[key],
                    override_value,
                    context_description=f"{context_description} -> {key}",
                )
            elif merged[key] != override_value:
                logger.debug(
                    f"[{context_description}] Overridden key '{key}'. Old: {str(merged[key])[:80]}, "
                    f"New: {str(override_value)[:80]}"
                )
                merged[key] = copy.deepcopy(override_value)
        return merged


def merge_configs(base: Dict[str, Any], *overrides: Dict[str, Any], context: str = "ConfigChain", strict: bool = False) -> Dict[str, Any]:
    """Merges several override dictionaries into ``base``, left to right."""
    result = base
    for i, override_config in enumerate(overrides):
        result = ConfigMerger.merge(
            result,
            override_config,
            context_description=f"{context}_Step{i + 1}",
            strict_keys=strict,
        )
    return result
