# emote_reactor/feature_flags.py
import logging
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

EMOTE_COMBO = "emote_combo"
ENABLE_SEASON_CONDITIONS = "enable_season_conditions"
ENABLE_WEATHER_CONDITIONS = "enable_weather_conditions"
ENABLE_FRIENDSHIP_CONDITIONS = "enable_friendship_conditions"


class FeatureFlagsManager:
    """Runtime toggles for the reactor.

    Flags can be flipped while the engine is running (e.g. from a settings menu);
    the condition evaluator and combo state machine read them on every call.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._flags: Dict[str, bool] = {}
        self._descriptions: Dict[str, str] = {}
        self._registered_flags: Set[str] = set()

        if config:
            for flag_name, value in config.items():
                if isinstance(value, bool):
                    self._flags[flag_name] = value
                elif isinstance(value, dict) and 'enabled' in value:
                    self._flags[flag_name] = bool(value['enabled'])
                    if 'description' in value:
                        self._descriptions[flag_name] = str(value['description'])
                else:
                    logger.warning(f"Ignoring feature flag {flag_name!r} with non-boolean value {value!r}")

        # Defaults, only applied when the config did not set the flag.
        self.register_flag(EMOTE_COMBO, default_value=True, description="Enables combo reactions to repeated emotes")
        self.register_flag(ENABLE_SEASON_CONDITIONS, default_value=True, description="Checks 'season' conditions in rules")
        self.register_flag(ENABLE_WEATHER_CONDITIONS, default_value=True, description="Checks 'weather' conditions in rules")
        self.register_flag(ENABLE_FRIENDSHIP_CONDITIONS, default_value=True, description="Checks friendship bounds in rules")

        logger.info(f"FeatureFlagsManager initialized with {len(self._flags)} flags from config and defaults.")

    def register_flag(self, flag_name: str, default_value: bool = False, description: Optional[str] = None) -> None:
        self._registered_flags.add(flag_name)
        if flag_name not in self._flags:
            self._flags[flag_name] = default_value
        if description:
            self._descriptions[flag_name] = description
        logger.debug(f"Registered feature flag: {flag_name} (default: {default_value})")

    def is_enabled(self, flag_name: str, default: Optional[bool] = None) -> bool:
        if flag_name in self._flags:
            return self._flags[flag_name]

        if default is not None:
            logger.warning(f"Unregistered feature flag: {flag_name}, using provided default: {default}")
            return default

        logger.warning(f"Unregistered feature flag: {flag_name}, defaulting to False")
        return False

    def set_flag(self, flag_name: str, value: bool) -> None:
        if flag_name not in self._registered_flags:
            logger.warning(f"Setting unregistered feature flag: {flag_name}")
            self._registered_flags.add(flag_name)
        self._flags[flag_name] = bool(value)
        logger.info(f"Feature flag {flag_name} set to {value}")

    def get_all_flags(self) -> Dict[str, bool]:
        return dict(self._flags)

    def get_registered_flags(self) -> List[Dict[str, Any]]:
        result = []
        for flag_name in sorted(self._registered_flags):
            flag_info = {
                "name": flag_name,
                "enabled": self._flags.get(flag_name, False),
            }
            if flag_name in self._descriptions:
                flag_info["description"] = self._descriptions[flag_name]
            result.append(flag_info)
        return result
