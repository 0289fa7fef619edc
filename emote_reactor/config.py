# emote_reactor/config.py
"""Configuration for the emote reactor.

Values are layered the same way everywhere: model defaults, then an optional
YAML file, then keyword overrides from the host.  Defaults mirror the settings
players are used to.
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config_utils import merge_configs
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["ComboCountMode", "ReactorConfig", "load_config"]


class ComboCountMode(str, Enum):
    PER_COMBO = "PerCombo"
    FIXED = "Fixed"


class ReactorConfig(BaseModel):
    """Settings for the reaction engine."""

    model_config = ConfigDict(extra="forbid")

    # Reach
    event_distance: float = Field(
        3,
        ge=0,
        description='Maximum distance in tiles at which a target still reacts',
    )

    # Timing
    emote_delay_ms: int = Field(
        700,
        ge=0,
        le=5000,
        description='Base delay before a target responds',
    )
    reaction_jitter_ms: int = Field(
        300,
        ge=0,
        description='Exclusive upper bound of the random delay added to emote_delay_ms',
    )
    text_pause_ms: int = Field(
        1200,
        ge=0,
        description='Pause between a reply emote and the text that follows it',
    )
    fragment_pause_ms: int = Field(
        1800,
        ge=0,
        description='Pause between consecutive fragments of split text',
    )

    # Sound
    play_reply_sound: bool = Field(True, description='Play a sound when a reaction earns a reward')
    reply_sound: str = Field('pickUpItem', description='Sound effect id for the reply sound')

    # Rewards
    friendship_gain_amount: int = Field(
        10,
        ge=0,
        le=250,
        description='Relationship points granted once per target per day',
    )
    show_reward_message: bool = Field(True, description='Notify the local player when a reward is granted')

    # Combos
    combo_count_mode: ComboCountMode = Field(
        ComboCountMode.PER_COMBO,
        description="'PerCombo' uses each rule's trigger_count, 'Fixed' always uses global_combo_target",
    )
    global_combo_target: int = Field(
        3,
        ge=1,
        le=10,
        description='Combo threshold in Fixed mode, and the fallback for rules without trigger_count',
    )
    combo_timeout_ms: int = Field(
        2100,
        ge=0,
        description='Idle time after which a streak is reset',
    )

    # Authoring conventions
    animation_prefix: str = Field('anim_', min_length=1)
    text_splitter: str = Field('|', min_length=1)
    signal_catalog: Optional[List[str]] = Field(
        None,
        description='Known reply signal names; when set, unknown names are not performed',
    )

    feature_flags: Dict[str, bool] = Field(default_factory=dict)

    @field_validator('combo_count_mode', mode='before')
    @classmethod
    def _normalise_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            for mode in ComboCountMode:
                if mode.value.lower() == value.lower():
                    return mode
        return value


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding='utf-8'))
    except FileNotFoundError as exc:
        raise ConfigurationError(f'Config file not found: {path}') from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f'Could not read config file {path}: {exc}') from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f'YAML error in {path}: {exc}') from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f'Config file {path} must contain a mapping, got {type(data).__name__}')
    # Allow the settings to live under a top-level `reactor:` section.
    section = data.get('reactor', data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"'reactor' section in {path} must be a mapping")
    return section


def load_config(path: Optional[str | Path] = None, overrides: Optional[Dict[str, Any]] = None) -> ReactorConfig:
    layers: List[Dict[str, Any]] = []
    if path is not None:
        layers.append(_read_yaml(Path(path)))
        logger.info('Loaded reactor config from %s', path)
    if overrides:
        layers.append(overrides)

    defaults = ReactorConfig().model_dump(mode='json')
    try:
        merged = merge_configs(defaults, *layers, context='ReactorConfig', strict=True)
        cfg = ReactorConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f'Invalid reactor configuration: {exc}') from exc
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    logger.debug('Reactor config resolved: %s', cfg.model_dump())
    return cfg
