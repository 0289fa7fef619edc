# emote_reactor/__init__.py
"""Rule-driven reactions to player emotes.

Hosts wire their world into the ports in :mod:`emote_reactor.ports`, build a
:class:`~emote_reactor.engine.MainReactorEngine` and call ``process_signal``
whenever a player emotes.
"""
from __future__ import annotations

from .config import ComboCountMode, ReactorConfig, load_config
from .engine import MainReactorEngine
from .exceptions import ConfigurationError, PortError, ReactorError, RuleDefinitionError
from .feature_flags import FeatureFlagsManager
from .loader import FileRuleStore, RuleLoader, RuleStore
from .models import FactSnapshot, InitiatorProfile, ReactionOutcome

__all__: list[str] = [
    "MainReactorEngine",
    "ReactorConfig",
    "ComboCountMode",
    "load_config",
    "FeatureFlagsManager",
    "RuleLoader",
    "RuleStore",
    "FileRuleStore",
    "FactSnapshot",
    "InitiatorProfile",
    "ReactionOutcome",
    "ReactorError",
    "RuleDefinitionError",
    "PortError",
    "ConfigurationError",
]
__version__: str = "0.1.0"
