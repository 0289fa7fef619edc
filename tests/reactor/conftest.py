import random
from typing import Any, Dict, List

import pytest

from emote_reactor.actions.executor import ReactionPorts
from emote_reactor.adapters import InMemoryRelationships, MappingLocalization, RecordingEffects, StaticFactProvider
from emote_reactor.config import ReactorConfig
from emote_reactor.engine import MainReactorEngine
from emote_reactor.loader import RuleStore
from emote_reactor.models import ActorType, FactSnapshot, InitiatorProfile


class SleepRecorder:
    """Stands in for asyncio.sleep; remembers every requested pause (seconds)."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def _make_facts(**overrides: Any) -> FactSnapshot:
    data: Dict[str, Any] = {
        "initiator_id": "farmer",
        "target_id": "abigail",
        "target_name": "Abigail",
        "actor_type": ActorType.VILLAGER,
        "relationship": 1000,
        "season": "spring",
        "weather": "sun",
        "distance": 1.0,
        "initiator": InitiatorProfile(name="Alex", farm_name="Riverside", favorite_thing="Sunflowers", pet_name="Biscuit"),
    }
    data.update(overrides)
    return FactSnapshot(**data)


@pytest.fixture
def make_facts():
    return _make_facts


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=10_000.0)


@pytest.fixture
def quiet_config() -> ReactorConfig:
    """Default timings, but without random jitter so pauses are predictable."""
    return ReactorConfig(reaction_jitter_ms=0)


@pytest.fixture
def effects() -> RecordingEffects:
    return RecordingEffects()


@pytest.fixture
def relationships() -> InMemoryRelationships:
    return InMemoryRelationships({("farmer", "abigail"): 1000})


@pytest.fixture
def localization() -> MappingLocalization:
    return MappingLocalization({
        "greet": "Hi @!",
        "two_parts": "X|Y",
    })


@pytest.fixture
def ports(effects, relationships, localization) -> ReactionPorts:
    return ReactionPorts(
        signals=effects,
        text=effects,
        localization=localization,
        relationships=relationships,
        animations=effects,
        sound=effects,
        notifications=effects,
    )


@pytest.fixture
def build_engine(ports, quiet_config, sleep_recorder, clock):
    """Factory: ``build_engine(store, *facts, **engine_kwargs)``."""

    def _build(store: RuleStore, *facts: FactSnapshot, **kwargs: Any) -> MainReactorEngine:
        kwargs.setdefault("config", quiet_config)
        kwargs.setdefault("sleep", sleep_recorder)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("rng", random.Random(7))
        return MainReactorEngine(store, StaticFactProvider(facts), ports, **kwargs)

    return _build
