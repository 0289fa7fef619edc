# emote_reactor/cli.py
"""Command line tools for rule authors.

    python -m emote_reactor validate
    python -m emote_reactor inspect heart --facts facts.yaml
    python -m emote_reactor simulate wave --facts facts.yaml --repeat 3 --no-delay
    python -m emote_reactor reset
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .actions.executor import ReactionPorts
from .adapters import InMemoryRelationships, MappingLocalization, RecordingEffects, StaticFactProvider
from .config import load_config
from .engine.main import MainReactorEngine
from .exceptions import ReactorError
from .loader import FileRuleStore

logger = logging.getLogger(__name__)

DEFAULT_REACTIONS = Path('configs/rules/reactions.yaml')
DEFAULT_COMBOS = Path('configs/rules/combos.yaml')


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='emote_reactor', description='Emote reaction rule tools')
    parser.add_argument('--reactions', type=Path, default=DEFAULT_REACTIONS, help='Immediate reaction rule file')
    parser.add_argument('--combos', type=Path, default=DEFAULT_COMBOS, help='Combo reaction rule file')
    parser.add_argument('--config', type=Path, default=None, help='Reactor config YAML')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('validate', help='Load the rule files and report malformed rules')

    p_inspect = sub.add_parser('inspect', help='Predict reaction outcomes for the targets in a facts file')
    p_inspect.add_argument('signal')
    p_inspect.add_argument('--facts', type=Path, required=True)
    p_inspect.add_argument('--target', default=None, help='Only inspect this target id')

    p_sim = sub.add_parser('simulate', help='Run a signal through the engine with recording ports')
    p_sim.add_argument('signal')
    p_sim.add_argument('--facts', type=Path, required=True)
    p_sim.add_argument('--i18n', type=Path, default=None, help='Translation key -> text YAML')
    p_sim.add_argument('--repeat', type=int, default=1)
    p_sim.add_argument('--no-delay', action='store_true', help='Skip the reaction delays')

    sub.add_parser('reset', help='Delete both rule files and recreate empty defaults')
    return parser


def _cmd_validate(store: FileRuleStore) -> int:
    broken = 0
    for signal in store.signals():
        rules = store.rules_for(signal)
        print(f'{signal:<16} reactions={len(rules.reactions):<3} combos={len(rules.combos)}')
        for rule in (*rules.reactions, *rules.combos):
            if rule.is_malformed:
                broken += 1
                print(f'  ✗ {rule.rule_id}: {rule.defect}')
    print(f'{len(store.signals())} signal(s), {broken} malformed rule(s)')
    return 1 if broken else 0


def _build_engine(args: argparse.Namespace, store: FileRuleStore, facts: StaticFactProvider,
                  localization: Optional[MappingLocalization] = None,
                  no_delay: bool = False) -> tuple[MainReactorEngine, RecordingEffects]:
    cfg = load_config(args.config)
    effects = RecordingEffects()
    relationships = InMemoryRelationships()
    for snap in facts.all():
        if snap.is_actor:
            relationships.scores[(snap.initiator_id, snap.target_id)] = snap.relationship
    ports = ReactionPorts(
        signals=effects,
        text=effects,
        localization=localization or MappingLocalization(),
        relationships=relationships,
        animations=effects,
        sound=effects,
        notifications=effects,
    )

    async def no_sleep(_: float) -> None:
        await asyncio.sleep(0)

    engine = MainReactorEngine(store, facts, ports, config=cfg, sleep=no_sleep if no_delay else asyncio.sleep)
    return engine, effects


def _cmd_inspect(args: argparse.Namespace, store: FileRuleStore) -> int:
    facts = StaticFactProvider.from_yaml(args.facts)
    engine, _ = _build_engine(args, store, facts)
    reports = []
    for snap in facts.all():
        if args.target and snap.target_id != args.target:
            continue
        reports.append(engine.inspect(args.signal, snap))
    if not reports:
        print('No character found in the facts file.')
        return 1
    print(json.dumps(reports, indent=2))
    return 0


async def _simulate(args: argparse.Namespace, store: FileRuleStore) -> int:
    facts = StaticFactProvider.from_yaml(args.facts)
    localization = MappingLocalization.from_yaml(args.i18n) if args.i18n else None
    engine, effects = _build_engine(args, store, facts, localization, no_delay=args.no_delay)
    initiators = sorted({snap.initiator_id for snap in facts.all()})
    for round_no in range(1, max(args.repeat, 1) + 1):
        for initiator_id in initiators:
            await engine.process_signal(args.signal, initiator_id, facts.targets(initiator_id))
        # Busy targets drop new reactions, so each round settles first.
        await engine.drain()
        print(f'--- round {round_no}: {len(effects.events)} event(s) so far')
    for event in effects.events:
        print('  ' + ' | '.join(event))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s',
    )
    try:
        store = FileRuleStore(args.reactions, args.combos)
        if args.command == 'validate':
            return _cmd_validate(store)
        if args.command == 'inspect':
            return _cmd_inspect(args, store)
        if args.command == 'simulate':
            return asyncio.run(_simulate(args, store))
        if args.command == 'reset':
            store.reset()
            print('Reaction and combo rules have been reset.')
            return 0
    except ReactorError as exc:
        logger.error('%s', exc)
        return 2
    return 1


if __name__ == '__main__':
    sys.exit(main())
