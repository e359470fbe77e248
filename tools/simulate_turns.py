#!/usr/bin/env python3
"""
Run AI faction turns over a sector file and print what each faction does.

Usage:
    # Three turns at normal difficulty
    python tools/simulate_turns.py configs/sectors/example_sector.json --turns 3

    # Hard difficulty, fixed seed, show each faction's strategic plan
    python tools/simulate_turns.py configs/sectors/example_sector.json --difficulty hard --seed 7 --plan

    # Try alternate tuning
    python tools/simulate_turns.py sector.json --config configs/experimental.json

Actions are applied to an in-memory copy of the sector; the input file is
never written.
"""

import argparse
import logging
import sys
from pathlib import Path

# Allow running from a checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import config  # noqa: E402
from faction_ai.asset_catalog import get_asset_catalog  # noqa: E402
from faction_ai.randomness import make_rng, sequential_id_factory  # noqa: E402
from faction_ai.sector_loader import load_world  # noqa: E402
from faction_ai.strategy_config import set_config_path  # noqa: E402
from faction_ai.turn_controller import ControllerConfig, FactionTurnController  # noqa: E402


def print_plan(controller: FactionTurnController, faction_id: str):
    plan = controller.plans.get(faction_id)
    if plan is None:
        return
    print(f"    Plan: {plan.summary} ({plan.overall_confidence:.0f}% confidence, {plan.horizon} turns)")
    for turn_plan in plan.turn_plans:
        for action in turn_plan.actions:
            print(f"      T+{turn_plan.turn}: {action.description} [{action.confidence:.0f}%]")


def main():
    parser = argparse.ArgumentParser(description="Simulate AI faction turns over a sector file")
    parser.add_argument('sector', help="Sector JSON file")
    parser.add_argument('--turns', type=int, default=1, help="Turn cycles to run (default: 1)")
    parser.add_argument('--difficulty', default=config.DIFFICULTY,
                        choices=['easy', 'normal', 'medium', 'hard', 'expert'])
    parser.add_argument('--seed', type=int, default=config.SEED, help="Seed for noise and dice")
    parser.add_argument('--config', help="Alternate tuning JSON")
    parser.add_argument('--player', help="Faction id controlled by a human (skipped)")
    parser.add_argument('--plan', action='store_true', help="Print each faction's strategic plan")
    parser.add_argument('--verbose', '-v', action='store_true', help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    if args.config:
        set_config_path(args.config)

    catalog = get_asset_catalog()
    world = load_world(args.sector, catalog)
    controller_config = ControllerConfig(base_action_delay=0.0, delay_variance=0.0, min_action_delay=0.0)
    controller = FactionTurnController(
        world,
        catalog=catalog,
        config=controller_config,
        rng=make_rng(args.seed),
        id_factory=sequential_id_factory("asset"),
    )

    for _ in range(args.turns):
        print(f"\n=== Turn {world.turn} ({args.difficulty}) ===")
        queues = controller.run_turn_cycle(args.difficulty, player_faction_id=args.player)
        for faction_id, queue in queues.items():
            faction = world.get_faction(faction_id)
            funds = faction.fac_creds if faction else 0
            print(f"  {queue.faction_name} ({funds} FacCreds left)")
            if queue.goal_change is not None:
                print(f"    New goal: {queue.goal_change.description}")
            if queue.is_idle:
                print("    (no action)")
            for entry in queue:
                print(f"    - [{entry.kind.value}] {entry.description} ({entry.confidence:.0f}%)")
            if args.plan:
                print_plan(controller, faction_id)

    return 0


if __name__ == '__main__':
    sys.exit(main())
