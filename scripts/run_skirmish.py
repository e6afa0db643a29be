#!/usr/bin/env python3
"""
Run an autopilot skirmish in the in-memory sandbox.

Two players each field a wing of asteroid miners and a star base in an
asteroid field. Both are flown by the autopilot; the wings are assigned a
behavior by tag after the first tick.

Miners only have forward engines, so every turn also pushes them forward.
Expect wings to overshoot and circle their destinations rather than park.

Usage:
    python scripts/run_skirmish.py
    python scripts/run_skirmish.py --miners 4 --alpha-state mining --beta-state attack
    python scripts/run_skirmish.py --config autopilot.json --ticks 600 --verbose
"""

import argparse
import math
import random
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from stellar_autopilot import (
    Asteroid,
    Autopilot,
    BehaviorState,
    ControlConfig,
    GameObjectBody,
    Player,
    SandboxHost,
    StarBase,
    Vec2,
    WorldSnapshot,
    create_asteroid_miner,
)


ALPHA = 1
BETA = 2
MATERIALS = ["iron", "gold", "ice"]


def build_world(miners: int, asteroids: int, separation: float, seed: int) -> WorldSnapshot:
    """Two opposing bases with miner wings and a random asteroid field between them."""
    rng = random.Random(seed)
    world = WorldSnapshot(players={
        ALPHA: Player({m: rng.uniform(0, 100) for m in MATERIALS}),
        BETA: Player({m: rng.uniform(0, 100) for m in MATERIALS}),
    })

    half = separation / 2
    for owner, x, facing in ((ALPHA, -half, 0.0), (BETA, half, math.pi)):
        world.spawn(StarBase(owner=owner, body=GameObjectBody(position=Vec2(x, 0))))
        for i in range(miners):
            offset = (i - (miners - 1) / 2) * 40.0
            position = Vec2(x + math.cos(facing) * 60.0, offset)
            world.spawn(create_asteroid_miner(owner, position=position, rotation=facing))

    for _ in range(asteroids):
        position = Vec2(rng.uniform(-half * 0.6, half * 0.6), rng.uniform(-half, half))
        drift = Vec2.from_angle(rng.uniform(0, 2 * math.pi)) * rng.uniform(0, 5)
        world.spawn(Asteroid(material=rng.choice(MATERIALS),
                             body=GameObjectBody(position=position, velocity=drift)))
    return world


def main():
    parser = argparse.ArgumentParser(
        description="Run an autopilot skirmish in the sandbox",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/run_skirmish.py --ticks 300
    python scripts/run_skirmish.py --alpha-state defense --beta-state attack
        """,
    )

    states = [s.value for s in BehaviorState]

    # World settings
    parser.add_argument("--miners", type=int, default=3, help="Miners per player (default: 3)")
    parser.add_argument("--asteroids", type=int, default=12, help="Asteroids in the field (default: 12)")
    parser.add_argument("--separation", type=float, default=2000.0,
                        help="Distance between the bases (default: 2000)")
    parser.add_argument("--seed", type=int, default=7, help="Random seed for the asteroid field")

    # Behavior settings
    parser.add_argument("--alpha-state", choices=states, default="mining", help="Behavior for alpha miners")
    parser.add_argument("--beta-state", choices=states, default="attack", help="Behavior for beta miners")
    parser.add_argument("--config", help="JSON file with autopilot tuning")

    # Run settings
    parser.add_argument("--ticks", type=int, default=200, help="Simulation steps (default: 200)")
    parser.add_argument("--dt", type=float, default=0.1, help="Step length in seconds (default: 0.1)")

    # Output
    parser.add_argument("--verbose", "-v", action="store_true", help="Log per-tick details")

    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO")

    try:
        config = ControlConfig.from_json(args.config) if args.config else ControlConfig.from_env()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    host = SandboxHost(build_world(args.miners, args.asteroids, args.separation, args.seed))

    # Pilots run on simulated time so the control interval follows the sandbox clock
    pilots = {
        player_id: Autopilot(player_id, host, config, clock=lambda: host.time_s)
        for player_id in (ALPHA, BETA)
    }
    assignments = {ALPHA: BehaviorState(args.alpha_state), BETA: BehaviorState(args.beta_state)}

    sent = {player_id: 0 for player_id in pilots}
    rejected = {player_id: 0 for player_id in pilots}

    for tick in range(args.ticks):
        snapshot = host.snapshot()
        for player_id, pilot in pilots.items():
            result = pilot.tick(snapshot)
            if result is None:
                continue
            sent[player_id] += len(pilot.drain_outbound())
            rejected[player_id] += len(result.rejected)

        if tick == 0:
            for player_id, pilot in pilots.items():
                pilot.control.assign_state_by_tags({"asteroid_miner"}, assignments[player_id])

        host.step(args.dt)

    print()
    print("=" * 60)
    print(f"SKIRMISH SUMMARY ({host.time_s:.1f}s simulated)")
    print("=" * 60)
    for player_id, pilot in pilots.items():
        name = "Alpha" if player_id == ALPHA else "Beta"
        print(f"{name}: {sent[player_id]} commands sent, {rejected[player_id]} rejected")
        for craft_id, state in sorted(pilot.control.states.items()):
            body = host.world.objects[craft_id].body
            print(f"  craft {craft_id:>3} {state.value:<8} "
                  f"pos=({body.position.x:8.1f}, {body.position.y:8.1f}) "
                  f"speed={body.velocity.length:6.1f}")


if __name__ == "__main__":
    main()
