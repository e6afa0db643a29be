"""Stellar Autopilot: autonomous spacecraft control for a space-combat simulation."""

from .vector import Vec2, wrap_angle

from .world import (
    # Data model
    GameObjectBody,
    Engine,
    Weapon,
    Spacecraft,
    Asteroid,
    StarBase,
    Player,
    WorldSnapshot,
    # Factory functions
    create_asteroid_miner,
)

from .config import ControlConfig, SteeringStrategy, DEFAULT_CONFIG

from .commands import (
    ComponentAction,
    Command,
    CommandRejected,
    CommandExecutor,
    CommandBatch,
    BatchResult,
    validate_command,
)

from .queries import WorldView

from .targeting import (
    InterceptSolution,
    solve_intercept_time,
    compute_intercept,
    predictive_shoot_at,
    shoot_at,
    deactivate_weapons,
)

from .propulsion import (
    optimal_thrust_direction,
    rotate_to_direction,
    rotate_to_body,
    achieve_velocity,
    stopping_distance,
    improved_fly_to,
    impulse_fly_to,
    direct_fly_to,
    fly_to,
    deactivate_engines,
)

from .behavior import BehaviorState, SpacecraftControl
from .interval import Interval
from .autopilot import Autopilot
from .sandbox import SandboxHost

__all__ = [
    # Vector math
    "Vec2",
    "wrap_angle",
    # World model
    "GameObjectBody",
    "Engine",
    "Weapon",
    "Spacecraft",
    "Asteroid",
    "StarBase",
    "Player",
    "WorldSnapshot",
    "create_asteroid_miner",
    # Configuration
    "ControlConfig",
    "SteeringStrategy",
    "DEFAULT_CONFIG",
    # Commands
    "ComponentAction",
    "Command",
    "CommandRejected",
    "CommandExecutor",
    "CommandBatch",
    "BatchResult",
    "validate_command",
    # Queries
    "WorldView",
    # Targeting
    "InterceptSolution",
    "solve_intercept_time",
    "compute_intercept",
    "predictive_shoot_at",
    "shoot_at",
    "deactivate_weapons",
    # Propulsion
    "optimal_thrust_direction",
    "rotate_to_direction",
    "rotate_to_body",
    "achieve_velocity",
    "stopping_distance",
    "improved_fly_to",
    "impulse_fly_to",
    "direct_fly_to",
    "fly_to",
    "deactivate_engines",
    # Behavior
    "BehaviorState",
    "SpacecraftControl",
    "Interval",
    "Autopilot",
    "SandboxHost",
]
