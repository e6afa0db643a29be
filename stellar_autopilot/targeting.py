"""
Targeting Engine for the Stellar Autopilot.

This module implements intercept solutions and weapon commands:
- Closed-form intercept time for a constant-speed projectile
- Lead (aim) point and direction for a linearly moving target
- Predictive fire commands per weapon, with deactivation when no solution
- Direct line-of-sight fire and weapon shutdown helpers

All geometry is relative to the weapon mount. The target is assumed to keep
its current velocity for the projectile's flight time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from .commands import Command
from .config import ControlConfig, DEFAULT_CONFIG
from .vector import Vec2, wrap_angle
from .world import GameObjectBody, GameObjectId, Spacecraft, Weapon


# =============================================================================
# INTERCEPT SOLUTION
# =============================================================================

@dataclass
class InterceptSolution:
    """
    Where and when a projectile meets the target.

    Attributes:
        time: Flight time until impact (s), always positive
        aim_point: Impact point relative to the weapon mount
        aim_direction: Unit vector from the mount toward the aim point
    """
    time: float
    aim_point: Vec2
    aim_direction: Vec2

    @property
    def aim_angle(self) -> float:
        """World angle of the aim direction (rad)."""
        return self.aim_point.angle()


def solve_intercept_time(
    relative_pos: Vec2,
    relative_vel: Vec2,
    projectile_speed: float,
    linear_epsilon: float = 1e-9,
) -> Optional[float]:
    """
    Earliest positive time at which a projectile can meet the target.

    Solves |p + v*t| = s*t, i.e.

        (|v|^2 - s^2) t^2 + 2 (p.v) t + |p|^2 = 0

    Args:
        relative_pos: Target position relative to the weapon
        relative_vel: Target velocity relative to the weapon
        projectile_speed: Projectile speed
        linear_epsilon: |a| below this is treated as a linear equation

    Returns:
        Intercept time in seconds, or None when no forward-time solution
        exists.
    """
    a = relative_vel.length_squared - projectile_speed * projectile_speed
    b = 2.0 * relative_pos.dot(relative_vel)
    c = relative_pos.length_squared

    if abs(a) < linear_epsilon:
        # Closing speed equals projectile speed: b*t + c = 0
        if b >= 0:
            return None
        t = -c / b
        return t if t > 0 else None

    d = b * b - 4.0 * a * c
    if d < 0:
        return None

    sqrt_d = math.sqrt(d)
    r1 = (-b + sqrt_d) / (2.0 * a)
    r2 = (-b - sqrt_d) / (2.0 * a)
    t1, t2 = min(r1, r2), max(r1, r2)

    t = t1 if t1 > 0 else t2
    if t <= 0 or not math.isfinite(t):
        return None
    return t


def compute_intercept(
    relative_pos: Vec2,
    relative_vel: Vec2,
    projectile_speed: float,
    linear_epsilon: float = 1e-9,
) -> Optional[InterceptSolution]:
    """
    Lead point for hitting a linearly moving target.

    Returns:
        InterceptSolution, or None if the projectile cannot reach the target.
    """
    t = solve_intercept_time(relative_pos, relative_vel, projectile_speed, linear_epsilon)
    if t is None:
        return None
    aim_point = relative_pos + relative_vel * t
    return InterceptSolution(time=t, aim_point=aim_point, aim_direction=aim_point.normalized())


# =============================================================================
# WEAPON COMMANDS
# =============================================================================

def _weapon_rotation_for(spacecraft: Spacecraft, weapon: Weapon, world_angle: float) -> float:
    # Turret angle is relative to the mount, which is relative to the hull
    return wrap_angle(world_angle - (spacecraft.body.rotation + weapon.orientation))


def _set_active(spacecraft_id: GameObjectId, component_id: int, weapon: Weapon,
                activate: bool, result: List[Command]) -> None:
    if weapon.active != activate:
        result.append(Command.set_active(spacecraft_id, component_id, activate))


def predictive_shoot_at(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    target: GameObjectBody,
    config: ControlConfig = DEFAULT_CONFIG,
) -> List[Command]:
    """
    Aim every weapon at the target's intercept point and fire.

    Weapons without a forward-time solution are switched off. A turret is
    only re-aimed when the wrapped angular change exceeds the configured
    epsilon, so repeated calls on an unchanged world emit nothing new.

    Args:
        spacecraft_id: Id of the shooting craft
        spacecraft: The shooting craft
        target: Target body to intercept
        config: Thresholds

    Returns:
        Commands for the craft's weapons
    """
    result: List[Command] = []
    for component_id, weapon in spacecraft.weapons():
        weapon_world_pos = spacecraft.component_world_position(weapon)
        relative_pos = target.position - weapon_world_pos
        relative_vel = target.velocity - spacecraft.body.velocity

        solution = compute_intercept(relative_pos, relative_vel, weapon.projectile_speed,
                                     config.intercept_linear_epsilon)
        if solution is None:
            _set_active(spacecraft_id, component_id, weapon, False, result)
            continue

        target_rotation = _weapon_rotation_for(spacecraft, weapon, solution.aim_angle)
        if abs(wrap_angle(weapon.rotation - target_rotation)) > config.weapon_rotation_epsilon_rad:
            result.append(Command.set_rotation(spacecraft_id, component_id, target_rotation))

        _set_active(spacecraft_id, component_id, weapon, True, result)
    return result


def shoot_at(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    target: GameObjectBody,
) -> List[Command]:
    """Aim every weapon straight at the target's current position, no lead."""
    result: List[Command] = []
    for component_id, weapon in spacecraft.weapons():
        _set_active(spacecraft_id, component_id, weapon, True, result)
        direction = target.position - spacecraft.component_world_position(weapon)
        rotation = _weapon_rotation_for(spacecraft, weapon, direction.angle())
        result.append(Command.set_rotation(spacecraft_id, component_id, rotation))
    return result


def deactivate_weapons(spacecraft_id: GameObjectId, spacecraft: Spacecraft) -> List[Command]:
    """Switch off every active weapon."""
    result: List[Command] = []
    for component_id, weapon in spacecraft.weapons():
        _set_active(spacecraft_id, component_id, weapon, False, result)
    return result
