#!/usr/bin/env python3
"""
Propulsion Controller for the Stellar Autopilot

Turns heading, velocity and approach goals into engine commands:
- Optimal thrust direction search over the craft's engine layout
- Rotation control using engine torque about the center of mass
- Velocity matching (rotate first, then burn)
- Approach-and-brake planning toward a moving body
- Lower-fidelity impulse and direct steering variants

Engines are on/off actuators with a throttle. A craft rotates by firing the
engines whose mount offset produces torque in the wanted direction, and
translates by firing the engines aligned with the wanted velocity change.

Every function returns commands only for settings that actually change, so
calling it again on an unchanged snapshot emits nothing redundant.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np

from .commands import Command
from .config import ControlConfig, DEFAULT_CONFIG, SteeringStrategy
from .vector import Vec2
from .world import Engine, GameObjectBody, GameObjectId, Spacecraft


# =============================================================================
# ENGINE COMMAND HELPERS
# =============================================================================

def _engine_state(
    spacecraft_id: GameObjectId,
    component_id: int,
    engine: Engine,
    activate: bool,
    power: float,
    result: List[Command],
    power_epsilon: float = 0.0,
) -> None:
    """Append the commands needed to put one engine in the given state."""
    if engine.active != activate:
        result.append(Command.set_active(spacecraft_id, component_id, activate))
    if activate and abs(engine.power - power) > power_epsilon:
        result.append(Command.set_power(spacecraft_id, component_id, power))


def deactivate_engines(spacecraft_id: GameObjectId, spacecraft: Spacecraft) -> List[Command]:
    """Switch off every active engine."""
    result: List[Command] = []
    for component_id, engine in spacecraft.engines():
        if engine.active:
            result.append(Command.set_active(spacecraft_id, component_id, False))
    return result


# =============================================================================
# OPTIMAL THRUST DIRECTION
# =============================================================================

def _score_headings(spacecraft: Spacecraft, angles_rad: np.ndarray) -> np.ndarray:
    engines = [engine for _, engine in spacecraft.engines()]
    if not engines:
        return np.zeros(len(angles_rad))

    engine_angles = np.array([engine.orientation for engine in engines])
    engine_dirs = np.stack([np.cos(engine_angles), np.sin(engine_angles)], axis=1)
    thrusts = np.array([engine.thrust for engine in engines])
    candidates = np.stack([np.cos(angles_rad), np.sin(angles_rad)], axis=1)

    # (n_candidates, n_engines) alignment, only forward components count
    alignment = np.clip(candidates @ engine_dirs.T, 0.0, None)
    return alignment @ thrusts


def optimal_thrust_direction(
    spacecraft: Spacecraft,
    config: ControlConfig = DEFAULT_CONFIG,
) -> Tuple[Vec2, float]:
    """
    Craft-local heading along which the engines deliver the most thrust.

    Two-stage grid search: a coarse scan over the full circle, then a fine
    scan around the best coarse heading. Each candidate is scored by

        sum over engines of max(0, engine_dir . candidate) * thrust

    The first best-scoring candidate wins ties.

    Args:
        spacecraft: Craft whose engines are evaluated
        config: Scan resolution

    Returns:
        Tuple of (local unit direction, achievable thrust magnitude)
    """
    coarse = np.radians(np.arange(0, 360, config.coarse_scan_step_deg, dtype=float))
    coarse_scores = _score_headings(spacecraft, coarse)
    best_angle = float(coarse[int(np.argmax(coarse_scores))])

    span = config.fine_scan_span_deg
    offsets = np.radians(np.arange(-span, span + 1, config.fine_scan_step_deg, dtype=float))
    # Scan the coarse winner first so it keeps the tie
    fine = np.concatenate(([best_angle], best_angle + offsets))
    fine_scores = _score_headings(spacecraft, fine)
    index = int(np.argmax(fine_scores))

    return Vec2.from_angle(float(fine[index])), float(fine_scores[index])


# =============================================================================
# ROTATION CONTROL
# =============================================================================

def rotate_to_direction(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    direction: Vec2,
    speed: float,
) -> List[Command]:
    """
    Fire the engines that turn the craft toward a world direction.

    The desired angular velocity is proportional to the heading error
    (error * speed). Engines whose torque has the sign of the needed change
    in angular velocity run at full power; the rest are switched off.
    Engines through the center of mass produce no torque and stay off.

    Args:
        spacecraft_id: Id of the craft
        spacecraft: The craft
        direction: World direction to face
        speed: Proportional gain on the heading error

    Returns:
        Engine commands
    """
    result: List[Command] = []

    rotation_offset = spacecraft.body.heading.angle_between(direction)
    target_angular_velocity = rotation_offset * speed
    angular_velocity_offset = target_angular_velocity - spacecraft.body.angular_velocity

    for component_id, engine in spacecraft.engines():
        lever_arm = spacecraft.mount_offset(engine)
        torque_sign = lever_arm.perp_dot(engine.local_direction)

        activate = torque_sign * angular_velocity_offset > 0
        _engine_state(spacecraft_id, component_id, engine, activate, 1.0, result)

    return result


def rotate_to_body(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    target: GameObjectBody,
    speed: float,
) -> List[Command]:
    """Turn the craft to face a body's current position."""
    direction = (target.position - spacecraft.body.position).normalized()
    return rotate_to_direction(spacecraft_id, spacecraft, direction, speed)


def _heading_for_thrust(spacecraft: Spacecraft, world_direction: Vec2,
                        config: ControlConfig) -> Tuple[Vec2, float]:
    """
    Craft heading that points the optimal thrust axis along a direction.

    Returns:
        Tuple of (required world heading, heading error in radians)
    """
    optimal_direction, _ = optimal_thrust_direction(spacecraft, config)
    required_heading = world_direction.rotated(-optimal_direction.angle())
    error = spacecraft.body.heading.angle_between(required_heading)
    return required_heading, error


# =============================================================================
# VELOCITY MATCHING
# =============================================================================

def achieve_velocity(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    target_velocity: Vec2,
    speed: Optional[float] = None,
    config: ControlConfig = DEFAULT_CONFIG,
) -> List[Command]:
    """
    Drive the craft's velocity toward a target velocity.

    Within the velocity tolerance every engine is switched off. Otherwise
    the craft first rotates until its optimal thrust axis lies along the
    velocity correction, and only then burns: engines pushing along the
    correction run at full power, the rest are switched off.

    Args:
        spacecraft_id: Id of the craft
        spacecraft: The craft
        target_velocity: World velocity to reach
        speed: Rotation gain used while aligning (config default if None)
        config: Thresholds

    Returns:
        Engine commands
    """
    if speed is None:
        speed = config.default_rotation_speed

    velocity_correction = target_velocity - spacecraft.body.velocity
    if velocity_correction.length < config.velocity_tolerance:
        return deactivate_engines(spacecraft_id, spacecraft)

    correction_direction = velocity_correction.normalized()
    required_heading, error = _heading_for_thrust(spacecraft, correction_direction, config)
    if abs(error) > config.alignment_tolerance_rad:
        return rotate_to_direction(spacecraft_id, spacecraft, required_heading, speed)

    result: List[Command] = []
    for component_id, engine in spacecraft.engines():
        world_direction = engine.local_direction.rotated(spacecraft.body.rotation)
        activate = world_direction.dot(correction_direction) > 0
        _engine_state(spacecraft_id, component_id, engine, activate, 1.0, result)
    return result


# =============================================================================
# APPROACH PLANNING
# =============================================================================

def stopping_distance(
    closing_speed: float,
    relative_speed: float,
    max_acceleration: float,
    config: ControlConfig = DEFAULT_CONFIG,
) -> float:
    """
    Distance needed to brake to the target's velocity, with margins.

    d = (v^2 / (2a) + |v_rel| * rotation_time_tolerance) * safety_factor

    The rotation term covers the distance flown while turning around to
    brake. Returns infinity when the craft cannot accelerate.
    """
    if max_acceleration <= 0:
        return math.inf
    kinematic = closing_speed * closing_speed / (2.0 * max_acceleration)
    turnaround = relative_speed * config.rotation_time_tolerance_s
    return (kinematic + turnaround) * config.braking_safety_factor


def improved_fly_to(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    target: GameObjectBody,
    speed: Optional[float] = None,
    config: ControlConfig = DEFAULT_CONFIG,
) -> List[Command]:
    """
    Approach a body and brake to match its velocity on arrival.

    While farther than the stopping distance the craft accelerates toward
    the target (target velocity plus a thrust-scaled bias along the line of
    sight); once inside it and still closing, it matches the target's
    velocity.

    Args:
        spacecraft_id: Id of the craft
        spacecraft: The craft
        target: Body to approach
        speed: Rotation gain (config default if None)
        config: Thresholds and braking margins

    Returns:
        Engine commands
    """
    if speed is None:
        speed = config.default_rotation_speed

    to_target = target.position - spacecraft.body.position
    distance = to_target.length
    if distance == 0:
        return achieve_velocity(spacecraft_id, spacecraft, target.velocity, speed, config)
    direction = to_target / distance

    relative_velocity = spacecraft.body.velocity - target.velocity
    closing_speed = max(0.0, relative_velocity.dot(direction))

    _, max_thrust = optimal_thrust_direction(spacecraft, config)
    max_acceleration = max_thrust / spacecraft.mass if spacecraft.mass > 0 else 0.0
    if max_acceleration <= 0:
        return achieve_velocity(spacecraft_id, spacecraft, target.velocity, speed, config)

    braking_distance = stopping_distance(closing_speed, relative_velocity.length,
                                         max_acceleration, config)

    if distance <= braking_distance and closing_speed > 0:
        return achieve_velocity(spacecraft_id, spacecraft, target.velocity, speed, config)

    approach_velocity = target.velocity + direction * max_thrust
    return achieve_velocity(spacecraft_id, spacecraft, approach_velocity, speed, config)


def impulse_fly_to(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    target: GameObjectBody,
    speed: Optional[float] = None,
    config: ControlConfig = DEFAULT_CONFIG,
) -> List[Command]:
    """
    Point the thrust axis at the target and throttle by alignment.

    The wanted velocity direction is the line of sight minus the current
    velocity. Misaligned craft only rotate; aligned craft set each engine's
    power to its alignment with the wanted direction.
    """
    if speed is None:
        speed = config.default_rotation_speed

    to_target = target.position - spacecraft.body.position
    desired_direction = (to_target - spacecraft.body.velocity).normalized()
    if desired_direction.length_squared == 0:
        return deactivate_engines(spacecraft_id, spacecraft)

    required_heading, error = _heading_for_thrust(spacecraft, desired_direction, config)
    if abs(error) > config.alignment_tolerance_rad:
        return rotate_to_direction(spacecraft_id, spacecraft, required_heading, speed)

    return _throttle_by_alignment(spacecraft_id, spacecraft, desired_direction, config)


def direct_fly_to(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    target: GameObjectBody,
    config: ControlConfig = DEFAULT_CONFIG,
) -> List[Command]:
    """Throttle engines by alignment with the wanted direction, without turning."""
    to_target = target.position - spacecraft.body.position
    desired_direction = (to_target - spacecraft.body.velocity).normalized()
    if desired_direction.length_squared == 0:
        return deactivate_engines(spacecraft_id, spacecraft)
    return _throttle_by_alignment(spacecraft_id, spacecraft, desired_direction, config)


def _throttle_by_alignment(spacecraft_id: GameObjectId, spacecraft: Spacecraft,
                           desired_direction: Vec2, config: ControlConfig) -> List[Command]:
    result: List[Command] = []
    for component_id, engine in spacecraft.engines():
        world_direction = engine.local_direction.rotated(spacecraft.body.rotation)
        power = world_direction.dot(desired_direction)
        _engine_state(spacecraft_id, component_id, engine, power > 0, power, result,
                      power_epsilon=config.power_epsilon)
    return result


def fly_to(
    spacecraft_id: GameObjectId,
    spacecraft: Spacecraft,
    target: GameObjectBody,
    speed: Optional[float] = None,
    strategy: SteeringStrategy = SteeringStrategy.IMPROVED,
    config: ControlConfig = DEFAULT_CONFIG,
) -> List[Command]:
    """Fly toward a body using the chosen steering strategy."""
    if speed is None:
        speed = config.default_rotation_speed
    if strategy == SteeringStrategy.IMPROVED:
        return improved_fly_to(spacecraft_id, spacecraft, target, speed, config)
    if strategy == SteeringStrategy.IMPULSE:
        return impulse_fly_to(spacecraft_id, spacecraft, target, speed, config)
    if strategy == SteeringStrategy.DIRECT:
        return direct_fly_to(spacecraft_id, spacecraft, target, config)
    raise ValueError(f"Unknown steering strategy: {strategy}")
