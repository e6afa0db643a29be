#!/usr/bin/env python3
"""
Test Suite for the Propulsion Controller

Tests cover:
1. Optimal thrust direction - symmetric layouts, uneven engines, no engines
2. Rotation control - torque sign selection, counter-rotation, full power
3. Velocity matching - tolerance cut-off, rotate-before-burn, optimal frame
4. Approach planning - stopping distance, brake vs accelerate decisions
5. Impulse and direct steering - continuous throttle and idempotence
"""

import math

import pytest
from numpy.testing import assert_allclose

from stellar_autopilot.commands import Command, ComponentAction
from stellar_autopilot.config import ControlConfig, SteeringStrategy
from stellar_autopilot.propulsion import (
    achieve_velocity,
    deactivate_engines,
    direct_fly_to,
    fly_to,
    impulse_fly_to,
    improved_fly_to,
    optimal_thrust_direction,
    rotate_to_body,
    rotate_to_direction,
    stopping_distance,
)
from stellar_autopilot.vector import Vec2
from stellar_autopilot.world import (
    Engine,
    GameObjectBody,
    Spacecraft,
    Weapon,
    create_asteroid_miner,
)


CRAFT_ID = 3


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def miner():
    """Asteroid miner at the origin facing +X (engines 1 and 2)."""
    return create_asteroid_miner(owner=1)


@pytest.fixture
def quad():
    """Four identical engines at 90 degree intervals through the center of mass."""
    return Spacecraft(
        owner=1,
        components={
            i + 1: Engine(orientation=i * math.pi / 2, thrust=10.0)
            for i in range(4)
        },
    )


def apply(craft, commands):
    """Apply engine commands to a craft in place."""
    for command in commands:
        component = craft.components[command.component_id]
        if command.action == ComponentAction.SET_ACTIVE:
            component.active = command.value
        elif command.action == ComponentAction.SET_POWER:
            component.power = command.value
        else:
            component.rotation = command.value


def active_engines(craft, commands):
    apply(craft, commands)
    return sorted(cid for cid, engine in craft.engines() if engine.active)


# =============================================================================
# OPTIMAL THRUST DIRECTION
# =============================================================================

class TestOptimalThrustDirection:
    """Tests for the two-stage grid search."""

    def test_symmetric_quad_returns_bisector(self, quad):
        direction, magnitude = optimal_thrust_direction(quad)
        assert magnitude == pytest.approx(10.0 * math.sqrt(2))
        # Any of the four diagonals is optimal
        assert_allclose((abs(direction.x), abs(direction.y)),
                        (math.sqrt(0.5), math.sqrt(0.5)), atol=1e-9)

    def test_single_engine(self):
        craft = Spacecraft(owner=1, components={1: Engine(orientation=0.0, thrust=25.0)})
        direction, magnitude = optimal_thrust_direction(craft)
        assert magnitude == pytest.approx(25.0)
        assert_allclose(direction.to_tuple(), (1.0, 0.0), atol=1e-9)

    def test_uneven_engines_within_fine_step(self):
        craft = Spacecraft(owner=1, components={
            1: Engine(orientation=0.0, thrust=3.0),
            2: Engine(orientation=math.pi / 2, thrust=4.0),
        })
        direction, magnitude = optimal_thrust_direction(craft)
        assert magnitude == pytest.approx(5.0, rel=1e-3)
        assert math.degrees(direction.angle()) == pytest.approx(math.degrees(math.atan2(4, 3)), abs=1.0)

    def test_direction_is_local_not_world(self, miner):
        miner.body.rotation = 2.0
        direction, magnitude = optimal_thrust_direction(miner)
        assert_allclose(direction.to_tuple(), (1.0, 0.0), atol=1e-9)
        assert magnitude == pytest.approx(100.0)

    def test_weapons_are_ignored(self):
        craft = Spacecraft(owner=1, components={1: Weapon(), 2: Engine(orientation=math.pi, thrust=2.0)})
        direction, magnitude = optimal_thrust_direction(craft)
        assert magnitude == pytest.approx(2.0)
        assert_allclose(direction.to_tuple(), (-1.0, 0.0), atol=1e-9)

    def test_no_engines(self):
        _, magnitude = optimal_thrust_direction(Spacecraft(owner=1))
        assert magnitude == 0.0


# =============================================================================
# ROTATION CONTROL
# =============================================================================

class TestRotateToDirection:
    """Tests for torque-based rotation control."""

    def test_counter_clockwise_turn_fires_ccw_engine(self, miner):
        commands = rotate_to_direction(CRAFT_ID, miner, Vec2(0, 1), 1.0)
        assert commands == [Command.set_active(CRAFT_ID, 1, True)]

    def test_clockwise_turn_fires_cw_engine(self, miner):
        commands = rotate_to_direction(CRAFT_ID, miner, Vec2(0, -1), 1.0)
        assert commands == [Command.set_active(CRAFT_ID, 2, True)]

    def test_overshooting_spin_counter_rotates(self, miner):
        miner.body.angular_velocity = 5.0
        commands = rotate_to_direction(CRAFT_ID, miner, Vec2(0, 1), 1.0)
        assert active_engines(miner, commands) == [2]

    def test_wrong_engine_is_switched_off(self, miner):
        miner.components[2].active = True
        commands = rotate_to_direction(CRAFT_ID, miner, Vec2(0, 1), 1.0)
        assert Command.set_active(CRAFT_ID, 2, False) in commands
        assert active_engines(miner, commands) == [1]

    def test_active_engine_driven_to_full_power(self, miner):
        miner.components[1].power = 0.5
        commands = rotate_to_direction(CRAFT_ID, miner, Vec2(0, 1), 1.0)
        assert commands == [
            Command.set_active(CRAFT_ID, 1, True),
            Command.set_power(CRAFT_ID, 1, 1.0),
        ]

    def test_engine_through_center_of_mass_stays_off(self):
        craft = Spacecraft(owner=1, components={1: Engine(centered_position=Vec2(0, 0))})
        assert rotate_to_direction(CRAFT_ID, craft, Vec2(0, 1), 1.0) == []

    def test_on_target_and_still_fires_nothing(self, miner):
        assert rotate_to_direction(CRAFT_ID, miner, Vec2(1, 0), 1.0) == []

    def test_rotate_to_body(self, miner):
        target = GameObjectBody(position=Vec2(0, -300))
        commands = rotate_to_body(CRAFT_ID, miner, target, 0.7)
        assert commands == [Command.set_active(CRAFT_ID, 2, True)]


# =============================================================================
# VELOCITY MATCHING
# =============================================================================

class TestAchieveVelocity:
    """Tests for velocity matching."""

    def test_within_tolerance_switches_engines_off(self, miner):
        miner.components[1].active = True
        miner.body.velocity = Vec2(5.0, 0.0)
        commands = achieve_velocity(CRAFT_ID, miner, Vec2(5.05, 0.0))
        assert commands == [Command.set_active(CRAFT_ID, 1, False)]

    def test_misaligned_only_rotates(self, miner):
        commands = achieve_velocity(CRAFT_ID, miner, Vec2(0, 10), speed=0.6)
        assert commands == rotate_to_direction(CRAFT_ID, miner, Vec2(0, 1), 0.6)

    def test_aligned_burns_at_full_power(self, miner):
        commands = achieve_velocity(CRAFT_ID, miner, Vec2(10, 0))
        assert active_engines(miner, commands) == [1, 2]
        assert all(e.power == 1.0 for _, e in miner.engines())

    def test_aligned_within_tolerance_angle(self, miner):
        miner.body.rotation = 0.08
        commands = achieve_velocity(CRAFT_ID, miner, Vec2(10, 0))
        assert active_engines(miner, commands) == [1, 2]

    def test_opposing_engine_is_shut_down(self):
        craft = Spacecraft(owner=1, components={
            1: Engine(orientation=0.0, thrust=10.0),
            2: Engine(orientation=math.pi, thrust=10.0, active=True),
        })
        commands = achieve_velocity(CRAFT_ID, craft, Vec2(10, 0))
        assert commands == [
            Command.set_active(CRAFT_ID, 1, True),
            Command.set_active(CRAFT_ID, 2, False),
        ]

    def test_correction_uses_optimal_thrust_frame(self):
        # Lone engine pushes along the craft's local +Y
        craft = Spacecraft(owner=1, components={1: Engine(orientation=math.pi / 2, thrust=10.0)})
        commands = achieve_velocity(CRAFT_ID, craft, Vec2(0, 10))
        assert commands == [Command.set_active(CRAFT_ID, 1, True)]

    def test_rotation_gain_comes_from_config(self, miner):
        # Spinning CCW at 1 rad/s: gain 0.6 asks to slow down, gain 5 to speed up
        miner.body.angular_velocity = 1.0
        config = ControlConfig(default_rotation_speed=5.0)
        commands = achieve_velocity(CRAFT_ID, miner, Vec2(0, 10), config=config)
        assert commands == rotate_to_direction(CRAFT_ID, miner, Vec2(0, 1), 5.0)
        assert commands == [Command.set_active(CRAFT_ID, 1, True)]

    def test_explicit_gain_overrides_config(self, miner):
        miner.body.angular_velocity = 1.0
        config = ControlConfig(default_rotation_speed=5.0)
        commands = achieve_velocity(CRAFT_ID, miner, Vec2(0, 10), 0.6, config)
        assert commands == [Command.set_active(CRAFT_ID, 2, True)]

    def test_repeat_call_is_idempotent(self, miner):
        apply(miner, achieve_velocity(CRAFT_ID, miner, Vec2(10, 0)))
        assert achieve_velocity(CRAFT_ID, miner, Vec2(10, 0)) == []


# =============================================================================
# APPROACH PLANNING
# =============================================================================

class TestStoppingDistance:
    """Tests for the braking distance estimate."""

    def test_formula(self):
        config = ControlConfig(rotation_time_tolerance_s=1.0, braking_safety_factor=1.5)
        assert stopping_distance(10.0, 10.0, 5.0, config) == pytest.approx(30.0)

    def test_no_acceleration_is_infinite(self):
        assert stopping_distance(10.0, 10.0, 0.0) == math.inf

    def test_at_rest_is_zero(self):
        assert stopping_distance(0.0, 0.0, 5.0) == 0.0


class TestImprovedFlyTo:
    """Tests for the approach-and-brake planner."""

    def test_far_target_accelerates_toward_it(self, miner):
        target = GameObjectBody(position=Vec2(1000, 0))
        commands = improved_fly_to(CRAFT_ID, miner, target, 0.7)
        assert commands == achieve_velocity(CRAFT_ID, miner, Vec2(100, 0), 0.7)
        assert active_engines(miner, commands) == [1, 2]

    def test_inside_stopping_distance_brakes(self, miner):
        miner.body.velocity = Vec2(100, 0)
        target = GameObjectBody(position=Vec2(100, 0))
        commands = improved_fly_to(CRAFT_ID, miner, target, 0.7)
        assert commands == achieve_velocity(CRAFT_ID, miner, Vec2(0, 0), 0.7)

    def test_brake_matches_moving_target_velocity(self, miner):
        miner.body.velocity = Vec2(100, 20)
        target = GameObjectBody(position=Vec2(100, 0), velocity=Vec2(0, 20))
        commands = improved_fly_to(CRAFT_ID, miner, target, 0.7)
        assert commands == achieve_velocity(CRAFT_ID, miner, Vec2(0, 20), 0.7)

    def test_receding_inside_distance_keeps_approaching(self, miner):
        miner.body.velocity = Vec2(-100, 0)
        target = GameObjectBody(position=Vec2(100, 0))
        commands = improved_fly_to(CRAFT_ID, miner, target, 0.7)
        assert commands == achieve_velocity(CRAFT_ID, miner, Vec2(100, 0), 0.7)

    def test_on_top_of_target_matches_velocity(self, miner):
        target = GameObjectBody(position=Vec2(0, 0), velocity=Vec2(3, 0))
        commands = improved_fly_to(CRAFT_ID, miner, target, 0.7)
        assert commands == achieve_velocity(CRAFT_ID, miner, Vec2(3, 0), 0.7)

    def test_craft_without_engines_emits_nothing(self):
        craft = Spacecraft(owner=1, components={1: Weapon()})
        assert improved_fly_to(CRAFT_ID, craft, GameObjectBody(position=Vec2(50, 0))) == []


# =============================================================================
# IMPULSE AND DIRECT STEERING
# =============================================================================

class TestImpulseAndDirect:
    """Tests for the lower-fidelity steering variants."""

    def test_impulse_aligned_throttles(self, miner):
        commands = impulse_fly_to(CRAFT_ID, miner, GameObjectBody(position=Vec2(100, 0)))
        assert commands == [
            Command.set_active(CRAFT_ID, 1, True),
            Command.set_active(CRAFT_ID, 2, True),
        ]

    def test_impulse_misaligned_rotates(self, miner):
        commands = impulse_fly_to(CRAFT_ID, miner, GameObjectBody(position=Vec2(0, 100)), 0.6)
        assert commands == rotate_to_direction(CRAFT_ID, miner, Vec2(0, 1), 0.6)

    def test_direct_sets_power_to_alignment(self, miner):
        commands = direct_fly_to(CRAFT_ID, miner, GameObjectBody(position=Vec2(100, 100)))
        powers = [c.value for c in commands if c.action == ComponentAction.SET_POWER]
        assert powers == pytest.approx([math.sqrt(0.5), math.sqrt(0.5)])

    def test_direct_small_power_change_is_suppressed(self, miner):
        for _, engine in miner.engines():
            engine.active = True
            engine.power = 0.75
        commands = direct_fly_to(CRAFT_ID, miner, GameObjectBody(position=Vec2(100, 100)))
        assert commands == []

    def test_direct_backwards_target_switches_engines_off(self, miner):
        for _, engine in miner.engines():
            engine.active = True
        commands = direct_fly_to(CRAFT_ID, miner, GameObjectBody(position=Vec2(-100, 0)))
        assert active_engines(miner, commands) == []

    def test_direct_idempotent(self, miner):
        target = GameObjectBody(position=Vec2(100, 100))
        apply(miner, direct_fly_to(CRAFT_ID, miner, target))
        assert direct_fly_to(CRAFT_ID, miner, target) == []

    def test_deactivate_engines(self, miner):
        miner.components[2].active = True
        assert deactivate_engines(CRAFT_ID, miner) == [Command.set_active(CRAFT_ID, 2, False)]


class TestFlyToDispatch:
    """Tests for strategy selection."""

    @pytest.mark.parametrize("strategy,implementation", [
        (SteeringStrategy.IMPROVED, lambda c, t: improved_fly_to(CRAFT_ID, c, t, 0.6)),
        (SteeringStrategy.IMPULSE, lambda c, t: impulse_fly_to(CRAFT_ID, c, t, 0.6)),
        (SteeringStrategy.DIRECT, lambda c, t: direct_fly_to(CRAFT_ID, c, t)),
    ])
    def test_dispatch(self, miner, strategy, implementation):
        target = GameObjectBody(position=Vec2(40, 30))
        assert fly_to(CRAFT_ID, miner, target, 0.6, strategy) == implementation(miner, target)

    @pytest.mark.parametrize("strategy", [SteeringStrategy.IMPROVED, SteeringStrategy.IMPULSE])
    def test_default_gain_comes_from_config(self, miner, strategy):
        miner.body.angular_velocity = 1.0
        config = ControlConfig(default_rotation_speed=5.0)
        target = GameObjectBody(position=Vec2(0, 1000))
        commands = fly_to(CRAFT_ID, miner, target, strategy=strategy, config=config)
        assert commands == rotate_to_direction(CRAFT_ID, miner, Vec2(0, 1), 5.0)

    def test_unknown_strategy(self, miner):
        with pytest.raises(ValueError):
            fly_to(CRAFT_ID, miner, GameObjectBody(), 0.6, "sideways")
