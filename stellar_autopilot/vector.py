#!/usr/bin/env python3
"""
Planar Vector Math for the Stellar Autopilot

Implements the 2D vector used for every position, velocity and heading:
- Arithmetic (add, subtract, scale, divide, negate)
- Dot and perp-dot products
- Length, normalization and distances
- Angles, signed angle between vectors and rotations

Angles are in radians, measured counter-clockwise from the +X axis.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


# =============================================================================
# CONSTANTS
# =============================================================================

TAU = 2.0 * math.pi


def wrap_angle(angle: float) -> float:
    """Wrap an angle into the half-open range [-pi, pi)."""
    return (angle + math.pi) % TAU - math.pi


# =============================================================================
# VEC2 CLASS
# =============================================================================

@dataclass
class Vec2:
    """
    2D vector for positions, velocities and directions in the plane.

    All units are world units (distance units, units/s) unless otherwise
    specified.
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2) -> Vec2:
        """Vector addition."""
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        """Vector subtraction."""
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vec2:
        """Scalar multiplication."""
        return Vec2(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vec2:
        """Right scalar multiplication."""
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vec2:
        """Scalar division."""
        if scalar == 0:
            raise ValueError("Cannot divide vector by zero")
        return Vec2(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vec2:
        """Negation."""
        return Vec2(-self.x, -self.y)

    def __eq__(self, other: object) -> bool:
        """Equality check with tolerance."""
        if not isinstance(other, Vec2):
            return False
        eps = 1e-10
        return abs(self.x - other.x) < eps and abs(self.y - other.y) < eps

    def dot(self, other: Vec2) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y

    def perp_dot(self, other: Vec2) -> float:
        """
        Perp-dot (2D cross) product.

        Positive when `other` lies counter-clockwise of this vector. For a
        lever arm and a force this is the torque about the origin.
        """
        return self.x * other.y - self.y * other.x

    @property
    def length(self) -> float:
        """Vector length (magnitude)."""
        return math.hypot(self.x, self.y)

    @property
    def length_squared(self) -> float:
        """Squared length (avoids sqrt for comparisons)."""
        return self.x * self.x + self.y * self.y

    def normalized(self) -> Vec2:
        """Return unit vector in same direction, or the zero vector."""
        length = self.length
        if length == 0 or not math.isfinite(length):
            return Vec2(0.0, 0.0)
        return self / length

    def distance_to(self, other: Vec2) -> float:
        """Distance to another point."""
        return (self - other).length

    def angle(self) -> float:
        """Angle of this vector from the +X axis, in (-pi, pi]."""
        return math.atan2(self.y, self.x)

    def angle_between(self, other: Vec2) -> float:
        """
        Signed angle to rotate this vector onto `other`.

        Returns:
            Angle in radians in [-pi, pi]; positive is counter-clockwise.
            Zero if either vector has zero length.
        """
        if self.length_squared == 0 or other.length_squared == 0:
            return 0.0
        return math.atan2(self.perp_dot(other), self.dot(other))

    def rotated(self, angle_rad: float) -> Vec2:
        """Rotate counter-clockwise by an angle."""
        cos_a = math.cos(angle_rad)
        sin_a = math.sin(angle_rad)
        return Vec2(self.x * cos_a - self.y * sin_a,
                    self.x * sin_a + self.y * cos_a)

    def rotate(self, by: Vec2) -> Vec2:
        """Rotate by a unit direction vector (complex multiplication)."""
        return Vec2(self.x * by.x - self.y * by.y,
                    self.y * by.x + self.x * by.y)

    def is_finite(self) -> bool:
        """True if both components are finite numbers."""
        return math.isfinite(self.x) and math.isfinite(self.y)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to tuple."""
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, t: tuple[float, float]) -> Vec2:
        """Create from tuple."""
        return cls(t[0], t[1])

    @classmethod
    def from_angle(cls, angle_rad: float) -> Vec2:
        """Unit vector pointing at an angle from the +X axis."""
        return cls(math.cos(angle_rad), math.sin(angle_rad))

    @classmethod
    def zero(cls) -> Vec2:
        """Zero vector."""
        return cls(0.0, 0.0)

    def __repr__(self) -> str:
        return f"Vec2({self.x:.6g}, {self.y:.6g})"
