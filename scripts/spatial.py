"""
Spatial Primitives - Vectors and Euler Rotations for Exported Map Components

Value types used by the transform resolver and the bounding-volume builders.
Both types are immutable; every operation returns a new instance.

ROTATION CONVENTION:
    Unreal-style degrees:
        pitch: rotation about the local Y axis
        yaw:   rotation about the Z axis
        roll:  rotation about the local X axis

    The direction-cosine matrix is built as yaw * pitch * roll. Converting a
    matrix back to Euler angles follows the engine's own extraction, including
    its gimbal-lock fallback (yaw only, roll forced to 0) when cos(pitch) is
    within 1e-6 of zero. Composition is therefore lossy and order dependent;
    callers must not assume a.compose(b) == b.compose(a).

Author: Layer Export Project
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

Matrix3 = Tuple[Tuple[float, float, float], Tuple[float, float, float], Tuple[float, float, float]]

# Below this |cos(pitch)| the matrix is treated as gimbal-locked
GIMBAL_LOCK_EPSILON = 1e-6


# ============================================================================
# VECTORS
# ============================================================================

@dataclass(frozen=True)
class Vector3:
    """3D vector in engine units (centimetres)."""
    x: float
    y: float
    z: float

    def __add__(self, other: Vector3) -> Vector3:
        """Vector addition."""
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def add(self, other: Vector3) -> Vector3:
        return self + other

    def multiply(self, other: Vector3) -> Vector3:
        """Component-wise (Hadamard) product, used to apply a scale."""
        return Vector3(self.x * other.x, self.y * other.y, self.z * other.z)

    def magnitude(self) -> float:
        """Euclidean magnitude."""
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2)

    def to_list(self) -> List[float]:
        return [self.x, self.y, self.z]

    @classmethod
    def from_list(cls, coords: Sequence[float]) -> Vector3:
        """Create from [x, y, z] list."""
        return cls(float(coords[0]), float(coords[1]), float(coords[2]))

    def __repr__(self) -> str:
        return f"Vector3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"


ZERO_VECTOR = Vector3(0.0, 0.0, 0.0)
UNIT_SCALE = Vector3(1.0, 1.0, 1.0)


# ============================================================================
# ROTATIONS
# ============================================================================

def multiply_matrices(a: Matrix3, b: Matrix3) -> Matrix3:
    """Row-major 3x3 product a * b."""
    return tuple(
        tuple(sum(a[row][k] * b[k][col] for k in range(3)) for col in range(3))
        for row in range(3)
    )


@dataclass(frozen=True)
class Rotation:
    """
    Euler rotation in degrees.

    Attributes:
        pitch: Degrees about the local Y axis
        yaw: Degrees about the Z axis
        roll: Degrees about the local X axis
    """
    pitch: float
    yaw: float
    roll: float

    def to_matrix(self) -> Matrix3:
        """Build the yaw * pitch * roll direction-cosine matrix."""
        pitch_rad = math.radians(self.pitch)
        yaw_rad = math.radians(self.yaw)
        roll_rad = math.radians(self.roll)

        cp, sp = math.cos(pitch_rad), math.sin(pitch_rad)
        cy, sy = math.cos(yaw_rad), math.sin(yaw_rad)
        cr, sr = math.cos(roll_rad), math.sin(roll_rad)

        return (
            (cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr),
            (sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr),
            (-sp, cp * sr, cp * cr),
        )

    @classmethod
    def from_matrix(cls, m: Matrix3) -> Rotation:
        """
        Extract pitch/yaw/roll from a rotation matrix.

        Mirrors the engine extraction: pitch from asin(-m20), then yaw and roll
        from atan2. When the matrix is gimbal-locked the roll is folded into
        the yaw and reported as 0.

        Args:
            m: Row-major 3x3 rotation matrix

        Returns:
            Rotation in degrees
        """
        # Clamp guards asin against drift just past +/-1 after multiplication
        pitch_rad = math.asin(max(-1.0, min(1.0, -m[2][0])))
        if abs(math.cos(pitch_rad)) > GIMBAL_LOCK_EPSILON:
            yaw_rad = math.atan2(m[1][0], m[0][0])
            roll_rad = math.atan2(m[2][1], m[2][2])
        else:
            yaw_rad = math.atan2(-m[0][1], m[1][1])
            roll_rad = 0.0
        return cls(math.degrees(pitch_rad), math.degrees(yaw_rad), math.degrees(roll_rad))

    def rotate(self, vector: Vector3) -> Vector3:
        """Apply this rotation to a vector."""
        m = self.to_matrix()
        return Vector3(
            m[0][0] * vector.x + m[0][1] * vector.y + m[0][2] * vector.z,
            m[1][0] * vector.x + m[1][1] * vector.y + m[1][2] * vector.z,
            m[2][0] * vector.x + m[2][1] * vector.y + m[2][2] * vector.z,
        )

    def rotate_extents(self, extents: Vector3) -> Vector3:
        """
        Re-project axis-aligned half extents through this rotation.

        Uses the absolute matrix entries so opposite faces never cancel out;
        the result is the half extent of the rotated box's axis-aligned hull.
        """
        m = self.to_matrix()
        return Vector3(
            abs(m[0][0]) * extents.x + abs(m[0][1]) * extents.y + abs(m[0][2]) * extents.z,
            abs(m[1][0]) * extents.x + abs(m[1][1]) * extents.y + abs(m[1][2]) * extents.z,
            abs(m[2][0]) * extents.x + abs(m[2][1]) * extents.y + abs(m[2][2]) * extents.z,
        )

    def compose(self, other: Rotation) -> Rotation:
        """Return this rotation followed by `other` in local space (M_self * M_other)."""
        return Rotation.from_matrix(multiply_matrices(self.to_matrix(), other.to_matrix()))

    def __repr__(self) -> str:
        return f"Rotation(pitch={self.pitch:.4f}, yaw={self.yaw:.4f}, roll={self.roll:.4f})"


ZERO_ROTATION = Rotation(0.0, 0.0, 0.0)
