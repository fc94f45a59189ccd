"""
affine.py — 2D affine transforms backed by numpy 3x3 matrices.

The matrix layout follows the usual graphics convention:

    [ m00  m01  m02 ]     x' = m00 * x + m01 * y + m02
    [ m10  m11  m12 ]     y' = m10 * x + m11 * y + m12
    [  0    0    1  ]

Transforms are immutable values; every operation returns a new instance.
Device space is y-down, so a positive rotation angle turns clockwise on screen.
"""

import math
from typing import Iterable, Sequence, Tuple

import numpy as np

from slidegraphics.units import ASSUME_ZERO

_EPSILON = 1e-12


class NoninvertibleTransformError(ValueError):
    """Raised when inverting a transform whose determinant is zero."""


class AffineTransform:
    """An immutable 2D affine transform."""

    __slots__ = ("_matrix",)

    def __init__(self, matrix: np.ndarray | None = None):
        if matrix is None:
            matrix = np.identity(3)
        self._matrix = np.array(matrix, dtype=float)
        self._matrix[2] = (0.0, 0.0, 1.0)
        self._matrix.setflags(write=False)

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls()

    @classmethod
    def from_values(
        cls,
        m00: float,
        m10: float,
        m01: float,
        m11: float,
        m02: float,
        m12: float,
    ) -> "AffineTransform":
        """Build a transform from its six coefficients, column by column."""
        return cls(np.array([[m00, m01, m02], [m10, m11, m12], [0.0, 0.0, 1.0]]))

    @classmethod
    def translation(cls, tx: float, ty: float) -> "AffineTransform":
        return cls.from_values(1.0, 0.0, 0.0, 1.0, tx, ty)

    @classmethod
    def scaling(cls, sx: float, sy: float) -> "AffineTransform":
        return cls.from_values(sx, 0.0, 0.0, sy, 0.0, 0.0)

    @classmethod
    def rotation(cls, theta: float, x: float = 0.0, y: float = 0.0) -> "AffineTransform":
        """Rotation by ``theta`` radians about the point (x, y)."""
        cos, sin = math.cos(theta), math.sin(theta)
        # Snap quadrant rotations so axis-aligned results stay exact
        if abs(cos) < _EPSILON:
            cos = 0.0
        if abs(sin) < _EPSILON:
            sin = 0.0
        rotate = cls.from_values(cos, sin, -sin, cos, 0.0, 0.0)
        if x == 0.0 and y == 0.0:
            return rotate
        return cls.translation(x, y).concatenate(rotate).concatenate(cls.translation(-x, -y))

    @classmethod
    def shearing(cls, shx: float, shy: float) -> "AffineTransform":
        return cls.from_values(1.0, shy, shx, 1.0, 0.0, 0.0)

    # -------------------------------------------------------------------------
    # Coefficients
    # -------------------------------------------------------------------------

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    @property
    def m00(self) -> float:
        return float(self._matrix[0, 0])

    @property
    def m01(self) -> float:
        return float(self._matrix[0, 1])

    @property
    def m02(self) -> float:
        return float(self._matrix[0, 2])

    @property
    def m10(self) -> float:
        return float(self._matrix[1, 0])

    @property
    def m11(self) -> float:
        return float(self._matrix[1, 1])

    @property
    def m12(self) -> float:
        return float(self._matrix[1, 2])

    @property
    def determinant(self) -> float:
        return self.m00 * self.m11 - self.m01 * self.m10

    def coefficients(self) -> Tuple[float, float, float, float, float, float]:
        """Return (m00, m10, m01, m11, m02, m12)."""
        return (self.m00, self.m10, self.m01, self.m11, self.m02, self.m12)

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    def concatenate(self, other: "AffineTransform") -> "AffineTransform":
        """Return ``self * other``: ``other`` is applied first, then ``self``."""
        return AffineTransform(self._matrix @ other._matrix)

    def pre_concatenate(self, other: "AffineTransform") -> "AffineTransform":
        """Return ``other * self``: ``self`` is applied first, then ``other``."""
        return AffineTransform(other._matrix @ self._matrix)

    def inverse(self) -> "AffineTransform":
        if abs(self.determinant) < _EPSILON:
            raise NoninvertibleTransformError(
                f"Transform is not invertible (determinant {self.determinant})"
            )
        return AffineTransform(np.linalg.inv(self._matrix))

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform an (N, 2) array of points."""
        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        return pts @ self._matrix[:2, :2].T + self._matrix[:2, 2]

    def transform_point(self, x: float, y: float) -> Tuple[float, float]:
        px = self.m00 * x + self.m01 * y + self.m02
        py = self.m10 * x + self.m11 * y + self.m12
        return (px, py)

    def transform_points(
        self, points: Iterable[Sequence[float]]
    ) -> list[Tuple[float, float]]:
        return [self.transform_point(p[0], p[1]) for p in points]

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def is_identity(self) -> bool:
        return bool(np.allclose(self._matrix, np.identity(3), atol=_EPSILON))

    def is_axis_aligned(self) -> bool:
        """True for translate/scale/flip combinations (no rotation or shear)."""
        return abs(self.m01) < _EPSILON and abs(self.m10) < _EPSILON

    def rotation_angle(self) -> float:
        """Escapement of the x axis in radians, ``atan2(m10, m00)``."""
        return math.atan2(self.m10, self.m00)

    def uniform_scale(self) -> float:
        """Scale factor that preserves area, ``sqrt(|det|)``."""
        return math.sqrt(abs(self.determinant))

    def almost_equals(self, other: "AffineTransform", tolerance: float = ASSUME_ZERO) -> bool:
        return bool(np.allclose(self._matrix, other._matrix, atol=tolerance))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffineTransform):
            return NotImplemented
        return bool(np.array_equal(self._matrix, other._matrix))

    def __hash__(self) -> int:
        return hash(self.coefficients())

    def __repr__(self) -> str:
        values = ", ".join(f"{v:g}" for v in self.coefficients())
        return f"AffineTransform({values})"
