"""Geometric primitives for building elements."""

from __future__ import annotations

import math

import numpy as np
from pydantic import BaseModel, field_validator, model_validator


class Point2D(BaseModel):
    """2D point in the XY plane (meters)."""

    x: float
    y: float

    def distance_to(self, other: Point2D) -> float:
        """Euclidean distance to another point."""
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point2D):
            return NotImplemented
        return math.isclose(self.x, other.x, abs_tol=1e-6) and math.isclose(
            self.y, other.y, abs_tol=1e-6
        )

    def __hash__(self) -> int:
        return hash((round(self.x, 6), round(self.y, 6)))


class Point3D(BaseModel):
    """3D point or vector (meters).

    Supports the vector arithmetic the generators need: addition,
    subtraction and scaling by a number.
    """

    x: float
    y: float
    z: float = 0.0

    @classmethod
    def from_array(cls, values) -> Point3D:
        return cls(x=float(values[0]), y=float(values[1]), z=float(values[2]))

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    @property
    def xy(self) -> Point2D:
        """Plan projection."""
        return Point2D(x=self.x, y=self.y)

    def distance_to(self, other: Point3D) -> float:
        """Euclidean distance to another point."""
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.z - other.z) ** 2
        )

    def midpoint(self, other: Point3D) -> Point3D:
        return (self + other) / 2

    def is_almost_equal_to(self, other: Point3D, tol: float = 1e-6) -> bool:
        return self.distance_to(other) <= tol

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point3D):
            return NotImplemented
        return all(
            math.isclose(a, b, abs_tol=1e-6)
            for a, b in ((self.x, other.x), (self.y, other.y), (self.z, other.z))
        )

    def __hash__(self) -> int:
        return hash((round(self.x, 6), round(self.y, 6), round(self.z, 6)))

    def __add__(self, other: Point3D) -> Point3D:
        if not isinstance(other, Point3D):
            return NotImplemented
        return Point3D(x=self.x + other.x, y=self.y + other.y, z=self.z + other.z)

    def __sub__(self, other: Point3D) -> Point3D:
        if not isinstance(other, Point3D):
            return NotImplemented
        return Point3D(x=self.x - other.x, y=self.y - other.y, z=self.z - other.z)

    def __mul__(self, factor: float) -> Point3D:
        if not isinstance(factor, (int, float)):
            return NotImplemented
        return Point3D(x=self.x * factor, y=self.y * factor, z=self.z * factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Point3D:
        if not isinstance(divisor, (int, float)):
            return NotImplemented
        return Point3D(x=self.x / divisor, y=self.y / divisor, z=self.z / divisor)


class Line3D(BaseModel):
    """Bounded straight line between two distinct points."""

    start: Point3D
    end: Point3D

    @model_validator(mode="after")
    def start_and_end_differ(self) -> Line3D:
        if self.start.is_almost_equal_to(self.end):
            raise ValueError("Line start and end points must be different")
        return self

    @classmethod
    def create_bound(cls, start: Point3D, end: Point3D) -> Line3D:
        return cls(start=start, end=end)

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    @property
    def midpoint(self) -> Point3D:
        return self.start.midpoint(self.end)

    @property
    def direction(self) -> np.ndarray:
        """Unit direction vector from start to end."""
        vec = self.end.to_array() - self.start.to_array()
        return vec / np.linalg.norm(vec)

    def get_end_point(self, index: int) -> Point3D:
        """Endpoint by index: 0 is the start, 1 is the end."""
        if index == 0:
            return self.start
        if index == 1:
            return self.end
        raise IndexError(f"Line end point index must be 0 or 1, got {index}")


class Polygon2D(BaseModel):
    """Closed polygon in the XY plane. Minimum 3 vertices. Auto-closes (no need to repeat first vertex)."""

    vertices: list[Point2D]

    @field_validator("vertices")
    @classmethod
    def at_least_3_vertices(cls, v: list[Point2D]) -> list[Point2D]:
        if len(v) < 3:
            raise ValueError("Polygon must have at least 3 vertices")
        return v

    @property
    def area(self) -> float:
        """Compute area using the shoelace formula. Returns absolute value."""
        n = len(self.vertices)
        area = 0.0
        for i in range(n):
            j = (i + 1) % n
            area += self.vertices[i].x * self.vertices[j].y
            area -= self.vertices[j].x * self.vertices[i].y
        return abs(area) / 2.0

    @property
    def perimeter(self) -> float:
        """Total perimeter length."""
        n = len(self.vertices)
        return sum(
            self.vertices[i].distance_to(self.vertices[(i + 1) % n]) for i in range(n)
        )
