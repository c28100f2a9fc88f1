"""Document elements: levels, walls, family symbols and instances, roofs.

Element IDs use IFC-compatible GlobalIds (22-char compressed GUIDs)
so the same ID appears in our JSON document and the exported IFC file.
Elements are plain data; the Document owns them and is the only place
that creates or modifies them.
"""

from __future__ import annotations

import math
from enum import Enum

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from house_builder.models.geometry import Line3D, Point2D, Point3D, Polygon2D
from house_builder.models.ifc_id import generate_ifc_id

_UP = np.array([0.0, 0.0, 1.0])


class Element(BaseModel):
    """Common base: every element has a GlobalId and a name."""

    element_id: str = Field(default_factory=generate_ifc_id, description="IFC GlobalId")
    name: str = ""


class Level(Element):
    """A named floor elevation (IfcBuildingStorey)."""

    name: str = Field(description="Level name, e.g. 'Level 1'")
    elevation: float = Field(default=0.0, description="Absolute elevation in meters")


class WallType(Element):
    """Wall type: carries the wall width."""

    name: str
    width: float = Field(gt=0, description="Wall width (thickness) in meters")


class Wall(Element):
    """A straight wall along its location line.

    The location line is the wall centerline at the base of the wall.
    ``height`` is the unconnected height, or the distance from the base
    level to the top level once a top constraint is set.
    """

    wall_type_id: str
    location: Line3D
    base_level_id: str
    top_level_id: str | None = None
    height: float = Field(gt=0, description="Wall height in meters")
    width: float = Field(gt=0, description="Wall width (thickness) in meters")
    structural: bool = Field(default=False, description="Pset_WallCommon.LoadBearing")

    @property
    def start(self) -> Point3D:
        return self.location.start

    @property
    def end(self) -> Point3D:
        return self.location.end

    @property
    def length(self) -> float:
        """Wall length (centerline)."""
        return self.location.length

    def get_end_point(self, index: int) -> Point3D:
        return self.location.get_end_point(index)

    def distance_along(self, point: Point3D) -> float:
        """Offset of ``point`` along the wall from its start, measured in plan."""
        start = np.array([self.start.x, self.start.y])
        end = np.array([self.end.x, self.end.y])
        axis = (end - start) / np.linalg.norm(end - start)
        return float(np.dot(np.array([point.x, point.y]) - start, axis))

    def distance_across(self, point: Point3D) -> float:
        """Perpendicular distance from ``point`` to the wall line, in plan."""
        start = np.array([self.start.x, self.start.y])
        end = np.array([self.end.x, self.end.y])
        axis = (end - start) / np.linalg.norm(end - start)
        rel = np.array([point.x, point.y]) - start
        return float(abs(axis[0] * rel[1] - axis[1] * rel[0]))

    def hosts_point(self, point: Point3D, tol: float = 1e-6) -> bool:
        """True if ``point`` lies inside the wall body in plan."""
        along = self.distance_along(point)
        return (
            -tol <= along <= self.length + tol
            and self.distance_across(point) <= self.width / 2 + tol
        )


class BuiltInCategory(str, Enum):
    """Element categories the collector can filter on."""

    DOORS = "OST_Doors"
    WINDOWS = "OST_Windows"


_MAX_WIDTH = {BuiltInCategory.DOORS: 5.0, BuiltInCategory.WINDOWS: 6.0}


class FamilySymbol(Element):
    """A loadable family type (door or window size).

    Symbols must be activated before instances can be placed.
    """

    category: BuiltInCategory
    family_name: str
    name: str
    width: float = Field(gt=0, description="Opening width in meters")
    height: float = Field(gt=0, description="Opening height in meters")
    is_active: bool = False

    @model_validator(mode="after")
    def reasonable_width(self) -> FamilySymbol:
        limit = _MAX_WIDTH[self.category]
        if self.width > limit:
            raise ValueError(
                f"{self.category.name.title()} width {self.width}m seems unreasonable (max {limit}m)"
            )
        return self


class FamilyInstance(Element):
    """A placed door or window, hosted by a wall.

    ``location`` is the insertion point (center of the opening at its
    bottom). ``sill_height`` is its height above the level.
    """

    symbol_id: str
    category: BuiltInCategory
    host_wall_id: str = Field(description="GlobalId of the host wall")
    level_id: str
    location: Point3D
    sill_height: float = Field(default=0.0, ge=0)


class RoofType(Element):
    """Roof type, identified by family name and type name."""

    family_name: str
    name: str
    thickness: float = Field(default=0.3, gt=0, description="Roof thickness in meters")


class ReferencePlane(Element):
    """Work plane through three points.

    ``bubble_end`` and ``free_end`` span the plane's X direction; the
    third point fixes its orientation.
    """

    bubble_end: Point3D
    free_end: Point3D
    cut_vector: Point3D

    @model_validator(mode="after")
    def points_span_a_plane(self) -> ReferencePlane:
        if np.linalg.norm(self._raw_normal()) < 1e-9:
            raise ValueError("Reference plane points must not be collinear")
        return self

    def _raw_normal(self) -> np.ndarray:
        origin = self.bubble_end.to_array()
        return np.cross(
            self.free_end.to_array() - origin, self.cut_vector.to_array() - origin
        )

    @property
    def origin(self) -> Point3D:
        return self.bubble_end

    @property
    def normal(self) -> np.ndarray:
        """Unit normal (right-handed from free end to third point)."""
        n = self._raw_normal()
        return n / np.linalg.norm(n)

    @property
    def x_direction(self) -> np.ndarray:
        """Unit vector from bubble end to free end."""
        d = self.free_end.to_array() - self.bubble_end.to_array()
        return d / np.linalg.norm(d)

    def signed_distance(self, point: Point3D) -> float:
        return float(np.dot(point.to_array() - self.origin.to_array(), self.normal))


class ExtrusionRoof(Element):
    """A roof swept from an open profile along the normal of its work plane.

    The profile is a connected chain of lines in the reference plane
    (for a gable roof: eave, ridge, eave). The sweep runs from
    ``extrusion_start`` to ``extrusion_end`` along ``extrusion_direction``.
    """

    roof_type_id: str
    level_id: str
    reference_plane_id: str
    profile: list[Line3D]
    extrusion_direction: Point3D
    extrusion_start: float = 0.0
    extrusion_end: float
    thickness: float = Field(gt=0, description="Roof thickness in meters")

    @field_validator("profile")
    @classmethod
    def non_empty_profile(cls, v: list[Line3D]) -> list[Line3D]:
        if not v:
            raise ValueError("Roof profile must contain at least one line")
        return v

    @model_validator(mode="after")
    def positive_depth(self) -> ExtrusionRoof:
        if self.extrusion_end <= self.extrusion_start:
            raise ValueError("Roof extrusion end must be beyond extrusion start")
        return self

    @property
    def depth(self) -> float:
        return self.extrusion_end - self.extrusion_start

    @property
    def profile_points(self) -> list[Point3D]:
        """Profile vertices in chain order."""
        return [self.profile[0].start] + [line.end for line in self.profile]

    @property
    def ridge_point(self) -> Point3D:
        return max(self.profile_points, key=lambda p: p.z)

    @property
    def eave_height(self) -> float:
        return min(p.z for p in self.profile_points)

    @property
    def pitch(self) -> float:
        """Slope of the first profile line in degrees."""
        first = self.profile[0]
        rise = abs(first.end.z - first.start.z)
        run = first.start.xy.distance_to(first.end.xy)
        return math.degrees(math.atan2(rise, run))

    def footprint(self) -> Polygon2D:
        """Plan outline swept by the roof profile."""
        n = self.extrusion_direction.to_array()
        across = np.cross(_UP, n)
        points = self.profile_points
        low = min(points, key=lambda p: float(np.dot(p.to_array(), across)))
        high = max(points, key=lambda p: float(np.dot(p.to_array(), across)))
        corners = [
            low.to_array() + n * self.extrusion_start,
            high.to_array() + n * self.extrusion_start,
            high.to_array() + n * self.extrusion_end,
            low.to_array() + n * self.extrusion_end,
        ]
        return Polygon2D(
            vertices=[Point2D(x=float(c[0]), y=float(c[1])) for c in corners]
        )
