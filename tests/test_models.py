"""Tests for element models."""

import math

import pytest

from house_builder.models import (
    BuiltInCategory,
    ExtrusionRoof,
    FamilySymbol,
    Level,
    Line3D,
    Point3D,
    ReferencePlane,
    RoofType,
    Wall,
    generate_ifc_id,
)
from house_builder.models.ifc_id import is_valid_ifc_id


def _wall(start=(0, 0), end=(5, 0), width=0.2, height=3.0) -> Wall:
    return Wall(
        wall_type_id=generate_ifc_id(),
        location=Line3D.create_bound(
            Point3D(x=start[0], y=start[1]), Point3D(x=end[0], y=end[1])
        ),
        base_level_id=generate_ifc_id(),
        height=height,
        width=width,
    )


class TestIds:
    def test_generated_ids_are_ifc_guids(self):
        assert is_valid_ifc_id(generate_ifc_id())
        assert generate_ifc_id() != generate_ifc_id()

    def test_elements_get_ids(self):
        level = Level(name="Level 1")
        assert len(level.element_id) == 22


class TestWall:
    def test_length(self):
        assert math.isclose(_wall(end=(3, 4)).length, 5.0)

    def test_end_points(self):
        wall = _wall()
        assert wall.get_end_point(0) == Point3D(x=0, y=0)
        assert wall.get_end_point(1) == Point3D(x=5, y=0)

    def test_negative_height_rejected(self):
        with pytest.raises(ValueError):
            _wall(height=-1.0)

    def test_zero_width_rejected(self):
        with pytest.raises(ValueError):
            _wall(width=0.0)

    def test_distance_along_and_across(self):
        wall = _wall()
        point = Point3D(x=2.0, y=0.05, z=1.0)
        assert math.isclose(wall.distance_along(point), 2.0)
        assert math.isclose(wall.distance_across(point), 0.05)

    def test_hosts_point(self):
        wall = _wall(width=0.2)
        assert wall.hosts_point(Point3D(x=2.5, y=0.0))
        assert wall.hosts_point(Point3D(x=2.5, y=0.1))
        assert not wall.hosts_point(Point3D(x=2.5, y=0.2))
        assert not wall.hosts_point(Point3D(x=5.5, y=0.0))


class TestFamilySymbol:
    def test_inactive_by_default(self):
        symbol = FamilySymbol(
            category=BuiltInCategory.DOORS, family_name="Door", name="900", width=0.9, height=2.1
        )
        assert symbol.is_active is False

    def test_unreasonable_door_width(self):
        with pytest.raises(ValueError, match="unreasonable"):
            FamilySymbol(
                category=BuiltInCategory.DOORS, family_name="Door", name="huge",
                width=5.5, height=2.1,
            )

    def test_wide_window_allowed(self):
        symbol = FamilySymbol(
            category=BuiltInCategory.WINDOWS, family_name="Window", name="band",
            width=5.5, height=1.0,
        )
        assert symbol.width == 5.5


class TestReferencePlane:
    def test_normal_from_three_points(self):
        plane = ReferencePlane(
            bubble_end=Point3D(x=5, y=-2, z=3),
            free_end=Point3D(x=5, y=-2, z=5),
            cut_vector=Point3D(x=5, y=0, z=3),
        )
        assert list(plane.normal) == pytest.approx([-1.0, 0.0, 0.0])
        assert list(plane.x_direction) == pytest.approx([0.0, 0.0, 1.0])
        assert plane.origin == Point3D(x=5, y=-2, z=3)
        assert plane.signed_distance(Point3D(x=5, y=10, z=-4)) == pytest.approx(0.0)
        assert plane.signed_distance(Point3D(x=4, y=0, z=0)) == pytest.approx(1.0)

    def test_collinear_points_rejected(self):
        with pytest.raises(ValueError, match="collinear"):
            ReferencePlane(
                bubble_end=Point3D(x=0, y=0, z=0),
                free_end=Point3D(x=1, y=0, z=0),
                cut_vector=Point3D(x=2, y=0, z=0),
            )


def _gable_roof() -> ExtrusionRoof:
    """Gable across y in [-3, 3] at x=5, rising 3m, swept 10m towards -x."""
    eave1 = Point3D(x=5, y=-3, z=4)
    ridge = Point3D(x=5, y=0, z=7)
    eave2 = Point3D(x=5, y=3, z=4)
    return ExtrusionRoof(
        roof_type_id=generate_ifc_id(),
        level_id=generate_ifc_id(),
        reference_plane_id=generate_ifc_id(),
        profile=[Line3D.create_bound(eave1, ridge), Line3D.create_bound(ridge, eave2)],
        extrusion_direction=Point3D(x=-1, y=0, z=0),
        extrusion_start=0.0,
        extrusion_end=10.0,
        thickness=0.4,
    )


class TestExtrusionRoof:
    def test_profile_points(self):
        roof = _gable_roof()
        assert len(roof.profile_points) == 3
        assert roof.ridge_point == Point3D(x=5, y=0, z=7)
        assert roof.eave_height == 4

    def test_pitch(self):
        assert math.isclose(_gable_roof().pitch, 45.0)

    def test_footprint(self):
        footprint = _gable_roof().footprint()
        assert math.isclose(footprint.area, 60.0)
        xs = sorted({round(v.x, 6) for v in footprint.vertices})
        ys = sorted({round(v.y, 6) for v in footprint.vertices})
        assert xs == [-5.0, 5.0]
        assert ys == [-3.0, 3.0]

    def test_depth_must_be_positive(self):
        roof = _gable_roof()
        with pytest.raises(ValueError, match="beyond extrusion start"):
            ExtrusionRoof(**{**roof.model_dump(), "extrusion_end": 0.0})

    def test_empty_profile_rejected(self):
        roof = _gable_roof()
        with pytest.raises(ValueError, match="at least one line"):
            ExtrusionRoof(**{**roof.model_dump(), "profile": []})


class TestRoofType:
    def test_default_thickness(self):
        assert RoofType(family_name="Basic Roof", name="Generic").thickness == 0.3
