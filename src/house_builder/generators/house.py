"""House shell generator.

Builds a simple house against the existing levels of a document:
- 4 walls around a rectangle centered on the origin, from the first
  level up to the second
- a door in the middle of the first wall
- a window in the middle of each of the other three walls
- a gable roof swept across the shell

Each step runs in its own document transaction, in that order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from house_builder.config import HouseSettings
from house_builder.errors import ElementNotFoundError, InvalidOperationError
from house_builder.models.document import Document
from house_builder.models.elements import (
    BuiltInCategory,
    ExtrusionRoof,
    FamilyInstance,
    FamilySymbol,
    Level,
    RoofType,
    Wall,
)
from house_builder.models.geometry import Line3D, Point3D
from house_builder.models.units import DisplayUnit, to_internal

logger = logging.getLogger(__name__)


@dataclass
class HouseElements:
    """Everything the generator created."""

    walls: list[Wall] = field(default_factory=list)
    door: FamilyInstance | None = None
    windows: list[FamilyInstance] = field(default_factory=list)
    roof: ExtrusionRoof | None = None

    def element_ids(self) -> list[str]:
        elements = [*self.walls, self.door, *self.windows, self.roof]
        return [e.element_id for e in elements if e is not None]


def get_levels(doc: Document) -> list[Level]:
    """All levels of the document, ordered by name."""
    return doc.collect().of_class(Level).order_by(lambda lv: lv.name).to_list()


def create_walls(
    doc: Document,
    levels: list[Level],
    width: float,
    depth: float,
    unit: DisplayUnit = DisplayUnit.MILLIMETERS,
    transaction_name: str = "Creating Walls",
) -> list[Wall]:
    """Create four walls around a width x depth rectangle centered on the origin.

    Walls run counter-clockwise starting with the south wall, sit on
    ``levels[0]`` and are constrained to ``levels[1]``.

    Args:
        doc: Target document.
        levels: Levels ordered by name; the first two are used.
        width: Extent along X, in ``unit``.
        depth: Extent along Y, in ``unit``.
        unit: Unit of ``width`` and ``depth``.
        transaction_name: Name of the wrapping transaction.

    Returns:
        The walls in creation order: south, east, north, west.
    """
    if len(levels) < 2:
        raise ElementNotFoundError(
            f"House needs a base and a top level, document has {len(levels)}"
        )
    dx = to_internal(width, unit) / 2
    dy = to_internal(depth, unit) / 2

    points = [
        Point3D(x=-dx, y=-dy, z=0),
        Point3D(x=dx, y=-dy, z=0),
        Point3D(x=dx, y=dy, z=0),
        Point3D(x=-dx, y=dy, z=0),
        Point3D(x=-dx, y=-dy, z=0),
    ]

    walls: list[Wall] = []
    with doc.transaction(transaction_name):
        for i in range(4):
            line = Line3D.create_bound(points[i], points[i + 1])
            wall = doc.create_wall(line, levels[0], structural=False)
            doc.set_wall_top_level(wall, levels[1])
            walls.append(wall)

    logger.info(
        "Created %d walls (%.3f x %.3f m) on '%s'",
        len(walls), 2 * dx, 2 * dy, levels[0].name,
    )
    return walls


def _first_symbol(doc: Document, category: BuiltInCategory) -> FamilySymbol:
    symbol = doc.collect().of_class(FamilySymbol).of_category(category).first()
    if symbol is None:
        raise ElementNotFoundError(f"No family symbol of category {category.value} loaded")
    return symbol


def _place_in_wall(
    doc: Document,
    symbol: FamilySymbol,
    level: Level,
    wall: Wall,
    height: float,
    transaction_name: str,
) -> FamilyInstance:
    """Place ``symbol`` at the middle of ``wall``, ``height`` above ``level``."""
    wall = doc.get_wall(wall.element_id)
    mid = wall.location.midpoint
    point = Point3D(x=mid.x, y=mid.y, z=level.elevation + height)
    with doc.transaction(transaction_name):
        if not symbol.is_active:
            doc.activate_symbol(symbol)
        return doc.create_family_instance(point, symbol, wall, level)


def create_door(
    doc: Document,
    level: Level,
    wall: Wall,
    transaction_name: str = "Creating of door",
) -> FamilyInstance:
    """Place the first loaded door type at the midpoint of ``wall``."""
    door_type = _first_symbol(doc, BuiltInCategory.DOORS)
    door = _place_in_wall(doc, door_type, level, wall, 0.0, transaction_name)
    logger.info("Placed door '%s' in wall %s", door_type.name, wall.element_id)
    return door


def create_window(
    doc: Document,
    level: Level,
    wall: Wall,
    sill_height: float = 1500,
    unit: DisplayUnit = DisplayUnit.MILLIMETERS,
    transaction_name: str = "Creating of window",
) -> FamilyInstance:
    """Place the first loaded window type at the midpoint of ``wall``,
    ``sill_height`` above the level."""
    window_type = _first_symbol(doc, BuiltInCategory.WINDOWS)
    window = _place_in_wall(
        doc, window_type, level, wall, to_internal(sill_height, unit), transaction_name
    )
    logger.info("Placed window '%s' in wall %s", window_type.name, wall.element_id)
    return window


def find_roof_type(doc: Document, name: str, family_name: str) -> RoofType:
    """Roof type by type name and family name."""
    roof_type = (
        doc.collect()
        .of_class(RoofType)
        .where(lambda t: t.name == name)
        .where(lambda t: t.family_name == family_name)
        .first()
    )
    if roof_type is None:
        raise ElementNotFoundError(f"Roof type '{family_name}: {name}' not found")
    return roof_type


def create_roof(
    doc: Document,
    level: Level,
    walls: list[Wall],
    roof_type_name: str = "Типовой - 400мм",
    roof_family_name: str = "Базовая крыша",
    transaction_name: str = "Create ExtrusionRoof",
) -> ExtrusionRoof:
    """Sweep a gable roof over the four shell walls.

    The gable profile sits on the outer face of the east wall: eaves at
    the wall top on the outer corners, ridge above the wall midpoint,
    raised by half the wall length. The profile is extruded west
    across the whole shell, outer face to outer face.
    """
    if len(walls) < 4:
        raise InvalidOperationError(f"Roof needs 4 shell walls, got {len(walls)}")
    roof_type = find_roof_type(doc, roof_type_name, roof_family_name)
    walls = [doc.get_wall(w.element_id) for w in walls]

    points = [wall.get_end_point(1) for wall in walls]
    base = doc.get_level(walls[0].base_level_id)
    wall_top = base.elevation + walls[0].height
    dt = walls[0].width / 2

    point1 = Point3D(x=points[0].x + dt, y=points[0].y - dt, z=wall_top)
    point2 = Point3D(x=points[1].x + dt, y=points[1].y + dt, z=wall_top)
    mid = points[0].midpoint(points[1])
    high_point = Point3D(
        x=mid.x + dt,
        y=mid.y,
        z=wall_top + points[0].xy.distance_to(points[1].xy) / 2,
    )
    profile = [
        Line3D.create_bound(point1, high_point),
        Line3D.create_bound(high_point, point2),
    ]
    depth = points[0].xy.distance_to(points[3].xy) + dt * 2

    with doc.transaction(transaction_name):
        plane = doc.create_reference_plane(
            point1,
            Point3D(x=point1.x, y=point1.y, z=high_point.z),
            Point3D(x=high_point.x, y=high_point.y, z=point1.z),
            name="Roof Profile",
        )
        roof = doc.create_extrusion_roof(profile, plane, level, roof_type, 0.0, depth)

    logger.info(
        "Created roof '%s' on '%s' (ridge at %.3f m, pitch %.1f°)",
        roof_type.name, level.name, high_point.z, roof.pitch,
    )
    return roof


def generate_house(doc: Document, settings: HouseSettings | None = None) -> HouseElements:
    """Run the full sequence: levels, walls, door, windows, roof.

    Raises whatever the first failing step raises; steps that already
    committed stay in the document.
    """
    settings = settings or HouseSettings()
    house = HouseElements()

    levels = get_levels(doc)
    house.walls = create_walls(
        doc,
        levels,
        settings.width_internal,
        settings.depth_internal,
        unit=DisplayUnit.METERS,
        transaction_name=settings.walls_transaction,
    )
    house.door = create_door(
        doc, levels[0], house.walls[0], transaction_name=settings.door_transaction
    )
    for wall in house.walls[1:4]:
        house.windows.append(
            create_window(
                doc,
                levels[0],
                wall,
                sill_height=settings.window_sill_internal,
                unit=DisplayUnit.METERS,
                transaction_name=settings.window_transaction,
            )
        )
    house.roof = create_roof(
        doc,
        levels[1],
        house.walls,
        roof_type_name=settings.roof_type_name,
        roof_family_name=settings.roof_family_name,
        transaction_name=settings.roof_transaction,
    )
    return house
