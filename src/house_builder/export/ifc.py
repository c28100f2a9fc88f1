"""IFC export via ifcopenshell.

Converts a Document to IFC 2x3 so the generated shell opens in any
BIM application. Focuses on correct geometry and proper IFC hierarchy.
"""

from __future__ import annotations

import logging
from pathlib import Path

import ifcopenshell
import numpy as np

from house_builder.models.document import Document
from house_builder.models.elements import (
    BuiltInCategory,
    ExtrusionRoof,
    FamilyInstance,
    FamilySymbol,
    Level,
    Wall,
)
from house_builder.models.ifc_id import generate_ifc_id

logger = logging.getLogger(__name__)

_UP = np.array([0.0, 0.0, 1.0])


def _new_guid() -> str:
    """Generate a new IFC GlobalId for IFC-only entities (relationships, openings)."""
    return generate_ifc_id()


def _wall_direction(wall: Wall) -> tuple[float, float]:
    """Unit direction vector of a wall in plan."""
    dx = wall.end.x - wall.start.x
    dy = wall.end.y - wall.start.y
    length = wall.length
    return (dx / length, dy / length)


def _wall_normal(wall: Wall) -> tuple[float, float]:
    """Left-hand normal of wall direction (for thickness offset)."""
    dx, dy = _wall_direction(wall)
    return (-dy, dx)


class IFCExporter:
    """Export a Document to an IFC file."""

    def __init__(self, document: Document):
        self.document = document
        self.file = ifcopenshell.file(schema="IFC2X3")
        self._setup_header()
        self._context: ifcopenshell.entity_instance | None = None
        self._body_context: ifcopenshell.entity_instance | None = None

    def _setup_header(self) -> None:
        """Set IFC file header metadata."""
        file_name = self.file.header.file_name
        file_name.name = f"{self.document.title}.ifc"
        file_name.author = ("House Builder",)
        file_name.organization = ("",)

    def export(self, output_path: str | Path) -> Path:
        """Export the document to an IFC file. Returns the output path."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        self._create_contexts()

        # IFC hierarchy: Project → Site → Building → Storeys
        ifc_project = self._create_project()
        ifc_site = self._create_site(ifc_project)
        ifc_building = self._create_building(ifc_site)

        for level in sorted(self.document.levels, key=lambda lv: lv.elevation):
            self._export_level(level, ifc_building)

        self.file.write(str(output_path))
        logger.info("Exported '%s' to %s", self.document.title, output_path)
        return output_path

    def _create_contexts(self) -> None:
        """Create geometric representation contexts."""
        self._context = self.file.createIfcGeometricRepresentationContext(
            ContextIdentifier="3D",
            ContextType="Model",
            CoordinateSpaceDimension=3,
            Precision=1e-5,
            WorldCoordinateSystem=self.file.createIfcAxis2Placement3D(
                Location=self.file.createIfcCartesianPoint((0.0, 0.0, 0.0)),
            ),
            TrueNorth=self.file.createIfcDirection((0.0, 1.0)),
        )

        self._body_context = self.file.createIfcGeometricRepresentationSubContext(
            ContextIdentifier="Body",
            ContextType="Model",
            ParentContext=self._context,
            TargetView="MODEL_VIEW",
        )

    def _create_project(self) -> ifcopenshell.entity_instance:
        """Create IfcProject with SI units."""
        units = [
            self.file.createIfcSIUnit(UnitType="LENGTHUNIT", Name="METRE"),
            self.file.createIfcSIUnit(UnitType="AREAUNIT", Name="SQUARE_METRE"),
            self.file.createIfcSIUnit(UnitType="VOLUMEUNIT", Name="CUBIC_METRE"),
            self.file.createIfcSIUnit(UnitType="PLANEANGLEUNIT", Name="RADIAN"),
        ]
        return self.file.createIfcProject(
            GlobalId=self.document.document_id,
            Name=self.document.title,
            UnitsInContext=self.file.createIfcUnitAssignment(Units=units),
            RepresentationContexts=[self._context],
        )

    def _create_site(
        self, project: ifcopenshell.entity_instance
    ) -> ifcopenshell.entity_instance:
        """Create IfcSite and attach to project."""
        site = self.file.createIfcSite(
            GlobalId=_new_guid(),
            Name="Default Site",
            CompositionType="ELEMENT",
        )
        self.file.createIfcRelAggregates(
            GlobalId=_new_guid(),
            RelatingObject=project,
            RelatedObjects=[site],
        )
        return site

    def _create_building(
        self, site: ifcopenshell.entity_instance
    ) -> ifcopenshell.entity_instance:
        """Create IfcBuilding and attach to site."""
        ifc_building = self.file.createIfcBuilding(
            GlobalId=_new_guid(),
            Name=self.document.title,
            CompositionType="ELEMENT",
        )
        self.file.createIfcRelAggregates(
            GlobalId=_new_guid(),
            RelatingObject=site,
            RelatedObjects=[ifc_building],
        )
        return ifc_building

    def _export_level(
        self,
        level: Level,
        ifc_building: ifcopenshell.entity_instance,
    ) -> None:
        """Export a level as a storey with the elements placed on it."""
        ifc_storey = self.file.createIfcBuildingStorey(
            GlobalId=level.element_id,
            Name=level.name,
            CompositionType="ELEMENT",
            Elevation=level.elevation,
        )
        self.file.createIfcRelAggregates(
            GlobalId=_new_guid(),
            RelatingObject=ifc_building,
            RelatedObjects=[ifc_storey],
        )

        products: list[ifcopenshell.entity_instance] = []

        wall_map: dict[str, ifcopenshell.entity_instance] = {}
        for wall in self.document.walls:
            if wall.base_level_id != level.element_id:
                continue
            ifc_wall = self._create_wall(wall, level.elevation)
            wall_map[wall.element_id] = ifc_wall
            products.append(ifc_wall)

        for roof in self.document.roofs:
            if roof.level_id == level.element_id:
                products.append(self._create_roof(roof))

        # IfcOpeningElements are NOT added to spatial containment;
        # they're linked to their host wall via IfcRelVoidsElement only.
        for inst in self.document.family_instances:
            if inst.level_id != level.element_id:
                continue
            wall = self.document.get_wall(inst.host_wall_id)
            symbol = self.document.get_symbol(inst.symbol_id)
            z = level.elevation + inst.sill_height
            ifc_filling = self._create_filling(inst, symbol, wall, z)
            ifc_wall_host = wall_map.get(inst.host_wall_id)
            if ifc_wall_host:
                opening = self._create_opening(inst, symbol, wall, z)
                self.file.createIfcRelVoidsElement(
                    GlobalId=_new_guid(),
                    RelatingBuildingElement=ifc_wall_host,
                    RelatedOpeningElement=opening,
                )
                self.file.createIfcRelFillsElement(
                    GlobalId=_new_guid(),
                    RelatingOpeningElement=opening,
                    RelatedBuildingElement=ifc_filling,
                )
            products.append(ifc_filling)

        if products:
            self.file.createIfcRelContainedInSpatialStructure(
                GlobalId=_new_guid(),
                RelatingStructure=ifc_storey,
                RelatedElements=products,
            )

    def _create_wall(
        self, wall: Wall, elevation: float
    ) -> ifcopenshell.entity_instance:
        """Create an IfcWallStandardCase with extruded geometry."""
        dx, dy = _wall_direction(wall)
        nx, ny = _wall_normal(wall)

        # Wall placement at start point, offset by half width along normal
        ox = wall.start.x - nx * wall.width / 2
        oy = wall.start.y - ny * wall.width / 2

        placement = self._create_local_placement(
            origin=(ox, oy, elevation),
            x_dir=(dx, dy, 0.0),
        )
        product_shape = self._box_shape(wall.length, wall.width, wall.height)

        ifc_wall = self.file.createIfcWallStandardCase(
            GlobalId=wall.element_id,
            Name=wall.name or "Wall",
            ObjectPlacement=placement,
            Representation=product_shape,
        )

        # Pset_WallCommon: IFC standard property set
        props = [
            self.file.createIfcPropertySingleValue(
                Name="LoadBearing",
                NominalValue=self.file.create_entity("IfcBoolean", wall.structural),
            ),
            self.file.createIfcPropertySingleValue(
                Name="IsExternal",
                NominalValue=self.file.create_entity("IfcBoolean", True),
            ),
        ]
        pset = self.file.createIfcPropertySet(
            GlobalId=_new_guid(),
            Name="Pset_WallCommon",
            HasProperties=props,
        )
        self.file.createIfcRelDefinesByProperties(
            GlobalId=_new_guid(),
            RelatedObjects=[ifc_wall],
            RelatingPropertyDefinition=pset,
        )
        return ifc_wall

    def _opening_placement(
        self, inst: FamilyInstance, width: float, wall: Wall, z: float, depth: float
    ) -> ifcopenshell.entity_instance:
        """Placement at the opening's lower corner on the wall's outer face."""
        dx, dy = _wall_direction(wall)
        nx, ny = _wall_normal(wall)
        offset = wall.distance_along(inst.location) - width / 2
        ox = wall.start.x + dx * offset - nx * depth / 2
        oy = wall.start.y + dy * offset - ny * depth / 2
        return self._create_local_placement(origin=(ox, oy, z), x_dir=(dx, dy, 0.0))

    def _create_filling(
        self, inst: FamilyInstance, symbol: FamilySymbol, wall: Wall, z: float
    ) -> ifcopenshell.entity_instance:
        """Create an IfcDoor or IfcWindow box placed in the host wall."""
        placement = self._opening_placement(inst, symbol.width, wall, z, wall.width)
        product_shape = self._box_shape(symbol.width, wall.width, symbol.height)
        factory = (
            self.file.createIfcDoor
            if inst.category == BuiltInCategory.DOORS
            else self.file.createIfcWindow
        )
        return factory(
            GlobalId=inst.element_id,
            Name=inst.name or symbol.family_name,
            ObjectType=f"{symbol.family_name}: {symbol.name}",
            ObjectPlacement=placement,
            Representation=product_shape,
            OverallHeight=symbol.height,
            OverallWidth=symbol.width,
        )

    def _create_opening(
        self, inst: FamilyInstance, symbol: FamilySymbol, wall: Wall, z: float
    ) -> ifcopenshell.entity_instance:
        """Create the IfcOpeningElement cutting the host wall."""
        # Opening is slightly thicker than the wall for a clean boolean
        depth = wall.width + 0.01
        placement = self._opening_placement(inst, symbol.width, wall, z, depth)
        product_shape = self._box_shape(symbol.width, depth, symbol.height)
        is_door = inst.category == BuiltInCategory.DOORS
        return self.file.createIfcOpeningElement(
            GlobalId=_new_guid(),
            Name="Door Opening" if is_door else "Window Opening",
            ObjectPlacement=placement,
            Representation=product_shape,
        )

    def _create_roof(self, roof: ExtrusionRoof) -> ifcopenshell.entity_instance:
        """Create an IfcRoof with the gable profile swept across the shell.

        The profile is drawn in a local frame on the work plane: X runs
        horizontally across the plane, Y is up, Z is the sweep direction.
        The roof's underside follows the profile lines; its thickness is
        added vertically.
        """
        n = roof.extrusion_direction.to_array()
        x_axis = np.cross(_UP, n)
        x_axis = x_axis / np.linalg.norm(x_axis)
        points = roof.profile_points
        origin = points[0].to_array() + n * roof.extrusion_start

        placement = self._create_local_placement(
            origin=tuple(float(c) for c in origin),
            z_dir=tuple(float(c) for c in n),
            x_dir=tuple(float(c) for c in x_axis),
        )

        under = [
            (float(np.dot(p.to_array() - origin, x_axis)), p.z - float(origin[2]))
            for p in points
        ]
        lift = roof.thickness / np.cos(np.radians(roof.pitch))
        over = [(u, v + float(lift)) for u, v in reversed(under)]
        ifc_points = [self.file.createIfcCartesianPoint(uv) for uv in under + over]
        ifc_points.append(ifc_points[0])

        profile = self.file.createIfcArbitraryClosedProfileDef(
            ProfileType="AREA",
            OuterCurve=self.file.createIfcPolyline(Points=ifc_points),
        )
        solid = self.file.createIfcExtrudedAreaSolid(
            SweptArea=profile,
            Position=self.file.createIfcAxis2Placement3D(
                Location=self.file.createIfcCartesianPoint((0.0, 0.0, 0.0)),
            ),
            ExtrudedDirection=self.file.createIfcDirection((0.0, 0.0, 1.0)),
            Depth=roof.depth,
        )
        shape = self.file.createIfcShapeRepresentation(
            ContextOfItems=self._body_context,
            RepresentationIdentifier="Body",
            RepresentationType="SweptSolid",
            Items=[solid],
        )
        return self.file.createIfcRoof(
            GlobalId=roof.element_id,
            Name=roof.name or "Roof",
            ObjectPlacement=placement,
            Representation=self.file.createIfcProductDefinitionShape(
                Representations=[shape],
            ),
            ShapeType="GABLE_ROOF" if len(roof.profile) == 2 else "NOTDEFINED",
        )

    def _box_shape(
        self, length: float, depth: float, height: float
    ) -> ifcopenshell.entity_instance:
        """Rectangle (length x depth) from the local origin, extruded up."""
        profile = self.file.createIfcRectangleProfileDef(
            ProfileType="AREA",
            XDim=length,
            YDim=depth,
            Position=self.file.createIfcAxis2Placement2D(
                Location=self.file.createIfcCartesianPoint((length / 2, depth / 2)),
            ),
        )
        solid = self.file.createIfcExtrudedAreaSolid(
            SweptArea=profile,
            Position=self.file.createIfcAxis2Placement3D(
                Location=self.file.createIfcCartesianPoint((0.0, 0.0, 0.0)),
            ),
            ExtrudedDirection=self.file.createIfcDirection((0.0, 0.0, 1.0)),
            Depth=height,
        )
        shape = self.file.createIfcShapeRepresentation(
            ContextOfItems=self._body_context,
            RepresentationIdentifier="Body",
            RepresentationType="SweptSolid",
            Items=[solid],
        )
        return self.file.createIfcProductDefinitionShape(Representations=[shape])

    def _create_local_placement(
        self,
        origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
        z_dir: tuple[float, float, float] = (0.0, 0.0, 1.0),
        x_dir: tuple[float, float, float] = (1.0, 0.0, 0.0),
    ) -> ifcopenshell.entity_instance:
        """Create an IfcLocalPlacement."""
        axis2 = self.file.createIfcAxis2Placement3D(
            Location=self.file.createIfcCartesianPoint(origin),
            Axis=self.file.createIfcDirection(z_dir),
            RefDirection=self.file.createIfcDirection(x_dir),
        )
        return self.file.createIfcLocalPlacement(
            RelativePlacement=axis2,
        )
