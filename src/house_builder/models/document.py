"""The document: owner of every element, with transactions.

All modifications go through the factory methods on ``Document`` and
must happen inside a transaction::

    with doc.transaction("Creating Walls"):
        wall = doc.create_wall(line, level)

A transaction commits when its block exits normally and rolls back
every change made inside it when an exception escapes.
"""

from __future__ import annotations

import copy
import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from house_builder.errors import (
    ElementNotFoundError,
    InvalidOperationError,
    TransactionAlreadyStartedError,
    TransactionError,
    TransactionNotStartedError,
)
from house_builder.models.elements import (
    BuiltInCategory,
    Element,
    ExtrusionRoof,
    FamilyInstance,
    FamilySymbol,
    Level,
    ReferencePlane,
    RoofType,
    Wall,
    WallType,
)
from house_builder.models.geometry import Line3D, Point3D
from house_builder.models.ifc_id import generate_ifc_id

if TYPE_CHECKING:
    from house_builder.queries.collector import ElementCollector

logger = logging.getLogger(__name__)

# Element collections, in the order they are searched and snapshotted.
_ELEMENT_FIELDS = (
    "levels",
    "wall_types",
    "walls",
    "family_symbols",
    "family_instances",
    "roof_types",
    "reference_planes",
    "roofs",
)

# Profile points must lie on the work plane within this distance (meters).
_PLANE_TOLERANCE = 1e-6


class TransactionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    STARTED = "started"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """A named unit of change on a document.

    Use as a context manager, or call ``start``/``commit``/``rollback``
    explicitly. Only one transaction can be open per document.
    """

    def __init__(self, document: Document, name: str):
        self.document = document
        self.name = name
        self.status = TransactionStatus.UNINITIALIZED
        self._snapshot: dict | None = None

    def start(self) -> Transaction:
        if self.status != TransactionStatus.UNINITIALIZED:
            raise TransactionError(f"Transaction '{self.name}' was already started")
        self.document._open(self)
        self._snapshot = self.document._snapshot()
        self.status = TransactionStatus.STARTED
        logger.debug("Transaction '%s' started", self.name)
        return self

    def commit(self) -> None:
        self._require_started()
        self.document._close(self)
        self.document._push_undo(self.name, self._snapshot)
        self.status = TransactionStatus.COMMITTED
        logger.debug("Transaction '%s' committed", self.name)

    def rollback(self) -> None:
        self._require_started()
        self.document._restore(self._snapshot)
        self.document._close(self)
        self.status = TransactionStatus.ROLLED_BACK
        logger.debug("Transaction '%s' rolled back", self.name)

    def _require_started(self) -> None:
        if self.status != TransactionStatus.STARTED:
            raise TransactionError(
                f"Transaction '{self.name}' is not running (status: {self.status.value})"
            )

    def __enter__(self) -> Transaction:
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.status != TransactionStatus.STARTED:
            return False
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False


class Document(BaseModel):
    """An open BIM document.

    Holds levels, types and placed elements. Lengths are in meters.
    """

    document_id: str = Field(default_factory=generate_ifc_id, description="IFC GlobalId")
    title: str = Field(default="Untitled", description="Document title")
    units: str = Field(
        default="meters",
        description="Coordinate unit system. Only 'meters' supported for now.",
    )
    default_wall_type_id: str | None = None
    default_unconnected_height: float = Field(
        default=3.0, gt=0, description="Height of new walls without a top constraint"
    )
    undo_limit: int = Field(
        default=100, ge=0, description="Committed transactions kept for undo"
    )
    levels: list[Level] = Field(default_factory=list)
    wall_types: list[WallType] = Field(default_factory=list)
    walls: list[Wall] = Field(default_factory=list)
    family_symbols: list[FamilySymbol] = Field(default_factory=list)
    family_instances: list[FamilyInstance] = Field(default_factory=list)
    roof_types: list[RoofType] = Field(default_factory=list)
    reference_planes: list[ReferencePlane] = Field(default_factory=list)
    roofs: list[ExtrusionRoof] = Field(default_factory=list)

    _active: Transaction | None = PrivateAttr(default=None)
    _undo_stack: list = PrivateAttr(default_factory=list)
    _committed: list = PrivateAttr(default_factory=list)

    @field_validator("units")
    @classmethod
    def only_meters(cls, v: str) -> str:
        if v != "meters":
            raise ValueError("Only 'meters' unit system is currently supported")
        return v

    # ── Template ──────────────────────────────────────────────────────

    @classmethod
    def from_template(
        cls,
        title: str = "Untitled",
        level_height: float = 4.0,
    ) -> Document:
        """A starting document: two levels plus the stock wall, door,
        window and roof types."""
        wall_type = WallType(name="Generic - 200mm", width=0.2)
        return cls(
            title=title,
            default_wall_type_id=wall_type.element_id,
            levels=[
                Level(name="Level 1", elevation=0.0),
                Level(name="Level 2", elevation=level_height),
            ],
            wall_types=[wall_type, WallType(name="Generic - 300mm", width=0.3)],
            family_symbols=[
                FamilySymbol(
                    category=BuiltInCategory.DOORS,
                    family_name="M_Single-Flush",
                    name="0915 x 2134mm",
                    width=0.915,
                    height=2.134,
                ),
                FamilySymbol(
                    category=BuiltInCategory.WINDOWS,
                    family_name="M_Fixed",
                    name="0915 x 1220mm",
                    width=0.915,
                    height=1.22,
                ),
            ],
            roof_types=[
                RoofType(family_name="Базовая крыша", name="Типовой - 400мм", thickness=0.4),
                RoofType(family_name="Basic Roof", name="Generic - 125mm", thickness=0.125),
            ],
        )

    # ── File I/O ──────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: str | Path) -> Document:
        """Load a document from a JSON file."""
        path = Path(path)
        return cls.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, path: str | Path) -> Path:
        """Save the document to a JSON file. Creates parent dirs if needed."""
        if self._active is not None:
            raise TransactionError(
                f"Cannot save while transaction '{self._active.name}' is open"
            )
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    # ── Transactions ──────────────────────────────────────────────────

    def transaction(self, name: str) -> Transaction:
        """New (not yet started) transaction on this document."""
        return Transaction(self, name)

    @property
    def is_modifiable(self) -> bool:
        return self._active is not None

    @property
    def transaction_log(self) -> list[str]:
        """Names of committed transactions, oldest first."""
        return list(self._committed)

    def undo(self) -> str:
        """Revert the most recent committed transaction. Returns its name."""
        if self._active is not None:
            raise TransactionAlreadyStartedError(
                f"Cannot undo while transaction '{self._active.name}' is open"
            )
        if not self._undo_stack:
            raise TransactionError("Nothing to undo")
        name, snapshot = self._undo_stack.pop()
        self._committed.pop()
        self._restore(snapshot)
        logger.debug("Undid transaction '%s'", name)
        return name

    def _push_undo(self, name: str, snapshot: dict) -> None:
        self._committed.append(name)
        self._undo_stack.append((name, snapshot))
        excess = len(self._undo_stack) - self.undo_limit
        if excess > 0:
            del self._undo_stack[:excess]

    def _open(self, transaction: Transaction) -> None:
        if self._active is not None:
            raise TransactionAlreadyStartedError(
                f"Cannot start '{transaction.name}': "
                f"transaction '{self._active.name}' is still open"
            )
        self._active = transaction

    def _close(self, transaction: Transaction) -> None:
        if self._active is transaction:
            self._active = None

    def _snapshot(self) -> dict:
        return {f: copy.deepcopy(getattr(self, f)) for f in _ELEMENT_FIELDS}

    def _restore(self, snapshot: dict) -> None:
        for f, value in snapshot.items():
            setattr(self, f, copy.deepcopy(value))

    def _require_transaction(self, operation: str) -> None:
        if self._active is None:
            raise TransactionNotStartedError(
                f"Cannot {operation}: no transaction is open on '{self.title}'"
            )

    # ── Lookups ───────────────────────────────────────────────────────

    def iter_elements(self) -> Iterator[Element]:
        """All elements in collection order."""
        for f in _ELEMENT_FIELDS:
            yield from getattr(self, f)

    def collect(self) -> ElementCollector:
        """Start a filtered query over all elements."""
        from house_builder.queries.collector import ElementCollector

        return ElementCollector(self)

    def get_element(self, element_id: str) -> Element | None:
        """Find any element by GlobalId."""
        return next((e for e in self.iter_elements() if e.element_id == element_id), None)

    def _require(self, element_id: str | None, kind: type[Element]) -> Element:
        element = self.get_element(element_id) if element_id else None
        if not isinstance(element, kind):
            raise ElementNotFoundError(
                f"{kind.__name__} '{element_id}' not found in '{self.title}'"
            )
        return element

    def get_level(self, level_id: str) -> Level:
        return self._require(level_id, Level)

    def get_level_by_name(self, name: str) -> Level | None:
        """Find a level by name (case-insensitive)."""
        return next((lv for lv in self.levels if lv.name.lower() == name.lower()), None)

    def get_wall(self, wall_id: str) -> Wall:
        return self._require(wall_id, Wall)

    def get_symbol(self, symbol_id: str) -> FamilySymbol:
        return self._require(symbol_id, FamilySymbol)

    def get_roof_type(self, roof_type_id: str) -> RoofType:
        return self._require(roof_type_id, RoofType)

    def hosted_instances(self, wall: Wall) -> list[FamilyInstance]:
        """Doors and windows hosted by ``wall``."""
        return [i for i in self.family_instances if i.host_wall_id == wall.element_id]

    def elements_on_level(self, level: Level) -> list[Element]:
        """Walls, instances and roofs placed on ``level``."""
        return [
            *[w for w in self.walls if w.base_level_id == level.element_id],
            *[i for i in self.family_instances if i.level_id == level.element_id],
            *[r for r in self.roofs if r.level_id == level.element_id],
        ]

    # ── Create / modify elements ──────────────────────────────────────

    def create_level(self, name: str, elevation: float) -> Level:
        """Add a level. Names must be unique."""
        self._require_transaction("create level")
        if self.get_level_by_name(name) is not None:
            raise InvalidOperationError(f"Level '{name}' already exists")
        level = Level(name=name, elevation=elevation)
        self.levels.append(level)
        return level

    def create_wall(
        self,
        line: Line3D,
        level: Level,
        structural: bool = False,
        wall_type: WallType | None = None,
    ) -> Wall:
        """Create a wall of the default (or given) type along ``line``."""
        self._require_transaction("create wall")
        level = self.get_level(level.element_id)
        if wall_type is None:
            wall_type = self._require(self.default_wall_type_id, WallType)
        if abs(line.start.z - line.end.z) > _PLANE_TOLERANCE:
            raise InvalidOperationError("Wall location line must be horizontal")
        wall = Wall(
            wall_type_id=wall_type.element_id,
            location=line,
            base_level_id=level.element_id,
            height=self.default_unconnected_height,
            width=wall_type.width,
            structural=structural,
        )
        self.walls.append(wall)
        return wall

    def set_wall_top_level(self, wall: Wall, level: Level) -> Wall:
        """Constrain the wall top to ``level``; height follows the levels."""
        self._require_transaction("set wall top constraint")
        wall = self.get_wall(wall.element_id)
        top = self.get_level(level.element_id)
        base = self.get_level(wall.base_level_id)
        height = top.elevation - base.elevation
        if height <= 0:
            raise InvalidOperationError(
                f"Top level '{top.name}' ({top.elevation}m) is not above "
                f"base level '{base.name}' ({base.elevation}m)"
            )
        wall.top_level_id = top.element_id
        wall.height = height
        return wall

    def activate_symbol(self, symbol: FamilySymbol) -> None:
        self._require_transaction("activate symbol")
        self.get_symbol(symbol.element_id).is_active = True

    def create_family_instance(
        self,
        point: Point3D,
        symbol: FamilySymbol,
        host: Wall,
        level: Level,
    ) -> FamilyInstance:
        """Place a door or window at ``point`` in ``host``.

        ``point`` is absolute; its height above ``level`` becomes the
        instance's sill height.
        """
        self._require_transaction("create family instance")
        if symbol is None:
            raise ElementNotFoundError("No family symbol given")
        symbol = self.get_symbol(symbol.element_id)
        host = self.get_wall(host.element_id)
        level = self.get_level(level.element_id)
        if not symbol.is_active:
            raise InvalidOperationError(
                f"Family symbol '{symbol.family_name}: {symbol.name}' is not active"
            )
        if not host.hosts_point(point):
            raise InvalidOperationError(
                f"Point ({point.x:.3f}, {point.y:.3f}) is not on host wall '{host.element_id}'"
            )
        sill_height = round(point.z - level.elevation, 9)
        if sill_height < 0:
            raise InvalidOperationError(
                f"Insertion point is below level '{level.name}' ({level.elevation}m)"
            )
        instance = FamilyInstance(
            name=symbol.name,
            symbol_id=symbol.element_id,
            category=symbol.category,
            host_wall_id=host.element_id,
            level_id=level.element_id,
            location=point,
            sill_height=sill_height,
        )
        self.family_instances.append(instance)
        return instance

    def create_reference_plane(
        self,
        bubble_end: Point3D,
        free_end: Point3D,
        cut_vector: Point3D,
        name: str = "",
    ) -> ReferencePlane:
        """Create a reference plane through three non-collinear points."""
        self._require_transaction("create reference plane")
        try:
            plane = ReferencePlane(
                name=name, bubble_end=bubble_end, free_end=free_end, cut_vector=cut_vector
            )
        except ValueError as e:
            raise InvalidOperationError(str(e)) from e
        self.reference_planes.append(plane)
        return plane

    def create_extrusion_roof(
        self,
        profile: list[Line3D],
        plane: ReferencePlane,
        level: Level,
        roof_type: RoofType | None,
        extrusion_start: float,
        extrusion_end: float,
    ) -> ExtrusionRoof:
        """Create a roof by sweeping ``profile`` along the plane normal."""
        self._require_transaction("create extrusion roof")
        if roof_type is None:
            raise ElementNotFoundError("No roof type given")
        roof_type = self.get_roof_type(roof_type.element_id)
        plane = self._require(plane.element_id, ReferencePlane)
        level = self.get_level(level.element_id)
        if not profile:
            raise InvalidOperationError("Roof profile is empty")
        for prev, line in zip(profile, profile[1:]):
            if not prev.end.is_almost_equal_to(line.start):
                raise InvalidOperationError("Roof profile lines must form a connected chain")
        for line in profile:
            for point in (line.start, line.end):
                if abs(plane.signed_distance(point)) > _PLANE_TOLERANCE:
                    raise InvalidOperationError(
                        "Roof profile must lie in the reference plane"
                    )
        if extrusion_end <= extrusion_start:
            raise InvalidOperationError("Roof extrusion end must be beyond extrusion start")
        roof = ExtrusionRoof(
            name=roof_type.name,
            roof_type_id=roof_type.element_id,
            level_id=level.element_id,
            reference_plane_id=plane.element_id,
            profile=list(profile),
            extrusion_direction=Point3D.from_array(plane.normal),
            extrusion_start=extrusion_start,
            extrusion_end=extrusion_end,
            thickness=roof_type.thickness,
        )
        self.roofs.append(roof)
        return roof

    # ── Query helpers ─────────────────────────────────────────────────

    def summary(self) -> str:
        """Human-readable summary of the document."""
        lines = [f"🏗️ {self.title}"]
        lines.append(f"   Levels: {len(self.levels)}")
        for level in sorted(self.levels, key=lambda lv: lv.elevation):
            elements = self.elements_on_level(level)
            walls = sum(1 for e in elements if isinstance(e, Wall))
            doors = sum(
                1 for e in elements
                if isinstance(e, FamilyInstance) and e.category == BuiltInCategory.DOORS
            )
            windows = sum(
                1 for e in elements
                if isinstance(e, FamilyInstance) and e.category == BuiltInCategory.WINDOWS
            )
            roofs = sum(1 for e in elements if isinstance(e, ExtrusionRoof))
            lines.append(f"   📐 {level.name} (elev {level.elevation}m)")
            lines.append(
                f"      Walls: {walls}, Doors: {doors}, Windows: {windows}, Roofs: {roofs}"
            )
        return "\n".join(lines)

    # ── Export shortcuts ──────────────────────────────────────────────

    def export_ifc(self, path: str | Path) -> Path:
        """Export the document to IFC. Returns the output path."""
        from house_builder.export.ifc import IFCExporter

        return IFCExporter(self).export(path)

    def render_floorplan(self, level_name: str, path: str | Path, **kwargs) -> Path:
        """Render a 2D floor plan of a level. Returns the output path."""
        from house_builder.export.floorplan import render_floorplan

        level = self.get_level_by_name(level_name)
        if level is None:
            available = [lv.name for lv in self.levels]
            raise ElementNotFoundError(
                f"Level '{level_name}' not found. Available: {available}"
            )
        return render_floorplan(self, level, path, **kwargs)

    def validate_elements(self) -> list:
        """Run the structural validators. Returns list of errors."""
        from house_builder.validators.structural import validate_document

        return validate_document(self)
