"""Document and element models."""

from house_builder.models.ifc_id import generate_ifc_id
from house_builder.models.geometry import Line3D, Point2D, Point3D, Polygon2D
from house_builder.models.units import DisplayUnit, from_internal, to_internal
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
from house_builder.models.document import Document, Transaction, TransactionStatus

__all__ = [
    "generate_ifc_id",
    "Line3D",
    "Point2D",
    "Point3D",
    "Polygon2D",
    "DisplayUnit",
    "from_internal",
    "to_internal",
    "BuiltInCategory",
    "Element",
    "ExtrusionRoof",
    "FamilyInstance",
    "FamilySymbol",
    "Level",
    "ReferencePlane",
    "RoofType",
    "Wall",
    "WallType",
    "Document",
    "Transaction",
    "TransactionStatus",
]
