"""Cross-element structural validation.

Validates relationships between elements that the Pydantic model
validators can't catch on their own (e.g., an opening fits in its host
wall, walls meet at their ends, a roof points at a loaded type).
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass

from house_builder.errors import ElementNotFoundError
from house_builder.models.document import Document
from house_builder.models.elements import FamilyInstance, Wall


@dataclass
class ValidationError:
    """A single validation issue."""

    severity: str  # "error" | "warning"
    element_type: str
    element_id: str
    message: str


def validate_document(doc: Document) -> list[ValidationError]:
    """Validate all elements of a document for structural consistency."""
    errors: list[ValidationError] = []
    errors.extend(_check_walls(doc))
    errors.extend(_check_wall_connections(doc))
    errors.extend(_check_instances(doc))
    errors.extend(_check_overlapping_openings(doc))
    errors.extend(_check_openings_cross_walls(doc))
    errors.extend(_check_roofs(doc))
    return errors


def _exists(element_id: str | None, getter) -> bool:
    if not element_id:
        return False
    try:
        getter(element_id)
    except ElementNotFoundError:
        return False
    return True


def _check_walls(doc: Document) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for wall in doc.walls:
        if not _exists(wall.base_level_id, doc.get_level):
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Wall",
                    element_id=wall.element_id,
                    message=f"Wall references non-existent base level {wall.base_level_id}",
                )
            )
            continue
        if wall.top_level_id is None:
            continue
        if not _exists(wall.top_level_id, doc.get_level):
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Wall",
                    element_id=wall.element_id,
                    message=f"Wall references non-existent top level {wall.top_level_id}",
                )
            )
            continue
        expected = (
            doc.get_level(wall.top_level_id).elevation
            - doc.get_level(wall.base_level_id).elevation
        )
        if not math.isclose(wall.height, expected, abs_tol=1e-6):
            errors.append(
                ValidationError(
                    severity="warning",
                    element_type="Wall",
                    element_id=wall.element_id,
                    message=(
                        f"Wall height {wall.height:.3f}m does not match its "
                        f"level constraint ({expected:.3f}m)"
                    ),
                )
            )
    return errors


def _check_wall_connections(doc: Document, tol: float = 0.01) -> list[ValidationError]:
    """Every wall end should meet another wall's end on the same level."""
    errors: list[ValidationError] = []
    for wall in doc.walls:
        others = [
            w for w in doc.walls
            if w.element_id != wall.element_id and w.base_level_id == wall.base_level_id
        ]
        for label, point in (("start", wall.start), ("end", wall.end)):
            connected = any(
                point.xy.distance_to(other.start.xy) <= tol
                or point.xy.distance_to(other.end.xy) <= tol
                for other in others
            )
            if not connected:
                errors.append(
                    ValidationError(
                        severity="warning",
                        element_type="Wall",
                        element_id=wall.element_id,
                        message=(
                            f"Wall {label} ({point.x:.2f},{point.y:.2f}) "
                            f"is not connected to another wall"
                        ),
                    )
                )
    return errors


def _opening_span(instance: FamilyInstance, wall: Wall, width: float) -> tuple[float, float]:
    """Start and end offset of an opening along its host wall."""
    center = wall.distance_along(instance.location)
    return center - width / 2, center + width / 2


def _check_instances(doc: Document) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for inst in doc.family_instances:
        kind = inst.category.name.title().rstrip("s")
        if not _exists(inst.host_wall_id, doc.get_wall):
            errors.append(
                ValidationError(
                    severity="error",
                    element_type=kind,
                    element_id=inst.element_id,
                    message=f"{kind} references non-existent wall {inst.host_wall_id}",
                )
            )
            continue
        if not _exists(inst.symbol_id, doc.get_symbol):
            errors.append(
                ValidationError(
                    severity="error",
                    element_type=kind,
                    element_id=inst.element_id,
                    message=f"{kind} references non-existent family symbol {inst.symbol_id}",
                )
            )
            continue
        if not _exists(inst.level_id, doc.get_level):
            errors.append(
                ValidationError(
                    severity="error",
                    element_type=kind,
                    element_id=inst.element_id,
                    message=f"{kind} references non-existent level {inst.level_id}",
                )
            )
            continue

        wall = doc.get_wall(inst.host_wall_id)
        symbol = doc.get_symbol(inst.symbol_id)
        start, end = _opening_span(inst, wall, symbol.width)
        if start < -1e-6 or end > wall.length + 1e-6:
            errors.append(
                ValidationError(
                    severity="error",
                    element_type=kind,
                    element_id=inst.element_id,
                    message=(
                        f"{kind} extends past wall end "
                        f"({start:.2f}-{end:.2f} on wall length {wall.length:.2f})"
                    ),
                )
            )

        if not _exists(wall.base_level_id, doc.get_level):
            continue  # reported by _check_walls
        level = doc.get_level(inst.level_id)
        base = doc.get_level(wall.base_level_id)
        top = level.elevation + inst.sill_height + symbol.height
        wall_top = base.elevation + wall.height
        if top > wall_top + 1e-6:
            errors.append(
                ValidationError(
                    severity="error",
                    element_type=kind,
                    element_id=inst.element_id,
                    message=(
                        f"{kind} top ({top:.2f}m) exceeds wall top ({wall_top:.2f}m)"
                    ),
                )
            )
    return errors


def _check_overlapping_openings(doc: Document) -> list[ValidationError]:
    """Doors and windows hosted by the same wall must not overlap."""
    errors: list[ValidationError] = []
    by_wall: dict[str, list[FamilyInstance]] = defaultdict(list)
    for inst in doc.family_instances:
        by_wall[inst.host_wall_id].append(inst)

    for wid, hosted in by_wall.items():
        if len(hosted) < 2 or not _exists(wid, doc.get_wall):
            continue
        wall = doc.get_wall(wid)
        spans = []
        for inst in hosted:
            if not _exists(inst.symbol_id, doc.get_symbol):
                continue
            symbol = doc.get_symbol(inst.symbol_id)
            low = inst.sill_height
            spans.append((inst, *_opening_span(inst, wall, symbol.width), low, low + symbol.height))
        for i, (a, s1, e1, b1, t1) in enumerate(spans):
            for b, s2, e2, b2, t2 in spans[i + 1 :]:
                overlap = min(e1, e2) - max(s1, s2)
                vertical = min(t1, t2) - max(b1, b2)
                if overlap > 0.01 and vertical > 0.01:  # 1cm tolerance
                    errors.append(
                        ValidationError(
                            severity="error",
                            element_type=a.category.name.title().rstrip("s"),
                            element_id=a.element_id,
                            message=(
                                f"'{a.name}' overlaps with '{b.name}' by "
                                f"{overlap:.2f}m on wall {wid} "
                                f"({s1:.2f}-{e1:.2f} vs {s2:.2f}-{e2:.2f})"
                            ),
                        )
                    )
    return errors


def _point_on_segment(
    px: float,
    py: float,
    sx: float,
    sy: float,
    ex: float,
    ey: float,
    tol: float = 0.05,
) -> bool:
    """Check if point (px, py) lies on segment (sx, sy)-(ex, ey) within tolerance."""
    min_x, max_x = min(sx, ex) - tol, max(sx, ex) + tol
    min_y, max_y = min(sy, ey) - tol, max(sy, ey) + tol
    if not (min_x <= px <= max_x and min_y <= py <= max_y):
        return False
    dx, dy = ex - sx, ey - sy
    length = math.sqrt(dx * dx + dy * dy)
    if length < 1e-6:
        return math.sqrt((px - sx) ** 2 + (py - sy) ** 2) < tol
    dist = abs(dy * px - dx * py + ex * sy - ey * sx) / length
    return dist < tol


def _check_openings_cross_walls(doc: Document) -> list[ValidationError]:
    """Check that door/window openings don't cross through other walls.

    An opening cuts its host wall. If another wall's end falls inside
    that opening, the door or window physically can't exist there.
    """
    errors: list[ValidationError] = []
    for inst in doc.family_instances:
        if not (
            _exists(inst.host_wall_id, doc.get_wall)
            and _exists(inst.symbol_id, doc.get_symbol)
        ):
            continue
        host = doc.get_wall(inst.host_wall_id)
        width = doc.get_symbol(inst.symbol_id).width
        start, end = _opening_span(inst, host, width)
        dx, dy = (float(c) for c in host.location.direction[:2])
        p_start = (host.start.x + dx * start, host.start.y + dy * start)
        p_end = (host.start.x + dx * end, host.start.y + dy * end)

        for other in doc.walls:
            if other.element_id == host.element_id:
                continue
            for pt_label, pt in (
                ("start", (other.start.x, other.start.y)),
                ("end", (other.end.x, other.end.y)),
            ):
                if _point_on_segment(
                    pt[0], pt[1], p_start[0], p_start[1], p_end[0], p_end[1]
                ):
                    kind = inst.category.name.title().rstrip("s")
                    errors.append(
                        ValidationError(
                            severity="error",
                            element_type=kind,
                            element_id=inst.element_id,
                            message=(
                                f"{kind} '{inst.name}' opening crosses wall "
                                f"{other.element_id} ({pt_label} at "
                                f"{pt[0]:.1f},{pt[1]:.1f})"
                            ),
                        )
                    )
    return errors


def _check_roofs(doc: Document) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for roof in doc.roofs:
        if not _exists(roof.roof_type_id, doc.get_roof_type):
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Roof",
                    element_id=roof.element_id,
                    message=f"Roof references non-existent roof type {roof.roof_type_id}",
                )
            )
        if not _exists(roof.level_id, doc.get_level):
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Roof",
                    element_id=roof.element_id,
                    message=f"Roof references non-existent level {roof.level_id}",
                )
            )
    return errors
