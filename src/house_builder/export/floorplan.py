"""2D floor plan rendering using matplotlib.

Generates architectural-style top-down views of one level:
- Walls as thick filled bands
- Doors shown as arcs (swing indication)
- Windows shown as double lines (glass indication)
- Roofs above the level as dashed outlines with the ridge line
- Dimensions and labels
"""

from __future__ import annotations

import math
from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # headless rendering
import matplotlib.pyplot as plt
import matplotlib.patheffects as pe
from matplotlib.patches import Arc

from house_builder.models.document import Document
from house_builder.models.elements import (
    BuiltInCategory,
    ExtrusionRoof,
    FamilyInstance,
    FamilySymbol,
    Level,
    Wall,
)

# Halo effect for text readability on any background
_TEXT_HALO = [pe.withStroke(linewidth=3, foreground="black")]


def _wall_direction(wall: Wall) -> tuple[float, float]:
    """Unit direction vector of a wall."""
    dx = wall.end.x - wall.start.x
    dy = wall.end.y - wall.start.y
    length = wall.length
    return (dx / length, dy / length)


def _wall_normal(wall: Wall) -> tuple[float, float]:
    """Left-hand normal of wall direction."""
    dx, dy = _wall_direction(wall)
    return (-dy, dx)


def render_floorplan(
    document: Document,
    level: Level,
    output_path: str | Path,
    title: str | None = None,
    dpi: int = 150,
    show_dimensions: bool = True,
    show_labels: bool = True,
    show_title: bool = True,
    show_info_box: bool = True,
) -> Path:
    """Render a 2D floor plan of a level to PNG.

    Args:
        document: The document to draw from.
        level: The level to render.
        output_path: Output image path.
        title: Plot title (defaults to level name).
        dpi: Image resolution.
        show_dimensions: Show wall and opening widths.
        show_labels: Show element tags (W1, D1, Win1).
        show_title: Show title bar at top.
        show_info_box: Show info overlay (counts, wall height).

    Returns:
        Path to the output image.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(1, 1, figsize=(12, 10))

    ax.set_aspect("equal")
    ax.set_facecolor("#FAFAFA")
    fig.patch.set_facecolor("white")

    walls = [w for w in document.walls if w.base_level_id == level.element_id]
    instances = [i for i in document.family_instances if i.level_id == level.element_id]
    roofs_above = [r for r in document.roofs if r.eave_height > level.elevation]

    for roof in roofs_above:
        _draw_roof(ax, roof, show_labels)

    for n, wall in enumerate(walls, start=1):
        _draw_wall(ax, wall, f"W{n}", show_dimensions, show_labels)

    door_n = window_n = 0
    for inst in instances:
        host = document.get_wall(inst.host_wall_id)
        symbol = document.get_symbol(inst.symbol_id)
        if inst.category == BuiltInCategory.DOORS:
            door_n += 1
            _draw_door(ax, inst, symbol, host, f"D{door_n}", show_labels, show_dimensions)
        else:
            window_n += 1
            _draw_window(ax, inst, symbol, host, f"Win{window_n}", show_labels, show_dimensions)

    if show_title:
        ax.set_title(title or level.name, fontsize=16, fontweight="bold", pad=20)

    ax.grid(True, alpha=0.2, linestyle="--")
    ax.set_xlabel("X (meters)", fontsize=10)
    ax.set_ylabel("Y (meters)", fontsize=10)

    # Auto-pad the view
    margin = 1.5
    all_x = [c for w in walls for c in (w.start.x, w.end.x)]
    all_y = [c for w in walls for c in (w.start.y, w.end.y)]
    for roof in roofs_above:
        all_x.extend(v.x for v in roof.footprint().vertices)
        all_y.extend(v.y for v in roof.footprint().vertices)
    if all_x and all_y:
        ax.set_xlim(min(all_x) - margin, max(all_x) + margin)
        ax.set_ylim(min(all_y) - margin, max(all_y) + margin)

    if show_info_box:
        info_lines = [
            f"Level: {level.name} (elev {level.elevation:.2f}m)",
            f"Walls: {len(walls)}",
            f"Doors: {door_n}",
            f"Windows: {window_n}",
            f"Wall height: {walls[0].height:.2f}m" if walls else "",
            f"Roof pitch: {roofs_above[0].pitch:.1f}°" if roofs_above else "",
        ]
        info_text = "\n".join(line for line in info_lines if line)
        ax.text(
            0.02, 0.98, info_text,
            transform=ax.transAxes,
            fontsize=8,
            verticalalignment="top",
            fontfamily="monospace",
            bbox=dict(boxstyle="round,pad=0.5", facecolor="white", alpha=0.8, edgecolor="#CCCCCC"),
            zorder=100,
        )

    plt.tight_layout()
    fig.savefig(str(output_path), dpi=dpi, bbox_inches="tight")
    plt.close(fig)

    return output_path


def _draw_wall(
    ax: plt.Axes,
    wall: Wall,
    tag: str,
    show_dimensions: bool,
    show_labels: bool,
) -> None:
    """Draw a wall as a thick filled rectangle."""
    dx, dy = _wall_direction(wall)
    nx, ny = _wall_normal(wall)
    t = wall.width / 2
    fill_color, outline_color = (
        ("#2E7D32", "#1B5E20") if wall.structural else ("#F9A825", "#F57F17")
    )

    corners_x = [
        wall.start.x + nx * t,
        wall.end.x + nx * t,
        wall.end.x - nx * t,
        wall.start.x - nx * t,
    ]
    corners_y = [
        wall.start.y + ny * t,
        wall.end.y + ny * t,
        wall.end.y - ny * t,
        wall.start.y - ny * t,
    ]
    ax.fill(corners_x, corners_y, color=fill_color, zorder=10)
    ax.plot(
        corners_x + [corners_x[0]],
        corners_y + [corners_y[0]],
        color=outline_color,
        linewidth=0.5,
        zorder=11,
    )

    mid_x = (wall.start.x + wall.end.x) / 2
    mid_y = (wall.start.y + wall.end.y) / 2
    rotation = math.degrees(math.atan2(dy, dx))

    if show_labels:
        ax.text(
            mid_x + dx * 1.2, mid_y + dy * 1.2, tag,
            fontsize=8, ha="center", va="center",
            color="white", fontweight="bold",
            rotation=rotation, path_effects=_TEXT_HALO, zorder=25,
        )

    # Dimension text, outside the shell (right-hand side of the wall)
    if show_dimensions:
        offset = 0.4
        ax.text(
            mid_x - nx * offset, mid_y - ny * offset, f"{wall.length:.2f}m",
            fontsize=7, ha="center", va="center",
            color="#CCCCCC", rotation=rotation,
            path_effects=_TEXT_HALO, zorder=20,
        )


def _opening_ends(
    inst: FamilyInstance, symbol: FamilySymbol, wall: Wall
) -> tuple[float, float, float, float]:
    """Plan coordinates of the opening's two ends along the wall."""
    dx, dy = _wall_direction(wall)
    start = wall.distance_along(inst.location) - symbol.width / 2
    sx = wall.start.x + dx * start
    sy = wall.start.y + dy * start
    return sx, sy, sx + dx * symbol.width, sy + dy * symbol.width


def _clear_wall(ax: plt.Axes, ends: tuple[float, float, float, float], wall: Wall) -> None:
    """Paint over the wall band where an opening is."""
    sx, sy, ex, ey = ends
    nx, ny = _wall_normal(wall)
    t = wall.width / 2 + 0.02
    ax.fill(
        [sx + nx * t, ex + nx * t, ex - nx * t, sx - nx * t],
        [sy + ny * t, ey + ny * t, ey - ny * t, sy - ny * t],
        color="#FAFAFA",
        zorder=12,
    )


def _draw_door(
    ax: plt.Axes,
    door: FamilyInstance,
    symbol: FamilySymbol,
    wall: Wall,
    tag: str,
    show_labels: bool,
    show_dimensions: bool = True,
) -> None:
    """Draw a door as a gap in the wall with an arc swing.

    The hinge sits at the opening start and the leaf swings to the wall's
    left-hand side, which is the inside of a counter-clockwise shell.
    """
    dx, dy = _wall_direction(wall)
    nx, ny = _wall_normal(wall)
    ends = _opening_ends(door, symbol, wall)
    sx, sy, ex, ey = ends
    _clear_wall(ax, ends, wall)

    angle_closed = math.degrees(math.atan2(dy, dx))
    angle_open = math.degrees(math.atan2(ny, nx))
    diff = (angle_open - angle_closed) % 360
    if diff > 180:
        theta1, theta2 = angle_open, angle_open + (360 - diff)
    else:
        theta1, theta2 = angle_closed, angle_closed + diff

    ax.add_patch(
        Arc(
            (sx, sy),
            symbol.width * 2,
            symbol.width * 2,
            angle=0,
            theta1=theta1,
            theta2=theta2,
            color="#2196F3",
            linewidth=1.0,
            linestyle="--",
            zorder=15,
        )
    )
    ax.plot(
        [sx, sx + nx * symbol.width],
        [sy, sy + ny * symbol.width],
        color="#2196F3",
        linewidth=1.5,
        zorder=15,
    )

    mid_x, mid_y = (sx + ex) / 2, (sy + ey) / 2
    if show_labels:
        ax.text(
            mid_x + nx * 0.6, mid_y + ny * 0.6, tag,
            fontsize=7, ha="center", va="center",
            color="#64B5F6", fontweight="bold",
            path_effects=_TEXT_HALO, zorder=20,
        )
    if show_dimensions:
        ax.text(
            mid_x - nx * 0.4, mid_y - ny * 0.4, f"{symbol.width:.2f}m",
            fontsize=6, ha="center", va="center",
            color="#90CAF9", path_effects=_TEXT_HALO, zorder=20,
        )


def _draw_window(
    ax: plt.Axes,
    window: FamilyInstance,
    symbol: FamilySymbol,
    wall: Wall,
    tag: str,
    show_labels: bool,
    show_dimensions: bool = True,
) -> None:
    """Draw a window as a gap with double lines (glass symbol)."""
    nx, ny = _wall_normal(wall)
    ends = _opening_ends(window, symbol, wall)
    sx, sy, ex, ey = ends
    _clear_wall(ax, ends, wall)

    glass_offset = wall.width / 2 * 0.3
    for sign in (-1, 1):
        ax.plot(
            [sx + nx * glass_offset * sign, ex + nx * glass_offset * sign],
            [sy + ny * glass_offset * sign, ey + ny * glass_offset * sign],
            color="#4CAF50",
            linewidth=1.5,
            zorder=15,
        )
    for px, py in ((sx, sy), (ex, ey)):
        ax.plot(
            [px + nx * glass_offset, px - nx * glass_offset],
            [py + ny * glass_offset, py - ny * glass_offset],
            color="#4CAF50",
            linewidth=1.0,
            zorder=15,
        )

    mid_x, mid_y = (sx + ex) / 2, (sy + ey) / 2
    if show_labels:
        ax.text(
            mid_x + nx * 0.5, mid_y + ny * 0.5, tag,
            fontsize=7, ha="center", va="center",
            color="#81C784", fontweight="bold",
            path_effects=_TEXT_HALO, zorder=20,
        )
    if show_dimensions:
        ax.text(
            mid_x - nx * 0.4, mid_y - ny * 0.4, f"{symbol.width:.2f}m",
            fontsize=6, ha="center", va="center",
            color="#A5D6A7", path_effects=_TEXT_HALO, zorder=20,
        )


def _draw_roof(ax: plt.Axes, roof: ExtrusionRoof, show_labels: bool) -> None:
    """Draw the roof footprint dashed (it is above the cut plane) with its ridge."""
    vertices = roof.footprint().vertices
    xs = [v.x for v in vertices]
    ys = [v.y for v in vertices]
    ax.plot(
        xs + [xs[0]], ys + [ys[0]],
        color="#8D6E63", linewidth=1.0, linestyle="--", zorder=5,
    )

    ridge = roof.ridge_point
    n = roof.extrusion_direction
    ridge_end_x = ridge.x + n.x * roof.extrusion_end
    ridge_end_y = ridge.y + n.y * roof.extrusion_end
    ridge_start_x = ridge.x + n.x * roof.extrusion_start
    ridge_start_y = ridge.y + n.y * roof.extrusion_start
    ax.plot(
        [ridge_start_x, ridge_end_x], [ridge_start_y, ridge_end_y],
        color="#8D6E63", linewidth=0.8, linestyle="-.", zorder=5,
    )

    if show_labels:
        ax.text(
            (ridge_start_x + ridge_end_x) / 2,
            (ridge_start_y + ridge_end_y) / 2 + 0.3,
            f"{roof.name} ({roof.pitch:.0f}°)",
            fontsize=6, ha="center", va="center",
            color="#8D6E63", style="italic", zorder=6,
        )
