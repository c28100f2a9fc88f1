"""House Builder CLI.

Usage:
    python -m house_builder <command> <document.json> [options]

Commands print JSON to stdout and exit with status 1 on failure.
Logging goes to stderr (``--verbose`` for debug output).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from house_builder.command import CreateHouseCommand
from house_builder.config import HouseSettings
from house_builder.errors import HouseBuilderError
from house_builder.models.document import Document
from house_builder.models.elements import BuiltInCategory, FamilyInstance, Wall

app = typer.Typer(
    name="house_builder",
    help="House Builder: generate a house shell in a BIM document.",
    no_args_is_help=True,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_document(path: Path) -> Document:
    """Load a document JSON file, or exit with an error."""
    if not path.exists():
        _output({"ok": False, "error": f"Document not found: {path}"})
        raise typer.Exit(1)
    try:
        return Document.load(path)
    except ValueError as e:
        _output({"ok": False, "error": f"Invalid document {path}: {e}"})
        raise typer.Exit(1)


def _validate_json(document: Document) -> dict:
    """Run all validators and return structured results."""
    errors = document.validate_elements()
    return {
        "errors": sum(1 for e in errors if e.severity == "error"),
        "warnings": sum(1 for e in errors if e.severity == "warning"),
        "details": [
            {
                "severity": e.severity,
                "element_type": e.element_type,
                "element_id": e.element_id,
                "message": e.message,
            }
            for e in errors
        ],
    }


def _output(data: dict) -> None:
    """Print JSON output to stdout."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Document commands
# ---------------------------------------------------------------------------

@app.command()
def init(
    path: Path = typer.Argument(..., help="Document JSON file to create"),
    title: str = typer.Option("Untitled", "--title", "-t", help="Document title"),
    level_height: float = typer.Option(
        4.0, "--level-height", help="Elevation of the second level in meters"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Create a document from the stock template (levels, wall/door/window/roof types)."""
    if path.exists() and not force:
        _output({"ok": False, "error": f"File exists: {path} (use --force)"})
        raise typer.Exit(1)
    document = Document.from_template(title=title, level_height=level_height)
    document.save(path)
    _output({
        "ok": True,
        "path": str(path),
        "levels": [{"name": lv.name, "elevation": lv.elevation} for lv in document.levels],
    })


@app.command("create-house")
def create_house(
    path: Path = typer.Argument(..., help="Document JSON file"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="JSON file overriding house settings"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Save to this file instead of overwriting PATH"
    ),
):
    """Generate the house shell: walls, door, windows and roof."""
    document = _load_document(path)
    try:
        settings = HouseSettings.load(config) if config else HouseSettings()
    except (OSError, ValueError) as e:
        _output({"ok": False, "error": f"Invalid config: {e}"})
        raise typer.Exit(1)

    result = CreateHouseCommand(settings).execute(document)
    if not result.succeeded:
        _output({"ok": False, "result": result.result.value, "error": result.message})
        raise typer.Exit(1)

    saved = document.save(output or path)
    _output({
        "ok": True,
        "result": result.result.value,
        "path": str(saved),
        "elements_created": len(result.element_ids),
        "transactions": document.transaction_log,
        "validation": _validate_json(document),
    })


@app.command()
def validate(path: Path = typer.Argument(..., help="Document JSON file")):
    """Run all validators on a document."""
    document = _load_document(path)
    _output({"ok": True, "validation": _validate_json(document)})


@app.command()
def summary(path: Path = typer.Argument(..., help="Document JSON file")):
    """Element counts per level, plus the roof."""
    document = _load_document(path)
    levels = []
    for level in sorted(document.levels, key=lambda lv: lv.elevation):
        elements = document.elements_on_level(level)
        levels.append({
            "name": level.name,
            "elevation": level.elevation,
            "walls": sum(1 for e in elements if isinstance(e, Wall)),
            "doors": sum(
                1 for e in elements
                if isinstance(e, FamilyInstance) and e.category == BuiltInCategory.DOORS
            ),
            "windows": sum(
                1 for e in elements
                if isinstance(e, FamilyInstance) and e.category == BuiltInCategory.WINDOWS
            ),
        })
    roofs = [
        {
            "name": roof.name,
            "pitch": round(roof.pitch, 2),
            "ridge_height": round(roof.ridge_point.z, 3),
            "footprint_area_m2": round(roof.footprint().area, 2),
        }
        for roof in document.roofs
    ]
    _output({"ok": True, "title": document.title, "levels": levels, "roofs": roofs})


@app.command("export-ifc")
def export_ifc(
    path: Path = typer.Argument(..., help="Document JSON file"),
    out: Path = typer.Argument(..., help="Output .ifc file"),
):
    """Export the document to IFC 2x3."""
    document = _load_document(path)
    try:
        result = document.export_ifc(out)
    except (HouseBuilderError, ValueError) as e:
        _output({"ok": False, "error": f"Export failed: {e}"})
        raise typer.Exit(1)
    _output({"ok": True, "path": str(result)})


@app.command()
def render(
    path: Path = typer.Argument(..., help="Document JSON file"),
    out: Path = typer.Argument(..., help="Output PNG file"),
    level: Optional[str] = typer.Option(
        None, "--level", "-l", help="Level to render (default: lowest)"
    ),
):
    """Render a floor plan to PNG."""
    document = _load_document(path)
    if not document.levels:
        _output({"ok": False, "error": "Document has no levels"})
        raise typer.Exit(1)
    if level is None:
        level = min(document.levels, key=lambda lv: lv.elevation).name
    if document.get_level_by_name(level) is None:
        _output({
            "ok": False,
            "error": f"Level not found: {level}",
            "available": [lv.name for lv in document.levels],
        })
        raise typer.Exit(1)
    try:
        img_path = document.render_floorplan(level, out)
    except (HouseBuilderError, ValueError) as e:
        _output({"ok": False, "error": f"Render failed: {e}"})
        raise typer.Exit(1)
    _output({"ok": True, "level": level, "path": str(img_path)})


@app.command()
def version() -> None:
    """Show version."""
    from house_builder import __version__

    typer.echo(f"house-builder v{__version__}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
