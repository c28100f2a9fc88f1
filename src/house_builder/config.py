"""Settings for the house command.

Defaults reproduce the stock house: a 10 x 5 m shell, windows at
1.5 m and the 400 mm basic roof. Any of them can be overridden from
a JSON file.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from house_builder.models.units import DisplayUnit, to_internal


class HouseSettings(BaseModel):
    """Dimensions, type names and transaction names used by the command."""

    model_config = ConfigDict(extra="forbid")

    width: float = Field(default=10000, gt=0, description="Shell width along X")
    depth: float = Field(default=5000, gt=0, description="Shell depth along Y")
    window_sill: float = Field(
        default=1500, ge=0, description="Window sill height above the base level"
    )
    unit: DisplayUnit = Field(
        default=DisplayUnit.MILLIMETERS, description="Unit of the lengths above"
    )
    roof_type_name: str = "Типовой - 400мм"
    roof_family_name: str = "Базовая крыша"
    walls_transaction: str = "Creating Walls"
    door_transaction: str = "Creating of door"
    window_transaction: str = "Creating of window"
    roof_transaction: str = "Create ExtrusionRoof"

    @property
    def width_internal(self) -> float:
        return to_internal(self.width, self.unit)

    @property
    def depth_internal(self) -> float:
        return to_internal(self.depth, self.unit)

    @property
    def window_sill_internal(self) -> float:
        return to_internal(self.window_sill, self.unit)

    @classmethod
    def load(cls, path: str | Path) -> HouseSettings:
        """Load settings from a JSON file. Unknown keys are rejected."""
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
