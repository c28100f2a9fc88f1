"""Building generation tools.

Functions that create elements in a Document, one transaction per step:
- get_levels: levels ordered by name
- create_walls: rectangular shell walls between two levels
- create_door / create_window: openings at wall midpoints
- create_roof: gable extrusion roof over the shell
- generate_house: the full sequence
"""

from house_builder.generators.house import (
    HouseElements,
    create_door,
    create_roof,
    create_walls,
    create_window,
    find_roof_type,
    generate_house,
    get_levels,
)

__all__ = [
    "HouseElements",
    "create_door",
    "create_roof",
    "create_walls",
    "create_window",
    "find_roof_type",
    "generate_house",
    "get_levels",
]
