"""Element id generation.

Every document element is identified by an IFC GlobalId (22-character
compressed GUID), so the id stored in the JSON document is the same one
written to the exported IFC file.
"""

from __future__ import annotations

import uuid

import ifcopenshell.guid


def generate_ifc_id() -> str:
    """Generate a new IFC-compatible GlobalId (22 characters)."""
    return ifcopenshell.guid.compress(uuid.uuid4().hex)


def is_valid_ifc_id(value: str) -> bool:
    """Check if a string is a valid 22-character IFC GlobalId."""
    return isinstance(value, str) and len(value) == 22
