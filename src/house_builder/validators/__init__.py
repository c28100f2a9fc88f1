"""Structural validation for documents.

- structural: openings fit their host walls, element references are
  valid, walls meet at their ends, roofs reference loaded types
"""

from house_builder.validators.structural import ValidationError, validate_document

__all__ = ["ValidationError", "validate_document"]
