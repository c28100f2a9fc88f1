"""House Builder: generate a simple house shell in a BIM document."""

__version__ = "0.1.0"
