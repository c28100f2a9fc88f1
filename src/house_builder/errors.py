"""Exceptions raised by the document model and the generators."""

from __future__ import annotations


class HouseBuilderError(Exception):
    """Base class for document and generation errors."""


class TransactionError(HouseBuilderError):
    """Misuse of document transactions."""


class TransactionNotStartedError(TransactionError):
    """A document modification was attempted outside a transaction."""


class TransactionAlreadyStartedError(TransactionError):
    """A transaction was opened while another one is still running."""


class ElementNotFoundError(HouseBuilderError):
    """A required element (level, type, symbol, wall) is missing."""


class InvalidOperationError(HouseBuilderError):
    """The document rejected an operation on otherwise valid elements."""
