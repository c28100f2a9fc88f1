"""The house command: entry point invoked against an open document.

The command reports success or failure through a ``CommandResult``
instead of raising, so callers (the CLI, scripts) get the failure
message without handling the document's exception types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from house_builder.config import HouseSettings
from house_builder.generators.house import generate_house
from house_builder.models.document import Document

logger = logging.getLogger(__name__)


class Result(str, Enum):
    """Outcome of a command invocation."""

    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


@dataclass
class CommandResult:
    result: Result
    message: str = ""
    element_ids: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.result == Result.SUCCEEDED


class CreateHouseCommand:
    """Generate the house shell in a document.

    Any exception raised while generating is caught here and returned
    as a failed result carrying the exception message. Nothing is
    retried or rolled back beyond the failing step's own transaction.
    """

    def __init__(self, settings: HouseSettings | None = None):
        self.settings = settings or HouseSettings()

    def execute(self, document: Document) -> CommandResult:
        try:
            house = generate_house(document, self.settings)
        except Exception as e:
            logger.error("Create house failed on '%s': %s", document.title, e)
            return CommandResult(result=Result.FAILED, message=str(e))

        logger.info(
            "Create house succeeded on '%s': %d elements",
            document.title, len(house.element_ids()),
        )
        return CommandResult(result=Result.SUCCEEDED, element_ids=house.element_ids())
