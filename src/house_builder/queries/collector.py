"""Fluent element queries over a document.

Filters are accumulated and only applied when the collector is
iterated, so a collector can be refined step by step::

    door_symbol = (
        doc.collect()
        .of_class(FamilySymbol)
        .of_category(BuiltInCategory.DOORS)
        .first()
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator

from house_builder.models.elements import BuiltInCategory, Element

if TYPE_CHECKING:
    from house_builder.models.document import Document


class ElementCollector:
    """Filtered, optionally ordered view of a document's elements."""

    def __init__(self, document: Document):
        self.document = document
        self._filters: list[Callable[[Element], bool]] = []
        self._order_key: Callable[[Element], Any] | None = None

    def of_class(self, cls: type[Element]) -> ElementCollector:
        """Keep elements that are instances of ``cls``."""
        self._filters.append(lambda e: isinstance(e, cls))
        return self

    def of_category(self, category: BuiltInCategory | str) -> ElementCollector:
        """Keep elements of the given built-in category."""
        category = BuiltInCategory(category)
        self._filters.append(lambda e: getattr(e, "category", None) == category)
        return self

    def where(self, predicate: Callable[[Element], bool]) -> ElementCollector:
        self._filters.append(predicate)
        return self

    def order_by(self, key: Callable[[Element], Any]) -> ElementCollector:
        """Sort results by ``key`` (stable, so ties keep document order)."""
        self._order_key = key
        return self

    def __iter__(self) -> Iterator[Element]:
        elements = [
            e for e in self.document.iter_elements()
            if all(f(e) for f in self._filters)
        ]
        if self._order_key is not None:
            elements.sort(key=self._order_key)
        return iter(elements)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def to_list(self) -> list[Element]:
        return list(self)

    def first(self) -> Element | None:
        """First matching element, or None when nothing matches."""
        return next(iter(self), None)

    def element_ids(self) -> list[str]:
        return [e.element_id for e in self]
