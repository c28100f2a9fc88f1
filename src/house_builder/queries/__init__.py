"""Element query tools.

- collector: fluent filtering of a document's elements by class,
  category or predicate
"""

from house_builder.queries.collector import ElementCollector

__all__ = ["ElementCollector"]
