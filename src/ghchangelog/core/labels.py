"""Label-to-category classification.

A label mapping is a small tree. Leaves are label aliases, inner nodes are
groups of synonyms, and each category owns one root group:

    bug:
      - bug
      - regressions: [regression, crash]
    feature: [enhancement, feature]

Lookup is a case-insensitive depth-first search. Group names (dict keys
below the category level) only organise the mapping; they are never matched
against labels.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from ghchangelog.core.models import Category

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelAlias:
    """A label name that selects the enclosing category."""

    name: str

    def matches(self, label: str) -> bool:
        """Case-insensitive comparison against a label name."""
        return self.name.casefold() == label.casefold()


@dataclass(frozen=True)
class LabelGroup:
    """A named or anonymous group of aliases and nested groups."""

    children: tuple[LabelNode, ...] = ()
    name: str | None = None

    def matches(self, label: str) -> bool:
        """Depth-first search for an alias matching label."""
        return any(child.matches(label) for child in self.children)

    def aliases(self) -> Iterator[str]:
        """Yield every alias name in depth-first order."""
        for child in self.children:
            if isinstance(child, LabelAlias):
                yield child.name
            else:
                yield from child.aliases()


LabelNode = Union[LabelAlias, LabelGroup]


def _build_node(raw: Any, name: str | None = None) -> LabelNode:
    """Convert plain YAML/JSON data into a mapping node."""
    if isinstance(raw, str):
        return LabelAlias(raw)
    if isinstance(raw, Mapping):
        return LabelGroup(tuple(_build_node(value, str(key)) for key, value in raw.items()), name=name)
    if isinstance(raw, (list, tuple)):
        return LabelGroup(tuple(_build_node(item) for item in raw), name=name)
    raise TypeError(f"Label mapping entries must be strings, lists or mappings, got {type(raw).__name__}")


@dataclass(frozen=True)
class LabelMapping:
    """Ordered mapping of category to its label tree."""

    categories: tuple[tuple[Category, LabelGroup], ...] = field(default_factory=tuple)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> LabelMapping:
        """Build a mapping from plain data.

        Args:
            raw: Category name to label entry. An entry is a label string, a
                list of entries, or a mapping whose values are entries.

        Raises:
            ValueError: For unknown category names.
            TypeError: For entries of an unsupported type.
        """
        categories = []
        for key, value in raw.items():
            category = Category.parse(key)
            node = _build_node(value, name=category.value)
            if isinstance(node, LabelAlias):
                node = LabelGroup((node,), name=category.value)
            categories.append((category, node))
        return cls(tuple(categories))

    @classmethod
    def default(cls) -> LabelMapping:
        """The stock mapping: bug labels and enhancement/feature labels."""
        return cls.from_raw(DEFAULT_LABEL_MAPPING)

    def __iter__(self) -> Iterator[tuple[Category, LabelGroup]]:
        return iter(self.categories)

    def lookup(self, label: str) -> Category | None:
        """Find the first category, in mapping order, that accepts label."""
        for category, group in self.categories:
            if group.matches(label):
                return category
        return None


DEFAULT_LABEL_MAPPING: dict[str, Any] = {
    "bug": ["bug"],
    "feature": ["enhancement", "feature"],
}


class LabelClassifier:
    """Maps an issue's labels to a single changelog category."""

    def __init__(self, mapping: LabelMapping | None = None) -> None:
        self.mapping = mapping or LabelMapping.default()
        for category, group in self.mapping:
            logger.debug(f"Category {category.value} matches labels: {', '.join(group.aliases())}")

    def classify(self, labels: Iterable[str]) -> Category | None:
        """Classify a set of labels.

        Labels are tried in the order given and the first one that maps to a
        category wins. An issue labelled both "feature" and "bug" is filed
        under whichever label the tracker lists first.

        Args:
            labels: Label names in issue order.

        Returns:
            The matching Category, or None if no label is mapped.
        """
        for label in labels:
            category = self.mapping.lookup(label)
            if category is not None:
                logger.debug(f"Label '{label}' classified as {category.value}")
                return category
        return None
