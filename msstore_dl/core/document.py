"""
Parent-indexed view of a SOAP response document.

The SyncUpdates response ties files to updates only through where elements sit
relative to each other, so every element is indexed once with a stable
document-order id and an explicit parent. Correlation code then asks for
relationships (ancestor at a distance, first child, descendants by name)
instead of walking the tree itself.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator, Optional

from msstore_dl.exceptions import XmlParseError


def local_name(tag: str) -> str:
    """Drops the `{namespace}` part of an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


@dataclass(frozen=True)
class Node:
    index: int
    name: str
    parent: Optional[int]
    element: ET.Element = field(repr=False, compare=False)


class SyncDocument:
    """An XML document indexed for relationship lookups."""

    def __init__(self, root: ET.Element):
        self._nodes: list[Node] = []
        self._children: dict[int, list[int]] = {}
        self._by_name: dict[str, list[int]] = {}
        self._subtree_end: list[int] = []
        self._index(root)

    @classmethod
    def from_xml(cls, text: str) -> "SyncDocument":
        """
        Parses a response body.

        Raises:
            XmlParseError: If the body is not well-formed XML.
        """
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise XmlParseError(f"XML parsing error: {e}") from e
        return cls(root)

    def _index(self, root: ET.Element) -> None:
        stack: list[tuple[ET.Element, Optional[int]]] = [(root, None)]
        while stack:
            element, parent = stack.pop()
            node = Node(
                index=len(self._nodes),
                name=local_name(element.tag),
                parent=parent,
                element=element,
            )
            self._nodes.append(node)
            self._by_name.setdefault(node.name, []).append(node.index)
            if parent is not None:
                self._children[parent].append(node.index)
            self._children[node.index] = []
            stack.extend((child, node.index) for child in reversed(list(element)))

        # Pre-order ids make every subtree a contiguous range.
        sizes = [1] * len(self._nodes)
        for node in reversed(self._nodes):
            if node.parent is not None:
                sizes[node.parent] += sizes[node.index]
        self._subtree_end = [i + sizes[i] for i in range(len(self._nodes))]

    @property
    def root(self) -> Node:
        return self._nodes[0]

    def __len__(self) -> int:
        return len(self._nodes)

    def named(self, name: str) -> list[Node]:
        """All nodes with the given local name, in document order."""
        return [self._nodes[i] for i in self._by_name.get(name, [])]

    def parent(self, node: Node) -> Optional[Node]:
        return self._nodes[node.parent] if node.parent is not None else None

    def ancestor(self, node: Node, levels: int) -> Optional[Node]:
        """The node `levels` steps above `node`, or None past the root."""
        current: Optional[Node] = node
        for _ in range(levels):
            if current is None:
                return None
            current = self.parent(current)
        return current

    def first_child(self, node: Node) -> Optional[Node]:
        """First child element; text between elements is not a node."""
        child_ids = self._children[node.index]
        return self._nodes[child_ids[0]] if child_ids else None

    def descendants(self, node: Node, name: str) -> Iterator[Node]:
        """Descendants of `node` (excluding itself) named `name`, in document order."""
        for i in range(node.index + 1, self._subtree_end[node.index]):
            if self._nodes[i].name == name:
                yield self._nodes[i]

    def first_descendant(self, node: Node, name: str) -> Optional[Node]:
        return next(self.descendants(node, name), None)

    @staticmethod
    def text(node: Optional[Node]) -> Optional[str]:
        """Leading text of a node, None when absent or empty."""
        if node is None:
            return None
        return node.element.text or None

    @staticmethod
    def attribute(node: Optional[Node], name: str) -> Optional[str]:
        """Attribute value, None when absent or empty."""
        if node is None:
            return None
        return node.element.get(name) or None
