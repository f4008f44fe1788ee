"""Document tree for XBL.

A ``Document`` owns every element in an arena of nodes addressed by stable
integer indices. Each node records its parent index and the indices of its
children, so the tree never holds reference cycles and handles stay valid
however the arena grows. ``Element`` is a lightweight handle onto one node.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from xbl.model.values import Attribute, Value
from xbl.shared.errors import NotFoundError, TypeMismatchError


@dataclass
class ElementNode:
    """Storage for one element inside a document's arena."""

    name: str
    parent: Optional[int] = None
    attributes: List[Attribute] = field(default_factory=list)
    children: List[int] = field(default_factory=list)


class Element:
    """Handle onto an element node owned by a ``Document``.

    Handles compare equal when they address the same node of the same
    document. All mutation goes through the owning document's arena.
    """

    __slots__ = ("_document", "_index")

    def __init__(self, document: "Document", index: int) -> None:
        self._document = document
        self._index = index

    @property
    def _node(self) -> ElementNode:
        return self._document._nodes[self._index]

    @property
    def document(self) -> "Document":
        """Document owning this element."""
        return self._document

    @property
    def index(self) -> int:
        """Stable arena index of this element."""
        return self._index

    @property
    def name(self) -> str:
        return self._node.name

    @property
    def attributes(self) -> List[Attribute]:
        """Attributes in insertion order (read-only copy)."""
        return list(self._node.attributes)

    @property
    def attribute_count(self) -> int:
        return len(self._node.attributes)

    @property
    def children(self) -> List["Element"]:
        """Child elements in insertion order."""
        return [Element(self._document, i) for i in self._node.children]

    @property
    def parent(self) -> Optional["Element"]:
        """Owning element, or None for a root element."""
        parent_index = self._node.parent
        if parent_index is None:
            return None
        return Element(self._document, parent_index)

    @property
    def depth(self) -> int:
        """Depth of this element in the tree (root = 0)."""
        depth = 0
        parent_index = self._node.parent
        while parent_index is not None:
            depth += 1
            parent_index = self._document._nodes[parent_index].parent
        return depth

    @property
    def path(self) -> str:
        """Slash-separated path of element names from the root."""
        names = []
        index: Optional[int] = self._index
        while index is not None:
            node = self._document._nodes[index]
            names.append(node.name)
            index = node.parent
        return "/" + "/".join(reversed(names))

    def create_child(self, name: str) -> "Element":
        """Append a new empty child element and return it."""
        return self._document._new_node(name, self._index)

    def lookup(self, child_name: str) -> "Element":
        """Return the first direct child named ``child_name``.

        Raises:
            NotFoundError: If no child has that name
        """
        nodes = self._document._nodes
        for child_index in self._node.children:
            if nodes[child_index].name == child_name:
                return Element(self._document, child_index)
        raise NotFoundError(f"Child element not found: {child_name}")

    def __getitem__(self, child_name: str) -> "Element":
        return self.lookup(child_name)

    def find_children(self, name: str) -> List["Element"]:
        """Find all direct children with matching name."""
        return [child for child in self.children if child.name == name]

    def add_attribute(self, name: str, value: Value) -> Attribute:
        """Append an attribute; duplicates are kept."""
        attribute = Attribute(name, value)
        self._node.attributes.append(attribute)
        return attribute

    def add_attributes(self, attributes: Iterable[Attribute]) -> None:
        """Append a sequence of attributes in order."""
        pending = list(attributes)
        for attribute in pending:
            if not isinstance(attribute, Attribute):
                raise TypeMismatchError("add_attributes expects Attribute instances")
        self._node.attributes.extend(pending)

    def attribute(self, name: str) -> Attribute:
        """Return the first attribute named ``name``.

        Raises:
            NotFoundError: If the element has no such attribute
        """
        for attribute in self._node.attributes:
            if attribute.name == name:
                return attribute
        raise NotFoundError(f"Element does not have attribute: {name}")

    def has_attribute(self, name: str) -> bool:
        return any(attribute.name == name for attribute in self._node.attributes)

    def iter_descendants(self) -> Iterator["Element"]:
        """Iterate over descendants in document (pre-)order, excluding self."""
        nodes = self._document._nodes
        stack = list(reversed(self._node.children))
        while stack:
            index = stack.pop()
            yield Element(self._document, index)
            stack.extend(reversed(nodes[index].children))

    def to_dict(self) -> Dict[str, Any]:
        """Convert element and its subtree to dictionary representation.

        Built with an explicit stack, so arbitrarily deep subtrees convert;
        serializers that recurse over the nested result may still hit the
        interpreter's recursion limit (see ``Document.to_records``).
        """
        nodes = self._document._nodes
        result = _node_dict(nodes[self._index])
        stack = [(self._index, result)]
        while stack:
            index, entry = stack.pop()
            child_indices = nodes[index].children
            if not child_indices:
                continue
            entry["children"] = [_node_dict(nodes[i]) for i in child_indices]
            stack.extend(zip(child_indices, entry["children"]))
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Element):
            return NotImplemented
        return self._document is other._document and self._index == other._index

    def __hash__(self) -> int:
        return hash((id(self._document), self._index))

    def __repr__(self) -> str:
        return f"Element(name={self.name!r}, index={self._index})"


def _node_dict(node: ElementNode) -> Dict[str, Any]:
    return {
        "name": node.name,
        "attributes": [attribute.to_dict() for attribute in node.attributes],
    }


class Document:
    """Ordered forest of root elements and owner of every element node.

    Examples:
        >>> doc = Document()
        >>> root = doc.create_element("Config")
        >>> window = root.create_child("Window")
        >>> _ = window.add_attribute("width", Value.uint32(800))
        >>> doc["Config"]["Window"].attribute("width").value.as_uint32()
        800
    """

    def __init__(self) -> None:
        self._nodes: List[ElementNode] = []
        self._roots: List[int] = []

    def _new_node(self, name: str, parent: Optional[int]) -> Element:
        if not isinstance(name, str):
            raise TypeMismatchError("Element name must be a string")
        index = len(self._nodes)
        self._nodes.append(ElementNode(name=name, parent=parent))
        if parent is None:
            self._roots.append(index)
        else:
            self._nodes[parent].children.append(index)
        return Element(self, index)

    @property
    def elements(self) -> List[Element]:
        """Root elements in insertion order."""
        return [Element(self, index) for index in self._roots]

    @property
    def element_count(self) -> int:
        """Total number of elements in the document."""
        return len(self._nodes)

    @property
    def attribute_count(self) -> int:
        """Total number of attributes across all elements."""
        return sum(len(node.attributes) for node in self._nodes)

    @property
    def max_depth(self) -> int:
        """Depth of the deepest element (0 for roots only, -1 when empty)."""
        # Parents are always allocated before their children
        depths: List[int] = []
        for node in self._nodes:
            depths.append(0 if node.parent is None else depths[node.parent] + 1)
        return max(depths, default=-1)

    def create_element(self, name: str) -> Element:
        """Append a new empty root element and return it."""
        return self._new_node(name, None)

    def lookup(self, name: str) -> Element:
        """Return the first root element named ``name``.

        Raises:
            NotFoundError: If no root element has that name
        """
        for index in self._roots:
            if self._nodes[index].name == name:
                return Element(self, index)
        raise NotFoundError(f"Element not found: {name}")

    def __getitem__(self, name: str) -> Element:
        return self.lookup(name)

    def __len__(self) -> int:
        return len(self._roots)

    def iter_elements(self) -> Iterator[Element]:
        """Iterate over all elements in document order."""
        for root in self.elements:
            yield root
            yield from root.iter_descendants()

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        return {
            "element_count": self.element_count,
            "attribute_count": self.attribute_count,
            "elements": [root.to_dict() for root in self.elements],
        }

    def to_records(self) -> List[Dict[str, Any]]:
        """Flat element records in document order.

        Each record carries its arena ``index`` and ``parent`` index instead
        of nested children, so the result has constant nesting depth however
        deep the tree is.
        """
        records = []
        for element in self.iter_elements():
            node = element._node
            record = _node_dict(node)
            record["index"] = element.index
            record["parent"] = node.parent
            records.append(record)
        return records
