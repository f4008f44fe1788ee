"""Tests for the arena-backed document tree."""

import pytest

from xbl.model.tree import Document, Element
from xbl.model.values import Attribute, Value
from xbl.shared.errors import ErrorKind, NotFoundError, TypeMismatchError


@pytest.fixture
def config_document() -> Document:
    """Document shaped Config/{Window, Window, Theme}."""
    doc = Document()
    config = doc.create_element("Config")
    first = config.create_child("Window")
    first.add_attribute("width", Value.uint32(800))
    config.create_child("Window").add_attribute("width", Value.uint32(640))
    theme = config.create_child("Theme")
    theme.create_child("Colour")
    doc.create_element("Extra")
    return doc


class TestDocument:
    """Test Document operations."""

    def test_empty_document(self) -> None:
        doc = Document()

        assert doc.elements == []
        assert len(doc) == 0
        assert doc.element_count == 0
        assert doc.max_depth == -1

    def test_roots_in_insertion_order(self, config_document: Document) -> None:
        assert [root.name for root in config_document.elements] == ["Config", "Extra"]
        assert len(config_document) == 2

    def test_lookup(self, config_document: Document) -> None:
        assert config_document.lookup("Extra").name == "Extra"
        assert config_document["Config"] == config_document.elements[0]

    def test_lookup_miss(self, config_document: Document) -> None:
        with pytest.raises(NotFoundError, match="Element not found: Nope") as exc_info:
            config_document.lookup("Nope")

        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_lookup_returns_first_of_duplicates(self) -> None:
        doc = Document()
        first = doc.create_element("Dup")
        doc.create_element("Dup")

        assert doc["Dup"] == first

    def test_counts(self, config_document: Document) -> None:
        assert config_document.element_count == 6
        assert config_document.attribute_count == 2
        assert config_document.max_depth == 2

    def test_iter_elements_document_order(self, config_document: Document) -> None:
        names = [element.name for element in config_document.iter_elements()]

        assert names == ["Config", "Window", "Window", "Theme", "Colour", "Extra"]

    def test_element_name_must_be_string(self) -> None:
        with pytest.raises(TypeMismatchError):
            Document().create_element(None)

    def test_to_dict(self) -> None:
        doc = Document()
        root = doc.create_element("Root")
        root.add_attribute("x", Value.string("hi"))
        root.create_child("Kid")

        assert doc.to_dict() == {
            "element_count": 2,
            "attribute_count": 1,
            "elements": [{
                "name": "Root",
                "attributes": [{"name": "x", "type": "String", "value": "hi"}],
                "children": [{"name": "Kid", "attributes": []}],
            }],
        }


class TestElement:
    """Test Element handles."""

    def test_new_child_is_empty(self) -> None:
        child = Document().create_element("Root").create_child("Kid")

        assert child.name == "Kid"
        assert child.attributes == []
        assert child.children == []

    def test_parent_and_depth(self, config_document: Document) -> None:
        config = config_document["Config"]
        colour = config["Theme"]["Colour"]

        assert config.parent is None
        assert colour.parent == config["Theme"]
        assert colour.depth == 2
        assert colour.path == "/Config/Theme/Colour"

    def test_child_lookup(self, config_document: Document) -> None:
        config = config_document["Config"]

        window = config.lookup("Window")
        assert window.attribute("width").value.as_uint32() == 800

        with pytest.raises(NotFoundError, match="Child element not found: Door"):
            config.lookup("Door")

    def test_find_children(self, config_document: Document) -> None:
        windows = config_document["Config"].find_children("Window")

        assert len(windows) == 2
        assert [w.attribute("width").value.as_uint32() for w in windows] == [800, 640]

    def test_attributes_keep_duplicates_in_order(self) -> None:
        element = Document().create_element("E")
        element.add_attribute("a", Value.int32(1))
        element.add_attribute("a", Value.int32(2))

        assert element.attribute_count == 2
        assert element.attribute("a").value.as_int32() == 1
        assert [a.value.as_int32() for a in element.attributes] == [1, 2]

    def test_attribute_miss(self) -> None:
        element = Document().create_element("E")

        assert element.has_attribute("x") is False
        with pytest.raises(NotFoundError, match="Element does not have attribute: x"):
            element.attribute("x")

    def test_add_attributes(self) -> None:
        element = Document().create_element("E")
        element.add_attributes([Attribute("a", Value.byte(1)), Attribute("b", Value.byte(2))])

        assert [a.name for a in element.attributes] == ["a", "b"]
        assert element.has_attribute("b")

    def test_add_attributes_rejects_non_attributes(self) -> None:
        element = Document().create_element("E")

        with pytest.raises(TypeMismatchError):
            element.add_attributes([Attribute("a", Value.byte(1)), ("b", 2)])

        assert element.attribute_count == 0

    def test_attributes_property_is_a_copy(self) -> None:
        element = Document().create_element("E")
        element.attributes.append(Attribute("a", Value.byte(1)))

        assert element.attribute_count == 0

    def test_handle_equality(self) -> None:
        doc = Document()
        root = doc.create_element("Root")

        assert Element(doc, root.index) == root
        assert hash(Element(doc, root.index)) == hash(root)
        assert Document().create_element("Root") != root

    def test_deep_tree_without_recursion(self) -> None:
        """Test depth and iteration on a chain deeper than the recursion limit."""
        doc = Document()
        element = doc.create_element("n")
        for _ in range(5000):
            element = element.create_child("n")

        assert element.depth == 5000
        assert sum(1 for _ in doc.iter_elements()) == 5001

    def test_deep_tree_to_dict(self) -> None:
        doc = Document()
        element = doc.create_element("n")
        for _ in range(5000):
            element = element.create_child("n")

        entry = doc.to_dict()["elements"][0]
        levels = 0
        while "children" in entry:
            entry = entry["children"][0]
            levels += 1

        assert levels == 5000
        assert doc.max_depth == 5000

    def test_to_records(self, config_document: Document) -> None:
        records = config_document.to_records()

        assert [record["name"] for record in records] == [
            "Config", "Window", "Window", "Theme", "Colour", "Extra",
        ]
        assert records[0]["parent"] is None
        assert records[4]["parent"] == records[3]["index"]
        assert records[1]["attributes"] == [{"name": "width", "type": "UInt32", "value": 800}]
        assert "children" not in records[0]
