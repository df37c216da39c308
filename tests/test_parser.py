"""
Tests for FigmaParser: component and instance extraction end to end.
"""

import pytest

from figma_parser.config import ConflictPolicy, ExtractionConfig
from figma_parser.errors import InvalidInput, InvalidRoot, TreeTooDeep
from figma_parser.ingestion.models import FigmaAPIResponse, Node
from figma_parser.ingestion.parser import FigmaParser
from figma_parser.reconciler import ComponentIdentityMap

from conftest import FILE_KEY, FILE_URL, make_node, make_payload


@pytest.fixture
def parser():
    return FigmaParser()


def parse(parser, payload, url=FILE_URL):
    return parser.parse_file(FigmaAPIResponse.from_payload(payload), FILE_KEY, url)


class TestScenarios:
    """End-to-end extraction scenarios."""

    def test_single_component_on_canvas(self, parser):
        """Canvas size comes from the canvas; one component, no instances."""
        payload = make_payload([
            make_node("0:1", "CANVAS", box=(0, 0, 100, 200), children=[
                make_node("c1", "COMPONENT", "Btn")
            ])
        ])

        batch = parse(parser, payload)

        assert [c.name for c in batch.components] == ["Btn"]
        assert (batch.file.canvas_width, batch.file.canvas_height) == (100, 200)
        assert batch.instances == []

    def test_instance_inside_component(self, parser):
        """The instance gets provisional position 1 and resolves to the saved id."""
        payload = make_payload([
            make_node("c1", "COMPONENT", "Card", children=[
                make_node("i1", "INSTANCE", "Card#1", box=(10, 10, 50, 50), componentId="c1")
            ])
        ])

        batch = parse(parser, payload)

        assert [c.name for c in batch.components] == ["Card"]
        assert len(batch.instances) == 1
        instance = batch.instances[0]
        assert instance.name == "Card#1"
        assert instance.component_ref.position == 1
        assert (instance.x, instance.y, instance.width, instance.height) == (10, 10, 50, 50)

        saved = [batch.components[0].model_copy(update={"id": 77})]
        resolved = ComponentIdentityMap.build(batch.components, saved).resolve(instance)
        assert resolved.component_id == 77

    def test_unknown_component_reference(self, parser):
        """An instance pointing at no known component is skipped at extraction."""
        payload = make_payload([
            make_node("0:1", "CANVAS", children=[
                make_node("i1", "INSTANCE", "Ghost", componentId="unknown-id")
            ])
        ])

        batch = parse(parser, payload)

        assert batch.components == []
        assert batch.instances == []

    def test_component_in_map_and_tree(self, parser):
        """A node in both sources is kept once, the API map copy."""
        payload = make_payload(
            [make_node("0:1", "CANVAS", children=[
                make_node("1:1", "COMPONENT", "Tree Button", box=(5, 5, 10, 10))
            ])],
            components={"1:1": {"name": "Map Button", "description": "from map"}},
        )

        batch = parse(parser, payload)

        assert len(batch.components) == 1
        component = batch.components[0]
        assert component.name == "Map Button"
        assert component.description == "from map"
        assert (component.x, component.y, component.width, component.height) == (5, 5, 10, 10)

    def test_tree_first_policy(self):
        """TREE_FIRST keeps the tree copy of a conflicting component."""
        parser = FigmaParser(ExtractionConfig(conflict_policy=ConflictPolicy.TREE_FIRST))
        payload = make_payload(
            [make_node("1:1", "COMPONENT", "Tree Button")],
            components={"1:1": {"name": "Map Button"}},
        )

        batch = parse(parser, payload)

        assert [c.name for c in batch.components] == ["Tree Button"]


class TestParseFile:
    """File record and ordering."""

    def test_file_record(self, parser, design_payload):
        """The file draft carries name, key, url, thumbnail and inferred size."""
        batch = parse(parser, design_payload)

        assert batch.file.name == "Landing Page"
        assert batch.file.file_key == FILE_KEY
        assert batch.file.url == FILE_URL
        assert batch.file.image_url == "https://figma.example/thumb.png"
        assert batch.file.id is None
        assert (batch.file.canvas_width, batch.file.canvas_height) == (700, 610)

    def test_components_and_instances(self, parser, design_payload):
        """API components come first; orphan instances are dropped."""
        batch = parse(parser, design_payload)

        assert [c.node_id for c in batch.components] == ["1:1", "1:2"]
        assert [c.type for c in batch.components] == ["COMPONENT", "COMPONENT_SET"]
        assert [(i.node_id, i.component_ref.position) for i in batch.instances] == [
            ("2:1", 1), ("2:2", 2)
        ]

    def test_instance_properties(self, parser, design_payload):
        """Visibility is kept as a property; hidden instances stay active."""
        batch = parse(parser, design_payload)
        button, card = batch.instances

        assert button.properties == {"figmaComponentId": "1:1"}
        assert button.active is True
        assert card.properties == {"figmaComponentId": "1:2", "visible": False}
        assert card.active is True

    def test_none_response(self, parser):
        """A missing response is invalid input."""
        with pytest.raises(InvalidInput):
            parser.parse_file(None, FILE_KEY)

    def test_non_document_root(self, parser):
        """A root that is not a DOCUMENT is rejected."""
        response = FigmaAPIResponse.model_validate({
            "name": "x", "document": make_node("0:1", "CANVAS")
        })

        with pytest.raises(InvalidRoot):
            parser.parse_file(response, FILE_KEY)

    def test_depth_bound(self):
        """A tree deeper than max_depth is rejected."""
        parser = FigmaParser(ExtractionConfig(max_depth=3))
        response = FigmaAPIResponse.model_validate(make_payload([
            make_node("a", "FRAME", children=[make_node("b", "FRAME", children=[
                make_node("c", "COMPONENT")
            ])])
        ]))

        with pytest.raises(TreeTooDeep):
            parser.parse_file(response, FILE_KEY)


class TestExtractComponents:
    """Tree-only component extraction."""

    def test_nested_components(self, parser):
        """Components inside components are extracted, parent first."""
        root = Node.model_validate(make_node("0:0", "DOCUMENT", children=[
            make_node("1:1", "COMPONENT_SET", "Set", children=[
                make_node("1:2", "COMPONENT", "Variant A"),
                make_node("1:3", "COMPONENT", "Variant B"),
            ])
        ]))

        components = parser.extract_components(root)

        assert [c.node_id for c in components] == ["1:1", "1:2", "1:3"]
        assert all(c.z_index == 0 and c.file_id == 0 for c in components)

    def test_component_properties(self, parser):
        """The property bag holds visibility and the original node type."""
        root = Node.model_validate(make_node("0:0", "DOCUMENT", children=[
            make_node("1:1", "COMPONENT", "Hidden", visible=False),
            make_node("1:2", "COMPONENT", "Plain"),
        ]))

        hidden, plain = parser.extract_components(root)

        assert hidden.properties == {"visible": False, "nodeType": "COMPONENT"}
        assert plain.properties == {"nodeType": "COMPONENT"}

    def test_component_without_id_is_skipped(self, parser):
        """A malformed component node without an id yields nothing."""
        root = Node.model_validate(make_node("0:0", "DOCUMENT", children=[
            {"type": "COMPONENT", "name": "Nameless"}
        ]))

        assert parser.extract_components(root) == []


class TestExtractInstances:
    """Instance extraction against a given component list."""

    def test_empty_reference_is_skipped(self, parser):
        """An INSTANCE without componentId yields nothing."""
        root = Node.model_validate(make_node("0:0", "DOCUMENT", children=[
            make_node("1:1", "COMPONENT"),
            make_node("2:1", "INSTANCE", componentId=""),
        ]))

        components = parser.extract_components(root)

        assert parser.extract_instances(root, components) == []

    def test_duplicate_instances_in_parse(self, parser):
        """Repeated instance node ids are deduplicated in the batch."""
        payload = make_payload([
            make_node("1:1", "COMPONENT", "Button"),
            make_node("2:1", "INSTANCE", "First", componentId="1:1"),
            make_node("2:1", "INSTANCE", "Second", componentId="1:1"),
        ])

        batch = parse(parser, payload)

        assert [i.name for i in batch.instances] == ["First"]


class TestExtractComponentsFromApi:
    """Components from the file-level maps."""

    def test_map_without_tree_node(self, parser):
        """A map entry with no tree node has no geometry."""
        response = FigmaAPIResponse.from_payload(make_payload(
            [], components={"5:5": {"name": "Remote"}}, component_sets={"6:6": {"name": "Set"}}
        ))

        components = parser.extract_components_from_api(response)

        assert [(c.node_id, c.type) for c in components] == [
            ("5:5", "COMPONENT"), ("6:6", "COMPONENT_SET")
        ]
        assert components[0].width == 0
        assert components[0].properties == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
