"""
Shared fixtures for the figma_parser test suite.
"""

from typing import Any, Dict, List, Optional

import pytest

from figma_parser.config import FigmaCredentials
from figma_parser.errors import StorageError
from figma_parser.storage.mock_store import MockDesignStore

FILE_KEY = "abcDEF123456"
FILE_URL = f"https://www.figma.com/design/{FILE_KEY}/Landing-Page"
TOKEN = "figd_test_token"


def make_node(
    node_id: str,
    node_type: str,
    name: str = "",
    children: Optional[List[Dict[str, Any]]] = None,
    box: Optional[tuple] = None,
    **extra: Any
) -> Dict[str, Any]:
    """Build a raw Figma node payload."""
    node: Dict[str, Any] = {"id": node_id, "type": node_type, "name": name or node_id}
    if box is not None:
        x, y, width, height = box
        node["absoluteBoundingBox"] = {"x": x, "y": y, "width": width, "height": height}
    if children is not None:
        node["children"] = children
    node.update(extra)
    return node


def make_payload(
    children: List[Dict[str, Any]],
    components: Optional[Dict[str, Any]] = None,
    component_sets: Optional[Dict[str, Any]] = None,
    name: str = "Landing Page"
) -> Dict[str, Any]:
    """Build a raw response of the Figma file endpoint."""
    return {
        "name": name,
        "thumbnailUrl": "https://figma.example/thumb.png",
        "document": make_node("0:0", "DOCUMENT", "Document", children=children),
        "components": components or {},
        "componentSets": component_sets or {},
    }


@pytest.fixture
def design_payload() -> Dict[str, Any]:
    """A page with a button component, a card set and three instances."""
    button = make_node("1:1", "COMPONENT", "Button", box=(0, 0, 120, 40), visible=True)
    card_set = make_node("1:2", "COMPONENT_SET", "Card", box=(200, 0, 300, 200))
    canvas = make_node("0:1", "CANVAS", "Page 1", children=[
        button,
        card_set,
        make_node("2:1", "INSTANCE", "Button#1", box=(10, 300, 120, 40), componentId="1:1"),
        make_node("2:2", "INSTANCE", "Card#1", box=(400, 300, 300, 200),
                  componentId="1:2", visible=False),
        make_node("2:3", "INSTANCE", "Orphan", box=(0, 600, 10, 10), componentId="9:9"),
    ])
    return make_payload(
        [canvas],
        components={"1:1": {"name": "Button", "description": "Primary button"}},
    )


@pytest.fixture
def credentials() -> FigmaCredentials:
    return FigmaCredentials.from_token(TOKEN)


@pytest.fixture
def mock_store(tmp_path) -> MockDesignStore:
    return MockDesignStore(str(tmp_path / "design_store.json"))


class FailingStore(MockDesignStore):
    """Mock store that fails the n-th write of one kind."""

    def __init__(self, path: str, fail_kind: str, fail_at: int = 1):
        super().__init__(path)
        self.fail_kind = fail_kind
        self.fail_at = fail_at
        self.calls = {"file": 0, "component": 0, "instance": 0}

    def _maybe_fail(self, kind: str) -> None:
        self.calls[kind] += 1
        if kind == self.fail_kind and self.calls[kind] == self.fail_at:
            raise StorageError(f"{kind} write refused")

    def create_file(self, design_file):
        self._maybe_fail("file")
        return super().create_file(design_file)

    def create_component(self, component):
        self._maybe_fail("component")
        return super().create_component(component)

    def create_instance(self, instance):
        self._maybe_fail("instance")
        return super().create_instance(instance)


class CommitFailingStore(MockDesignStore):
    """Mock store whose unit of work cannot save its working copy."""

    def _save_state(self, state):
        if self._working is not None:
            raise StorageError("Failed to save store: disk full")
        super()._save_state(state)
