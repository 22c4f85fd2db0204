"""
Shared fixtures: an in-memory content store double and a URL generator.
"""

from typing import Any, Dict, List, Mapping, Optional

import pytest

from cmf_search.query import QueryBuilder, QueryDescriptor
from cmf_search.store import NodeNotFoundError, ResultRow


class FakeStore:
    """Records every executed descriptor and serves canned rows."""

    def __init__(
        self,
        rows: Optional[List[ResultRow]] = None,
        parents: Optional[Dict[str, str]] = None,
        nodes: Optional[Dict[str, Dict[str, Any]]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.rows = rows or []
        self.parents = parents or {}
        self.nodes = nodes or {}
        self.error = error
        self.builders: List[QueryBuilder] = []
        self.descriptors: List[QueryDescriptor] = []
        self.lookups: List[str] = []

    def create_query_builder(self) -> QueryBuilder:
        builder = QueryBuilder()
        self.builders.append(builder)
        return builder

    async def execute(self, descriptor: QueryDescriptor) -> List[ResultRow]:
        self.descriptors.append(descriptor)
        if self.error is not None:
            raise self.error
        return list(self.rows)

    async def get_node_identifier(self, path: str) -> str:
        self.lookups.append(path)
        if path not in self.parents:
            raise NodeNotFoundError(path)
        return self.parents[path]

    async def find_by_identifier(self, content_id: str) -> Dict[str, Any]:
        for key in (content_id, "/" + content_id.lstrip("/")):
            if key in self.nodes:
                return self.nodes[key]
        raise NodeNotFoundError(content_id)


class FakeUrlGenerator:
    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def generate(self, route_name: Optional[str], params: Mapping[str, Any]) -> str:
        self.calls.append((route_name, dict(params)))
        return f"/content/{params['content_id']}"


@pytest.fixture
def field_map() -> Dict[str, str]:
    return {"title": "title", "summary": "body"}


@pytest.fixture
def url_generator() -> FakeUrlGenerator:
    return FakeUrlGenerator()


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def make_store():
    return FakeStore
