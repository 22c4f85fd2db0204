"""Content store interface and its MongoDB Atlas implementation."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection

from .query import (
    AndConstraint,
    Comparison,
    Constraint,
    DescendantNode,
    FullTextSearch,
    OrConstraint,
    QueryBuilder,
    QueryDescriptor,
    contains_full_text,
)
from .normalize import sanitize_value

IDENTIFIER_PROPERTY = "jcr:uuid"
CLASS_PROPERTY = "phpcr:class"


class NodeNotFoundError(LookupError):
    """Raised when no node exists at a requested path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"no node at path {path!r}")
        self.path = path


@dataclass
class ResultRow:
    path: str
    values: Dict[str, Any] = field(default_factory=dict)

    def get_value(self, name: str) -> Any:
        return self.values.get(name)

    @property
    def identifier(self) -> Optional[str]:
        return self.values.get(IDENTIFIER_PROPERTY) or None


class ContentStore(Protocol):
    """Capabilities the search layer needs from a repository backend."""

    def create_query_builder(self) -> QueryBuilder:
        ...

    async def execute(self, descriptor: QueryDescriptor) -> List[ResultRow]:
        ...

    async def get_node_identifier(self, path: str) -> str:
        ...


def _search_operator(constraint: Constraint) -> Dict[str, Any]:
    if isinstance(constraint, FullTextSearch):
        return {"text": {"query": constraint.term, "path": f"properties.{constraint.property_name}"}}
    if isinstance(constraint, OrConstraint):
        return {
            "compound": {
                "should": [_search_operator(constraint.left), _search_operator(constraint.right)],
                "minimumShouldMatch": 1,
            }
        }
    if isinstance(constraint, AndConstraint):
        return {"compound": {"must": [_search_operator(constraint.left), _search_operator(constraint.right)]}}
    raise ValueError(f"constraint {constraint!r} cannot be combined with a full-text search")


def _match_filter(constraint: Constraint) -> Dict[str, Any]:
    if isinstance(constraint, DescendantNode):
        prefix = constraint.path.rstrip("/") + "/"
        return {"path": {"$regex": "^" + re.escape(prefix)}}
    if isinstance(constraint, Comparison):
        if constraint.operator != "=":
            raise ValueError(f"unsupported comparison operator {constraint.operator!r}")
        return {"name": constraint.literal}
    if isinstance(constraint, OrConstraint):
        return {"$or": [_match_filter(constraint.left), _match_filter(constraint.right)]}
    if isinstance(constraint, AndConstraint):
        return {"$and": [_match_filter(constraint.left), _match_filter(constraint.right)]}
    raise ValueError(f"unsupported constraint {constraint!r}")


def compile_pipeline(descriptor: QueryDescriptor, index_name: str) -> List[Dict[str, Any]]:
    """Translate a descriptor into an aggregation pipeline with an Atlas $search stage."""
    if descriptor.first_result < 0:
        raise ValueError(f"first_result must be >= 0, got {descriptor.first_result}")

    text_parts = [c for c in descriptor.constraints if contains_full_text(c)]
    filters = [c for c in descriptor.constraints if not contains_full_text(c)]

    pipeline: List[Dict[str, Any]] = []
    if text_parts:
        if len(text_parts) == 1:
            operator = _search_operator(text_parts[0])
        else:
            operator = {"compound": {"must": [_search_operator(c) for c in text_parts]}}
        pipeline.append({"$search": {"index": index_name, **operator}})

    if filters:
        pipeline.append({"$match": {"$and": [_match_filter(c) for c in filters]}})
    if descriptor.first_result:
        pipeline.append({"$skip": descriptor.first_result})
    if descriptor.max_results is not None:
        pipeline.append({"$limit": descriptor.max_results})

    projection: Dict[str, Any] = {"_id": 0, "path": 1}
    for column in descriptor.columns:
        projection[f"properties.{column}"] = 1
    pipeline.append({"$project": projection})
    return pipeline


def _node_identifier(doc: Dict[str, Any]) -> str:
    properties = doc.get("properties") or {}
    return str(properties.get(IDENTIFIER_PROPERTY) or doc["path"])


class MongoContentStore:
    """Node documents shaped ``{path, name, properties}`` in a single collection."""

    def __init__(self, collection: AsyncIOMotorCollection, index_name: str) -> None:
        self.collection = collection
        self.index_name = index_name

    def create_query_builder(self) -> QueryBuilder:
        return QueryBuilder()

    async def execute(self, descriptor: QueryDescriptor) -> List[ResultRow]:
        pipeline = compile_pipeline(descriptor, self.index_name)
        rows: List[ResultRow] = []
        cursor = self.collection.aggregate(pipeline)
        async for doc in cursor:
            properties = sanitize_value(doc.get("properties") or {})
            rows.append(ResultRow(path=doc["path"], values=properties))
        return rows

    async def get_node(self, path: str) -> Dict[str, Any]:
        doc = await self.collection.find_one({"path": path}, {"_id": 0})
        if doc is None:
            raise NodeNotFoundError(path)
        return sanitize_value(doc)

    async def get_node_identifier(self, path: str) -> str:
        return _node_identifier(await self.get_node(path))

    async def find_by_identifier(self, content_id: str) -> Dict[str, Any]:
        """Look a node up by its identifier, falling back to treating the id as an absolute path."""
        doc = await self.collection.find_one({f"properties.{IDENTIFIER_PROPERTY}": content_id}, {"_id": 0})
        if doc is None:
            doc = await self.collection.find_one({"path": "/" + content_id.lstrip("/")}, {"_id": 0})
        if doc is None:
            raise NodeNotFoundError(content_id)
        return sanitize_value(doc)


__all__ = [
    "CLASS_PROPERTY",
    "ContentStore",
    "IDENTIFIER_PROPERTY",
    "MongoContentStore",
    "NodeNotFoundError",
    "ResultRow",
    "compile_pipeline",
]
