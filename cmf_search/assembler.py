"""Query assembly for multi-field full-text searches and result row mapping."""
from __future__ import annotations

import posixpath
import re
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .models import SearchResultItem
from .normalize import summarize
from .query import Comparison, Constraint, DescendantNode, FullTextSearch, NodeName, OrConstraint, QueryBuilder, QueryDescriptor
from .routing import UrlGenerator
from .store import CLASS_PROPERTY, IDENTIFIER_PROPERTY, ContentStore, ResultRow

NODE_TYPE = "nt:unstructured"
LOCALE_NODE_PREFIX = "phpcr_locale:"

_LANGUAGE_RE = re.compile(r"^[A-Za-z]{2}$")


def resolve_language(
    requested_lang: Optional[str], request_locale: Optional[str], restrict_by_language: bool
) -> Union[str, bool, None]:
    """Pick the language used to restrict results, or False when results are not restricted."""
    if not restrict_by_language:
        return False
    if requested_lang is not None:
        return requested_lang
    return request_locale


def is_language_code(language: Any) -> bool:
    return isinstance(language, str) and bool(_LANGUAGE_RE.match(language))


def build_query(
    builder: QueryBuilder,
    query: str,
    page: int,
    language: Union[str, bool, None],
    per_page: int,
    search_path: str,
    field_map: Mapping[str, str],
    translation_strategy: Optional[str],
) -> QueryDescriptor:
    if page < 1:
        raise ValueError("page must be >= 1")
    if per_page < 1:
        raise ValueError("per_page must be >= 1")
    if not field_map:
        raise ValueError("field map must name at least one property to search")

    builder.select(IDENTIFIER_PROPERTY).add_select(CLASS_PROPERTY).from_(NODE_TYPE)
    builder.where(DescendantNode(search_path))
    builder.set_first_result((page - 1) * per_page).set_max_results(per_page)

    constraint: Optional[Constraint] = None
    for field in field_map.values():
        builder.add_select(field)
        predicate = FullTextSearch(field, query)
        constraint = predicate if constraint is None else OrConstraint(constraint, predicate)
    builder.and_where(constraint)

    # attribute translations carry no constraint yet
    if translation_strategy == "child" and is_language_code(language):
        builder.and_where(Comparison(NodeName(NODE_TYPE), "=", LOCALE_NODE_PREFIX + language))

    return builder.get_query()


async def content_id_for_row(store: ContentStore, row: ResultRow) -> str:
    """Translated child nodes link to their parent; other nodes to themselves."""
    if not row.get_value(CLASS_PROPERTY):
        return await store.get_node_identifier(posixpath.dirname(row.path))
    return row.identifier or row.path


async def map_results(
    store: ContentStore,
    rows: Iterable[ResultRow],
    field_map: Mapping[str, str],
    url_generator: UrlGenerator,
) -> Dict[str, SearchResultItem]:
    """Map rows to result items keyed by content id; a repeated id keeps the later row."""
    results: Dict[str, SearchResultItem] = {}
    for row in rows:
        content_id = await content_id_for_row(store, row)
        results[content_id] = SearchResultItem(
            content_id=content_id,
            url=url_generator.generate(None, {"content_id": content_id}),
            title=row.get_value(field_map["title"]),
            summary=summarize(row.get_value(field_map["summary"])),
        )
    return results


__all__ = [
    "LOCALE_NODE_PREFIX",
    "NODE_TYPE",
    "build_query",
    "content_id_for_row",
    "is_language_code",
    "map_results",
    "resolve_language",
]
