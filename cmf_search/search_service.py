"""Search service orchestrating query assembly, execution, and result mapping."""
from __future__ import annotations

import logging
import time
from typing import Dict, Mapping, Optional

from .assembler import build_query, map_results, resolve_language
from .config import settings
from .logging_utils import clear_request_context, log_stage, new_request_id, set_request_context
from .models import SearchPage, SearchResultItem
from .routing import UrlGenerator
from .store import ContentStore


logger = logging.getLogger("uvicorn.error")


def validate_page(page: Optional[int]) -> int:
    if page is None:
        return 1
    if page < 1:
        raise ValueError("page must be >= 1")
    return page


def validate_per_page(per_page: Optional[int]) -> int:
    if per_page is None:
        return settings.per_page
    if per_page <= 0:
        raise ValueError("per_page must be > 0")
    if per_page > settings.max_per_page:
        raise ValueError(f"per_page must be <= {settings.max_per_page}")
    return per_page


async def find_content(
    store: ContentStore,
    url_generator: UrlGenerator,
    query: str,
    page: int,
    language,
    per_page: int,
    *,
    search_path: str,
    field_map: Mapping[str, str],
    translation_strategy: Optional[str],
) -> Dict[str, SearchResultItem]:
    """Run one full-text search; an empty query never reaches the store."""
    if query == "":
        return {}

    builder = store.create_query_builder()
    descriptor = build_query(builder, query, page, language, per_page, search_path, field_map, translation_strategy)

    start = time.perf_counter()
    rows = await store.execute(descriptor)
    log_stage("rows_fetched", rows, duration_ms=(time.perf_counter() - start) * 1000)

    start = time.perf_counter()
    results = await map_results(store, rows, field_map, url_generator)
    log_stage("mapped", results.values(), duration_ms=(time.perf_counter() - start) * 1000)
    return results


async def search(
    store: ContentStore,
    url_generator: UrlGenerator,
    query: Optional[str] = None,
    page: Optional[int] = None,
    lang: Optional[str] = None,
    *,
    request_locale: Optional[str] = None,
    per_page: Optional[int] = None,
) -> SearchPage:
    """Build the result page for a search request using the configured repository scope."""
    page = validate_page(page)
    per_page = validate_per_page(per_page)
    query = query or ""
    language = resolve_language(lang, request_locale or settings.default_locale, settings.restrict_by_language)

    set_request_context(new_request_id(), query, page, per_page)
    try:
        results = await find_content(
            store,
            url_generator,
            query,
            page,
            language,
            per_page,
            search_path=settings.search_path,
            field_map=settings.search_fields,
            translation_strategy=settings.translation_strategy,
        )
        logger.info("search summary: page=%d per_page=%d language=%s results=%d", page, per_page, language, len(results))
        return SearchPage(
            search_term=query,
            search_results=results,
            estimated=len(results),
            translation_domain=settings.translation_domain,
            show_paging=False,
            start=page,
            per_page=per_page,
            search_route=settings.search_route,
        )
    finally:
        clear_request_context()


__all__ = [
    "find_content",
    "search",
    "validate_page",
    "validate_per_page",
]
