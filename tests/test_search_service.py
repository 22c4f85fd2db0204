"""Search orchestration tests."""

import pytest

from cmf_search.config import settings
from cmf_search.query import Comparison, FullTextSearch, NodeName, OrConstraint
from cmf_search.search_service import search, validate_page, validate_per_page
from cmf_search.store import ResultRow


def _row(uuid, title="Cat facts", body="<p>Cats sleep a lot.</p>"):
    return ResultRow(path=f"/cms/content/{uuid}", values={"phpcr:class": "Page", "jcr:uuid": uuid, "title": title, "body": body})


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", None])
@pytest.mark.parametrize("page", [1, 4])
async def test_empty_query_never_touches_store(fake_store, url_generator, query, page):
    result = await search(fake_store, url_generator, query, page, "de")

    assert fake_store.builders == []
    assert fake_store.descriptors == []
    assert result.search_results == {}
    assert result.estimated == 0
    assert result.start == page


@pytest.mark.asyncio
async def test_query_text_reaches_store_verbatim(fake_store, url_generator):
    typed = "  “cat” • dog "

    result = await search(fake_store, url_generator, typed, 1)

    assert result.search_term == typed
    assert fake_store.descriptors[0].constraints[1] == OrConstraint(
        FullTextSearch("title", typed), FullTextSearch("body", typed)
    )


@pytest.mark.asyncio
async def test_whitespace_query_still_searches(fake_store, url_generator):
    result = await search(fake_store, url_generator, "   ", 1)

    assert len(fake_store.descriptors) == 1
    assert result.search_term == "   "


@pytest.mark.asyncio
async def test_search_maps_rows_into_page(make_store, url_generator):
    store = make_store(rows=[_row("a"), _row("b")])

    result = await search(store, url_generator, "cat", 2)

    assert list(result.search_results) == ["a", "b"]
    assert result.estimated == 2
    assert result.search_results["a"].summary == "Cats sleep a lot."
    assert result.show_paging is False
    assert result.start == 2
    assert result.per_page == settings.per_page
    assert result.search_route == settings.search_route
    assert result.translation_domain == settings.translation_domain
    assert store.descriptors[0].first_result == settings.per_page


@pytest.mark.asyncio
async def test_template_context_uses_template_names(make_store, url_generator):
    result = await search(make_store(rows=[_row("a")]), url_generator, "cat")

    context = result.template_context()

    assert set(context) == {
        "searchTerm",
        "searchResults",
        "estimated",
        "translationDomain",
        "showPaging",
        "start",
        "perPage",
        "searchRoute",
    }
    assert context["searchTerm"] == "cat"
    assert context["estimated"] == 1


@pytest.mark.asyncio
async def test_language_restriction_uses_request_locale(monkeypatch, make_store, url_generator):
    monkeypatch.setattr(settings, "restrict_by_language", True)
    monkeypatch.setattr(settings, "translation_strategy", "child")
    store = make_store()

    await search(store, url_generator, "cat", 1, None, request_locale="fr")

    assert store.descriptors[0].constraints[-1] == Comparison(NodeName("nt:unstructured"), "=", "phpcr_locale:fr")


@pytest.mark.asyncio
async def test_unrestricted_search_ignores_requested_language(monkeypatch, make_store, url_generator):
    monkeypatch.setattr(settings, "restrict_by_language", False)
    monkeypatch.setattr(settings, "translation_strategy", "child")
    store = make_store()

    await search(store, url_generator, "cat", 1, "de", request_locale="fr")

    assert len(store.descriptors[0].constraints) == 2


@pytest.mark.asyncio
async def test_store_errors_propagate(make_store, url_generator):
    store = make_store(error=RuntimeError("store down"))

    with pytest.raises(RuntimeError, match="store down"):
        await search(store, url_generator, "cat")


@pytest.mark.asyncio
async def test_invalid_page_is_rejected_before_querying(fake_store, url_generator):
    with pytest.raises(ValueError):
        await search(fake_store, url_generator, "cat", 0)
    assert fake_store.descriptors == []


def test_validate_page_defaults_to_first():
    assert validate_page(None) == 1
    assert validate_page(3) == 3


def test_validate_per_page_bounds():
    assert validate_per_page(None) == settings.per_page
    with pytest.raises(ValueError):
        validate_per_page(0)
    with pytest.raises(ValueError):
        validate_per_page(settings.max_per_page + 1)
