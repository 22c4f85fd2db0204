from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str = Field("", description="Search query text; empty returns no results")
    page: int = Field(1, ge=1, description="1-based result page")
    lang: Optional[str] = Field(None, description="Language used to restrict results")
    per_page: Optional[int] = Field(None, description="Results per page; bounded by the max_per_page setting")


class SearchResultItem(BaseModel):
    content_id: str
    url: str
    title: Any = None
    summary: str = ""


class SearchPage(BaseModel):
    """Everything the result template needs for one request."""

    search_term: str
    search_results: Dict[str, SearchResultItem] = Field(default_factory=dict)
    estimated: int = 0
    translation_domain: str
    show_paging: bool = False
    start: int = 1
    per_page: int
    search_route: str

    def template_context(self) -> Dict[str, Any]:
        return {
            "searchTerm": self.search_term,
            "searchResults": self.search_results,
            "estimated": self.estimated,
            "translationDomain": self.translation_domain,
            "showPaging": self.show_paging,
            "start": self.start,
            "perPage": self.per_page,
            "searchRoute": self.search_route,
        }


class SearchResponse(BaseModel):
    results: List[SearchResultItem]
    total_count: int
    page: int
    per_page: int
