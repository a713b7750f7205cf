from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple


@dataclass(slots=True, frozen=True)
class CatalogEntry:
    id: int
    title: str
    image_url: str
    slug: str


@dataclass(slots=True, frozen=True)
class CatalogPage:
    entries: Tuple[CatalogEntry, ...] = ()
    has_next_page: bool = False


@dataclass(slots=True, frozen=True)
class Genre:
    id: int
    name: str


@dataclass(slots=True, frozen=True)
class Episode:
    ordinal: int
    title: str
    id: Optional[int] = None


@dataclass(slots=True, frozen=True)
class ResolvedStream:
    url: str
    source: str = "scraped"
    page_url: str = ""


@dataclass(slots=True, frozen=True)
class CatalogFilterState:
    """What the catalog should fetch next.

    Changing the search query or the genre always lands on page 1; moving
    between pages keeps both filters.
    """

    page: int = 1
    genre_id: Optional[int] = None
    search_query: Optional[str] = None

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.search_query is not None and not self.search_query.strip():
            raise ValueError("search_query must be None or non-blank")

    def with_page(self, page: int) -> CatalogFilterState:
        return replace(self, page=page)

    def with_genre(self, genre_id: Optional[int]) -> CatalogFilterState:
        return replace(self, genre_id=genre_id, page=1)

    def with_search(self, query: Optional[str]) -> CatalogFilterState:
        query = query.strip() if query else ""
        return replace(self, search_query=query or None, page=1)


@dataclass(slots=True, frozen=True)
class CatalogSnapshot:
    state: CatalogFilterState = field(default_factory=CatalogFilterState)
    entries: Tuple[CatalogEntry, ...] = ()
    has_next: bool = False
    has_previous: bool = False
    loading: bool = False
    error: Optional[str] = None
