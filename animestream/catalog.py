from __future__ import annotations

import threading
from typing import List, Optional, Tuple

from loguru import logger

from animestream.config import Settings
from animestream.errors import CatalogFetchError, EmptyQueryError
from animestream.jikan import JikanClient
from animestream.models import CatalogEntry, CatalogFilterState, CatalogSnapshot, Genre


class CatalogQueryEngine:
    """Filter, search and paging state for the catalog list.

    Every change of state issues exactly one request through ``client``. A
    successful page replaces the list wholesale; a failed one leaves the last
    good list and its state in place and records a retryable error. Responses
    that arrive after a newer request was issued are dropped.

    ``state`` is the state the displayed list was fetched with, ``target`` the
    state most recently asked for. They differ only while a request is in
    flight or after it failed.
    """

    def __init__(self, client: JikanClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or client.settings
        self._lock = threading.Lock()
        self._state = CatalogFilterState()
        self._target = self._state
        self._entries: Tuple[CatalogEntry, ...] = ()
        self._has_next = False
        self._error: Optional[str] = None
        self._generation = 0
        self._pending = 0
        self.loaded = False

    @property
    def state(self) -> CatalogFilterState:
        return self._state

    @property
    def target(self) -> CatalogFilterState:
        return self._target

    @property
    def entries(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    @property
    def has_next(self) -> bool:
        return self._has_next

    @property
    def has_previous(self) -> bool:
        return self._state.page > 1

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> CatalogSnapshot:
        with self._lock:
            return CatalogSnapshot(
                state=self._state,
                entries=self._entries,
                has_next=self._has_next,
                has_previous=self._state.page > 1,
                loading=self._pending > 0,
                error=self._error,
            )

    def _load(self, state: CatalogFilterState) -> bool:
        with self._lock:
            self._target = state
            self._generation += 1
            generation = self._generation
            self._pending += 1

        try:
            page = self.client.fetch_page(state)
        except CatalogFetchError as e:
            with self._lock:
                if generation != self._generation:
                    return False
                self._error = str(e)
            logger.warning(f"[Catalog] fetch failed for {state}: {e}")
            return False
        else:
            with self._lock:
                if generation != self._generation:
                    logger.debug(f"[Catalog] dropping stale response for {state}")
                    return False
                self._state = state
                self._entries = page.entries
                self._has_next = page.has_next_page
                self._error = None
                self.loaded = True
            logger.info(f"[Catalog] page {state.page}: {len(page.entries)} entries, has_next={page.has_next_page}")
            return True
        finally:
            with self._lock:
                self._pending -= 1

    def refresh(self) -> bool:
        with self._lock:
            target = self._target
        return self._load(target)

    def retry(self) -> bool:
        return self.refresh()

    def next_page(self) -> bool:
        with self._lock:
            if not self._has_next:
                return False
            state = self._state.with_page(self._state.page + 1)
        return self._load(state)

    def previous_page(self) -> bool:
        with self._lock:
            if self._state.page <= 1:
                return False
            state = self._state.with_page(self._state.page - 1)
        return self._load(state)

    def set_genre(self, genre_id: Optional[int]) -> bool:
        with self._lock:
            state = self._target.with_genre(genre_id)
        return self._load(state)

    def query_text_changed(self, text: str) -> bool:
        """Incremental search: short text is ignored, empty text clears the search."""
        trimmed = (text or "").strip()
        if trimmed and len(trimmed) < self.settings.min_query_length:
            return False
        with self._lock:
            state = self._target.with_search(trimmed or None)
        return self._load(state)

    def query_submitted(self, text: str) -> bool:
        try:
            state = self._search_state(text)
        except EmptyQueryError:
            logger.debug("[Catalog] ignoring blank search submit")
            return False
        return self._load(state)

    def _search_state(self, text: str) -> CatalogFilterState:
        trimmed = (text or "").strip()
        if not trimmed:
            raise EmptyQueryError("search text is empty")
        with self._lock:
            return self._target.with_search(trimmed)

    def load_genres(self) -> List[Genre]:
        return self.client.genres()
