from __future__ import annotations

from typing import Any, List, Optional

import requests
from loguru import logger

from animestream.config import Settings
from animestream.errors import CatalogFetchError
from animestream.models import CatalogFilterState, CatalogPage, Episode, Genre
from animestream.parser import parse_catalog_page, parse_episodes, parse_genres


class JikanClient:
    """Thin wrapper over the Jikan v4 REST endpoints the catalog needs."""

    HEADERS = {"Accept": "application/json"}

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or Settings()
        self.base_url = self.settings.jikan_base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(self.HEADERS)

    def _get_json(self, path: str, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.settings.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.warning(f"[Jikan] GET {url} {params or ''} failed: {e}")
            raise CatalogFetchError(f"Could not reach the catalog service: {e}", url=url) from e
        except ValueError as e:
            logger.warning(f"[Jikan] GET {url} returned invalid JSON: {e}")
            raise CatalogFetchError("The catalog service returned an invalid response", url=url) from e

    def _get_page(self, path: str, params: dict) -> CatalogPage:
        payload = self._get_json(path, params)
        try:
            return parse_catalog_page(payload)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise CatalogFetchError(f"Malformed catalog page: {e}", url=f"{self.base_url}/{path}") from e

    def top_anime(self, page: int = 1) -> CatalogPage:
        return self._get_page("top/anime", {"page": page})

    def anime_by_genre(self, genre_id: int, page: int = 1) -> CatalogPage:
        return self._get_page("anime", {"genres": genre_id, "page": page})

    def search_anime(self, query: str, page: int = 1) -> CatalogPage:
        return self._get_page("anime", {"q": query, "page": page})

    def search_anime_with_genre(self, query: str, genre_id: int, page: int = 1) -> CatalogPage:
        return self._get_page("anime", {"q": query, "genres": genre_id, "page": page})

    def fetch_page(self, state: CatalogFilterState) -> CatalogPage:
        """Issue the single request that matches ``state``.

        Search with genre beats plain search, which beats genre browsing;
        with no filter at all the top list is shown.
        """
        if state.search_query:
            if state.genre_id is not None:
                return self.search_anime_with_genre(state.search_query, state.genre_id, state.page)
            return self.search_anime(state.search_query, state.page)
        if state.genre_id is not None:
            return self.anime_by_genre(state.genre_id, state.page)
        return self.top_anime(state.page)

    def genres(self) -> List[Genre]:
        payload = self._get_json("genres/anime")
        try:
            return parse_genres(payload)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise CatalogFetchError(f"Malformed genre list: {e}") from e

    def episodes(self, anime_id: int) -> List[Episode]:
        payload = self._get_json(f"anime/{anime_id}/episodes")
        try:
            return parse_episodes(payload)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise CatalogFetchError(f"Malformed episode list: {e}") from e
