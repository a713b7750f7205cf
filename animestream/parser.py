from __future__ import annotations

import re
import unicodedata
from typing import Any, List, Mapping

from bs4 import BeautifulSoup

from animestream.models import CatalogEntry, CatalogPage, Episode, Genre

FRAME_SELECTOR = "div#chapter-video-frame iframe"


def slugify(title: str) -> str:
    """Build the URL slug the streaming site uses for a title.

    'Re:Zero - Starting Life' -> 'rezero-starting-life'
    'Pokémon' -> 'pokemon'
    """
    text = unicodedata.normalize("NFKD", title or "")
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def _mapping(value: Any, what: str) -> Mapping:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{what}' should be an object, got {type(value).__name__}")
    return value


def _data_list(payload: Any) -> list:
    if not isinstance(payload, Mapping):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    data = payload.get("data")
    if not isinstance(data, list):
        raise ValueError("response has no 'data' list")
    for item in data:
        if not isinstance(item, Mapping):
            raise ValueError(f"'data' items should be objects, got {type(item).__name__}")
    return data


def parse_entry(item: Mapping[str, Any]) -> CatalogEntry:
    title = item.get("title") or ""
    if not isinstance(title, str):
        raise ValueError(f"'title' should be a string, got {type(title).__name__}")
    jpg = _mapping(_mapping(item.get("images"), "images").get("jpg"), "images.jpg")
    image_url = jpg.get("image_url") or ""
    return CatalogEntry(id=int(item["mal_id"]), title=title, image_url=image_url, slug=slugify(title))


def parse_catalog_page(payload: Any) -> CatalogPage:
    entries = tuple(parse_entry(item) for item in _data_list(payload))
    pagination = _mapping(payload.get("pagination"), "pagination")
    return CatalogPage(entries=entries, has_next_page=bool(pagination.get("has_next_page", False)))


def parse_genres(payload: Any) -> List[Genre]:
    return [Genre(id=int(item["mal_id"]), name=item.get("name") or "") for item in _data_list(payload)]


def parse_episodes(payload: Any) -> List[Episode]:
    # The streaming site numbers episodes by position in this listing, not by mal_id.
    episodes = []
    for position, item in enumerate(_data_list(payload), start=1):
        mal_id = item.get("mal_id")
        episodes.append(
            Episode(
                ordinal=position,
                title=item.get("title") or f"Episode {position}",
                id=int(mal_id) if mal_id is not None else None,
            )
        )
    return episodes


def extract_frame_src(page: bytes | str) -> str:
    """Return the embedded player URL of an episode page, or ``""``."""
    soup = BeautifulSoup(page, "lxml")
    iframe = soup.select_one(FRAME_SELECTOR)
    if iframe is None:
        return ""
    return (iframe.get("src") or "").strip()
