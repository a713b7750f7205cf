from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple
from urllib.parse import quote

import requests
from loguru import logger

from animestream.config import Settings
from animestream.models import ResolvedStream
from animestream.overrides import StreamOverrides
from animestream.parser import extract_frame_src

# The site zero-pads episode numbers differently from one title to the next.
# Ordered from the most common convention to the least.
NAMING_VARIANTS: Tuple[Tuple[str, Callable[[int], str]], ...] = (
    ("unpadded", lambda n: str(n)),
    ("padded-3", lambda n: f"{n:03d}"),
    ("leading-zero", lambda n: f"0{n}"),
)


class StreamResolver:
    HEADERS = {
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    }

    def __init__(
        self,
        settings: Optional[Settings] = None,
        overrides: Optional[StreamOverrides] = None,
        session: Optional[requests.Session] = None,
        variants: Sequence[Tuple[str, Callable[[int], str]]] = NAMING_VARIANTS,
    ):
        self.settings = settings or Settings()
        self.overrides = overrides if overrides is not None else StreamOverrides()
        self.variants = tuple(variants)
        self.session = session or requests.Session()
        self.session.headers.update(self.HEADERS)

    def candidate_urls(self, slug: str, ordinal: int) -> List[str]:
        if not slug or not slug.strip():
            raise ValueError("slug must not be blank")
        if ordinal < 1:
            raise ValueError(f"episode ordinal must be >= 1, got {ordinal}")
        base = self.settings.stream_base_url.rstrip("/")
        host = quote(self.settings.player_host)
        return [
            f"{base}/anime/{slug}/{slug}-{fmt(ordinal)}-vostfr/?host={host}"
            for _, fmt in self.variants
        ]

    def fetch_frame_src(self, url: str) -> str:
        """Embedded player URL of one candidate page, ``""`` if the candidate failed."""
        try:
            response = self.session.get(url, timeout=self.settings.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"[Resolver] {url} failed: {e}")
            return ""
        src = extract_frame_src(response.content)
        if not src:
            logger.debug(f"[Resolver] no player frame on {url}")
        return src

    def resolve(self, slug: str, ordinal: int, anime_id: Optional[int] = None) -> Optional[ResolvedStream]:
        if self.settings.prefer_overrides and anime_id is not None and anime_id in self.overrides:
            logger.info(f"[Resolver] using override for anime {anime_id}")
            return ResolvedStream(url=self.overrides[anime_id], source="override")

        for url in self.candidate_urls(slug, ordinal):
            logger.debug(f"[Resolver] trying {url}")
            src = self.fetch_frame_src(url)
            if src:
                logger.info(f"[Resolver] {slug} episode {ordinal} -> {src}")
                return ResolvedStream(url=src, source="scraped", page_url=url)

        logger.warning(f"[Resolver] no stream found for {slug} episode {ordinal}")
        return None
