from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from loguru import logger

# Hand-checked embeds for titles the episode pages don't resolve for.
DEFAULT_STREAM_LINKS = {
    19: "https://streamtape.com/e/r0oglQ0ABrS81r",
    20: "https://streamtape.com/e/pajZWVkB3vtrd8m",
    21: "https://streamtape.com/e/3popy1kWWesard",
    813: "https://streamtape.com/e/4q14x7AGjvUKPxY",
    820: "https://streamtape.com/e/lQ9G36Z12Wu7Jv8",
    918: "https://streamtape.com/e/mOM4o1kpV9FbZdg",
    1535: "https://streamtape.com/e/OXkeAvW9eOUggK",
    1735: "https://streamtape.com/e/vodzMWPRx1HYxa",
    4181: "https://streamtape.com/e/9RX3PrRJq6takp3",
    5114: "https://streamtape.com/e/myJvjA1x8rfbwz9",
    9253: "https://streamtape.com/e/1z1A21zebMceaoA",
    11061: "https://streamtape.com/e/prxL663adYtr4Xy",
    16498: "https://voe.sx/e/be5f5qx0evy5",
    28977: "https://streamtape.com/e/zJoMVoGX06tYwpm",
    30694: "https://streamtape.com/e/BGvLQ2jPYmfyaQ6",
    38524: "https://streamtape.com/e/goge8O7PpwtqDpq",
    41467: "https://streamtape.com/e/p4ZjkeWjbAHr2P9",
    42938: "https://streamtape.com/e/41pjPVzJeOfKo3R",
    43608: "https://streamtape.com/e/ePgZXo1JOOhYG1R",
    52991: "https://streamtape.com/e/y09aoRaaj3t3Kj",
}


class StreamOverrides(Mapping[int, str]):
    """Read-only anime id -> direct embed URL table."""

    def __init__(self, links: Optional[Mapping[int, str]] = None):
        cleaned = {}
        for anime_id, url in (links or {}).items():
            url = (url or "").strip()
            if url:
                cleaned[int(anime_id)] = url
        self._links = MappingProxyType(cleaned)

    def __getitem__(self, anime_id: int) -> str:
        return self._links[anime_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._links)

    def __len__(self) -> int:
        return len(self._links)

    def __repr__(self) -> str:
        return f"StreamOverrides({len(self)} entries)"

    @classmethod
    def load(cls, path: Optional[str] = None) -> StreamOverrides:
        """Built-in table, extended by a ``{"id": "url"}`` JSON file when given."""
        links = dict(DEFAULT_STREAM_LINKS)
        if path:
            with Path(path).open("r", encoding="utf-8") as f:
                extra = json.load(f)
            if not isinstance(extra, dict):
                raise ValueError(f"{path}: expected a JSON object of id -> url")
            links.update({int(k): v for k, v in extra.items()})
            logger.info(f"[Overrides] Loaded {len(extra)} entries from {path}")
        return cls(links)
