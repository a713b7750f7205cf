from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

JIKAN_BASE_URL = "https://api.jikan.moe/v4"
STREAM_BASE_URL = "https://v6.voiranime.com"
PLAYER_HOST = "LECTEUR FHD1"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass(slots=True, frozen=True)
class Settings:
    jikan_base_url: str = JIKAN_BASE_URL
    stream_base_url: str = STREAM_BASE_URL
    player_host: str = PLAYER_HOST
    timeout: float = 10.0
    min_query_length: int = 3
    prefer_overrides: bool = True
    overrides_file: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            jikan_base_url=os.getenv("ANIMESTREAM_JIKAN_BASE", JIKAN_BASE_URL).rstrip("/"),
            stream_base_url=os.getenv("ANIMESTREAM_STREAM_BASE", STREAM_BASE_URL).rstrip("/"),
            player_host=os.getenv("ANIMESTREAM_PLAYER_HOST", PLAYER_HOST),
            timeout=float(os.getenv("ANIMESTREAM_TIMEOUT", "10")),
            min_query_length=int(os.getenv("ANIMESTREAM_MIN_QUERY_LENGTH", "3")),
            prefer_overrides=_env_bool("ANIMESTREAM_PREFER_OVERRIDES", True),
            overrides_file=os.getenv("ANIMESTREAM_OVERRIDES_FILE") or None,
            log_level=os.getenv("ANIMESTREAM_LOG_LEVEL", "INFO").upper(),
        )
