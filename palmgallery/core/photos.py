"""
Photo index: the ordered list of filenames the display can show.

The interpreter only reads it (random pick, swipe neighbours). Loading is
lazy: a failed or empty load is retried on the next access instead of being
polled in the background.
"""

from __future__ import annotations

import json
import logging
import random
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import requests

from palmgallery.core.errors import PhotoIndexError

logger = logging.getLogger(__name__)

Loader = Callable[[], Sequence[str]]

# shipped sample set, used when the service is unreachable and the caller asks for it
DEFAULT_PHOTOS = ("2025_12_1.jpg", "2025_12_2.jpg", "2025_12_3.jpg", "2025_12_4.jpg", "2025_12_5.jpg")


def _parse_listing(data) -> List[str]:
    # the service returns either bare filenames or {"filename": ...} records
    if not isinstance(data, list):
        raise PhotoIndexError(f"photo listing must be a JSON array, got {type(data).__name__}")
    out: List[str] = []
    for item in data:
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, dict) and isinstance(item.get("filename"), str):
            out.append(item["filename"])
        else:
            raise PhotoIndexError(f"unrecognized photo entry: {item!r}")
    return out


def json_file_loader(path: str | Path) -> Loader:
    p = Path(path).expanduser()

    def load() -> List[str]:
        try:
            return _parse_listing(json.loads(p.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            raise PhotoIndexError(f"cannot read {p}: {e}") from e

    return load


def http_loader(url: str, timeout_s: float = 3.0) -> Loader:
    def load() -> List[str]:
        try:
            resp = requests.get(url, timeout=timeout_s)
            resp.raise_for_status()
            return _parse_listing(resp.json())
        except (requests.RequestException, ValueError) as e:
            raise PhotoIndexError(f"cannot fetch {url}: {e}") from e

    return load


def loader_for(source: str) -> Loader:
    if source.startswith(("http://", "https://")):
        return http_loader(source)
    return json_file_loader(source)


class PhotoIndex:
    """
    After a failed or empty load the loader is not called again for
    `retry_s` seconds; lookups in between see an empty index.
    """

    def __init__(self, files: Sequence[str] = (), loader: Optional[Loader] = None,
                 fallback: Sequence[str] = (), retry_s: float = 5.0,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._files: tuple[str, ...] = tuple(files)
        self._loader = loader
        self._fallback = tuple(fallback)
        self.retry_s = retry_s
        self._clock = clock
        self._next_try: Optional[float] = None

    @classmethod
    def from_source(cls, source: str | None, use_defaults: bool = False) -> "PhotoIndex":
        fallback = DEFAULT_PHOTOS if use_defaults else ()
        if not source:
            return cls(files=fallback)
        return cls(loader=loader_for(source), fallback=fallback)

    @property
    def files(self) -> tuple[str, ...]:
        if not self._files and self._loader is not None:
            if self._next_try is None or self._clock() >= self._next_try:
                self._load()
        return self._files

    def __len__(self) -> int:
        return len(self.files)

    def _load(self) -> None:
        assert self._loader is not None
        try:
            files = tuple(self._loader())
        except PhotoIndexError as e:
            logger.warning("Photo list unavailable: %s", e)
            files = ()
        if files:
            logger.info("Loaded %d photos", len(files))
            self._files = files
            self._loader = None
        elif self._fallback:
            logger.info("Using %d default photos", len(self._fallback))
            self._files = self._fallback
            self._loader = None
        else:
            self._next_try = self._clock() + self.retry_s
            logger.debug("Next photo list attempt in %.1fs", self.retry_s)

    # ---------------------- lookups ----------------------

    def pick_random(self, rng: random.Random, exclude: str | None = None) -> str | None:
        files = self.files
        if not files:
            return None
        idx = rng.randrange(len(files))
        if len(files) > 1 and files[idx] == exclude:
            idx = (idx + 1) % len(files)
        return files[idx]

    def neighbour(self, current: str | None, step: int) -> str | None:
        files = self.files
        if not files:
            return None
        try:
            idx = files.index(current) if current is not None else 0
        except ValueError:
            idx = 0
        return files[(idx + step) % len(files)]
