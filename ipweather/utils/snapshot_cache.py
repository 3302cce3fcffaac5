"""On-disk snapshot cache used to bound calls to rate-limited providers.

One file per key under the cache directory, holding the serialized
WeatherSnapshot. The file modification time is the only freshness signal:
an entry is valid while ``now - mtime < max_age``. Stale files are never
deleted, they are ignored and overwritten on the next successful fetch.

Concurrent writers to the same key are not coordinated and the last writer
wins. Writes go through a temp file and a rename, so a reader sees either
the old or the new snapshot, never a torn one.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from ipweather.core.errors import CacheIOError
from ipweather.schemas.weather import WeatherSnapshot

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 60 * 60


def coordinates_key(latitude: float, longitude: float) -> str:
    """Build the cache key for a coordinate pair.

    Args:
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.

    Returns:
        Key such as "48.8566,2.3522".
    """

    return f"{latitude:.4f},{longitude:.4f}"


class SnapshotCache:
    """Freshness-gated file store for weather snapshots.

    Attributes:
        directory: Directory holding one file per key.
        max_age_seconds: Age past which an entry is treated as absent.
    """

    def __init__(
        self,
        directory: str | Path,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.directory = Path(directory)
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """Map a key to its file, never outside the cache directory."""
        name = key.replace("/", "_").replace("\\", "_").replace("\x00", "_")
        if name in ("", ".", ".."):
            name = f"_{name}"
        return self.directory / name

    def read_if_fresher_than(self, key: str, max_age_seconds: float) -> WeatherSnapshot | None:
        """Return the snapshot stored under key if it is younger than max_age_seconds.

        Returns:
            The decoded snapshot, or None if there is no file or it is stale.

        Raises:
            CacheIOError: If a fresh file exists but cannot be read or decoded.
        """

        path = self.path_for(key)
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheIOError(
                code="cache_stat_failed",
                message=str(exc),
                details={"cache_key": key},
            ) from exc

        if self._clock() - mtime >= max_age_seconds:
            logger.debug("cache.stale", extra={"cache_key": key})
            return None

        try:
            return WeatherSnapshot.model_validate_json(path.read_bytes())
        except (OSError, ValidationError) as exc:
            raise CacheIOError(
                code="cache_read_failed",
                message=str(exc),
                details={"cache_key": key},
            ) from exc

    def write(self, key: str, snapshot: WeatherSnapshot) -> None:
        """Replace the file for key with snapshot.

        Raises:
            CacheIOError: If the file cannot be written.
        """

        path = self.path_for(key)
        payload = snapshot.model_dump_json().encode("utf-8")
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CacheIOError(
                code="cache_write_failed",
                message=str(exc),
                details={"cache_key": key},
            ) from exc

    def lookup(self, key: str) -> WeatherSnapshot | None:
        """Best-effort read: any cache failure is logged and reported as a miss."""

        try:
            snapshot = self.read_if_fresher_than(key, self.max_age_seconds)
        except CacheIOError as exc:
            logger.warning(
                "cache.read_failed",
                extra={"cache_key": key, "error_code": exc.code, "error_msg": exc.message},
            )
            return None

        if snapshot is None:
            logger.debug("cache.miss", extra={"cache_key": key})
        else:
            logger.debug("cache.hit", extra={"cache_key": key})
        return snapshot

    def store(self, key: str, snapshot: WeatherSnapshot) -> bool:
        """Best-effort write: failures are logged, never raised.

        Returns:
            True if the snapshot was persisted.
        """

        try:
            self.write(key, snapshot)
        except CacheIOError as exc:
            logger.error(
                "cache.write_failed",
                extra={"cache_key": key, "error_code": exc.code, "error_msg": exc.message},
            )
            return False

        logger.debug("cache.set", extra={"cache_key": key})
        return True
