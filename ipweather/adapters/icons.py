"""Local mirror for provider weather icons.

Icons are served from our own static directory so pages do not hot-link
the provider. Mirroring is cosmetic: every failure degrades to the remote
URL (or a placeholder) and is logged, never raised.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger(__name__)


class IconMirror:
    """Download-once cache of remote icons into a static directory."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        static_dir: str | Path = "static",
        url_prefix: str = "/static",
        placeholder: str = "/static/empty.png",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.client = client
        self.static_dir = Path(static_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.placeholder = placeholder
        self.timeout_seconds = timeout_seconds

    async def cache_icon(self, url: str) -> str:
        """Return a local reference for url, downloading it if needed.

        Args:
            url: Remote icon URL from the provider.

        Returns:
            "<url_prefix>/<basename>" when mirrored, the remote url when the
            download fails, or the placeholder when url is unusable.
        """
        try:
            parts = urlsplit(url)
        except ValueError:
            logger.info("icon.unparseable_url")
            return self.placeholder

        name = posixpath.basename(parts.path)
        if parts.scheme not in ("http", "https") or not parts.netloc or name in ("", ".", ".."):
            return self.placeholder

        local_path = self.static_dir / name
        local_ref = f"{self.url_prefix}/{name}"
        if local_path.is_file():
            return local_ref

        try:
            response = await self.client.get(url, timeout=self.timeout_seconds)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "icon.download_failed",
                extra={"icon": name, "error_type": type(exc).__name__},
            )
            return url

        try:
            self.static_dir.mkdir(parents=True, exist_ok=True)
            local_path.write_bytes(response.content)
        except OSError as exc:
            logger.warning("icon.write_failed", extra={"icon": name, "error_msg": str(exc)})
            return url

        logger.debug("icon.mirrored", extra={"icon": name})
        return local_ref
