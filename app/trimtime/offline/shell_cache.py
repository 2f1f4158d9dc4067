"""Network-first cache for the register's application shell.

Entries live on disk under ``<root>/<name>/``; one cache directory per version
tag. ``activate`` removes every other version.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable
from urllib.parse import urljoin, urlsplit

import requests

from app.trimtime.core.config import settings
from app.trimtime.core.logging import log_json

logger = logging.getLogger("trimtime.shell_cache")

BASIC = "basic"
CORS = "cors"


@dataclass(frozen=True)
class ShellResponse:
    url: str
    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    type: str = BASIC
    from_cache: bool = False


def _origin(url: str) -> tuple[str, str]:
    parts = urlsplit(url)
    return parts.scheme, parts.netloc


class ShellCache:
    def __init__(
        self,
        base_url: str,
        *,
        name: str | None = None,
        root: str | Path | None = None,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url
        self.name = name or settings.SHELL_CACHE_NAME
        self.root = Path(root or settings.SHELL_CACHE_DIR)
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def directory(self) -> Path:
        return self.root / self.name

    def absolute(self, url: str) -> str:
        return urljoin(self.base_url, url)

    def _key(self, url: str) -> str:
        return hashlib.sha256(self.absolute(url).encode("utf-8")).hexdigest()

    def _network(self, url: str, method: str = "GET") -> ShellResponse:
        target = self.absolute(url)
        response = self.session.request(method, target, timeout=self.timeout)
        kind = BASIC if _origin(target) == _origin(self.base_url) else CORS
        return ShellResponse(
            url=target,
            status=response.status_code,
            body=response.content,
            headers=dict(response.headers),
            type=kind,
        )

    def put(self, response: ShellResponse) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        key = self._key(response.url)
        (self.directory / f"{key}.body").write_bytes(response.body)
        meta = {"url": response.url, "status": response.status, "headers": response.headers, "type": response.type}
        (self.directory / f"{key}.json").write_text(json.dumps(meta))

    def match(self, url: str) -> ShellResponse | None:
        key = self._key(url)
        meta_path = self.directory / f"{key}.json"
        body_path = self.directory / f"{key}.body"
        if not meta_path.exists() or not body_path.exists():
            return None
        meta = json.loads(meta_path.read_text())
        return ShellResponse(
            url=meta["url"],
            status=meta["status"],
            body=body_path.read_bytes(),
            headers=meta.get("headers") or {},
            type=meta.get("type", BASIC),
            from_cache=True,
        )

    def install(self, urls: Iterable[str] | None = None) -> int:
        """Pre-populate the cache. Any failed entry document fails the whole install."""
        urls = list(settings.SHELL_URLS if urls is None else urls)
        fetched = []
        for url in urls:
            response = self._network(url)
            if response.status != 200:
                raise requests.HTTPError(f"{response.status} while caching {response.url}")
            fetched.append(response)
        for response in fetched:
            self.put(response)
        log_json(logger, {"event": "shell_cache_installed", "cache": self.name, "entries": len(fetched)})
        return len(fetched)

    def fetch(self, url: str, method: str = "GET") -> ShellResponse | None:
        """Network first; falls back to the cached copy (or ``None``) when the network fails."""
        try:
            response = self._network(url, method)
        except requests.RequestException as exc:
            log_json(
                logger,
                {"event": "shell_cache_fallback", "url": self.absolute(url), "error_class": exc.__class__.__name__},
                level=logging.WARNING,
            )
            return self.match(url)
        if method.upper() == "GET" and response.status == 200 and response.type == BASIC:
            self.put(response)
        return response

    def activate(self) -> list[str]:
        """Delete every cache version except the current one. Returns the names removed."""
        removed: list[str] = []
        if not self.root.exists():
            return removed
        for entry in sorted(self.root.iterdir()):
            if entry.is_dir() and entry.name != self.name:
                shutil.rmtree(entry)
                removed.append(entry.name)
        if removed:
            log_json(logger, {"event": "shell_cache_activated", "cache": self.name, "removed": removed})
        return removed
