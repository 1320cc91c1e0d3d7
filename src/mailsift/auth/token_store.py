"""Token cache: where the authorized-user JSON lives between runs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from mailsift.core.logging import get_logger


class TokenStore(Protocol):
    """Key-value slot holding one authorized-user token document."""

    def load(self) -> dict | None:
        """Return the cached token document, or None when nothing is cached."""
        ...

    def save(self, token: dict) -> None:
        """Replace the cached token document."""
        ...


class FileTokenStore:
    """Token cache backed by a JSON file (``token.json`` by default).

    A file that cannot be read or parsed counts as "nothing cached" so the
    caller falls back to a fresh authorization.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._log = get_logger("token_store")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self._log.warning("token_cache_unreadable", path=str(self._path), error=str(exc))
            return None
        if not isinstance(data, dict):
            self._log.warning("token_cache_unreadable", path=str(self._path), error="not a JSON object")
            return None
        return data

    def save(self, token: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(token), encoding="utf-8")
        self._log.info("token_saved", path=str(self._path))


class InMemoryTokenStore:
    """Process-local token cache, for tests and dry runs."""

    def __init__(self, token: dict | None = None) -> None:
        self.token = dict(token) if token is not None else None
        self.save_count = 0

    def load(self) -> dict | None:
        return dict(self.token) if self.token is not None else None

    def save(self, token: dict) -> None:
        self.token = dict(token)
        self.save_count += 1
