"""Feature-flag stores. The flag defaults to enabled when unreadable."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Protocol

import structlog

from mailscrub.errors import StoreReadError

FLAG_KEY = "enabled"
FLAG_DEFAULT = True


class FlagStore(Protocol):
    """External store holding the single on/off switch."""

    async def get(self) -> bool: ...

    async def set(self, value: bool) -> None: ...


class MemoryFlagStore:
    """In-process store, for embedding and tests."""

    def __init__(self, enabled: bool = FLAG_DEFAULT) -> None:
        self.enabled = enabled

    async def get(self) -> bool:
        return self.enabled

    async def set(self, value: bool) -> None:
        self.enabled = bool(value)


class JsonFileFlagStore:
    """Persists ``{"enabled": bool}`` to a JSON file.

    A missing file or key reads as the default. A file that exists but
    cannot be read or decoded raises StoreReadError.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreReadError(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreReadError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    async def get(self) -> bool:
        data = await asyncio.to_thread(self._read)
        value = data.get(FLAG_KEY, FLAG_DEFAULT)
        if not isinstance(value, bool):
            raise StoreReadError(f"{self.path}: {FLAG_KEY!r} must be true or false, got {value!r}")
        return value

    async def set(self, value: bool) -> None:
        try:
            data = await asyncio.to_thread(self._read)
        except StoreReadError:
            data = {}
        data[FLAG_KEY] = bool(value)
        await asyncio.to_thread(self._write, data)


async def read_enabled(
    store: FlagStore,
    log: structlog.stdlib.BoundLogger | None = None,
    timeout: float | None = None,
) -> bool:
    """Read the flag, failing open to enabled on any store error.

    Only the expiry of *timeout* itself raises TimeoutError, so the caller
    can let the navigation through unmodified. A TimeoutError raised by the
    store is a failed read like any other.
    """
    log = log or structlog.get_logger(__name__)

    async def _read() -> bool:
        try:
            value = await store.get()
        except Exception:
            log.warning("flags.read_failed", exc_info=True, default=FLAG_DEFAULT)
            return FLAG_DEFAULT
        return bool(value)

    if timeout is None:
        return await _read()
    return await asyncio.wait_for(_read(), timeout)
