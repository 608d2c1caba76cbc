"""Expiring key-value store backing token persistence.

Entries carry an optional absolute expiry that is enforced lazily: an
expired entry is deleted when it is read, never by a background sweep.
Batch operations apply the single-key operation per key and are not
transactional.
"""

from __future__ import annotations

import contextlib
import copy
import hashlib
import json
import re
import threading
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from .errors import CacheIOError, ValidationError
from .models import CacheEntry
from .telemetry import get_logger

TTL = int | float | timedelta | datetime | None

_INVALID_KEY_CHARS = re.compile(r"[{}()/\\@:]")
_MISSING = object()


def validate_key(key: str) -> None:
    """Reject keys that are empty or contain reserved characters.

    Raises:
        ValidationError: If the key is malformed.
    """
    if not isinstance(key, str) or not key:
        raise ValidationError("Cache key must be a non-empty string", details={"key": key})
    if _INVALID_KEY_CHARS.search(key):
        raise ValidationError(f"Invalid cache key: {key}", details={"key": key})


def calculate_expiration(ttl: TTL, now: float) -> float | None:
    """Convert a relative or absolute ttl into a Unix timestamp.

    Args:
        ttl: Seconds, a timedelta, an absolute datetime, or None for no expiry.
        now: Current Unix timestamp.

    Returns:
        Absolute expiry timestamp, or None.
    """
    if ttl is None:
        return None
    if isinstance(ttl, datetime):
        if ttl.tzinfo is None:
            ttl = ttl.replace(tzinfo=UTC)
        return ttl.timestamp()
    if isinstance(ttl, timedelta):
        return now + ttl.total_seconds()
    if isinstance(ttl, bool) or not isinstance(ttl, int | float):
        raise ValidationError(f"Unsupported ttl type: {type(ttl).__name__}")
    return now + ttl


@runtime_checkable
class CacheInterface(Protocol):
    """Capability interface every token store provides."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool: ...

    def delete(self, key: str) -> bool: ...

    def has(self, key: str) -> bool: ...

    def clear(self) -> bool: ...

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]: ...

    def set_multiple(
        self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: TTL = None
    ) -> bool: ...

    def delete_multiple(self, keys: Iterable[str]) -> bool: ...


class BaseCache(ABC):
    """Shared batch and membership logic on top of single-key primitives."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._logger = get_logger()

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` if absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Store ``value`` under ``key``; return False on I/O failure."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; return True only if an entry was removed."""

    @abstractmethod
    def clear(self) -> bool:
        """Remove every entry."""

    def has(self, key: str) -> bool:
        """Check presence, with the same lazy-expiry side effect as ``get``."""
        return self.get(key, _MISSING) is not _MISSING

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        keys = list(keys)
        for key in keys:
            validate_key(key)
        return {key: self.get(key, default) for key in keys}

    def set_multiple(
        self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: TTL = None
    ) -> bool:
        items = list(values.items() if isinstance(values, Mapping) else values)
        for key, _ in items:
            validate_key(key)
        success = True
        for key, value in items:
            if not self.set(key, value, ttl):
                success = False
        return success

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        keys = list(keys)
        for key in keys:
            validate_key(key)
        success = True
        for key in keys:
            if not self.delete(key):
                success = False
        return success

    def _make_entry(self, value: Any, ttl: TTL) -> CacheEntry:
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Cache value is not JSON-serializable: {e}") from e
        return CacheEntry(value=value, expires_at=calculate_expiration(ttl, self._clock()))


class FileCache(BaseCache):
    """One JSON file per key inside a directory.

    Writes go to a temporary file that is renamed into place, so readers
    never observe a partially written entry.
    """

    SUFFIX = ".json"

    def __init__(
        self,
        directory: Path | str,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(clock=clock)
        self.directory = Path(directory).expanduser()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(
                "Failed to create cache directory", path=str(self.directory), cause=e
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        validate_key(key)
        path = self.path_for(key)
        try:
            entry = self._read(path)
        except CacheIOError as e:
            self._logger.warning("Cache read failed", key=key, error=str(e.__cause__))
            return default

        if entry is None:
            return default
        if entry.is_expired(self._clock()):
            self._unlink(path)
            return default
        return entry.value

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        validate_key(key)
        entry = self._make_entry(value, ttl)
        try:
            self._write(self.path_for(key), entry)
        except CacheIOError as e:
            self._logger.warning("Cache write failed", key=key, error=str(e.__cause__))
            return False
        return True

    def delete(self, key: str) -> bool:
        validate_key(key)
        return self._unlink(self.path_for(key))

    def clear(self) -> bool:
        for path in self.directory.glob(f"*{self.SUFFIX}"):
            if path.is_file():
                self._unlink(path)
        return True

    def path_for(self, key: str) -> Path:
        """Return the file backing ``key``.

        The name is the SHA-256 of the key, so any valid key maps to a short
        portable file name.
        """
        key_hash = hashlib.sha256(key.encode("utf-8", "surrogatepass")).hexdigest()
        return self.directory / f"{key_hash}{self.SUFFIX}"

    def _read(self, path: Path) -> CacheEntry | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheIOError("Failed to read cache entry", path=str(path), cause=e) from e

        try:
            return CacheEntry.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError):
            self._logger.warning("Discarding corrupt cache entry", path=str(path))
            self._unlink(path)
            return None

    def _write(self, path: Path, entry: CacheEntry) -> None:
        temp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(entry.model_dump(), f)
            temp_path.replace(path)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
            raise CacheIOError("Failed to write cache entry", path=str(path), cause=e) from e

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            self._logger.warning("Cache delete failed", path=str(path), error=str(e))
            return False
        return True


class MemoryCache(BaseCache):
    """Thread-safe in-process store with the same contract as FileCache."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        super().__init__(clock=clock)
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        validate_key(key)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return default
            return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        validate_key(key)
        entry = self._make_entry(copy.deepcopy(value), ttl)
        with self._lock:
            self._entries[key] = entry
        return True

    def delete(self, key: str) -> bool:
        validate_key(key)
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> bool:
        with self._lock:
            self._entries.clear()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
