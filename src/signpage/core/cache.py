"""
Document reference cache for stateful mode.

Prepared documents can be large; instead of sending them back to the
caller and receiving them again with the next request, they are kept
here under an opaque reference.  References are content-addressed
(SHA-256 of the bytes), so storing the same document twice yields the
same reference.

Entries expire after a retention window.  A live entry is never
overwritten: the first writer creates it, every later reader sees those
exact bytes.
"""

from __future__ import annotations

__all__ = [
    "CacheEntry",
    "DocumentReferenceCache",
    "FileDocumentCache",
    "InMemoryDocumentCache",
    "compute_reference",
]

import hashlib
import logging
import os
import re
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from ..config._storage import write_atomic
from ..constants import DEFAULT_CACHE_TTL
from ..errors import DocumentReferenceNotFoundError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

_logger = logging.getLogger(__name__)

_REFERENCE_PATTERN = re.compile(r"^[0-9a-f]{64}$")
_SUFFIX = ".pdf"


def compute_reference(data: bytes) -> str:
    """Content-addressed reference for *data*."""
    return hashlib.sha256(data).hexdigest()


def _check_reference(reference: str) -> None:
    if not _REFERENCE_PATTERN.match(reference):
        raise ValidationError("contentReference", f"malformed document reference {reference!r}")


@dataclass(frozen=True)
class CacheEntry:
    """Cached document bytes and their creation time (epoch seconds)."""

    data: bytes
    created: float

    def expired(self, now: float, ttl: float) -> bool:
        return now - self.created >= ttl

    def __repr__(self) -> str:
        return f"CacheEntry(<{len(self.data)} bytes>, created={self.created})"


class DocumentReferenceCache(Protocol):
    """Stores document bytes under opaque references."""

    def put(self, data: bytes) -> str:
        """Store *data* and return its reference."""
        ...

    def get(self, reference: str) -> bytes:
        """
        Return the bytes stored under *reference*.

        Raises:
            ValidationError: Malformed reference.
            DocumentReferenceNotFoundError: Unknown or expired reference.
        """
        ...

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were dropped."""
        ...


class InMemoryDocumentCache:
    """Process-local document cache."""

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def put(self, data: bytes) -> str:
        reference = compute_reference(data)
        with self._lock:
            now = self._clock()
            self._purge_locked(now)
            if reference not in self._entries:
                self._entries[reference] = CacheEntry(data, now)
                _logger.debug("Cached %d bytes as %s", len(data), reference)
        return reference

    def get(self, reference: str) -> bytes:
        _check_reference(reference)
        with self._lock:
            entry = self._entries.get(reference)
            if entry is None or entry.expired(self._clock(), self.ttl):
                raise DocumentReferenceNotFoundError(
                    f"Document reference {reference!r} is unknown or has expired"
                )
            return entry.data

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self._clock())

    def _purge_locked(self, now: float) -> int:
        expired = [ref for ref, e in self._entries.items() if e.expired(now, self.ttl)]
        for ref in expired:
            del self._entries[ref]
        if expired:
            _logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FileDocumentCache:
    """Document cache keeping one file per reference in a directory.

    The file's modification time is the entry's creation time.  Writes
    go through a temp file and rename, so other processes sharing the
    directory never read a partial document.
    """

    def __init__(
        self,
        directory: str | Path,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}")
        self.directory = Path(directory)
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()

    def _path(self, reference: str) -> Path:
        return self.directory / f"{reference}{_SUFFIX}"

    def _load(self, reference: str) -> CacheEntry | None:
        path = self._path(reference)
        try:
            created = path.stat().st_mtime
            return CacheEntry(path.read_bytes(), created)
        except FileNotFoundError:
            return None

    def put(self, data: bytes) -> str:
        reference = compute_reference(data)
        with self._lock:
            now = self._clock()
            self._purge_locked(now)
            path = self._path(reference)
            if not path.exists():
                write_atomic(path, data)
                os.utime(path, (now, now))
                _logger.debug("Cached %d bytes as %s in %s", len(data), reference, self.directory)
        return reference

    def get(self, reference: str) -> bytes:
        _check_reference(reference)
        with self._lock:
            entry = self._load(reference)
        if entry is None or entry.expired(self._clock(), self.ttl):
            raise DocumentReferenceNotFoundError(
                f"Document reference {reference!r} is unknown or has expired"
            )
        return entry.data

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self._clock())

    def _purge_locked(self, now: float) -> int:
        if not self.directory.is_dir():
            return 0
        purged = 0
        for path in self.directory.glob(f"*{_SUFFIX}"):
            try:
                if now - path.stat().st_mtime >= self.ttl:
                    path.unlink()
                    purged += 1
            except FileNotFoundError:
                continue
        if purged:
            _logger.debug("Purged %d expired cache files from %s", purged, self.directory)
        return purged
