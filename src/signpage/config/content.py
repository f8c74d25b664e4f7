"""
Content sources and loaders for configured resources.

Signature-page PDFs and image templates are either carried inline
(:class:`InlineContent`) or named by location (:class:`LazyContent`) and
loaded on demand through a :class:`ContentLoader`.  Loaders are plain
objects handed to whoever needs them; nothing is registered globally.

Location forms understood by :class:`DefaultContentLoader`:

* ``resource:<path>`` -- a file shipped inside a Python package
  (``resource:signpage.resources/default-sign-page.pdf``, or just
  ``resource:default-sign-page.pdf`` for the default package).
* ``file:///abs/path`` or a plain filesystem path.
"""

from __future__ import annotations

__all__ = [
    "ContentLoader",
    "ContentSource",
    "DefaultContentLoader",
    "FileContentLoader",
    "InlineContent",
    "LazyContent",
    "PackageResourceLoader",
    "resolve_content",
]

import base64
import binascii
import importlib.resources
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Union

from ..constants import RESOURCE_PREFIX
from ..errors import ConfigError

_logger = logging.getLogger(__name__)

_FILE_PREFIX = "file://"
_DEFAULT_RESOURCE_PACKAGE = "signpage.resources"


# ── Content sources ──────────────────────────────────────────────────


@dataclass(frozen=True)
class InlineContent:
    """Content carried in memory."""

    data: bytes

    @classmethod
    def from_base64(cls, encoded: str) -> InlineContent:
        """Build inline content from a Base64 string (as found in JSON config)."""
        try:
            return cls(base64.b64decode(encoded, validate=True))
        except (binascii.Error, ValueError) as exc:
            raise ConfigError(f"Invalid Base64 content: {exc}") from exc

    def __repr__(self) -> str:
        return f"InlineContent(<{len(self.data)} bytes>)"


@dataclass(frozen=True)
class LazyContent:
    """Content named by location, loaded when first needed."""

    location: str


ContentSource = Union[InlineContent, LazyContent]


# ── Loaders ──────────────────────────────────────────────────────────


class ContentLoader(Protocol):
    """Loads the bytes behind a content location."""

    def load(self, location: str) -> bytes:
        """
        Load the contents of the given location.

        Raises:
            ConfigError: If the location cannot be read.
        """
        ...


class FileContentLoader:
    """Loads content from the filesystem.

    Relative paths are resolved against ``base_dir`` when one is given
    (typically the directory of the policy file), else against the
    current directory.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def load(self, location: str) -> bytes:
        path_str = location[len(_FILE_PREFIX) :] if location.startswith(_FILE_PREFIX) else location
        path = Path(path_str).expanduser()
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ConfigError(f"Cannot load {location!r}: {exc}") from exc
        _logger.debug("Loaded %d bytes from %s", len(data), path)
        return data


class PackageResourceLoader:
    """Loads content shipped inside a Python package.

    ``resource:pkg.name/file.ext`` names a resource in the dotted package
    ``pkg.name``; ``resource:file.ext`` (or ``resource:dir/file.ext``) names
    one in the loader's default package.
    """

    def __init__(self, package: str = _DEFAULT_RESOURCE_PACKAGE) -> None:
        self.package = package

    def load(self, location: str) -> bytes:
        name = location[len(RESOURCE_PREFIX) :] if location.startswith(RESOURCE_PREFIX) else location
        name = name.lstrip("/")
        package = self.package
        if "/" in name:
            head, _, tail = name.partition("/")
            if "." in head:
                package, name = head, tail
        if not name:
            raise ConfigError(f"Empty resource name in {location!r}")
        try:
            data = importlib.resources.files(package).joinpath(name).read_bytes()
        except (ModuleNotFoundError, FileNotFoundError, OSError) as exc:
            raise ConfigError(f"Cannot load {location!r}: resource not found") from exc
        _logger.debug("Loaded %d bytes from resource %s/%s", len(data), package, name)
        return data


class DefaultContentLoader:
    """Dispatches ``resource:`` locations to package resources, the rest to files."""

    def __init__(
        self,
        resources: ContentLoader | None = None,
        files: ContentLoader | None = None,
    ) -> None:
        self.resources = resources if resources is not None else PackageResourceLoader()
        self.files = files if files is not None else FileContentLoader()

    def load(self, location: str) -> bytes:
        if not location:
            raise ConfigError("Content location is empty")
        if location.startswith(RESOURCE_PREFIX):
            return self.resources.load(location)
        return self.files.load(location)


def resolve_content(source: ContentSource, loader: ContentLoader) -> bytes:
    """Return the bytes of a content source, loading lazy content with *loader*."""
    if isinstance(source, InlineContent):
        return source.data
    return loader.load(source.location)
