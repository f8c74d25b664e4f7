"""
Low-level file I/O for signpage configuration.

Handles reading and writing the on-disk policies.json and atomic file
writes.  Shared by the policy layer and the file-backed document cache.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "get_config_file",
    "load_raw_config",
    "save_config",
    "write_atomic",
]

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, cast

from ..constants import ENV_CONFIG

_logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".signpage"
CONFIG_FILE = CONFIG_DIR / "policies.json"


def get_config_file() -> Path:
    """Path of the policy file.

    Priority: ``SIGNPAGE_CONFIG`` env var > ``~/.signpage/policies.json``.
    """
    env_path = os.environ.get(ENV_CONFIG, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return CONFIG_FILE


def load_raw_config(path: Path | None = None) -> dict[str, object]:
    """Load the raw config dict from disk, preserving all keys.

    A missing file yields an empty dict; a corrupted or unreadable file
    is logged and also yields an empty dict.
    """
    config_file = path if path is not None else get_config_file()
    try:
        data: Any = json.loads(config_file.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return cast("dict[str, object]", data)
        _logger.warning("Config file %s does not hold a JSON object, ignoring", config_file)
    except FileNotFoundError:
        pass
    except json.JSONDecodeError as e:
        _logger.warning("Config file corrupted, ignoring: %s", e)
    except OSError as e:
        _logger.warning("Cannot read config file: %s", e)
    return {}


def save_config(config: dict[str, object], path: Path | None = None) -> None:
    """Save config to disk with restricted permissions (0600)."""
    config_file = path if path is not None else get_config_file()
    content = json.dumps(config, indent=2, ensure_ascii=False) + "\n"
    write_atomic(config_file, content.encode("utf-8"))


def write_atomic(target: Path, data: bytes, mode: int = 0o600) -> None:
    """Write *data* to *target* atomically (temp file + rename).

    Readers never observe a partially written file.  The parent
    directory is created with 0700 permissions when missing.
    """
    target.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    # Write through the fd directly to avoid a window where the file has wrong permissions
    fd, tmp_path = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        f = os.fdopen(fd, "wb")
        fd = -1  # owned by the file object from here on
        with f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if os.name != "nt":
            try:
                tmp.chmod(mode)
            except OSError:
                _logger.exception("Failed to set permissions on %s", tmp)
        tmp.replace(target)  # atomic on POSIX
    except BaseException:
        if fd >= 0:
            os.close(fd)
        tmp.unlink(missing_ok=True)
        raise
