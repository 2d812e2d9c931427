"""
storage.py - durable local key-value store

The tracker persists two independent entries (totalMoney, expenses). They are
kept in one JSON document on disk mapping each key to its JSON-encoded text,
the same shape browser local storage uses.

Failures never reach the caller: save/remove log and return, load falls back
to the caller-supplied default.
"""

from typing import Any, Dict, Optional
import json
import os
import tempfile
import shutil
import logging

# location of the store document (relative to the package), overridable via env
_default_data_file = os.path.join(os.path.dirname(__file__), "..", "data", "finance_data.json")
DATA_FILE = os.getenv("FINANCE_TRACKER_DATA_FILE") or _default_data_file

# ensure a logger is available
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def quota_from_env() -> Optional[int]:
    """Read FINANCE_TRACKER_QUOTA_BYTES; unset or unparsable means no quota."""
    raw = (os.getenv("FINANCE_TRACKER_QUOTA_BYTES") or "").strip()
    if not raw:
        return None
    try:
        quota = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid FINANCE_TRACKER_QUOTA_BYTES=%r", raw)
        return None
    return quota if quota > 0 else None


class StorageQuotaExceeded(Exception):
    """Raised internally when a write would grow the document past its quota."""


class LocalStore:
    """
    Key-value store backed by a single JSON file.

    A store built with path=None has no backing medium (e.g. a
    non-interactive render): loads return the default, writes are skipped.
    """

    def __init__(self, path: Optional[str] = None, quota_bytes: Optional[int] = None):
        self.path = os.path.abspath(path) if path else None
        self.quota_bytes = quota_bytes

    @classmethod
    def from_env(cls) -> "LocalStore":
        return cls(DATA_FILE, quota_bytes=quota_from_env())

    @property
    def available(self) -> bool:
        return self.path is not None

    def save(self, key: str, value: Any) -> bool:
        """Serialize value and store it under key. Returns False on any failure."""
        if not self.available:
            logger.info("Storage unavailable, skipping save of %r", key)
            return False
        try:
            text = json.dumps(value, allow_nan=False)
        except (TypeError, ValueError):
            logger.exception("Failed to serialize value for key %r", key)
            return False
        try:
            document = self._read_document()
            document[key] = text
            self._write_document(document)
        except StorageQuotaExceeded as exc:
            logger.error("Error saving data for key %r: %s", key, exc)
            return False
        except OSError:
            logger.exception("Error saving data for key %r", key)
            return False
        return True

    def load(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key, or default if absent or unreadable."""
        if not self.available:
            return default
        try:
            document = self._read_document()
        except OSError:
            logger.exception("Error loading data for key %r", key)
            return default
        text = document.get(key)
        if text is None:
            return default
        try:
            return json.loads(text)
        except (TypeError, ValueError):
            logger.exception("Error loading data for key %r", key)
            return default

    def remove(self, key: str) -> bool:
        if not self.available:
            logger.info("Storage unavailable, skipping removal of %r", key)
            return False
        try:
            document = self._read_document()
            if key not in document:
                return True
            del document[key]
            self._write_document(document)
        except (StorageQuotaExceeded, OSError):
            logger.exception("Error removing data for key %r", key)
            return False
        return True

    def _read_document(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except ValueError:
                # a corrupt document is treated like an empty one
                logger.warning("Store document %s is not valid JSON, ignoring it", self.path)
                return {}
        if not isinstance(data, dict):
            logger.warning("Store document %s is not a JSON object, ignoring it", self.path)
            return {}
        return data

    def _write_document(self, document: Dict[str, str]):
        """
        Write the whole document atomically: temp file in the target
        directory, flush + fsync, then move over the target.
        """
        payload = json.dumps(document, indent=2)
        size = len(payload.encode("utf-8"))
        if self.quota_bytes is not None and size > self.quota_bytes:
            raise StorageQuotaExceeded(f"document of {size} bytes exceeds quota of {self.quota_bytes}")

        dirn = os.path.dirname(self.path)
        os.makedirs(dirn, exist_ok=True)
        logger.info(f"Saving data to {self.path} (keys={len(document)})")
        fd, tmp_path = tempfile.mkstemp(prefix="tmp_finance_", dir=dirn, text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            shutil.move(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
