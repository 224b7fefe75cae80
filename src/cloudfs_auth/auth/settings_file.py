"""
Synchronized settings file for CloudFS gateway credentials.

All provider credential stores of a process share one JSON document on disk.
The document is read lazily on first access and written atomically on every
mutation. Read-modify-write sequences must hold ``lock``; it is the single
store-wide lock across accounts and providers.
"""

import copy
import json
import logging
import os
import tempfile
from threading import RLock
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class SynchronizedSettingsFile:
    """
    Process-wide persisted settings document.

    Maps section names (one per provider) to lists of record dicts.
    """

    def __init__(self, path: str) -> None:
        self.path = os.path.expanduser(path)
        self.lock = RLock()
        self._data: Optional[Dict[str, Any]] = None

    def _ensure_loaded_locked(self) -> Dict[str, Any]:
        """Load the document on first access. Caller must hold lock."""
        if self._data is not None:
            return self._data

        self._data = {}
        if not os.path.exists(self.path):
            logger.debug("No settings file found at %s", self.path)
            return self._data

        try:
            with open(self.path, "r") as f:
                persisted = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse settings file %s: %s", self.path, e)
            return self._data
        except IOError as e:
            logger.warning("Failed to read settings file %s: %s", self.path, e)
            return self._data

        if not isinstance(persisted, dict):
            logger.warning("Invalid settings file format, ignoring")
            return self._data

        self._data = persisted
        logger.info(
            "Loaded settings file %s (%d sections)", self.path, len(self._data)
        )
        return self._data

    def _save_locked(self) -> None:
        """Persist the document to disk atomically. Caller must hold lock."""
        target_dir = os.path.dirname(self.path) or "."
        os.makedirs(target_dir, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(dir=target_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._data, f, indent=2)
            os.replace(temp_path, self.path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        logger.debug("Persisted settings file %s", self.path)

    def get_section(self, name: str) -> Optional[List[Dict[str, str]]]:
        """Return a copy of a section, or None if the section is absent."""
        with self.lock:
            section = self._ensure_loaded_locked().get(name)
            return copy.deepcopy(section) if section is not None else None

    def set_section(self, name: str, records: Optional[List[Dict[str, str]]]) -> None:
        """
        Replace a section and persist synchronously.

        Args:
            name: Section name.
            records: New records, or None to remove the section entirely.
        """
        with self.lock:
            data = self._ensure_loaded_locked()
            if records is None:
                data.pop(name, None)
            else:
                data[name] = copy.deepcopy(records)
            self._save_locked()

    def sections(self) -> List[str]:
        """List the names of all present sections."""
        with self.lock:
            return sorted(self._ensure_loaded_locked())


# Global settings files, one per path
_settings_files: Dict[str, SynchronizedSettingsFile] = {}
_settings_files_lock = RLock()


def get_settings_file(path: Optional[str] = None) -> SynchronizedSettingsFile:
    """Get the process-wide settings file for a path (default from config)."""
    if path is None:
        from ..core.config import get_auth_config

        path = get_auth_config().settings_path

    key = os.path.abspath(os.path.expanduser(path))
    with _settings_files_lock:
        settings = _settings_files.get(key)
        if settings is None:
            settings = SynchronizedSettingsFile(key)
            _settings_files[key] = settings
            logger.info(f"Initialized settings file: {key}")
        return settings
