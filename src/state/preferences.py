from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import PreferencesError


ENV_BACKEND = "RADAR_PREFS_BACKEND"
ENV_PATH = "RADAR_PREFS_PATH"

DEFAULT_PREFS_PATH = Path(".cache") / "preferences.json"


class PreferencesService(ABC):
    """
    Generic key-value preference store.

    Keys are plain strings; values are JSON-compatible scalars. The store knows
    nothing about how callers interpret the values.
    """

    @abstractmethod
    def get_value(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or `default` if the key is absent."""

    @abstractmethod
    def set_value(self, key: str, value: Any) -> None:
        """Create or overwrite a value."""

    @abstractmethod
    def remove_value(self, key: str) -> None:
        """Delete a value. No-op if the key does not exist."""

    @abstractmethod
    def contains_key(self, key: str) -> bool:
        ...


class InMemoryPreferences(PreferencesService):
    """Volatile dict-backed store (tests, ephemeral sessions)."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove_value(self, key: str) -> None:
        self._data.pop(key, None)

    def contains_key(self, key: str) -> bool:
        return key in self._data


class JsonFilePreferences(PreferencesService):
    """
    Preferences persisted as one JSON object file.

    - Loaded lazily on first access, rewritten in full on every mutation.
    - A corrupt file raises `PreferencesError` instead of being reset, so stored
      agreements and checkpoints are never dropped silently.
    - Not safe for concurrent writers; one process should own the file.
    """

    def __init__(self, path: Optional[os.PathLike[str] | str] = None) -> None:
        self._path = Path(path) if path else DEFAULT_PREFS_PATH
        self._data: Dict[str, Any] = {}
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        if self._path.exists():
            try:
                with self._path.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
            except (OSError, json.JSONDecodeError) as ex:
                raise PreferencesError(f"Failed to read preferences file {self._path}") from ex
            if not isinstance(raw, dict):
                raise PreferencesError(f"Preferences file {self._path} must contain a JSON object")
            self._data = raw
        self._loaded = True

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, sort_keys=True)

    def get_value(self, key: str, default: Any = None) -> Any:
        self._ensure_loaded()
        return self._data.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        self._ensure_loaded()
        self._data[key] = value
        self._save()

    def remove_value(self, key: str) -> None:
        self._ensure_loaded()
        if key in self._data:
            del self._data[key]
            self._save()

    def contains_key(self, key: str) -> bool:
        self._ensure_loaded()
        return key in self._data


def preferences_from_env() -> PreferencesService:
    """Build the preferences backend selected by `RADAR_PREFS_BACKEND`.

    - "memory": InMemoryPreferences
    - "file" (default): JsonFilePreferences at `RADAR_PREFS_PATH`
    - "s3": S3Preferences configured from its own env vars
    """
    backend = (os.environ.get(ENV_BACKEND) or "file").strip().lower()
    if backend == "memory":
        return InMemoryPreferences()
    if backend == "file":
        return JsonFilePreferences(os.environ.get(ENV_PATH) or None)
    if backend == "s3":
        # Deferred so boto3 is only imported when the S3 backend is selected
        from .s3_preferences import S3Preferences

        return S3Preferences.from_env()
    raise RuntimeError(f"Unknown preferences backend in {ENV_BACKEND}: {backend!r}")
