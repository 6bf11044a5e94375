"""
Preferences - The one user setting that survives between sessions.

Only the narration on/off flag is stored. Game progress is never
persisted.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

NARRATION_KEY = "narrationEnabled"


class PreferenceStore:
    """JSON key-value preference file.

    A missing or unreadable file means defaults.

    Example:
        prefs = PreferenceStore("~/.storygraph/preferences.json")
        if prefs.narration_enabled:
            ...
        prefs.set_narration_enabled(False)
    """

    VERSION = "1.0"

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self._values: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            self._values = {}
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            values = data.get("preferences", {})
            if not isinstance(values, dict):
                raise ValueError("preferences must be an object")
            self._values = values
        except Exception as e:
            logger.warning(f"Failed to load preferences from {self.path}: {e}")
            self._values = {}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"version": self.VERSION, "preferences": self._values}

        # Write beside the target, then swap it in
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def reload(self) -> None:
        self._load()

    @property
    def narration_enabled(self) -> bool:
        value = self._values.get(NARRATION_KEY, True)
        return value if isinstance(value, bool) else True

    def set_narration_enabled(self, enabled: bool) -> None:
        """Store the narration flag.

        Raises:
            OSError: If the file cannot be written.
        """
        self._values[NARRATION_KEY] = bool(enabled)
        self._save()


__all__ = ["PreferenceStore", "NARRATION_KEY"]
