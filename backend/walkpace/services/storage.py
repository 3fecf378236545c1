"""
Walk Store - persists walk history and user settings.

Each key is stored as one JSON blob in the data folder, mirroring a simple
key -> JSON local storage. Corrupt or missing blobs fall back to empty
history / default settings and are never surfaced as errors.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from walkpace.models.walk import UserSettings, WalkRecord


logger = logging.getLogger(__name__)


HISTORY_KEY = "walkingSpeedData"
SETTINGS_KEY = "walkingUserSettings"


class LocalStore:
    """Key -> JSON blob storage backed by a folder of files."""

    def __init__(self, data_folder: Path):
        self._data_folder = Path(data_folder)

    @property
    def data_folder(self) -> Path:
        return self._data_folder

    def _path_for(self, key: str) -> Path:
        return self._data_folder / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        """Raw text stored under key, or None if absent."""
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self._data_folder.mkdir(parents=True, exist_ok=True)
        # Temp file first, then renamed into place
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def remove_item(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)


class WalkStore:
    """
    Owner of the persisted walk history and user settings.

    The history is append-only: walks are added one at a time or cleared in
    bulk, and every change is written through immediately.
    """

    def __init__(self, store: LocalStore):
        self._store = store
        self._history: list[WalkRecord] = self._load_history()
        self._settings: UserSettings = self._load_settings()

    @property
    def data_folder(self) -> Path:
        return self._store.data_folder

    @property
    def history(self) -> tuple[WalkRecord, ...]:
        return tuple(self._history)

    @property
    def settings(self) -> UserSettings:
        return UserSettings(
            average_speed=self._settings.average_speed,
            terrain_factor=self._settings.terrain_factor,
        )

    def append_walk(self, walk: WalkRecord) -> None:
        self._history.append(walk)
        self._save_history()
        logger.info(
            f"Saved walk {walk.id}: {walk.distance:.2f} km at {walk.speed:.1f} km/h"
        )

    def clear_history(self) -> None:
        self._history.clear()
        self._save_history()
        logger.info("Walk history cleared")

    def update_settings(
        self,
        average_speed: Optional[float] = None,
        terrain_factor: Optional[float] = None,
    ) -> UserSettings:
        """
        Change one or both settings and persist them.

        Raises:
            ValueError: If a value is not positive
        """
        if average_speed is not None and average_speed <= 0:
            raise ValueError("Average speed must be positive")
        if terrain_factor is not None and terrain_factor <= 0:
            raise ValueError("Terrain factor must be positive")

        if average_speed is not None:
            self._settings.average_speed = float(average_speed)
        if terrain_factor is not None:
            self._settings.terrain_factor = float(terrain_factor)
        self._save_settings()
        return self.settings

    # ------------------------------------------------------------------
    # Loading / saving
    # ------------------------------------------------------------------

    def _read_json(self, key: str) -> Any:
        text = self._store.get_item(key)
        if text is None:
            return None
        return json.loads(text)

    def _write_json(self, key: str, value: Any) -> None:
        try:
            self._store.set_item(key, json.dumps(value))
        except OSError as e:
            logger.warning(f"Could not save {key}: {e}")

    def _load_history(self) -> list[WalkRecord]:
        try:
            saved = self._read_json(HISTORY_KEY)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load speed data: {e}")
            return []

        if saved is None:
            return []
        if not isinstance(saved, list):
            logger.warning("Stored speed data is not a list, ignoring it")
            return []

        history = []
        skipped = 0
        for entry in saved:
            try:
                history.append(WalkRecord.from_dict(entry))
            except (KeyError, ValueError, TypeError, AttributeError):
                skipped += 1
        if skipped:
            logger.warning(f"Skipped {skipped} malformed walk entries")

        logger.info(f"Loaded {len(history)} walks from {self.data_folder}")
        return history

    def _load_settings(self) -> UserSettings:
        try:
            saved = self._read_json(SETTINGS_KEY)
            if saved is None:
                return UserSettings()
            if not isinstance(saved, dict):
                raise ValueError("settings blob is not an object")
            return UserSettings.from_dict(saved)
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Could not load user settings: {e}")
            return UserSettings()

    def _save_history(self) -> None:
        self._write_json(HISTORY_KEY, [walk.to_dict() for walk in self._history])

    def _save_settings(self) -> None:
        self._write_json(SETTINGS_KEY, self._settings.to_dict())
