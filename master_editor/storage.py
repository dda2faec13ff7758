import json
import os
import tempfile
from collections import deque
from pathlib import Path
from typing import Optional, Tuple

import pydantic

from master_editor.config_loader import StorageConfig
from master_editor.errors import PersistenceError
from master_editor.log_config import loggers
from master_editor.model import DEFAULT_REQUEST, ChapterRequest, HistoryItem

logger = loggers['storage']


class LocalStorage:
    """Key-value medium: one JSON document per key inside a directory."""

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        try:
            with open(self._path(key), "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Cannot read '{key}': {e}") from e

    def set_item(self, key: str, value: str):
        """Write the entry durably: temp file, flush + fsync, then atomic rename."""
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.base_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self._path(key))
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write '{key}': {e}") from e

    def remove_item(self, key: str):
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise PersistenceError(f"Cannot remove '{key}': {e}") from e


class HistoryStore:
    """Finished chapters, most recent first, flushed to the medium on every change."""

    def __init__(self, medium: LocalStorage, key: str = "master_editor_history"):
        self.medium = medium
        self.key = key
        self._items: deque = deque()
        self._ids: set = set()
        self.warning: Optional[str] = None

    def load(self):
        """Restore history; an unreadable or corrupt entry leaves the history empty."""
        self._items = deque()
        self._ids = set()
        try:
            raw = self.medium.get_item(self.key)
            if raw is None:
                return
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list of history items, got {type(data).__name__}")
            self._items = deque(HistoryItem.model_validate(entry) for entry in data)
            self._ids = {item.id for item in self._items}
            logger.info(f"Loaded {len(self._items)} history items")
        except (PersistenceError, ValueError, pydantic.ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error(f"History could not be restored, starting empty: {e}")
            self.warning = "Saved history was unreadable and has been reset."

    def persist(self) -> bool:
        payload = json.dumps(
            [item.model_dump(mode="json") for item in self._items],
            ensure_ascii=False,
            indent=2,
        )
        try:
            self.medium.set_item(self.key, payload)
        except PersistenceError as e:
            logger.warning(f"History not saved: {e}")
            self.warning = "History could not be saved; recent changes will be lost on restart."
            return False
        self.warning = None
        return True

    def add(self, item: HistoryItem):
        if item.id in self._ids:
            raise ValueError(f"History item {item.id} already exists")
        self._items.appendleft(item)
        self._ids.add(item.id)
        logger.info(f"Added history item {item.id}")
        self.persist()

    def remove(self, item_id: str):
        if item_id not in self._ids:
            return
        self._items = deque(item for item in self._items if item.id != item_id)
        self._ids.discard(item_id)
        logger.info(f"Removed history item {item_id}")
        self.persist()

    def get(self, item_id: str) -> Optional[HistoryItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def list(self) -> Tuple[HistoryItem, ...]:
        return tuple(self._items)

    def __len__(self):
        return len(self._items)


class DefaultsStore:
    """Last saved form values, merged over the built-in defaults."""

    def __init__(self, medium: LocalStorage, key: str = "master_editor_defaults"):
        self.medium = medium
        self.key = key

    def load(self) -> ChapterRequest:
        try:
            raw = self.medium.get_item(self.key)
            if raw is None:
                return DEFAULT_REQUEST
            saved = json.loads(raw)
            if not isinstance(saved, dict):
                raise ValueError("saved defaults are not an object")
            return self._merge(saved)
        except (PersistenceError, ValueError) as e:
            logger.error(f"Saved defaults ignored: {e}")
            return DEFAULT_REQUEST

    def _merge(self, saved: dict) -> ChapterRequest:
        """Apply each saved field over the built-in defaults, skipping the ones that no longer validate."""
        base = DEFAULT_REQUEST.model_dump()
        accepted = {}
        for name, value in saved.items():
            if name not in ChapterRequest.model_fields:
                continue
            try:
                ChapterRequest.model_validate({**base, name: value})
            except pydantic.ValidationError:
                logger.warning(f"Saved default for {name!r} is invalid and was ignored")
                continue
            accepted[name] = value
        return ChapterRequest.model_validate({**base, **accepted})

    def save(self, request: ChapterRequest) -> bool:
        try:
            self.medium.set_item(
                self.key,
                json.dumps(request.model_dump(mode="json"), ensure_ascii=False, indent=2),
            )
        except PersistenceError as e:
            logger.warning(f"Defaults not saved: {e}")
            return False
        logger.info("Saved form defaults")
        return True


def open_stores(settings: StorageConfig) -> Tuple[HistoryStore, DefaultsStore]:
    """Build both stores on one medium and restore the history."""
    medium = LocalStorage(settings.base_dir)
    history = HistoryStore(medium, settings.history_key)
    history.load()
    return history, DefaultsStore(medium, settings.defaults_key)
