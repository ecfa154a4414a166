# app/core/store.py

import copy
import json
import os
import tempfile
import threading
from dataclasses import dataclass
from typing import Any, Dict

from loguru import logger


# ----------------------------------------------------
# Collection registry
# ----------------------------------------------------
@dataclass(frozen=True)
class CollectionSpec:
    name: str
    filename: str
    default_kind: type  # list or dict
    export_key: str

    def default(self):
        return self.default_kind()


COLLECTIONS: Dict[str, CollectionSpec] = {
    spec.name: spec
    for spec in (
        CollectionSpec("users", "users.json", list, "users"),
        CollectionSpec("badges", "badges.json", list, "badges"),
        CollectionSpec("master_commands", "masterCommands.json", list, "masterCommands"),
        CollectionSpec("chatbot_triggers", "chatbotTriggers.json", list, "chatbot"),
        CollectionSpec("notices", "notices.json", list, "notices"),
        CollectionSpec("tests", "tests.json", list, "tests"),
        CollectionSpec("attendance", "attendance.json", list, "attendance"),
        CollectionSpec("logs", "logs.json", list, "logs"),
        CollectionSpec("analytics", "analytics.json", list, "analytics"),
        CollectionSpec("chat_history", "chat_history.json", list, "chatHistory"),
        CollectionSpec("locks", "locks.json", dict, "locks"),
        CollectionSpec("warnings", "masterWarnings.json", dict, "warnings"),
        CollectionSpec("trash", "trash.json", list, "trash"),
    )
}


class CollectionStore:
    """
    In-memory collections mirrored to one JSON file each.

    The store does no schema validation; callers own the shape of what
    they put. Every put rewrites the whole file.
    """

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._data: Dict[str, Any] = {}
        self._write_lock = threading.Lock()

    # ----------------------------------------------------
    # Paths / specs
    # ----------------------------------------------------
    def _spec(self, name: str) -> CollectionSpec:
        try:
            return COLLECTIONS[name]
        except KeyError:
            raise KeyError(f"Unknown collection '{name}'")

    def path_for(self, name: str) -> str:
        return os.path.join(self.data_dir, self._spec(name).filename)

    # ----------------------------------------------------
    # Load
    # ----------------------------------------------------
    def load(self, name: str):
        spec = self._spec(name)
        path = self.path_for(name)

        if not os.path.exists(path):
            contents = spec.default()
            self._data[name] = contents
            try:
                self._write(name, contents)
            except OSError as e:
                logger.error(f"Could not initialize {path}: {e}")
            return contents

        try:
            with open(path, "r", encoding="utf-8") as fh:
                contents = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning(f"Collection '{name}' unreadable ({e}); using default.")
            contents = spec.default()

        if not isinstance(contents, spec.default_kind):
            logger.warning(
                f"Collection '{name}' holds {type(contents).__name__}, "
                f"expected {spec.default_kind.__name__}; using default."
            )
            contents = spec.default()

        self._data[name] = contents
        return contents

    def load_all(self):
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create data directory {self.data_dir}: {e}")

        for name in COLLECTIONS:
            self.load(name)
        logger.info(f"Loaded {len(COLLECTIONS)} collections from {self.data_dir}")

    # ----------------------------------------------------
    # Read / write
    # ----------------------------------------------------
    def get(self, name: str):
        if name not in self._data:
            return self.load(name)
        return self._data[name]

    def put(self, name: str, contents):
        self._spec(name)
        with self._write_lock:
            self._data[name] = contents
            self._write(name, contents)

    def _write(self, name: str, contents):
        os.makedirs(self.data_dir, exist_ok=True)
        path = self.path_for(name)

        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(contents, fh, indent=2, default=str)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    # ----------------------------------------------------
    # Whole-dataset helpers (export / import)
    # ----------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        return {
            spec.export_key: copy.deepcopy(self.get(spec.name))
            for spec in COLLECTIONS.values()
        }

    def status(self) -> Dict[str, int]:
        return {name: len(self.get(name)) for name in COLLECTIONS}
