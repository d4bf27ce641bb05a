"""
JSON file persistence for the feed registry.

File layout: a JSON array of {"url", "title", "description", "added_at", "updated_at"}.
Only metadata is written; entries are never persisted.

Write protocol:
1. serialize the registry snapshot
2. write it to "<path>.tmp"
3. os.replace the temp file onto <path> (atomic on the same filesystem)
4. if the rename fails, write <path> directly

Step 4 gives up atomicity to keep saving on filesystems where the rename is
not possible. A crash during that direct write can leave a partial file,
which the next load reports as CorruptStateError.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from rssreader.errors import CorruptStateError, PersistenceError
from rssreader.logging_utils import log_event
from rssreader.registry import Registry
from rssreader.schemas import Subscription, utc_now

PERSISTED_FIELDS = ("url", "title", "description", "added_at", "updated_at")


def subscriptions_to_json(subscriptions: list[Subscription]) -> str:
    records = [sub.model_dump(mode="json", include=set(PERSISTED_FIELDS)) for sub in subscriptions]
    return json.dumps(records, indent=2, ensure_ascii=False)


def subscriptions_from_json(raw: str) -> list[Subscription]:
    """
    Parse the feeds file body.

    - records with a missing/empty url are skipped
    - missing updated_at defaults to added_at; missing added_at defaults to now

    Raises:
        CorruptStateError: invalid JSON, not a list, or a record that fails validation.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorruptStateError(f"feeds file is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise CorruptStateError(f"feeds file must contain a JSON array, got {type(data).__name__}")

    out: list[Subscription] = []
    for idx, record in enumerate(data):
        if not isinstance(record, dict):
            raise CorruptStateError(f"feeds file record {idx} is not an object")
        if not record.get("url"):
            continue
        fields = {k: v for k, v in record.items() if k in PERSISTED_FIELDS and v is not None}
        fields.setdefault("added_at", utc_now())
        fields.setdefault("updated_at", fields["added_at"])
        try:
            out.append(Subscription.model_validate(fields))
        except ValidationError as exc:
            raise CorruptStateError(f"feeds file record {idx} is invalid: {exc}") from exc
    return out


class FeedStore:
    """Durable mirror of a Registry in a single JSON file."""

    def __init__(self, registry: Registry, path: str | Path):
        self.registry = registry
        self.path = Path(path)
        self.last_saved_at: datetime | None = None
        # One writer at a time; concurrent saves would share the temp file
        self._save_lock = threading.Lock()

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def load(self) -> int:
        """
        Replace the registry contents with the file contents.

        Missing or zero-byte file -> empty registry, not an error.

        Returns:
            Number of subscriptions loaded.

        Raises:
            CorruptStateError: file is non-empty and cannot be parsed. The registry is left untouched.
        """
        if not self.path.exists():
            log_event("feeds_file_missing", path=str(self.path))
            self.registry.replace_all([])
            return 0

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CorruptStateError(f"cannot read feeds file {self.path}: {exc}") from exc

        if not raw.strip():
            log_event("feeds_file_empty", path=str(self.path))
            self.registry.replace_all([])
            return 0

        subscriptions = subscriptions_from_json(raw)
        self.registry.replace_all(subscriptions)
        count = len(self.registry)
        log_event("feeds_loaded", path=str(self.path), count=count)
        return count

    def save(self) -> None:
        """
        Write the registry to disk with the temp-file + rename protocol.

        Raises:
            PersistenceError: the file could not be written. The registry stays dirty.
        """
        with self._save_lock:
            subscriptions, version = self.registry.snapshot()
            data = subscriptions_to_json(subscriptions)

            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.temp_path.write_text(data, encoding="utf-8")
            except OSError as exc:
                raise PersistenceError(f"cannot write {self.temp_path}: {exc}") from exc

            try:
                os.replace(self.temp_path, self.path)
            except OSError as exc:
                log_event(
                    "save_rename_failed",
                    level=logging.WARNING,
                    path=str(self.path),
                    error=str(exc),
                    fallback="direct_write",
                )
                try:
                    self.path.write_text(data, encoding="utf-8")
                except OSError as exc2:
                    raise PersistenceError(f"cannot write {self.path}: {exc2}") from exc2
                finally:
                    self._discard_temp()

            self.registry.mark_saved(version)
            self.last_saved_at = utc_now()

        log_event("feeds_saved", path=str(self.path), count=len(subscriptions))

    def save_if_needed(self) -> bool:
        """Save only when the registry has unsaved changes. Returns True if a save happened."""
        if not self.registry.has_pending_changes():
            return False
        self.save()
        return True

    def _discard_temp(self) -> None:
        try:
            self.temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            log_event("temp_cleanup_failed", level=logging.WARNING, path=str(self.temp_path), error=str(exc))
