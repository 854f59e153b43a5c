"""Per-boulder persistence of the detection settings."""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

from .config import settings_dir
from .errors import SettingsRecordError

LOGGER = logging.getLogger(__name__)

KEY_PREFIX = "boulder-settings-"
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def storage_key(boulder_id: str | int) -> str:
    return f"{KEY_PREFIX}{boulder_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SettingsRecord:
    boulder_id: str
    move_threshold: float
    min_move_duration: float
    saved_at: datetime = field(default_factory=_utcnow)

    @property
    def key(self) -> str:
        return storage_key(self.boulder_id)

    def as_partial(self) -> Dict[str, float]:
        """Settings keys this record overrides."""

        return {"moveThreshold": self.move_threshold, "minMoveDuration": self.min_move_duration}

    def to_payload(self) -> Dict[str, Any]:
        return {
            "boulderId": self.boulder_id,
            "moveThreshold": self.move_threshold,
            "minMoveDuration": self.min_move_duration,
            "savedAt": self.saved_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, boulder_id: Optional[str] = None) -> "SettingsRecord":
        if not isinstance(payload, Mapping):
            raise SettingsRecordError(f"settings record must be an object, got {type(payload).__name__}")
        try:
            threshold = float(payload["moveThreshold"])
            duration = float(payload["minMoveDuration"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SettingsRecordError(f"invalid settings record: {exc}") from exc
        if not (math.isfinite(threshold) and math.isfinite(duration)):
            raise SettingsRecordError("settings record contains non-finite values")
        raw_saved = payload.get("savedAt")
        try:
            saved_at = datetime.fromisoformat(raw_saved) if raw_saved else _utcnow()
        except (TypeError, ValueError) as exc:
            raise SettingsRecordError(f"invalid savedAt {raw_saved!r}") from exc
        record_id = payload.get("boulderId", boulder_id)
        if record_id is None:
            raise SettingsRecordError("settings record has no boulder id")
        return cls(
            boulder_id=str(record_id),
            move_threshold=threshold,
            min_move_duration=duration,
            saved_at=saved_at,
        )


class SettingsRecordStore(Protocol):
    def get(self, boulder_id: str | int) -> Optional[SettingsRecord]: ...

    def put(self, record: SettingsRecord) -> None: ...

    def delete(self, boulder_id: str | int) -> bool: ...


class MemorySettingsStore:
    """Dictionary-backed store keyed by ``boulder-settings-<id>``."""

    def __init__(self) -> None:
        self._items: Dict[str, Dict[str, Any]] = {}

    def get(self, boulder_id: str | int) -> Optional[SettingsRecord]:
        payload = self._items.get(storage_key(boulder_id))
        if payload is None:
            return None
        return SettingsRecord.from_payload(payload, boulder_id=str(boulder_id))

    def put(self, record: SettingsRecord) -> None:
        self._items[record.key] = record.to_payload()

    def delete(self, boulder_id: str | int) -> bool:
        return self._items.pop(storage_key(boulder_id), None) is not None

    def keys(self) -> list[str]:
        return sorted(self._items)


class JsonSettingsStore:
    """One JSON document per boulder under ``directory``."""

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory).expanduser() if directory is not None else settings_dir()

    def _path(self, boulder_id: str | int) -> Path:
        name = _UNSAFE.sub("_", storage_key(boulder_id))
        return self.directory / f"{name}.json"

    def get(self, boulder_id: str | int) -> Optional[SettingsRecord]:
        path = self._path(boulder_id)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SettingsRecordError(f"{path}: {exc}") from exc
        return SettingsRecord.from_payload(payload, boulder_id=str(boulder_id))

    def put(self, record: SettingsRecord) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(record.boulder_id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(record.to_payload(), indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(path)
        LOGGER.debug("saved settings record %s", path)

    def delete(self, boulder_id: str | int) -> bool:
        path = self._path(boulder_id)
        if not path.exists():
            return False
        path.unlink()
        return True


__all__ = [
    "JsonSettingsStore",
    "MemorySettingsStore",
    "SettingsRecord",
    "SettingsRecordStore",
    "storage_key",
]
