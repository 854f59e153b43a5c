"""Settings delta extraction and invalidation classification."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import IntEnum
from typing import FrozenSet, Iterable, Optional

from ..geometry.settings import OPTIONS, OPTIONS_BY_ATTR, SettingClass, VisualizerSettings

_ATTRS = tuple(f.name for f in fields(VisualizerSettings))


class Invalidation(IntEnum):
    """Ordered so the strongest requirement wins with ``max``."""

    NONE = 0
    MATERIAL = 1
    STRUCTURAL = 2


MATERIAL_KEYS: FrozenSet[str] = frozenset(s.attr for s in OPTIONS if s.setting_class is SettingClass.MATERIAL)
IMMEDIATE_KEYS: FrozenSet[str] = frozenset(s.attr for s in OPTIONS if s.setting_class is SettingClass.IMMEDIATE)
DETECTION_KEYS: FrozenSet[str] = frozenset(s.attr for s in OPTIONS if s.setting_class is SettingClass.DETECTION)
STRUCTURAL_KEYS: FrozenSet[str] = frozenset(_ATTRS) - MATERIAL_KEYS


def diff_settings(current: VisualizerSettings, previous: Optional[VisualizerSettings]) -> FrozenSet[str]:
    """Per-field comparison; every key counts as changed against ``None``."""

    if previous is None:
        return frozenset(_ATTRS)
    if previous is current:
        return frozenset()
    return frozenset(name for name in _ATTRS if getattr(current, name) != getattr(previous, name))


def classify_key(name: str) -> Invalidation:
    spec = OPTIONS_BY_ATTR.get(name)
    if spec is None:
        return Invalidation.NONE
    if spec.setting_class is SettingClass.MATERIAL:
        return Invalidation.MATERIAL
    return Invalidation.STRUCTURAL


def classify_keys(changed: Iterable[str]) -> Invalidation:
    """Strongest invalidation required by ``changed``; immediate keys rebuild."""

    return max((classify_key(name) for name in changed), default=Invalidation.NONE)


@dataclass(frozen=True, slots=True)
class SettingsDelta:
    changed: FrozenSet[str]
    invalidation: Invalidation

    @property
    def redetect(self) -> bool:
        return bool(self.changed & DETECTION_KEYS)

    @property
    def immediate(self) -> bool:
        return bool(self.changed & IMMEDIATE_KEYS)

    @classmethod
    def between(cls, current: VisualizerSettings, previous: Optional[VisualizerSettings]) -> "SettingsDelta":
        changed = diff_settings(current, previous)
        return cls(changed=changed, invalidation=classify_keys(changed))


__all__ = [
    "DETECTION_KEYS",
    "IMMEDIATE_KEYS",
    "Invalidation",
    "MATERIAL_KEYS",
    "STRUCTURAL_KEYS",
    "SettingsDelta",
    "classify_key",
    "classify_keys",
    "diff_settings",
]
