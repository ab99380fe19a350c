from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from runtime.utils import is_identifier

__all__ = ['SettingsStore', 'SettingValue', 'SOURCES']
logger = logging.getLogger(__name__)

SOURCES = ('caller', 'env', 'default', 'derived', 'bootstrap-cfg', 'system-cfg', 'user-cfg', 'state', 'cli', 'runtime')
_TRUTHY = {'1', 'true', 'yes', 'y', 'on'}


@dataclass(frozen=True)
class SettingValue:
    value: str
    source: str


class SettingsStore:
    """
    Explicit key/value context shared by every bootstrap phase.

    Keys are identifiers, values are strings. ``define`` assigns only when a
    key is unset, so caller-provided values survive later default layers;
    ``set`` always overrides. Each value remembers the layer that set it.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None, source: str = 'caller'):
        self._values: Dict[str, SettingValue] = {}
        for key, value in (initial or {}).items():
            self.set(key, value, source=source)

    @staticmethod
    def _check_key(key: str) -> None:
        if not is_identifier(key):
            raise ValueError(f"Invalid setting name '{key}': must match [A-Za-z_][A-Za-z0-9_]*")

    def set(self, key: str, value: Any, source: str = 'runtime') -> None:
        self._check_key(key)
        text = '' if value is None else str(value)
        previous = self._values.get(key)
        self._values[key] = SettingValue(text, source)
        if previous is not None and previous.value != text:
            logger.debug(f"Setting '{key}' overridden by {source} (was {previous.source})")

    def define(self, key: str, value: Any, source: str = 'default') -> bool:
        """Assign ``value`` only if ``key`` is unset. Returns True when assigned."""
        self._check_key(key)
        if key in self._values:
            return False
        self._values[key] = SettingValue('' if value is None else str(value), source)
        return True

    def update(self, values: Mapping[str, Any], source: str = 'runtime') -> None:
        for key, value in values.items():
            self.set(key, value, source=source)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        entry = self._values.get(key)
        return entry.value if entry is not None else default

    def require(self, key: str) -> str:
        entry = self._values.get(key)
        if entry is None:
            raise KeyError(f"Setting '{key}' is not defined")
        return entry.value

    def flag(self, key: str) -> bool:
        return (self.get(key) or '').strip().lower() in _TRUTHY

    def as_int(self, key: str, default: int = 0) -> int:
        raw = (self.get(key) or '').strip()
        try:
            return int(raw)
        except ValueError:
            return default

    def is_set(self, key: str) -> bool:
        return key in self._values

    def unset(self, key: str) -> None:
        self._values.pop(key, None)

    def source_of(self, key: str) -> Optional[str]:
        entry = self._values.get(key)
        return entry.source if entry is not None else None

    def items(self) -> Iterator[Tuple[str, str]]:
        for key, entry in self._values.items():
            yield key, entry.value

    def subset(self, keys: Iterable[str]) -> Dict[str, str]:
        return {key: self._values[key].value for key in keys if key in self._values}

    def as_dict(self) -> Dict[str, str]:
        return {key: entry.value for key, entry in self._values.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f'SettingsStore({len(self._values)} keys)'
