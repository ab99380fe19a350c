"""
State variable persistence.

Persists the keys named by a script's state spec table to a private
assignment file. Loading only fills gaps in the settings store; saving is a
no-op until ``enable_save`` is called and never writes keys outside the
table.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from configs.kv_store import KeyValueFile
from core.exceptions import StatePersistenceError
from core.settings import SettingsStore
from domain.spec_table import StateSpec, StateSpecTable
from runtime.validators import resolve_validator

__all__ = ['StatePersistence']
logger = logging.getLogger(__name__)


class StatePersistence:

    def __init__(
        self,
        state_file: Union[str, Path],
        specs: StateSpecTable,
        settings: SettingsStore,
        enabled: bool = False,
    ):
        self.file = KeyValueFile(state_file, private=True)
        self.specs = specs
        self.settings = settings
        self.enabled = enabled

    @property
    def path(self) -> Path:
        return self.file.path

    def enable_save(self) -> None:
        self.enabled = True
        logger.debug(f'State save enabled for {self.path}')

    def disable_save(self) -> None:
        self.enabled = False
        logger.debug(f'State save disabled for {self.path}')

    def _read(self) -> Dict[str, str]:
        try:
            return self.file.load()
        except (OSError, UnicodeDecodeError) as exc:
            raise StatePersistenceError(f'Cannot read state file {self.path}: {exc}', path=str(self.path)) from exc

    def _accepts(self, spec: Optional[StateSpec], value: str) -> bool:
        if spec is None or not spec.validator:
            return True
        try:
            validator = resolve_validator(spec.validator)
        except (ImportError, AttributeError, ValueError, TypeError) as exc:
            logger.warning(f"State key '{spec.key}': validator '{spec.validator}' unavailable ({exc}); value kept")
            return True
        return bool(validator(value))

    def load(self) -> Dict[str, str]:
        """
        Merge persisted values into the settings store.

        Values already set by the caller are kept (define-if-unset). Keys the
        file holds but a validator rejects are skipped with a warning. State
        spec defaults then fill whatever is still unset. Returns the values
        taken from the file.
        """
        loaded: Dict[str, str] = {}
        for key, value in self._read().items():
            spec = self.specs.get(key)
            if not self._accepts(spec, value):
                logger.warning(f"Ignoring persisted {key}={value!r}: rejected by validator '{spec.validator}'")
                continue
            if self.settings.define(key, value, source='state'):
                loaded[key] = value
        for spec in self.specs:
            if spec.default is not None:
                self.settings.define(spec.key, spec.default, source='default')
        logger.info(f'Loaded {len(loaded)} state value(s) from {self.path}')
        return loaded

    def load_keys(self, keys: Iterable[str]) -> Dict[str, str]:
        """Like ``load`` but restricted to ``keys``; no defaults are applied."""
        wanted = set(keys)
        loaded: Dict[str, str] = {}
        for key, value in self._read().items():
            if key not in wanted:
                continue
            if not self._accepts(self.specs.get(key), value):
                logger.warning(f"Ignoring persisted {key}={value!r}: rejected by validator")
                continue
            if self.settings.define(key, value, source='state'):
                loaded[key] = value
        return loaded

    def _save_targets(self, keys: Optional[Iterable[str]]) -> List[str]:
        if keys is None:
            return self.specs.keys()
        targets = []
        for key in keys:
            if key in self.specs:
                targets.append(key)
            else:
                logger.warning(f"Refusing to save '{key}': not declared in the state spec table")
        return targets

    def save(self, keys: Optional[Iterable[str]] = None) -> bool:
        """
        Persist the current values of state keys. Returns False when saving is
        disabled; raises StatePersistenceError when the file cannot be written.
        """
        if not self.enabled:
            logger.debug(f'State save skipped (disabled): {self.path}')
            return False
        values = self.settings.subset(self._save_targets(keys))
        if not values:
            logger.debug('No state values to save')
            return True
        try:
            self.file.set_many(values)
        except OSError as exc:
            raise StatePersistenceError(f'Cannot write state file {self.path}: {exc}', path=str(self.path)) from exc
        logger.info(f'Saved {len(values)} state value(s) to {self.path}')
        return True

    def reset(self) -> bool:
        try:
            removed = self.file.reset()
        except OSError as exc:
            raise StatePersistenceError(f'Cannot remove state file {self.path}: {exc}', path=str(self.path)) from exc
        if removed:
            logger.info(f'State file removed: {self.path}')
        return removed

    def set(self, key: str, value: str) -> None:
        """Write one state key immediately and mirror it into the settings store."""
        if key not in self.specs:
            raise StatePersistenceError(f"'{key}' is not a declared state key", path=str(self.path))
        try:
            self.file.set(key, value)
        except OSError as exc:
            raise StatePersistenceError(f'Cannot write state file {self.path}: {exc}', path=str(self.path)) from exc
        self.settings.set(key, value, source='state')

    def unset(self, key: str) -> None:
        try:
            self.file.unset(key)
        except OSError as exc:
            raise StatePersistenceError(f'Cannot write state file {self.path}: {exc}', path=str(self.path)) from exc

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def has(self, key: str) -> bool:
        return key in self._read()

    def list_keys(self) -> List[Tuple[str, str]]:
        return list(self._read().items())


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
