from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from configs.config_utils import merge_layers
from configs.kv_store import KeyValueFile, read_assignments
from core.exceptions import ConfigurationError
from core.lifecycle import Audience
from core.settings import SettingsStore
from domain.spec_table import ConfigDomainTable

__all__ = ['ConfigDomainMerger', 'DomainApplyResult', 'ConfigFile', 'has_audience', 'write_skeleton', 'ensure_files']
logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
SCOPE_FRAMEWORK = 'framework'
SCOPE_SCRIPT = 'script'

_SOURCE_FOR = {Audience.SYSTEM: 'system-cfg', Audience.USER: 'user-cfg'}


@dataclass
class DomainApplyResult:
    domain: str
    scope: str
    system_file: Optional[Path]
    user_file: Optional[Path]
    values: Dict[str, str] = field(default_factory=dict)
    origins: Dict[str, str] = field(default_factory=dict)
    system_loaded: bool = False
    user_loaded: bool = False

    @property
    def applied_keys(self) -> List[str]:
        return sorted(self.values)


def has_audience(specs: ConfigDomainTable, audience: Audience) -> bool:
    return specs.has_audience(audience)


def _read_scope_file(domain: str, path: Optional[Path], allowed: List[str]) -> Optional[Dict[str, str]]:
    """None when absent; raises ConfigurationError when present but unreadable."""
    if path is None or not path.exists():
        return None
    try:
        return read_assignments(path, allowed=allowed)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f'[{domain}] cannot read config file {path}: {exc}', path=str(path), domain=domain) from exc


def _format_value(value: str) -> str:
    # mirrors python-dotenv's auto quoting so skeletons read back unchanged
    if value == '' or value.isalnum():
        return value
    escaped = value.replace('\\', '\\\\').replace("'", "\\'")
    return f"'{escaped}'"


def write_skeleton(file: PathLike, audience: Audience, specs: ConfigDomainTable, settings: Optional[SettingsStore] = None) -> Path:
    """Write a config file holding only the variables ``audience`` may set, with current values."""
    path = Path(file)
    lines = [
        f'# Auto-generated config ({audience.value})',
        '# Lines must be VAR=VALUE. Other lines are ignored.',
        '',
    ]
    for spec in specs.specs_for(audience):
        value = settings.get(spec.variable, '') if settings is not None else ''
        lines.append(f'# {spec.description or spec.variable}')
        lines.append(f'{spec.variable}={_format_value(value or "")}')
        lines.append('')
    KeyValueFile(path, private=(audience is Audience.USER)).write_text('\n'.join(lines))
    logger.debug(f'Wrote {audience.value} config skeleton {path}')
    return path


def ensure_files(
    domain: str,
    system_file: Optional[PathLike],
    user_file: Optional[PathLike],
    specs: ConfigDomainTable,
    scope: str = SCOPE_SCRIPT,
    settings: Optional[SettingsStore] = None,
) -> List[Path]:
    """
    Create missing config files as skeletons.

    The user file is created whenever the domain has user-audience keys. The
    system file is only created for the script scope and only when running
    as root; the framework's system file belongs to the installer.
    """
    created: List[Path] = []
    is_root = os.geteuid() == 0
    if system_file and specs.has_audience(Audience.SYSTEM) and scope == SCOPE_SCRIPT and is_root:
        path = Path(system_file)
        if not path.exists():
            created.append(write_skeleton(path, Audience.SYSTEM, specs, settings))
            logger.info(f'[{domain}] created system cfg: {path}')
    if user_file and specs.has_audience(Audience.USER):
        path = Path(user_file)
        if not path.exists():
            created.append(write_skeleton(path, Audience.USER, specs, settings))
            logger.info(f'[{domain}] created user cfg: {path}')
    return created


class ConfigDomainMerger:
    """
    Resolve one configuration domain from its system and user files.

    Only variables declared in the domain's spec table are read: the system
    file supplies ``system`` + ``both`` keys, the user file ``user`` + ``both``
    keys, and user values win. Absent files are skipped; a present but
    unreadable file fails the domain.
    """

    def __init__(self, settings: SettingsStore):
        self.settings = settings
        self._warned_missing: Set[Tuple[str, str]] = set()

    def _warn_missing_system(self, domain: str, path: Path, scope: str) -> None:
        key = (domain, str(path))
        if key in self._warned_missing:
            return
        self._warned_missing.add(key)
        if scope == SCOPE_FRAMEWORK:
            logger.warning(f'[{domain}] system cfg not found: {path} (using default settings; installer should create it)')
        else:
            logger.warning(f'[{domain}] system cfg not found: {path} (using default settings; run as root once to create it)')

    def apply(
        self,
        domain_name: str,
        system_file: Optional[PathLike],
        user_file: Optional[PathLike],
        specs: ConfigDomainTable,
        scope: str = SCOPE_SCRIPT,
    ) -> DomainApplyResult:
        sys_path = Path(system_file) if system_file else None
        usr_path = Path(user_file) if user_file else None
        result = DomainApplyResult(domain=domain_name, scope=scope, system_file=sys_path, user_file=usr_path)
        logger.debug(f'[{domain_name}] applying config domain (system={sys_path}, user={usr_path})')

        layers = []
        if specs.has_audience(Audience.SYSTEM):
            allowed = specs.variables_for(Audience.SYSTEM)
            system_values = _read_scope_file(domain_name, sys_path, allowed)
            if system_values is None:
                if sys_path is not None:
                    self._warn_missing_system(domain_name, sys_path, scope)
            else:
                result.system_loaded = True
                layers.append((_SOURCE_FOR[Audience.SYSTEM], system_values, allowed))

        if specs.has_audience(Audience.USER):
            allowed = specs.variables_for(Audience.USER)
            user_values = _read_scope_file(domain_name, usr_path, allowed)
            if user_values is not None:
                result.user_loaded = True
                layers.append((_SOURCE_FOR[Audience.USER], user_values, allowed))

        values, origins = merge_layers(*layers, context=domain_name)
        for key, value in values.items():
            self.settings.set(key, value, source=origins[key])
        result.values = values
        result.origins = origins
        logger.info(f'[{domain_name}] config domain applied: {len(values)} value(s) from file')
        return result


class ConfigFile:
    """Single-file get/set helpers that keep the settings store in step with the file."""

    def __init__(self, path: PathLike, settings: SettingsStore, private: bool = True):
        self.file = KeyValueFile(path, private=private)
        self.settings = settings

    @property
    def path(self) -> Path:
        return self.file.path

    def load(self) -> Dict[str, str]:
        try:
            values = self.file.load()
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f'cannot read config file {self.path}: {exc}', path=str(self.path)) from exc
        self.settings.update(values, source='user-cfg')
        return values

    def get(self, key: str) -> Optional[str]:
        return self.file.get(key)

    def has(self, key: str) -> bool:
        return self.file.has(key)

    def set(self, key: str, value: str) -> None:
        try:
            self.file.set(key, value)
        except OSError as exc:
            raise ConfigurationError(f'cannot write config file {self.path}: {exc}', path=str(self.path)) from exc
        self.settings.set(key, value, source='user-cfg')

    def unset(self, key: str) -> None:
        self.file.unset(key)
        self.settings.unset(key)

    def reset(self) -> bool:
        return self.file.reset()


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
