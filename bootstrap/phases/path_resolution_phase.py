"""
Path Resolution Phase - locate the framework and derive standard paths.

Precedence for every framework key is caller > environment > bootstrap cfg
file > built-in default; nothing set by an earlier layer is overwritten.
Derived paths are recomputed whenever this module's ``derive_paths`` runs
again, unless a caller or a configuration file set them explicitly.
"""
from __future__ import annotations

import os
from pathlib import Path

from bootstrap.framework_globals import BOOTSTRAP_CFG_BASENAME, ENV_KEYS, FRAMEWORK_DEFAULTS
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from configs.kv_store import read_assignments
from core.exceptions import ConfigurationError
from core.settings import SettingsStore
from runtime.privilege import resolve_user_home

BOOTSTRAP_DIR = Path(__file__).resolve().parents[1]
STYLE_DIR = BOOTSTRAP_DIR / 'styles'
DOCS_DIR = BOOTSTRAP_DIR / 'docs'

_ROOT_KEYS = ('GW_FRAMEWORK_ROOT', 'GW_APPLICATION_ROOT')
_REDERIVABLE = (None, 'derived')


def _derive(settings: SettingsStore, key: str, value) -> None:
    if settings.source_of(key) in _REDERIVABLE:
        settings.set(key, str(value), source='derived')


def derive_paths(settings: SettingsStore, script_name: str) -> None:
    """(Re)compute directories and per-script file paths from the root settings."""
    app_root = Path(settings.get('GW_APPLICATION_ROOT') or '/')
    home = Path(settings.require('GW_USER_HOME'))

    _derive(settings, 'GW_SYSCFG_DIR', app_root / 'etc' / 'groundwork')
    _derive(settings, 'GW_USRCFG_DIR', home / '.config' / 'groundwork')
    _derive(settings, 'GW_STATE_DIR', home / '.state' / 'groundwork')
    _derive(settings, 'GW_STYLE_DIR', STYLE_DIR)
    _derive(settings, 'GW_DOCS_DIR', DOCS_DIR)
    _derive(settings, 'GW_LOG_PATH', app_root / 'var' / 'log' / 'groundwork' / 'groundwork.log')
    _derive(settings, 'GW_ALTLOG_PATH', home / '.log' / 'groundwork' / 'groundwork.log')

    syscfg_dir = Path(settings.require('GW_SYSCFG_DIR'))
    usrcfg_dir = Path(settings.require('GW_USRCFG_DIR'))
    state_dir = Path(settings.require('GW_STATE_DIR'))
    basename = settings.get('GW_FRAMEWORK_CFG_BASENAME') or FRAMEWORK_DEFAULTS['GW_FRAMEWORK_CFG_BASENAME']

    _derive(settings, 'GW_FRAMEWORK_SYSCFG_FILE', syscfg_dir / basename)
    _derive(settings, 'GW_FRAMEWORK_USRCFG_FILE', usrcfg_dir / basename)
    _derive(settings, 'GW_SYSCFG_FILE', syscfg_dir / f'{script_name}.cfg')
    _derive(settings, 'GW_USRCFG_FILE', usrcfg_dir / f'{script_name}.cfg')
    _derive(settings, 'GW_STATE_FILE', state_dir / f'{script_name}.state')


class PathResolutionPhase(BootstrapPhase):

    def execute(self, context) -> PhaseResult:
        config = context.config
        settings = context.settings
        environ = config.environ if config.environ is not None else os.environ

        settings.define('GW_BOOTSTRAP_DIR', str(BOOTSTRAP_DIR), source='derived')
        settings.define('GW_SCRIPT_NAME', config.script_name, source='derived')
        if config.script_file is not None:
            settings.define('GW_SCRIPT_FILE', str(config.script_file), source='derived')
            settings.define('GW_SCRIPT_DIR', str(config.script_dir), source='derived')

        from_env = 0
        for key in ENV_KEYS:
            if key in environ and settings.define(key, environ[key], source='env'):
                from_env += 1

        cfg_file = config.bootstrap_cfg_file or environ.get('GW_BOOTSTRAP_CFG')
        cfg_loaded = False
        if cfg_file:
            cfg_path = Path(cfg_file)
            if not cfg_path.is_file():
                raise ConfigurationError(f'Bootstrap cfg not found: {cfg_path}', path=str(cfg_path))
            try:
                values = read_assignments(cfg_path, allowed=_ROOT_KEYS)
            except (OSError, UnicodeDecodeError) as exc:
                raise ConfigurationError(f'Cannot read bootstrap cfg {cfg_path}: {exc}', path=str(cfg_path)) from exc
            for key, value in values.items():
                settings.define(key, value, source='bootstrap-cfg')
            cfg_loaded = True
            self.logger.debug(f'Bootstrap cfg loaded from {cfg_path}')
        else:
            default_cfg = BOOTSTRAP_DIR / BOOTSTRAP_CFG_BASENAME
            if default_cfg.is_file():
                for key, value in read_assignments(default_cfg, allowed=_ROOT_KEYS).items():
                    settings.define(key, value, source='bootstrap-cfg')
                cfg_loaded = True

        for key, value in FRAMEWORK_DEFAULTS.items():
            settings.define(key, value, source='default')

        settings.define('GW_USER_HOME', str(resolve_user_home(environ)), source='derived')
        derive_paths(settings, config.script_name)

        return PhaseResult.success_result(
            message='Paths resolved',
            metadata={
                'framework_root': settings.get('GW_FRAMEWORK_ROOT'),
                'application_root': settings.get('GW_APPLICATION_ROOT'),
                'env_values': from_env,
                'bootstrap_cfg_loaded': cfg_loaded,
            },
        )
