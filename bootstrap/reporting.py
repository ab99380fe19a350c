"""
Plain-text reports behind the builtin ``--version``, ``--showargs``,
``--showcfg`` and ``--showstate`` flags.
"""
from __future__ import annotations

import logging
import sys
from typing import Iterable, List, Optional, TextIO, Tuple

from bootstrap.framework_globals import (
    FRAMEWORK_DOMAIN, LICENSE_NAME, PRODUCT, SCRIPT_DOMAIN, VERSION, VERSION_DATE, framework_domain_table,
)
from core.lifecycle import Audience, ExitCode

__all__ = ['handle_builtin_flags', 'version_report', 'args_report', 'config_report', 'state_report']
logger = logging.getLogger(__name__)

_LABEL_WIDTH = 28


def _section(title: str, rows: Iterable[Tuple[str, str]]) -> List[str]:
    lines = [title, '-' * len(title)]
    for label, value in rows:
        lines.append(f'  {label:<{_LABEL_WIDTH}} {value}')
    lines.append('')
    return lines


def version_report(context) -> str:
    config = context.config
    script_version = config.version or 'unknown'
    if config.build:
        script_version += f' (build {config.build})'
    return '\n'.join([
        f'{config.script_name} {script_version}',
        f'{PRODUCT} {VERSION} ({VERSION_DATE})',
        f'License: {LICENSE_NAME}',
    ]) + '\n'


def _domain_rows(context, variables: Iterable[str]) -> List[Tuple[str, str]]:
    settings = context.settings
    rows = []
    for name in variables:
        value = settings.get(name, '')
        source = settings.source_of(name) or 'unset'
        rows.append((name, f'{value}  [{source}]'))
    return rows


def args_report(context) -> str:
    config = context.config
    settings = context.settings
    lines = _section(f'Script info ({context.run_mode.value})', [
        ('File', str(config.script_file or '')),
        ('Script', config.script_name),
        ('Script description', config.description),
        ('Script version', f'{config.version} (build {config.build})' if config.build else config.version),
    ])
    lines += _section('Framework info', [
        ('Product', PRODUCT),
        ('Version', VERSION),
        ('Release date', VERSION_DATE),
        ('License', LICENSE_NAME),
    ])
    lines += _section('Bootstrap options', [
        ('State mode', context.state_mode.name),
        ('Root mode', context.root_mode.name),
        ('Log file', settings.get('GW_LOGFILE_ENABLED', '0')),
        ('Console', settings.get('GW_LOG_TO_CONSOLE', '1')),
    ])
    builtin_targets = sorted(key for key, _ in settings.items() if key.startswith('FLAG_'))
    lines += _section('Builtin arguments', _domain_rows(context, builtin_targets))
    if config.args:
        lines += _section('Script arguments', _domain_rows(context, [spec.target_var for spec in config.args]))
    lines += _section('Positional arguments', [(str(i), arg) for i, arg in enumerate(context.positionals, 1)])
    return '\n'.join(lines)


def config_report(context) -> str:
    framework = framework_domain_table()
    lines = _section(f'{FRAMEWORK_DOMAIN} system settings', _domain_rows(context, framework.variables_for(Audience.SYSTEM)))
    lines += _section(f'{FRAMEWORK_DOMAIN} user settings', _domain_rows(context, framework.variables_for(Audience.USER)))
    if context.config.globals:
        lines += _section(f'{SCRIPT_DOMAIN} settings', _domain_rows(context, context.config.globals.variables()))
    return '\n'.join(lines)


def state_report(context) -> str:
    state_file = context.settings.get('GW_STATE_FILE', '')
    rows = []
    for spec in context.config.state:
        label = spec.label or spec.key
        rows.append((label, context.settings.get(spec.key, '')))
    lines = _section(f'State ({state_file})', rows)
    return '\n'.join(lines)


def handle_builtin_flags(context, out: Optional[TextIO] = None) -> None:
    """Print the report for the first report flag that is set, then exit 0."""
    stream = out or sys.stdout
    settings = context.settings
    reports = (
        ('FLAG_VERSION', version_report),
        ('FLAG_SHOWARGS', args_report),
        ('FLAG_SHOWCFG', config_report),
        ('FLAG_SHOWSTATE', state_report),
    )
    for flag, render in reports:
        if settings.flag(flag):
            stream.write(render(context))
            stream.flush()
            raise SystemExit(int(ExitCode.OK))
