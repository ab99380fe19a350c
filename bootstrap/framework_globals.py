"""
Framework-wide names, defaults and spec tables.

Definitions only: nothing here reads files, inspects the environment or
applies configuration.
"""
from typing import Dict, Tuple

from domain.spec_table import ArgSpecTable, ConfigDomainTable

PRODUCT = 'groundwork'
VERSION = '1.0.0'
VERSION_DATE = '2026-01-08'
LICENSE_NAME = 'groundwork Non-Commercial License v1.0'

FRAMEWORK_CFG_BASENAME = 'groundwork_framework.cfg'
BOOTSTRAP_CFG_BASENAME = 'groundwork.cfg'

FRAMEWORK_DOMAIN = 'Framework'
SCRIPT_DOMAIN = 'Script'

FRAMEWORK_GLOBALS = (
    'system|GW_SYSCFG_DIR|Framework-wide system configuration directory|',
    'system|GW_DOCS_DIR|Framework-wide documentation directory|',
    'system|GW_LOGFILE_ENABLED|Enable or disable logfile output|',
    'both|GW_CONSOLE_MSGTYPES|Console message types to display|',
    'system|GW_LOG_PATH|Primary log file path|',
    'both|GW_ALTLOG_PATH|Alternate log path, used when the primary is not writable|',
    'system|GW_LOG_MAX_BYTES|Maximum log file size before rotation|',
    'system|GW_LOG_KEEP|Number of rotated log files to retain|',
    'system|GW_LOG_COMPRESS|Compress rotated log files|',
    'user|GW_STATE_DIR|User-specific persistent state directory|',
    'user|GW_USRCFG_DIR|User-specific configuration directory|',
    'both|GW_UI_STYLE|UI style file (basename or path)|',
    'both|GW_UI_PALETTE|UI palette file (basename or path)|',
    'system|GW_LICENSE_FILE|License file shown for acceptance (empty disables the check)|',
)

# applied define-if-unset, so caller and environment values win
FRAMEWORK_DEFAULTS: Dict[str, str] = {
    'GW_FRAMEWORK_ROOT': '/',
    'GW_APPLICATION_ROOT': '/',
    'GW_LOG_MAX_BYTES': str(25 * 1024 * 1024),
    'GW_LOG_KEEP': '20',
    'GW_LOG_COMPRESS': '1',
    'GW_LOGFILE_ENABLED': '0',
    'GW_LOG_TO_CONSOLE': '1',
    'GW_CONSOLE_MSGTYPES': 'STRT|WARN|FAIL|INFO|END',
    'GW_UI_STYLE': 'default-ui-style.yaml',
    'GW_UI_PALETTE': 'default-ui-palette.yaml',
    'GW_LICENSE_FILE': 'LICENSE',
    'GW_FRAMEWORK_CFG_BASENAME': FRAMEWORK_CFG_BASENAME,
}

# environment variables honoured for these keys only
ENV_KEYS: Tuple[str, ...] = tuple(FRAMEWORK_DEFAULTS) + (
    'GW_SYSCFG_DIR', 'GW_USRCFG_DIR', 'GW_STATE_DIR', 'GW_STYLE_DIR', 'GW_DOCS_DIR',
    'GW_LOG_PATH', 'GW_ALTLOG_PATH', 'GW_USER_HOME',
)

# imported in this order; later modules build on earlier ones
CORE_LIBS: Tuple[str, ...] = (
    'runtime.validators',
    'runtime.args',
    'configs.kv_store',
    'configs.config_loader',
    'runtime.state',
    'runtime.exit_dispatcher',
    'runtime.privilege',
    'runtime.license',
    'runtime.logging_setup',
)

BOOTSTRAP_SWITCHES = (
    'state||flag|GW_EXE_STATE_LOAD|Load persisted state|',
    'autostate||flag|GW_EXE_STATE_AUTOSAVE|Load persisted state and save it on clean exit|',
    'needroot||flag|GW_EXE_NEEDROOT|Require root; relaunch with sudo when needed|',
    'cannotroot||flag|GW_EXE_CANNOTROOT|Refuse to run as root|',
    'log||flag|GW_LOGFILE_ENABLED|Write the log file|',
    'console||flag|GW_LOG_TO_CONSOLE|Write log messages to the console|',
)

BUILTIN_ARGS = (
    'dryrun||flag|FLAG_DRYRUN|Emulate only; do not perform actions|',
    'debug||flag|FLAG_DEBUG|Show debug messages|',
    'help||flag|FLAG_HELP|Show command-line help and exit|',
    'initcfg||flag|FLAG_INIT_CONFIG|Create missing configuration files|',
    'showargs||flag|FLAG_SHOWARGS|Print parsed arguments and exit|',
    'showcfg||flag|FLAG_SHOWCFG|Print configuration values and exit|',
    'showstate||flag|FLAG_SHOWSTATE|Print state values and exit|',
    'statereset||flag|FLAG_STATERESET|Reset the state file|',
    'verbose||flag|FLAG_VERBOSE|Enable verbose output|',
    'version||flag|FLAG_VERSION|Print version information and exit|',
)


def framework_domain_table() -> ConfigDomainTable:
    return ConfigDomainTable.from_rows(FRAMEWORK_GLOBALS)


def bootstrap_switch_table() -> ArgSpecTable:
    return ArgSpecTable.from_rows(BOOTSTRAP_SWITCHES)


def builtin_arg_table() -> ArgSpecTable:
    return ArgSpecTable.from_rows(BUILTIN_ARGS)


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
