# groundwork/bootstrap/__init__.py
from __future__ import annotations

from .exceptions import *
from .core.main import BootstrapSequencer, bootstrap, current_context, last_result, reset_bootstrap, run_script
from .core.phase_executor import BootstrapPhaseExecutor, PhaseExecutionResult, PhaseExecutionSummary
from .context.bootstrap_context_builder import create_bootstrap_context
from .context.bootstrap_context import BootstrapContext
from .config.bootstrap_config import BootstrapConfig
from .result_builder import BootstrapResult, BootstrapResultBuilder
from .reporting import handle_builtin_flags
from .framework_globals import PRODUCT, VERSION

__version__ = VERSION
__description__ = 'Declarative runtime resolution for small command-line scripts'

__all__ = [
    'bootstrap', 'current_context', 'last_result', 'reset_bootstrap', 'run_script',
    'BootstrapConfig',
    'BootstrapContext', 'create_bootstrap_context',
    'BootstrapSequencer',
    'BootstrapPhaseExecutor', 'PhaseExecutionResult', 'PhaseExecutionSummary',
    'BootstrapResult', 'BootstrapResultBuilder',
    'handle_builtin_flags',
    'PRODUCT', '__version__', '__description__',
    'BootstrapError', 'NotBootstrappedError', 'SpecTableError', 'ArgumentParseError',
    'ConfigurationError', 'StatePersistenceError', 'LibraryLoadError', 'StyleLoadError',
    'PrivilegeError', 'LicenseError', 'LicenseDeclinedError',
]
