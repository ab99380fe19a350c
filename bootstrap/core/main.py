"""
Bootstrap sequencer and process-level entry points.

``bootstrap`` turns a script's declarations into a live ``BootstrapContext``
exactly once per process. ``run_script`` wraps bootstrap, the builtin
report flags and the script body, and maps every outcome to an exit code.
"""
from __future__ import annotations

import logging
import sys
from typing import Callable, List, Optional, Sequence

from bootstrap.config.bootstrap_config import BootstrapConfig
from bootstrap.context.bootstrap_context import BootstrapContext
from bootstrap.context.bootstrap_context_builder import create_bootstrap_context
from bootstrap.core.phase_executor import BootstrapPhaseExecutor, PhaseExecutionResult, PhaseExecutionSummary
from bootstrap.phases.base_phase import BootstrapPhase
from bootstrap.phases.bootstrap_switch_phase import BootstrapSwitchPhase
from bootstrap.phases.builtin_args_phase import BuiltinArgsPhase
from bootstrap.phases.framework_config_phase import FrameworkConfigPhase
from bootstrap.phases.library_load_phase import LibraryLoadPhase
from bootstrap.phases.license_phase import LicensePhase
from bootstrap.phases.path_resolution_phase import PathResolutionPhase
from bootstrap.phases.privilege_phase import PrivilegePhase
from bootstrap.phases.script_args_phase import ScriptArgsPhase
from bootstrap.phases.script_config_phase import ScriptConfigPhase
from bootstrap.phases.state_phase import StatePhase
from bootstrap.phases.style_load_phase import StyleLoadPhase
from bootstrap.reporting import handle_builtin_flags
from bootstrap.result_builder import BootstrapResult, BootstrapResultBuilder
from core.exceptions import BootstrapError, NotBootstrappedError
from core.lifecycle import ExitCode
from runtime.args import END_OF_OPTIONS
from runtime.exit_dispatcher import exit_code_for

__all__ = ['BootstrapSequencer', 'bootstrap', 'current_context', 'last_result', 'run_script', 'reset_bootstrap']

logger = logging.getLogger(__name__)

ScriptMain = Callable[[BootstrapContext], Optional[int]]

_current_context: Optional[BootstrapContext] = None
_last_result: Optional[BootstrapResult] = None


class BootstrapSequencer:

    def __init__(self, config: BootstrapConfig):
        self.config = config
        self._phases: Optional[List[BootstrapPhase]] = None

    def _get_phases(self) -> List[BootstrapPhase]:
        if self._phases is None:
            self._phases = [
                PathResolutionPhase(),
                BootstrapSwitchPhase(),
                LibraryLoadPhase(),
                StyleLoadPhase(),
                FrameworkConfigPhase(),
                BuiltinArgsPhase(),
                PrivilegePhase(),
                LicensePhase(),
                StatePhase(),
                ScriptConfigPhase(),
                ScriptArgsPhase(),
            ]
        return self._phases

    def run(self, argv: Sequence[str]) -> BootstrapResult:
        context = create_bootstrap_context(self.config, argv)
        logger.debug(f"Initializing framework for '{self.config.script_name}' (run_id: {context.run_id})")
        summary = BootstrapPhaseExecutor(context).execute_phases(self._get_phases())
        if not summary.success:
            self._raise_failure(context, summary)
        self._finalize(context)
        return BootstrapResultBuilder(context).with_summary(summary).build()

    def _raise_failure(self, context: BootstrapContext, summary: PhaseExecutionSummary) -> None:
        failed: PhaseExecutionResult = summary.failure
        exc = failed.exception
        if isinstance(exc, BootstrapError):
            error = exc
            error.phase = error.phase or failed.phase_name
            error.origin = error.origin or failed.origin
        else:
            detail = '; '.join(failed.errors) or failed.message
            error = BootstrapError(f'{failed.phase_name} failed: {detail}', phase=failed.phase_name, origin=failed.origin)
        # exit handlers installed by an earlier phase still run at exit, with this code
        if context.dispatcher.installed:
            context.dispatcher.record(error.exit_code)
        logger.error(str(error))
        if exc is not None and exc is not error:
            raise error from exc
        raise error

    def _finalize(self, context: BootstrapContext) -> None:
        remaining = list(context.remaining)
        if remaining and remaining[0] == END_OF_OPTIONS:
            remaining = remaining[1:]
        context.remaining = remaining
        context.positionals = list(remaining)
        context.settings.set('RUN_MODE', context.run_mode.value, source='derived')
        if context.dry_run:
            logger.info(f'Running in {context.run_mode.value} mode (no changes will be made).')
        else:
            logger.info(f'Running in {context.run_mode.value} mode (changes will be applied).')


def bootstrap(config: BootstrapConfig, argv: Optional[Sequence[str]] = None) -> BootstrapContext:
    """
    Initialise the runtime for ``config`` and return its context.

    Idempotent per process: later calls return the first context unchanged,
    whatever they pass.
    """
    global _current_context, _last_result
    if _current_context is not None:
        logger.debug('bootstrap() already completed in this process; returning existing context')
        return _current_context
    result = BootstrapSequencer(config).run(list(sys.argv[1:] if argv is None else argv))
    _last_result = result
    _current_context = result.context
    return _current_context


def current_context() -> BootstrapContext:
    if _current_context is None:
        raise NotBootstrappedError('bootstrap() has not run in this process')
    return _current_context


def last_result() -> Optional[BootstrapResult]:
    return _last_result


def reset_bootstrap() -> None:
    """Forget the process context. Intended for tests and embedding hosts."""
    global _current_context, _last_result
    _current_context = None
    _last_result = None


def run_script(config: BootstrapConfig, main: ScriptMain, argv: Optional[Sequence[str]] = None) -> int:
    """
    Bootstrap, honour the builtin report flags, then run ``main(context)``
    under the exit dispatcher. Returns the process exit code.
    """
    try:
        context = bootstrap(config, argv)
        handle_builtin_flags(context)
    except BootstrapError as exc:
        return int(exc.exit_code)
    except SystemExit as exc:
        return exit_code_for(exc)
    except KeyboardInterrupt:
        logger.warning('Interrupted during bootstrap')
        return int(ExitCode.INTERRUPTED)

    try:
        with context.dispatcher.guard():
            code = main(context)
            if code:
                raise SystemExit(int(code))
    except SystemExit as exc:
        return exit_code_for(exc)
    except KeyboardInterrupt:
        return int(ExitCode.INTERRUPTED)
    return int(ExitCode.OK)
