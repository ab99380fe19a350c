from __future__ import annotations

import os

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from core.lifecycle import RootMode
from runtime.privilege import cannot_root, need_root


class PrivilegePhase(BootstrapPhase):
    """
    Enforce --needroot / --cannotroot.

    A non-root process that needs root is replaced by a sudo relaunch with
    the full original argv; that branch never returns.
    """

    def should_skip_phase(self, context):
        if context.root_mode is RootMode.NONE:
            return True, 'no root constraint requested'
        return False, ''

    def execute(self, context) -> PhaseResult:
        if context.root_mode is RootMode.MUST_BE_ROOT:
            environ = context.config.environ if context.config.environ is not None else os.environ
            need_root(context.argv, environ=environ)
            return PhaseResult.success_result(message='Running as root')
        cannot_root()
        return PhaseResult.success_result(message='Running as non-root')
