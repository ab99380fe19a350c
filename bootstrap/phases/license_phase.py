"""
License Phase - license acceptance gate.

Runs only after the privilege phase so a sudo relaunch never prompts twice.
Once it passes, the arguments left by builtin parsing become the working
argument list: no relaunch can happen any more.
"""
from __future__ import annotations

from pathlib import Path

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from runtime.license import LicenseGate
from runtime.utils import resolve_in_dir


class LicensePhase(BootstrapPhase):

    def execute(self, context) -> PhaseResult:
        settings = context.settings
        license_name = settings.get('GW_LICENSE_FILE') or ''
        if not license_name:
            context.remaining = list(context.after_builtins)
            return PhaseResult.success_result(message='License check disabled', metadata={'skipped': True})

        gate = LicenseGate(
            resolve_in_dir(license_name, settings.require('GW_DOCS_DIR')),
            Path(settings.require('GW_STATE_DIR')) / f'{Path(license_name).name}.accepted',
            prompt=context.config.license_prompt,
            show=context.config.license_printer,
        )
        context.license_status = gate.check()
        settings.set('GW_LICENSE_ACCEPTED', '1', source='runtime')
        context.remaining = list(context.after_builtins)
        return PhaseResult.success_result(
            message='License accepted',
            metadata={'prompted': context.license_status.prompted},
        )
