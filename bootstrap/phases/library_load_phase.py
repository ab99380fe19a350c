"""
Library Load Phase - import the core runtime modules in their fixed order,
then the extra modules the script asked for.
"""
from __future__ import annotations

import importlib

from bootstrap.framework_globals import CORE_LIBS
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from core.exceptions import LibraryLoadError


class LibraryLoadPhase(BootstrapPhase):

    def execute(self, context) -> PhaseResult:
        self.logger.info('Loading core libraries...')
        for module_name in tuple(CORE_LIBS) + tuple(context.config.using):
            try:
                importlib.import_module(module_name)
            except ImportError as exc:
                raise LibraryLoadError(f"Cannot load library '{module_name}': {exc}", module_name=module_name) from exc
            context.loaded_modules.append(module_name)
            self.logger.debug(f'Loaded library {module_name}')
        return PhaseResult.success_result(
            message=f'{len(context.loaded_modules)} libraries loaded',
            metadata={'modules': list(context.loaded_modules)},
        )
