from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from core.lifecycle import StateMode
from runtime.exit_dispatcher import make_autosave_handler
from runtime.state import StatePersistence


class StatePhase(BootstrapPhase):
    """
    Optional state reset and load, and exit hook registration.

    ``--statereset`` removes the state file before anything is loaded. With
    ``--state`` or ``--autostate`` the exit dispatcher is installed and state
    is loaded; ``--autostate`` also registers the save-on-clean-exit handler.
    """

    def execute(self, context) -> PhaseResult:
        settings = context.settings
        state = StatePersistence(settings.require('GW_STATE_FILE'), context.config.state, settings)
        context.state = state

        reset = False
        if settings.flag('FLAG_STATERESET'):
            if context.dry_run:
                self.logger.info(f'Dry run: would reset state file {state.path}')
            else:
                reset = state.reset()
                self.logger.info('State file reset as requested.')

        loaded = {}
        if context.state_mode >= StateMode.LOAD:
            context.dispatcher.install()
            loaded = state.load()

        if context.state_mode == StateMode.AUTOSAVE:
            state.enable_save()
            context.dispatcher.add(make_autosave_handler(state))

        return PhaseResult.success_result(
            message=f'State mode {context.state_mode.name}',
            metadata={'reset': reset, 'loaded': sorted(loaded)},
        )
