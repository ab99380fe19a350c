"""
Bootstrap Switch Phase - consume process-level switches from the front of argv.

Parsing stops at ``--`` (which is consumed) or at the first token that is
not a bootstrap switch; everything after is kept verbatim.
"""
from __future__ import annotations

from bootstrap.framework_globals import bootstrap_switch_table
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from core.exceptions import ArgumentParseError
from core.lifecycle import RootMode, StateMode
from runtime.args import END_OF_OPTIONS, ArgParser

_SETTING_SWITCHES = ('GW_LOGFILE_ENABLED', 'GW_LOG_TO_CONSOLE')


class BootstrapSwitchPhase(BootstrapPhase):

    def execute(self, context) -> PhaseResult:
        parser = ArgParser(bootstrap_switch_table(), prog=context.script_name, handle_help=False)
        result = parser.parse(context.remaining, stop_at_unknown=True)
        given = {key: value == '1' for key, value in result.explicit.items()}

        if given.get('GW_EXE_STATE_AUTOSAVE'):
            context.state_mode = StateMode.AUTOSAVE
        elif given.get('GW_EXE_STATE_LOAD'):
            context.state_mode = StateMode.LOAD

        if given.get('GW_EXE_NEEDROOT') and given.get('GW_EXE_CANNOTROOT'):
            raise ArgumentParseError('--needroot and --cannotroot are mutually exclusive', option='--needroot')
        if given.get('GW_EXE_NEEDROOT'):
            context.root_mode = RootMode.MUST_BE_ROOT
        elif given.get('GW_EXE_CANNOTROOT'):
            context.root_mode = RootMode.MUST_NOT_BE_ROOT

        for key in _SETTING_SWITCHES:
            if key in result.explicit:
                context.settings.set(key, result.explicit[key], source='cli')
                context.cli_values[key] = result.explicit[key]

        remaining = list(result.remaining)
        if remaining and remaining[0] == END_OF_OPTIONS:
            remaining = remaining[1:]
        context.remaining = remaining

        return PhaseResult.success_result(
            message='Bootstrap switches parsed',
            metadata={
                'state_mode': context.state_mode.name,
                'root_mode': context.root_mode.name,
                'remaining': len(remaining),
            },
        )
