from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from bootstrap.phases.builtin_args_phase import usage_parser


class ScriptArgsPhase(BootstrapPhase):
    """
    Parse the script's own options, strictly, from what builtin parsing left.

    Defaults for every script option are defined even when no arguments
    remain, so the script can always read its option targets.
    """

    def should_skip_phase(self, context):
        if not context.config.args:
            return True, 'script declares no arguments'
        return False, ''

    def execute(self, context) -> PhaseResult:
        specs = context.config.args
        settings = context.settings

        parsed = {}
        if context.remaining:
            result = usage_parser(context, specs).parse(context.remaining)
            parsed = dict(result.explicit)
            for key, value in parsed.items():
                settings.set(key, value, source='cli')
            context.remaining = list(result.positionals)
        for key, value in specs.defaults().items():
            settings.define(key, value, source='default')

        return PhaseResult.success_result(
            message='Script arguments parsed' if parsed else 'No script arguments given',
            metadata={'explicit': parsed, 'positionals': list(context.remaining)},
        )
