"""
Builtin Args Phase - parse the framework's builtin options.

Runs in stop-at-unknown mode so the script's own options stay available for
the script argument phase. Logging is configured here, once the debug and
verbosity flags are known.
"""
from __future__ import annotations

from bootstrap.framework_globals import FRAMEWORK_DOMAIN, builtin_arg_table, framework_domain_table
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from configs.config_loader import SCOPE_FRAMEWORK, ensure_files
from runtime.args import ArgParser
from runtime.logging_setup import configure_logging


def usage_parser(context, specs, **kwargs) -> ArgParser:
    """Parser whose usage text lists script options first, then the builtins."""
    return ArgParser(
        specs,
        prog=context.script_name,
        description=context.config.description,
        help_sections=[('Script options', list(context.config.args)), ('Builtin options', list(builtin_arg_table()))],
        examples=context.config.examples,
        **kwargs,
    )


class BuiltinArgsPhase(BootstrapPhase):

    def execute(self, context) -> PhaseResult:
        settings = context.settings
        builtins = builtin_arg_table()
        result = usage_parser(context, builtins).parse(context.remaining, stop_at_unknown=True)

        for key, value in result.explicit.items():
            settings.set(key, value, source='cli')
        for key, value in builtins.defaults().items():
            settings.define(key, value, source='default')
        settings.set('RUN_MODE', context.run_mode.value, source='derived')
        context.after_builtins = list(result.remaining)

        configure_logging(settings)

        if settings.flag('FLAG_INIT_CONFIG'):
            context.created_files += ensure_files(
                FRAMEWORK_DOMAIN,
                settings.get('GW_FRAMEWORK_SYSCFG_FILE'),
                settings.get('GW_FRAMEWORK_USRCFG_FILE'),
                framework_domain_table(),
                scope=SCOPE_FRAMEWORK,
                settings=settings,
            )

        return PhaseResult.success_result(
            message='Builtin arguments parsed',
            metadata={'explicit': dict(result.explicit), 'remaining': len(result.remaining)},
        )
