from __future__ import annotations

from bootstrap.framework_globals import SCRIPT_DOMAIN
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from configs.config_loader import SCOPE_SCRIPT, ensure_files


class ScriptConfigPhase(BootstrapPhase):
    """Apply the Script configuration domain when the script declares globals."""

    def should_skip_phase(self, context):
        if not context.config.globals:
            return True, 'script declares no configuration globals'
        return False, ''

    def execute(self, context) -> PhaseResult:
        settings = context.settings
        specs = context.config.globals
        system_file = settings.get('GW_SYSCFG_FILE')
        user_file = settings.get('GW_USRCFG_FILE')

        if settings.flag('FLAG_INIT_CONFIG'):
            context.created_files += ensure_files(
                SCRIPT_DOMAIN, system_file, user_file, specs, scope=SCOPE_SCRIPT, settings=settings,
            )

        result = context.merger.apply(SCRIPT_DOMAIN, system_file, user_file, specs, scope=SCOPE_SCRIPT)
        context.domain_results[SCRIPT_DOMAIN] = result
        return PhaseResult.success_result(
            message=f'Script configuration applied ({len(result.values)} values)',
            metadata={'origins': dict(result.origins)},
        )
