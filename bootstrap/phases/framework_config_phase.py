from __future__ import annotations

from bootstrap.framework_globals import FRAMEWORK_DOMAIN, framework_domain_table
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from bootstrap.phases.path_resolution_phase import derive_paths
from configs.config_loader import SCOPE_FRAMEWORK


class FrameworkConfigPhase(BootstrapPhase):
    """Apply the Framework configuration domain, then re-derive dependent paths."""

    def execute(self, context) -> PhaseResult:
        settings = context.settings
        result = context.merger.apply(
            FRAMEWORK_DOMAIN,
            settings.get('GW_FRAMEWORK_SYSCFG_FILE'),
            settings.get('GW_FRAMEWORK_USRCFG_FILE'),
            framework_domain_table(),
            scope=SCOPE_FRAMEWORK,
        )
        context.domain_results[FRAMEWORK_DOMAIN] = result
        # command-line switches outrank configuration files
        for key, value in context.cli_values.items():
            settings.set(key, value, source='cli')
        derive_paths(settings, context.script_name)

        return PhaseResult.success_result(
            message=f'Framework configuration applied ({len(result.values)} values)',
            metadata={
                'origins': dict(result.origins),
                'system_loaded': result.system_loaded,
                'user_loaded': result.user_loaded,
            },
        )
