from __future__ import annotations

from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from core.exceptions import StyleLoadError
from runtime.utils import load_yaml_mapping, resolve_in_dir


class StyleLoadPhase(BootstrapPhase):
    """Load the UI palette, then the style. Basenames resolve against GW_STYLE_DIR."""

    def _load(self, context, key: str):
        value = context.settings.get(key) or ''
        if not value:
            raise StyleLoadError(f'{key} is not set')
        path = resolve_in_dir(value, context.settings.require('GW_STYLE_DIR'))
        try:
            return path, load_yaml_mapping(path)
        except (OSError, ValueError) as exc:
            raise StyleLoadError(f'Cannot load {key} from {path}: {exc}') from exc

    def execute(self, context) -> PhaseResult:
        loaded = {}
        errors = []
        for key in ('GW_UI_PALETTE', 'GW_UI_STYLE'):
            try:
                loaded[key] = self._load(context, key)
            except StyleLoadError as exc:
                errors.append(str(exc))
        if errors:
            return PhaseResult.failure_result(message='UI theme files could not be loaded', errors=errors)

        palette_path, context.palette = loaded['GW_UI_PALETTE']
        style_path, context.style = loaded['GW_UI_STYLE']
        return PhaseResult.success_result(
            message='UI palette and style loaded',
            metadata={'palette': str(palette_path), 'style': str(style_path)},
        )
