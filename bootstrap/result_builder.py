"""
Bootstrap result builder.

Packages the bootstrap context and the phase execution summary into a
``BootstrapResult``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bootstrap.core.phase_executor import PhaseExecutionSummary

logger = logging.getLogger(__name__)


class BootstrapResult:
    """Result of one bootstrap run: the live context plus per-phase outcomes."""

    def __init__(self, context, summary: Optional[PhaseExecutionSummary] = None):
        self.context = context
        self.summary = summary
        self.run_id = context.run_id
        self.creation_time = datetime.now(timezone.utc)

    @property
    def success(self) -> bool:
        return self.summary is None or self.summary.success

    @property
    def bootstrap_duration(self) -> Optional[float]:
        return self.summary.total_duration if self.summary else None

    @property
    def skipped_phases(self) -> List[str]:
        if self.summary is None:
            return []
        return [result.phase_name for result in self.summary.results if result.skipped]

    def get_summary(self) -> Dict[str, Any]:
        """Key bootstrap facts as a plain dictionary."""
        context = self.context
        return {
            'run_id': self.run_id,
            'success': self.success,
            'script': context.script_name,
            'run_mode': context.run_mode.value,
            'state_mode': context.state_mode.name,
            'root_mode': context.root_mode.name,
            'positionals': list(context.positionals),
            'skipped_phases': self.skipped_phases,
            'bootstrap_duration': self.bootstrap_duration,
            'creation_time': self.creation_time.isoformat(),
        }

    def __repr__(self) -> str:
        return f"BootstrapResult(run_id='{self.run_id}', success={self.success})"


class BootstrapResultBuilder:

    def __init__(self, context):
        self.context = context
        self._summary: Optional[PhaseExecutionSummary] = None

    def with_summary(self, summary: PhaseExecutionSummary) -> 'BootstrapResultBuilder':
        self._summary = summary
        return self

    def build(self) -> BootstrapResult:
        result = BootstrapResult(self.context, self._summary)
        logger.debug(f'Bootstrap completed: {result.get_summary()}')
        return result

