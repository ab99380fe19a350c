"""
Bootstrap Phase Executor - strictly ordered phase execution.

Runs phases one after the other, records timing and outcome, and stops at
the first failure. Phases are never re-entered.
"""

from __future__ import annotations
import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from core.exceptions import Origin

if TYPE_CHECKING:
    from bootstrap.context.bootstrap_context import BootstrapContext
    from bootstrap.phases.base_phase import BootstrapPhase

logger = logging.getLogger(__name__)


def origin_of(exc: BaseException) -> Optional[Origin]:
    """(file, line, function) of the frame that raised ``exc``."""
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return None
    last = frames[-1]
    return last.filename, last.lineno, last.name


def origin_of_phase(phase: 'BootstrapPhase') -> Origin:
    code = type(phase).execute.__code__
    return code.co_filename, code.co_firstlineno, code.co_name


@dataclass
class PhaseExecutionResult:
    """Result of executing a bootstrap phase."""
    phase_name: str
    success: bool
    duration_seconds: float
    message: str = ''
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None
    origin: Optional[Origin] = None

    @property
    def skipped(self) -> bool:
        return bool(self.metadata.get('skipped'))


@dataclass
class PhaseExecutionSummary:
    """Summary of all phase executions."""
    total_phases: int
    successful_phases: int
    failed_phases: int
    total_duration: float
    results: List[PhaseExecutionResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed_phases == 0 and self.successful_phases == self.total_phases

    @property
    def failure(self) -> Optional[PhaseExecutionResult]:
        for result in self.results:
            if not result.success:
                return result
        return None


class BootstrapPhaseExecutor:
    """
    Executes bootstrap phases in order with consistent error handling.

    Exceptions raised by a phase become a failed ``PhaseExecutionResult``
    carrying the exception and its origin. ``SystemExit`` (help output, the
    library guard) is not an error and propagates untouched.
    """

    def __init__(self, context: BootstrapContext):
        self.context = context
        self.execution_results: List[PhaseExecutionResult] = []

    def execute_phases(self, phases: Sequence[BootstrapPhase]) -> PhaseExecutionSummary:
        logger.debug(f'Executing {len(phases)} bootstrap phases')
        start = time.perf_counter()
        successful_count = 0

        for i, phase in enumerate(phases, 1):
            phase_name = phase.__class__.__name__
            logger.debug(f'Phase {i}/{len(phases)}: {phase_name}')

            result = self._execute_single_phase(phase)
            self.execution_results.append(result)

            if not result.success:
                logger.debug(f'Phase {phase_name} failed after {result.duration_seconds:.3f}s; stopping bootstrap')
                break
            successful_count += 1

        summary = PhaseExecutionSummary(
            total_phases=len(phases),
            successful_phases=successful_count,
            failed_phases=len(self.execution_results) - successful_count,
            total_duration=time.perf_counter() - start,
            results=self.execution_results.copy(),
        )
        logger.debug(
            f'Bootstrap phases: {summary.successful_phases}/{summary.total_phases} succeeded '
            f'in {summary.total_duration:.3f}s'
        )
        return summary

    def _execute_single_phase(self, phase: BootstrapPhase) -> PhaseExecutionResult:
        phase_name = phase.__class__.__name__
        start = time.perf_counter()

        try:
            should_skip, skip_reason = phase.should_skip_phase(self.context)
            if should_skip:
                logger.debug(f'Skipping phase {phase_name}: {skip_reason}')
                return PhaseExecutionResult(
                    phase_name=phase_name,
                    success=True,
                    duration_seconds=0.0,
                    message=f'Phase skipped: {skip_reason}',
                    metadata={'skipped': True, 'skip_reason': skip_reason},
                )

            phase.pre_execute(self.context)
            phase_result = phase.execute(self.context)
            phase.post_execute(self.context, phase_result)

            return PhaseExecutionResult(
                phase_name=phase_name,
                success=phase_result.success,
                duration_seconds=time.perf_counter() - start,
                message=phase_result.message,
                errors=phase_result.errors.copy(),
                warnings=phase_result.warnings.copy(),
                metadata=phase_result.metadata.copy(),
                origin=None if phase_result.success else origin_of_phase(phase),
            )

        except Exception as e:
            logger.debug(f'Exception in phase {phase_name}: {e}', exc_info=True)
            return PhaseExecutionResult(
                phase_name=phase_name,
                success=False,
                duration_seconds=time.perf_counter() - start,
                message=str(e),
                errors=[f'{type(e).__name__}: {e}'],
                exception=e,
                origin=origin_of(e),
                metadata={'exception_type': type(e).__name__},
            )
