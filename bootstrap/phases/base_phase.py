"""
Base Phase - Abstract interface for all bootstrap phases.

Defines the common contract shared by the strictly ordered phases that turn
a script's declarations into a live runtime.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

@dataclass
class PhaseResult:
    """Result of a bootstrap phase execution."""
    success: bool
    message: str
    errors: List[str]
    warnings: List[str]
    metadata: Dict[str, Any]

    @classmethod
    def success_result(
        cls,
        message: str,
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> 'PhaseResult':
        """Create a successful phase result."""
        return cls(
            success=True,
            message=message,
            errors=[],
            warnings=warnings or [],
            metadata=metadata or {}
        )

    @classmethod
    def failure_result(
        cls,
        message: str,
        errors: List[str],
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> 'PhaseResult':
        """Create a failed phase result."""
        return cls(
            success=False,
            message=message,
            errors=errors,
            warnings=warnings or [],
            metadata=metadata or {}
        )

class BootstrapPhase(ABC):
    """
    Abstract base class for all bootstrap phases.

    Phases run synchronously, in a fixed order, each exactly once. A phase
    reports expected failures through ``PhaseResult.failure_result`` or by
    raising a ``BootstrapError`` subclass; the executor stops at the first
    failure either way.
    """

    def __init__(self):
        self.phase_name = self.__class__.__name__
        self.logger = logging.getLogger(f"bootstrap.{self.phase_name.lower()}")

    @abstractmethod
    def execute(self, context) -> PhaseResult:
        """
        Execute this bootstrap phase.

        Args:
            context: BootstrapContext containing shared state

        Returns:
            PhaseResult indicating success/failure and any warnings/errors
        """
        pass

    def pre_execute(self, context) -> None:
        """Pre-execution hook called before execute()."""
        self.logger.debug(f"Starting phase: {self.phase_name}")

    def post_execute(self, context, result: PhaseResult) -> None:
        """Post-execution hook called after execute()."""
        if result.success:
            self.logger.debug(f"Phase completed: {self.phase_name} - {result.message}")
        else:
            self.logger.error(f"Phase failed: {self.phase_name} - {result.message}")
            for error in result.errors:
                self.logger.error(f"  Error: {error}")

        for warning in result.warnings:
            self.logger.warning(f"  Warning: {warning}")

    def should_skip_phase(self, context) -> Tuple[bool, str]:
        """
        Determine if this phase should be skipped.

        Returns:
            (should_skip, reason) tuple
        """
        return False, ""
