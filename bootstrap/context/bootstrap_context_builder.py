from __future__ import annotations
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Sequence

from bootstrap.config.bootstrap_config import BootstrapConfig
from bootstrap.context.bootstrap_context import BootstrapContext
from configs.config_loader import ConfigDomainMerger
from core.settings import SettingsStore
from runtime.exit_dispatcher import ExitDispatcher

__all__ = ['create_bootstrap_context', 'generate_run_id']

logger = logging.getLogger(__name__)


def generate_run_id(script_name: str) -> str:
    timestamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')
    return f'{script_name}_{timestamp}_{os.getpid()}'


def create_bootstrap_context(
    config: BootstrapConfig,
    argv: Sequence[str],
    run_id: Optional[str] = None,
) -> BootstrapContext:
    """Fresh context: caller overrides seed the settings store, nothing else is resolved yet."""
    settings = SettingsStore(config.overrides, source='caller')
    dispatcher = config.existing_exit_dispatcher or ExitDispatcher()
    context = BootstrapContext(
        config=config,
        run_id=run_id or generate_run_id(config.script_name),
        settings=settings,
        dispatcher=dispatcher,
        merger=ConfigDomainMerger(settings),
        argv=list(argv),
        remaining=list(argv),
    )
    logger.debug(f"BootstrapContext created for run_id='{context.run_id}'")
    return context
