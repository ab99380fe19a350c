from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from bootstrap.config.bootstrap_config import BootstrapConfig
from configs.config_loader import ConfigDomainMerger, DomainApplyResult
from core.lifecycle import RootMode, RunMode, StateMode
from core.settings import SettingsStore
from runtime.exit_dispatcher import ExitDispatcher
from runtime.license import LicenseStatus
from runtime.state import StatePersistence


@dataclass
class BootstrapContext:
    config: BootstrapConfig
    run_id: str
    settings: SettingsStore
    dispatcher: ExitDispatcher
    merger: ConfigDomainMerger
    argv: List[str] = field(default_factory=list)
    remaining: List[str] = field(default_factory=list)
    # builtin phase output, kept until privilege and license are settled
    after_builtins: List[str] = field(default_factory=list)
    positionals: List[str] = field(default_factory=list)
    state_mode: StateMode = StateMode.NONE
    root_mode: RootMode = RootMode.NONE
    cli_values: Dict[str, str] = field(default_factory=dict)
    loaded_modules: List[str] = field(default_factory=list)
    palette: Dict[str, Any] = field(default_factory=dict)
    style: Dict[str, Any] = field(default_factory=dict)
    domain_results: Dict[str, DomainApplyResult] = field(default_factory=dict)
    state: Optional[StatePersistence] = None
    license_status: Optional[LicenseStatus] = None
    created_files: List[Path] = field(default_factory=list)

    @property
    def script_name(self) -> str:
        return self.config.script_name

    @property
    def run_mode(self) -> RunMode:
        return RunMode.DRYRUN if self.settings.flag('FLAG_DRYRUN') else RunMode.COMMIT

    @property
    def dry_run(self) -> bool:
        return self.run_mode is RunMode.DRYRUN

    def path(self, key: str) -> Optional[Path]:
        value = self.settings.get(key)
        return Path(value) if value else None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.settings.get(key, default)

    def flag(self, key: str) -> bool:
        return self.settings.flag(key)
