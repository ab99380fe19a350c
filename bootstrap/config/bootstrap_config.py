from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from domain.spec_table import ArgSpecTable, ConfigDomainTable, SpecManifest, StateSpecTable
from runtime.exit_dispatcher import ExitDispatcher


def _as_arg_table(value: Any) -> ArgSpecTable:
    if isinstance(value, ArgSpecTable):
        return value
    return ArgSpecTable.from_rows(value or ())


def _as_state_table(value: Any) -> StateSpecTable:
    if isinstance(value, StateSpecTable):
        return value
    return StateSpecTable.from_rows(value or ())


def _as_domain_table(value: Any) -> ConfigDomainTable:
    if isinstance(value, ConfigDomainTable):
        return value
    return ConfigDomainTable.from_rows(value or ())


@dataclass
class BootstrapConfig:
    """Configuration for the bootstrap process: who is calling and what it declares."""
    script_name: str
    script_file: Optional[Path] = None
    description: str = ''
    version: str = ''
    build: str = ''
    examples: List[str] = field(default_factory=list)
    args: ArgSpecTable = field(default_factory=ArgSpecTable)
    state: StateSpecTable = field(default_factory=StateSpecTable)
    globals: ConfigDomainTable = field(default_factory=ConfigDomainTable)
    using: Sequence[str] = ()
    overrides: Dict[str, str] = field(default_factory=dict)
    environ: Optional[Mapping[str, str]] = None
    existing_exit_dispatcher: Optional[ExitDispatcher] = None
    license_prompt: Optional[Callable[[str], bool]] = None
    license_printer: Optional[Callable[[str], None]] = None
    bootstrap_cfg_file: Optional[Path] = None

    def __post_init__(self):
        self.args = _as_arg_table(self.args)
        self.state = _as_state_table(self.state)
        self.globals = _as_domain_table(self.globals)
        if self.script_file is not None:
            self.script_file = Path(self.script_file)
        if self.bootstrap_cfg_file is not None:
            self.bootstrap_cfg_file = Path(self.bootstrap_cfg_file)

    @property
    def script_dir(self) -> Optional[Path]:
        return self.script_file.resolve().parent if self.script_file else None

    @classmethod
    def from_params(cls, script_name: str, **kwargs) -> 'BootstrapConfig':
        """Create BootstrapConfig from keyword parameters, accepting raw rows for the tables."""
        return cls(
            script_name=script_name,
            script_file=kwargs.get('script_file'),
            description=kwargs.get('description', ''),
            version=kwargs.get('version', ''),
            build=kwargs.get('build', ''),
            examples=list(kwargs.get('examples', [])),
            args=kwargs.get('args', ()),
            state=kwargs.get('state', ()),
            globals=kwargs.get('globals', ()),
            using=tuple(kwargs.get('using', ())),
            overrides=dict(kwargs.get('overrides', {})),
            environ=kwargs.get('environ'),
            existing_exit_dispatcher=kwargs.get('existing_exit_dispatcher'),
            license_prompt=kwargs.get('license_prompt'),
            license_printer=kwargs.get('license_printer'),
            bootstrap_cfg_file=kwargs.get('bootstrap_cfg_file'),
        )

    @classmethod
    def from_manifest(cls, script_name: str, manifest: Union[str, Path, SpecManifest], **kwargs) -> 'BootstrapConfig':
        """Build from a YAML spec manifest (or an already loaded one)."""
        if not isinstance(manifest, SpecManifest):
            manifest = SpecManifest.from_yaml(manifest)
        kwargs.setdefault('description', manifest.description)
        kwargs.setdefault('examples', manifest.examples)
        return cls.from_params(
            script_name,
            args=manifest.arg_table(),
            state=manifest.state_table(),
            globals=manifest.domain_table(),
            **kwargs,
        )
