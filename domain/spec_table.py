# domain/spec_table.py
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from core.exceptions import SpecTableError
from core.lifecycle import Audience
from runtime.utils import is_identifier, load_yaml_mapping

__all__: Sequence[str] = (
    'ArgSpec', 'StateSpec', 'ConfigDomainSpec',
    'ArgSpecTable', 'StateSpecTable', 'ConfigDomainTable', 'SpecManifest',
    'parse_arg_row', 'parse_state_row', 'parse_domain_row',
)

logger = logging.getLogger(__name__)

_OPTION_NAME_RE = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*$')

Row = Union[str, Mapping[str, Any]]


def _split_row(row: str, width: int) -> List[str]:
    # trailing empty fields may be omitted; the last field keeps any extra pipes
    parts = row.split('|', width - 1)
    parts += [''] * (width - len(parts))
    return [part.strip() for part in parts]


def _ident(value: str, what: str) -> str:
    if not is_identifier(value):
        raise ValueError(f"{what} '{value}' is not a valid identifier")
    return value


class ArgSpec(BaseModel):
    name: str = Field(..., description='Long option name, used as --name.')
    short_flag: Optional[str] = Field(None, description='Single-character short form, used as -x.')
    kind: Literal['flag', 'value', 'enum']
    target_var: str = Field(..., description='Setting that receives the parsed value.')
    help: str = ''
    choices: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, extra='forbid')

    @field_validator('name')
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if not _OPTION_NAME_RE.match(v or ''):
            raise ValueError(f"option name '{v}' must match [A-Za-z0-9][A-Za-z0-9_-]*")
        return v

    @field_validator('short_flag', mode='before')
    @classmethod
    def _normalize_short(cls, v: Any) -> Optional[str]:
        if v is None or v == '':
            return None
        if not isinstance(v, str) or len(v) != 1 or v in '-= ':
            raise ValueError(f"short flag '{v}' must be a single character")
        return v

    @field_validator('target_var')
    @classmethod
    def _validate_target(cls, v: str) -> str:
        return _ident(v, 'target variable')

    @field_validator('choices', mode='before')
    @classmethod
    def _split_choices(cls, v: Any) -> Tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            return tuple(part.strip() for part in v.split(',') if part.strip())
        return tuple(str(part).strip() for part in v if str(part).strip())

    @model_validator(mode='after')
    def _choices_iff_enum(self) -> 'ArgSpec':
        if self.kind == 'enum' and not self.choices:
            raise ValueError(f"enum option '{self.name}' needs at least one choice")
        if self.kind != 'enum' and self.choices:
            raise ValueError(f"option '{self.name}' of kind '{self.kind}' cannot declare choices")
        return self

    @property
    def default(self) -> str:
        return '0' if self.kind == 'flag' else ''

    @property
    def metavar(self) -> str:
        if self.kind == 'value':
            return ' VALUE'
        if self.kind == 'enum':
            return ' {' + '|'.join(self.choices) + '}'
        return ''

    @property
    def option_label(self) -> str:
        if self.short_flag:
            return f'-{self.short_flag}, --{self.name}'
        return f'    --{self.name}'


class StateSpec(BaseModel):
    key: str
    label: str = ''
    default: Optional[str] = None
    validator: Optional[str] = Field(None, description="Builtin validator name or 'pkg.mod:func' import path.")
    color_token: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra='forbid')

    @field_validator('key')
    @classmethod
    def _validate_key(cls, v: str) -> str:
        return _ident(v, 'state key')

    @field_validator('default', 'validator', 'color_token', mode='before')
    @classmethod
    def _empty_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v)
        return text if text != '' else None


class ConfigDomainSpec(BaseModel):
    audience: Audience
    variable: str
    description: str = ''
    extra: str = ''

    model_config = ConfigDict(frozen=True, extra='forbid')

    @field_validator('audience', mode='before')
    @classmethod
    def _normalize_audience(cls, v: Any) -> Any:
        if isinstance(v, str):
            parts = {part.strip().lower() for part in v.split(',') if part.strip()}
            if parts == {'system', 'user'}:
                return Audience.BOTH
            if len(parts) == 1:
                return parts.pop()
        return v

    @field_validator('variable')
    @classmethod
    def _validate_variable(cls, v: str) -> str:
        return _ident(v, 'config variable')


def parse_arg_row(row: Row) -> ArgSpec:
    """Parse ``name|short|type|var|help|choices`` (or a mapping) into an ArgSpec."""
    if isinstance(row, str):
        name, short, kind, var, help_text, choices = _split_row(row, 6)
        return ArgSpec(name=name, short_flag=short, kind=kind, target_var=var, help=help_text, choices=choices)
    data = dict(row)
    if 'type' in data and 'kind' not in data:
        data['kind'] = data.pop('type')
    if 'var' in data and 'target_var' not in data:
        data['target_var'] = data.pop('var')
    if 'short' in data and 'short_flag' not in data:
        data['short_flag'] = data.pop('short')
    return ArgSpec(**data)


def parse_state_row(row: Row) -> StateSpec:
    """Parse ``key|label|default|validator|colorize`` (or a mapping) into a StateSpec."""
    if isinstance(row, str):
        key, label, default, validator, colorize = _split_row(row, 5)
        return StateSpec(key=key, label=label, default=default, validator=validator, color_token=colorize)
    data = dict(row)
    if 'colorize' in data and 'color_token' not in data:
        data['color_token'] = data.pop('colorize')
    return StateSpec(**data)


def parse_domain_row(row: Row) -> ConfigDomainSpec:
    """Parse ``audience|VARNAME|description|extra`` (or a mapping) into a ConfigDomainSpec."""
    if isinstance(row, str):
        audience, variable, description, extra = _split_row(row, 4)
        return ConfigDomainSpec(audience=audience, variable=variable, description=description, extra=extra)
    data = dict(row)
    if 'var' in data and 'variable' not in data:
        data['variable'] = data.pop('var')
    return ConfigDomainSpec(**data)


def _row_error(index: int, row: Row, exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        detail = '; '.join(err.get('msg', str(err)) for err in exc.errors())
    else:
        detail = str(exc)
    return f'row {index} {row!r}: {detail}'


class ArgSpecTable:
    """Validated, ordered argument spec table. Duplicates are rejected at load."""

    def __init__(self, specs: Iterable[ArgSpec] = ()):
        self._specs: List[ArgSpec] = list(specs)
        self._check_unique()

    @classmethod
    def from_rows(cls, rows: Iterable[Row]) -> 'ArgSpecTable':
        specs: List[ArgSpec] = []
        errors: List[str] = []
        for index, row in enumerate(rows):
            try:
                specs.append(parse_arg_row(row))
            except (ValidationError, ValueError, TypeError) as exc:
                errors.append(_row_error(index, row, exc))
        if errors:
            raise SpecTableError('Malformed argument spec table', row_errors=errors)
        return cls(specs)

    def _check_unique(self) -> None:
        errors: List[str] = []
        seen: Dict[str, Dict[str, str]] = {'target': {}, 'name': {}, 'short': {}}
        for spec in self._specs:
            for bucket, value in (('target', spec.target_var), ('name', spec.name), ('short', spec.short_flag)):
                if value is None:
                    continue
                if value in seen[bucket]:
                    errors.append(f"duplicate {bucket} '{value}' in options '{seen[bucket][value]}' and '{spec.name}'")
                else:
                    seen[bucket][value] = spec.name
        if errors:
            raise SpecTableError('Conflicting argument specs', row_errors=errors)

    def find_long(self, name: str) -> Optional[ArgSpec]:
        for spec in self._specs:
            if spec.name == name:
                return spec
        return None

    def find_short(self, flag: str) -> Optional[ArgSpec]:
        for spec in self._specs:
            if spec.short_flag == flag:
                return spec
        return None

    def defaults(self) -> Dict[str, str]:
        return {spec.target_var: spec.default for spec in self._specs}

    def __iter__(self) -> Iterator[ArgSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __bool__(self) -> bool:
        return bool(self._specs)


class StateSpecTable:
    """
    State variable table.

    Rows whose key is not a valid identifier (or that are otherwise malformed)
    are skipped with a debug log. State tables may carry stale or foreign
    entries across versions, so this is never an error.
    """

    def __init__(self, specs: Iterable[StateSpec] = ()):
        self._specs: Dict[str, StateSpec] = {}
        for spec in specs:
            self._specs.setdefault(spec.key, spec)

    @classmethod
    def from_rows(cls, rows: Iterable[Row]) -> 'StateSpecTable':
        specs: List[StateSpec] = []
        for index, row in enumerate(rows):
            try:
                specs.append(parse_state_row(row))
            except (ValidationError, ValueError, TypeError) as exc:
                logger.debug(f'Skipping state spec {_row_error(index, row, exc)}')
        return cls(specs)

    def keys(self) -> List[str]:
        return list(self._specs)

    def get(self, key: str) -> Optional[StateSpec]:
        return self._specs.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._specs

    def __iter__(self) -> Iterator[StateSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __bool__(self) -> bool:
        return bool(self._specs)


class ConfigDomainTable:
    """Configuration domain spec table: which variables a domain owns, and from which scope."""

    def __init__(self, specs: Iterable[ConfigDomainSpec] = ()):
        self._specs: List[ConfigDomainSpec] = []
        seen = set()
        errors: List[str] = []
        for spec in specs:
            if spec.variable in seen:
                errors.append(f"duplicate variable '{spec.variable}'")
                continue
            seen.add(spec.variable)
            self._specs.append(spec)
        if errors:
            raise SpecTableError('Conflicting configuration domain specs', row_errors=errors)

    @classmethod
    def from_rows(cls, rows: Iterable[Row]) -> 'ConfigDomainTable':
        specs: List[ConfigDomainSpec] = []
        errors: List[str] = []
        for index, row in enumerate(rows):
            try:
                specs.append(parse_domain_row(row))
            except (ValidationError, ValueError, TypeError) as exc:
                errors.append(_row_error(index, row, exc))
        if errors:
            raise SpecTableError('Malformed configuration domain table', row_errors=errors)
        return cls(specs)

    def has_audience(self, wanted: Audience) -> bool:
        return any(spec.audience.admits(wanted) for spec in self._specs)

    def variables_for(self, wanted: Audience) -> List[str]:
        return [spec.variable for spec in self._specs if spec.audience.admits(wanted)]

    def specs_for(self, wanted: Audience) -> List[ConfigDomainSpec]:
        return [spec for spec in self._specs if spec.audience.admits(wanted)]

    def variables(self) -> List[str]:
        return [spec.variable for spec in self._specs]

    def get(self, variable: str) -> Optional[ConfigDomainSpec]:
        for spec in self._specs:
            if spec.variable == variable:
                return spec
        return None

    def __iter__(self) -> Iterator[ConfigDomainSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __bool__(self) -> bool:
        return bool(self._specs)


class SpecManifest(BaseModel):
    """A script's declarative tables, optionally loaded from a YAML manifest."""

    description: str = ''
    examples: List[str] = Field(default_factory=list)
    args: List[Row] = Field(default_factory=list)
    state: List[Row] = Field(default_factory=list)
    globals: List[Row] = Field(default_factory=list)

    model_config = ConfigDict(extra='forbid')

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'SpecManifest':
        try:
            data = load_yaml_mapping(path)
            manifest = cls(**data)
        except (OSError, ValueError, ValidationError) as exc:
            raise SpecTableError(f"Cannot load spec manifest '{path}': {exc}") from exc
        # reject malformed rows now, not at first use
        manifest.arg_table()
        manifest.domain_table()
        return manifest

    def arg_table(self) -> ArgSpecTable:
        return ArgSpecTable.from_rows(self.args)

    def state_table(self) -> StateSpecTable:
        return StateSpecTable.from_rows(self.state)

    def domain_table(self) -> ConfigDomainTable:
        return ConfigDomainTable.from_rows(self.globals)
