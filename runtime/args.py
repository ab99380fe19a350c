"""
Spec-driven command-line parser.

Parses an argument vector against an ``ArgSpecTable``. Parsing is pure: the
result holds every value that would be assigned, and the caller commits it
to the settings store only after the whole vector parsed cleanly.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, TextIO, Tuple

from core.exceptions import ArgumentParseError
from core.lifecycle import ExitCode
from domain.spec_table import ArgSpec, ArgSpecTable

__all__ = ['ArgParser', 'ParseResult', 'HelpRequested', 'render_usage', 'END_OF_OPTIONS']
logger = logging.getLogger(__name__)

END_OF_OPTIONS = '--'
_FLAG_VALUES = ('0', '1')
_OPTION_COLUMN = 20


class HelpRequested(SystemExit):
    """Raised after usage text was printed for ``-h``/``--help``."""

    def __init__(self, usage: str):
        super().__init__(int(ExitCode.OK))
        self.usage = usage


@dataclass
class ParseResult:
    values: Dict[str, str] = field(default_factory=dict)
    explicit: Dict[str, str] = field(default_factory=dict)
    positionals: List[str] = field(default_factory=list)
    remaining: List[str] = field(default_factory=list)
    stopped_at_unknown: Optional[str] = None


def _format_rows(specs: Sequence[ArgSpec], skip: Tuple[str, ...] = ()) -> List[str]:
    lines = []
    for spec in specs:
        if spec.name in skip:
            continue
        lines.append(f'  {(spec.option_label + spec.metavar):<{_OPTION_COLUMN}} {spec.help}'.rstrip())
    return lines


def render_usage(
    prog: str,
    description: str = '',
    sections: Sequence[Tuple[str, Sequence[ArgSpec]]] = (),
    examples: Sequence[str] = (),
) -> str:
    lines = [
        prog,
        '',
        'Usage:',
        f'\t{prog} [options] [--] [args...]',
        '',
        'Description:',
        f"\t{description or 'No description available'}",
    ]
    for title, specs in sections:
        rows = _format_rows(list(specs), skip=('help',))
        if not rows:
            continue
        lines += ['', f'{title}:']
        lines += rows
    if examples:
        lines += ['', 'Examples:']
        lines += [f'  {example}' for example in examples]
    return '\n'.join(lines) + '\n'


class ArgParser:
    """
    Parse argv against an argument spec table.

    ``flag`` options set their target to ``1`` (``--name=0``/``--name=1`` are
    accepted too), ``value`` options take the next token or ``--name=value``,
    ``enum`` options additionally require membership in ``choices``.
    ``-h``/``--help`` is recognised unless ``handle_help`` is off and
    short-circuits with usage text.
    """

    def __init__(
        self,
        specs: ArgSpecTable,
        prog: Optional[str] = None,
        description: str = '',
        help_sections: Optional[Sequence[Tuple[str, Sequence[ArgSpec]]]] = None,
        examples: Sequence[str] = (),
        out: Optional[TextIO] = None,
        handle_help: bool = True,
    ):
        self.specs = specs
        self.handle_help = handle_help
        self.prog = prog or 'script'
        self.description = description
        self.help_sections = list(help_sections) if help_sections is not None else [('Options', list(specs))]
        self.examples = list(examples)
        self._out = out

    def usage(self) -> str:
        return render_usage(self.prog, self.description, self.help_sections, self.examples)

    def _show_help(self) -> None:
        text = self.usage()
        stream = self._out or sys.stdout
        stream.write(text)
        stream.flush()
        raise HelpRequested(text)

    def _resolve(self, token: str) -> Tuple[Optional[ArgSpec], Optional[str], str]:
        """Return (spec, attached value, display name) for an option token."""
        if token.startswith('--'):
            body = token[2:]
            name, sep, attached = body.partition('=')
            return self.specs.find_long(name), (attached if sep else None), f'--{name}'
        flag = token[1:]
        if len(flag) != 1:
            return None, None, token
        return self.specs.find_short(flag), None, token

    @staticmethod
    def _is_help(token: str) -> bool:
        return token in ('-h', '--help') or token.startswith('--help=')

    def parse(self, argv: Sequence[str], stop_at_unknown: bool = False) -> ParseResult:
        tokens = list(argv)
        explicit: Dict[str, str] = {}
        result = ParseResult()
        i = 0
        while i < len(tokens):
            token = tokens[i]

            if token == END_OF_OPTIONS:
                result.positionals = tokens[i + 1:]
                # keep the marker for the next parsing phase
                result.remaining = tokens[i:] if stop_at_unknown else list(result.positionals)
                break

            if not token.startswith('-') or token == '-':
                result.positionals = tokens[i:]
                result.remaining = tokens[i:]
                break

            if self.handle_help and self._is_help(token):
                self._show_help()

            spec, attached, display = self._resolve(token)
            if spec is None:
                if stop_at_unknown:
                    logger.debug(f'Stopping at unrecognized option {token!r}')
                    result.stopped_at_unknown = token
                    result.positionals = tokens[i:]
                    result.remaining = tokens[i:]
                    break
                raise ArgumentParseError(f'Unknown option: {token}', option=token)

            if spec.kind == 'flag':
                if attached is None:
                    value = '1'
                elif attached in _FLAG_VALUES:
                    value = attached
                else:
                    raise ArgumentParseError(
                        f"Option {display} is a flag and takes no value (got '{attached}')", option=display
                    )
                i += 1
            else:
                if attached is not None:
                    value = attached
                    i += 1
                elif i + 1 < len(tokens):
                    value = tokens[i + 1]
                    i += 2
                else:
                    raise ArgumentParseError(f'Missing value for {display}', option=display)
                if spec.kind == 'enum' and value not in spec.choices:
                    allowed = ','.join(spec.choices)
                    raise ArgumentParseError(
                        f"Invalid value '{value}' for {display} (allowed: {allowed})",
                        option=display,
                        choices=list(spec.choices),
                    )

            explicit[spec.target_var] = value

        result.explicit = explicit
        result.values = {**self.specs.defaults(), **explicit}
        logger.debug(f'Parsed options {explicit}; positionals {result.positionals}')
        return result


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
