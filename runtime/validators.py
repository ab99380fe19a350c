"""Value validators that state specs may reference by name."""
import logging
import re
from typing import Callable, Dict, Optional

from runtime.utils import import_by_path

logger = logging.getLogger(__name__)

Validator = Callable[[str], bool]

_INT_RE = re.compile(r'^[+-]?[0-9]+$')
_DECIMAL_RE = re.compile(r'^[+-]?[0-9]+(\.[0-9]+)?$')
_BOOL_WORDS = {'true', 'false', 'yes', 'no', 'on', 'off', '1', '0'}


def validate_int(value: str) -> bool:
    return bool(_INT_RE.match(value))


def validate_decimal(value: str) -> bool:
    return bool(_DECIMAL_RE.match(value))


def validate_ipv4(value: str) -> bool:
    octets = value.split('.')
    if len(octets) != 4:
        return False
    for octet in octets:
        if not octet.isdigit() or int(octet) > 255:
            return False
    return True


def validate_yesno(value: str) -> bool:
    return value in ('Y', 'y', 'N', 'n')


def validate_bool(value: str) -> bool:
    return value.lower() in _BOOL_WORDS


BUILTIN_VALIDATORS: Dict[str, Validator] = {
    'int': validate_int,
    'decimal': validate_decimal,
    'ipv4': validate_ipv4,
    'yesno': validate_yesno,
    'bool': validate_bool,
}


def resolve_validator(reference: Optional[str]) -> Optional[Validator]:
    """
    Resolve a validator reference to a callable.

    ``reference`` is a builtin name (``int``, ``decimal``, ``ipv4``, ``yesno``,
    ``bool``) or an import path such as ``mypkg.checks:is_port``.
    """
    if not reference:
        return None
    if reference in BUILTIN_VALIDATORS:
        return BUILTIN_VALIDATORS[reference]
    validator = import_by_path(reference)
    if not callable(validator):
        raise TypeError(f"Validator '{reference}' is not callable")
    return validator


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
