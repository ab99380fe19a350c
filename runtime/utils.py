import hashlib
import importlib
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from core.lifecycle import ExitCode

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_HASH_CHUNK = 64 * 1024


def is_identifier(name: Any) -> bool:
    if not isinstance(name, str):
        return False
    return bool(_IDENTIFIER_RE.match(name))


def import_by_path(path: str, suppress_expected_errors: bool=True) -> Any:
    if not isinstance(path, str):
        raise TypeError(f'Import path must be a string, got {type(path)}')
    if ':' in path:
        module_name, attr_name = path.split(':', 1)
    elif '.' in path:
        module_name, attr_name = path.rsplit('.', 1)
    else:
        logger.error(f"Import path '{path}' is ambiguous. Use 'pkg.mod:func' or 'pkg.mod.func'.")
        raise ValueError(f"Import path '{path}' is ambiguous. Use 'pkg.mod:func' or 'pkg.mod.func'.")

    if not module_name or not attr_name:
        logger.error(f"Could not parse module and attribute from path '{path}'. Module: '{module_name}', Attribute: '{attr_name}'.")
        raise ValueError(f'Invalid import path format: {path}. Could not determine module and attribute.')

    log_level_if_not_found = logging.DEBUG if suppress_expected_errors else logging.ERROR

    try:
        module = importlib.import_module(module_name)
        logger.debug(f'Successfully imported module: {module_name}')
    except ImportError as e:
        logger.log(log_level_if_not_found, f"Failed to import module '{module_name}' from path '{path}': {e}", exc_info=(log_level_if_not_found >= logging.ERROR))
        raise ImportError(f"Could not import module '{module_name}': {e}") from e
    try:
        attribute = getattr(module, attr_name)
        logger.debug(f"Successfully retrieved attribute '{attr_name}' from module '{module_name}'.")
        return attribute
    except AttributeError as e:
        logger.log(log_level_if_not_found, f"Attribute '{attr_name}' not found in module '{module_name}' (from path '{path}'): {e}", exc_info=(log_level_if_not_found >= logging.ERROR))
        raise AttributeError(f"Attribute '{attr_name}' not found in module '{module_name}': {e}") from e


def load_yaml_mapping(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML file whose top level must be a mapping.

    Unlike a best-effort loader this raises: callers decide whether a missing
    or malformed file is fatal. An empty document yields ``{}``.
    """
    actual_path = Path(path)
    with open(actual_path, 'r', encoding='utf-8') as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in '{actual_path}': {e}") from e
    if not isinstance(data, Mapping):
        raise ValueError(f"Top-level YAML object in '{actual_path}' must be a mapping, found {type(data).__name__}")
    return dict(data)


def sha256_file(path: Union[str, Path]) -> str:
    digest = hashlib.sha256()
    with open(path, 'rb') as fh:
        for chunk in iter(lambda: fh.read(_HASH_CHUNK), b''):
            digest.update(chunk)
    return digest.hexdigest()


def resolve_in_dir(value: str, directory: Union[str, Path]) -> Path:
    """A bare basename resolves against ``directory``; anything with a separator is used as given."""
    if '/' in value:
        return Path(value)
    return Path(directory) / value


def refuse_direct_execution(module_file: str) -> None:
    # library modules are imported by the bootstrap, never run as scripts
    print(f'This is a library; import it, do not execute it: {module_file}', file=sys.stderr)
    raise SystemExit(int(ExitCode.MISUSE))
