"""
KEY=VALUE assignment files.

Configuration and state files share one format: one ``KEY=VALUE`` per line,
``#`` comments and blank lines ignored. Reading and writing go through
python-dotenv so quoting and escaping stay symmetric.
"""
from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from dotenv import dotenv_values, set_key, unset_key

from runtime.utils import is_identifier

__all__ = ['KeyValueFile', 'read_assignments']
logger = logging.getLogger(__name__)

_QUOTE_MODE = 'auto'


def read_assignments(path: Union[str, Path], allowed: Optional[Iterable[str]] = None) -> Dict[str, str]:
    """
    Read identifier assignments from ``path``.

    Raises ``FileNotFoundError`` when absent, ``PermissionError``/``OSError``
    when unreadable and ``UnicodeDecodeError`` when the content is not text.
    Keys that are not identifiers, or not in ``allowed`` when given, are
    skipped.
    """
    text = Path(path).read_text(encoding='utf-8')
    if '\x00' in text:
        raise UnicodeDecodeError('utf-8', b'\x00', 0, 1, 'NUL byte in assignment file')
    raw = dotenv_values(stream=io.StringIO(text), interpolate=False)
    allowed_set = set(allowed) if allowed is not None else None
    values: Dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if not is_identifier(key):
            logger.debug(f"Ignoring invalid key '{key}' in {path}")
            continue
        if allowed_set is not None and key not in allowed_set:
            logger.debug(f"Ignoring '{key}' in {path}: not declared for this file")
            continue
        values[key] = value
    return values


class KeyValueFile:
    """
    One assignment file on disk.

    ``private`` files (state) are kept at mode 0600 inside a 0700 directory.
    When running as root under sudo, written files are handed to the invoking
    user so their own later runs can still read them.
    """

    def __init__(self, path: Union[str, Path], private: bool = True):
        self.path = Path(path)
        self.private = private

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self, allowed: Optional[Iterable[str]] = None) -> Dict[str, str]:
        """Return the file's assignments; an absent file yields ``{}``."""
        if not self.path.exists():
            return {}
        return read_assignments(self.path, allowed=allowed)

    def get(self, key: str) -> Optional[str]:
        self._check_key(key)
        return self.load().get(key)

    def has(self, key: str) -> bool:
        self._check_key(key)
        return key in self.load()

    def list_keys(self) -> List[Tuple[str, str]]:
        return list(self.load().items())

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, str]) -> None:
        for key in values:
            self._check_key(key)
        self._ensure_parent()
        for key, value in values.items():
            set_key(str(self.path), key, '' if value is None else str(value), quote_mode=_QUOTE_MODE)
        self._fix_permissions()

    def unset(self, key: str) -> None:
        self._check_key(key)
        if not self.path.is_file():
            return
        unset_key(str(self.path), key, quote_mode=_QUOTE_MODE)
        if not self.path.read_text(encoding='utf-8').strip():
            self.path.unlink()

    def reset(self) -> bool:
        """Delete the file. Returns True if something was removed."""
        try:
            self.path.unlink()
            return True
        except FileNotFoundError:
            return False

    def write_text(self, text: str) -> None:
        self._ensure_parent()
        self.path.write_text(text, encoding='utf-8')
        self._fix_permissions()

    @staticmethod
    def _check_key(key: str) -> None:
        if not is_identifier(key):
            raise ValueError(f"Invalid key '{key}': must match [A-Za-z_][A-Za-z0-9_]*")

    def _ensure_parent(self) -> None:
        parent = self.path.parent
        if not parent.is_dir():
            parent.mkdir(parents=True, exist_ok=True)
            if self.private:
                os.chmod(parent, 0o700)
                self._hand_to_invoking_user(parent)

    def _fix_permissions(self) -> None:
        os.chmod(self.path, 0o600 if self.private else 0o644)
        if self.private:
            self._hand_to_invoking_user(self.path)

    @staticmethod
    def _hand_to_invoking_user(path: Path) -> None:
        if os.geteuid() != 0:
            return
        sudo_uid = os.environ.get('SUDO_UID')
        sudo_gid = os.environ.get('SUDO_GID')
        if not (sudo_uid and sudo_gid):
            return
        try:
            os.chown(path, int(sudo_uid), int(sudo_gid))
        except (OSError, ValueError) as exc:
            logger.warning(f'Could not hand {path} to uid {sudo_uid}: {exc}')

    def __repr__(self) -> str:
        return f'KeyValueFile({str(self.path)!r})'


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
