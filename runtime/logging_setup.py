"""Console and log file handlers for groundwork scripts."""
from __future__ import annotations

import gzip
import logging
import os
import shutil
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, List, Optional, Set

from core.settings import SettingsStore

__all__ = ['configure_logging', 'parse_msgtypes', 'MessageTypeFilter', 'LOG_FORMAT']
logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s'
CONSOLE_FORMAT = '%(levelname)-8s %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_MSGTYPE_LEVELS = {
    'DEBUG': {logging.DEBUG},
    'INFO': {logging.INFO},
    'STRT': {logging.INFO},
    'END': {logging.INFO},
    'OK': {logging.INFO},
    'WARN': {logging.WARNING},
    'WARNING': {logging.WARNING},
    'FAIL': {logging.ERROR, logging.CRITICAL},
    'ERROR': {logging.ERROR, logging.CRITICAL},
    'CRITICAL': {logging.CRITICAL},
}
_DEFAULT_MSGTYPES = 'INFO|WARN|FAIL'
_ALL_LEVELS = frozenset().union(*_MSGTYPE_LEVELS.values())

# handlers installed here, so reconfiguration never touches anyone else's
_installed: List[logging.Handler] = []


def parse_msgtypes(spec: Optional[str]) -> Set[int]:
    levels: Set[int] = set()
    for token in (spec or '').replace(',', '|').split('|'):
        name = token.strip().upper()
        if not name:
            continue
        if name in _MSGTYPE_LEVELS:
            levels |= _MSGTYPE_LEVELS[name]
        else:
            logger.debug(f"Unknown console message type '{name}' ignored")
    return levels


class MessageTypeFilter(logging.Filter):
    """Pass only records whose level is in an explicit set, not a threshold."""

    def __init__(self, levels: Iterable[int]):
        super().__init__()
        self.levels = set(levels)

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno in self.levels


def _gzip_namer(name: str) -> str:
    return name + '.gz'


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, 'rb') as src, gzip.open(dest, 'wb') as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


def _open_file_handler(path: Path, max_bytes: int, keep: int, compress: bool) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=keep, encoding='utf-8')
    if compress:
        handler.namer = _gzip_namer
        handler.rotator = _gzip_rotator
    return handler


def _file_handler(settings: SettingsStore) -> Optional[logging.Handler]:
    max_bytes = settings.as_int('GW_LOG_MAX_BYTES', 0)
    keep = settings.as_int('GW_LOG_KEEP', 0)
    compress = settings.flag('GW_LOG_COMPRESS')
    candidates = [settings.get('GW_LOG_PATH'), settings.get('GW_ALTLOG_PATH')]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            handler = _open_file_handler(Path(candidate), max_bytes, keep, compress)
        except OSError as exc:
            logger.debug(f'Log path {candidate} not usable: {exc}')
            continue
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler.setLevel(logging.DEBUG)
        return handler
    logger.warning('Log file enabled but no writable log path found; file logging disabled')
    return None


def configure_logging(settings: SettingsStore, root: Optional[logging.Logger] = None) -> List[logging.Handler]:
    """
    Install console and file handlers on the root logger according to
    ``settings``. Handlers installed by a previous call are removed first.
    Returns the handlers now installed.
    """
    target = root or logging.getLogger()
    for handler in _installed:
        target.removeHandler(handler)
        handler.close()
    _installed.clear()

    if settings.is_set('GW_LOG_TO_CONSOLE') and not settings.flag('GW_LOG_TO_CONSOLE'):
        console_levels: Set[int] = set()
    else:
        console_levels = parse_msgtypes(settings.get('GW_CONSOLE_MSGTYPES') or _DEFAULT_MSGTYPES)
        if settings.flag('FLAG_DEBUG'):
            console_levels.add(logging.DEBUG)
        if settings.flag('FLAG_VERBOSE'):
            # verbose shows every message type regardless of the configured list
            console_levels = set(_ALL_LEVELS)

    if console_levels:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console.addFilter(MessageTypeFilter(console_levels))
        _installed.append(console)

    if settings.flag('GW_LOGFILE_ENABLED'):
        file_handler = _file_handler(settings)
        if file_handler is not None:
            _installed.append(file_handler)

    for handler in _installed:
        target.addHandler(handler)
    verbose = logging.DEBUG in console_levels or settings.flag('GW_LOGFILE_ENABLED')
    target.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.debug(f'Logging configured with {len(_installed)} handler(s)')
    return list(_installed)


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
