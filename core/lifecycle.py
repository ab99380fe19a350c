from __future__ import annotations
import logging
from enum import Enum, IntEnum

__all__ = ['ExitCode', 'StateMode', 'RootMode', 'RunMode', 'Audience']
logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    OK = 0
    FAILURE = 1
    # license declined, or a library module executed instead of imported
    DECLINED = 2
    MISUSE = 2
    INTERRUPTED = 130
    TERMINATED = 143


class StateMode(IntEnum):
    NONE = 0
    LOAD = 1
    AUTOSAVE = 2


class RootMode(IntEnum):
    NONE = 0
    MUST_BE_ROOT = 1
    MUST_NOT_BE_ROOT = 2


class RunMode(str, Enum):
    COMMIT = 'COMMIT'
    DRYRUN = 'DRYRUN'


class Audience(str, Enum):
    SYSTEM = 'system'
    USER = 'user'
    BOTH = 'both'

    def admits(self, wanted: 'Audience') -> bool:
        """True when a variable of this audience may be read from a ``wanted`` scope file."""
        return self is Audience.BOTH or self is wanted
