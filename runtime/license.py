"""
License acceptance gate.

The SHA-256 of the license text is compared with the hash stored when the
user last accepted it. A matching hash passes silently; a missing or stale
one shows the license and asks again.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from configs.kv_store import KeyValueFile
from core.exceptions import LicenseDeclinedError, LicenseError
from runtime.utils import sha256_file

__all__ = ['LicenseGate', 'LicenseStatus', 'ask_yes_no', 'FIRST_TIME_QUESTION', 'UPDATED_QUESTION']
logger = logging.getLogger(__name__)

FIRST_TIME_QUESTION = 'Do you accept these license terms? (You must accept to use this software.)'
UPDATED_QUESTION = 'The license has been updated since you last accepted it. Do you accept the new license terms?'

Prompt = Callable[[str], bool]
Printer = Callable[[str], None]


def ask_yes_no(question: str) -> bool:
    """``[Y/n]`` question on stdin. An empty answer means yes; end of input means no."""
    while True:
        try:
            answer = input(f'{question} [Y/n] ')
        except EOFError:
            return False
        answer = answer.strip().lower()
        if answer in ('', 'y', 'yes'):
            return True
        if answer in ('n', 'no'):
            return False
        print('Please answer y or n.', file=sys.stderr)


def _print_license(text: str) -> None:
    sys.stdout.write(text if text.endswith('\n') else text + '\n')
    sys.stdout.flush()


@dataclass(frozen=True)
class LicenseStatus:
    accepted: bool
    prompted: bool
    license_hash: str
    previously_accepted: bool


class LicenseGate:

    def __init__(
        self,
        license_file: Union[str, Path],
        acceptance_file: Union[str, Path],
        prompt: Optional[Prompt] = None,
        show: Optional[Printer] = None,
    ):
        self.license_file = Path(license_file)
        self.acceptance_file = Path(acceptance_file)
        self.prompt = prompt or ask_yes_no
        self.show = show or _print_license

    def current_hash(self) -> str:
        try:
            return sha256_file(self.license_file)
        except OSError as exc:
            raise LicenseError(f'Cannot hash license file {self.license_file}: {exc}') from exc

    def stored_hash(self) -> Optional[str]:
        try:
            text = self.acceptance_file.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f'Cannot read license acceptance file {self.acceptance_file}: {exc}')
            return None
        return text.strip() or None

    def _store(self, license_hash: str) -> None:
        try:
            KeyValueFile(self.acceptance_file, private=True).write_text(license_hash + '\n')
        except OSError as exc:
            raise LicenseError(f'Cannot store license acceptance in {self.acceptance_file}: {exc}') from exc

    def check(self) -> LicenseStatus:
        """
        Pass when the stored acceptance matches the current license, otherwise
        prompt. Raises LicenseDeclinedError when the user says no.
        """
        current = self.current_hash()
        stored = self.stored_hash()
        if stored == current:
            logger.info('License acceptance matches current license hash')
            return LicenseStatus(accepted=True, prompted=False, license_hash=current, previously_accepted=True)

        if stored is None:
            logger.info(f'No license acceptance found at {self.acceptance_file}')
            question = FIRST_TIME_QUESTION
        else:
            logger.info('License acceptance hash does not match current license hash')
            question = UPDATED_QUESTION

        try:
            self.show(self.license_file.read_text(encoding='utf-8'))
        except (OSError, UnicodeDecodeError) as exc:
            raise LicenseError(f'Cannot read license file {self.license_file}: {exc}') from exc

        if not self.prompt(question):
            logger.warning('License declined by user')
            raise LicenseDeclinedError('License terms were not accepted')

        self._store(current)
        logger.info('License accepted')
        return LicenseStatus(accepted=True, prompted=True, license_hash=current, previously_accepted=stored is not None)


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
