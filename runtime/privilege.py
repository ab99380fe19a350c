import logging
import os
import pwd
import sys
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

from core.exceptions import PrivilegeError

__all__ = [
    'is_root', 'need_root', 'cannot_root', 'build_relaunch_command', 'relaunch_elevated',
    'resolve_user_home', 'interpreter_prefix', 'ALREADY_ROOT_VAR', 'PRESERVED_ENV',
]
logger = logging.getLogger(__name__)

ALREADY_ROOT_VAR = 'GW_ALREADY_ROOT'
PRESERVED_ENV = ('GW_FRAMEWORK_ROOT', 'GW_APPLICATION_ROOT', 'PATH')


def is_root() -> bool:
    return os.geteuid() == 0


def interpreter_prefix() -> List[str]:
    """
    The interpreter part of the original command line, e.g. ``['python3']``
    or ``['python3', '-m', 'pkg']``, so the relaunch runs the same program.
    """
    orig = list(getattr(sys, 'orig_argv', []) or [])
    cut = len(orig) - len(sys.argv)
    if cut < 1:
        return [sys.executable] + sys.argv[:1]
    # orig_argv keeps interpreter options and the -m/-c form that sys.argv drops
    return [sys.executable] + orig[1:cut + 1]


def build_relaunch_command(argv: Sequence[str], prefix: Optional[Sequence[str]] = None) -> List[str]:
    """
    The ``sudo`` command that re-runs this program as root with ``argv``.

    ``argv`` is the full original argument list without the program name.
    """
    command = ['sudo', f"--preserve-env={','.join(PRESERVED_ENV)}", '--', 'env', f'{ALREADY_ROOT_VAR}=1']
    command += list(prefix if prefix is not None else interpreter_prefix())
    command += list(argv)
    return command


def relaunch_elevated(argv: Sequence[str], execvp: Optional[Callable[[str, List[str]], None]] = None) -> None:
    """Replace the current process with a root copy of itself. Does not return on success."""
    command = build_relaunch_command(argv)
    logger.info(f'Relaunching with elevated privileges: {" ".join(command)}')
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        (execvp or os.execvp)(command[0], command)
    except OSError as exc:
        raise PrivilegeError(f'Cannot relaunch with sudo: {exc}') from exc


def need_root(
    argv: Sequence[str],
    environ: Optional[Mapping[str, str]] = None,
    execvp: Optional[Callable[[str, List[str]], None]] = None,
) -> None:
    """Ensure the process runs as root, relaunching under sudo when it does not."""
    if is_root():
        return
    env = os.environ if environ is None else environ
    if env.get(ALREADY_ROOT_VAR) == '1':
        raise PrivilegeError('Relaunch with sudo did not yield root privileges')
    relaunch_elevated(argv, execvp=execvp)


def cannot_root() -> None:
    if is_root():
        raise PrivilegeError('This script must not be run as root')


def resolve_user_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Home of the invoking user. Under sudo that is ``SUDO_USER``'s home,
    not root's.
    """
    env = os.environ if environ is None else environ
    sudo_user = env.get('SUDO_USER')
    if sudo_user and is_root():
        try:
            return Path(pwd.getpwnam(sudo_user).pw_dir)
        except KeyError:
            logger.warning(f"SUDO_USER '{sudo_user}' not found in the password database")
    home = env.get('HOME')
    if home:
        return Path(home)
    return Path(pwd.getpwuid(os.getuid()).pw_dir)


if __name__ == '__main__':
    from runtime.utils import refuse_direct_execution
    refuse_direct_execution(__file__)
