"""
Exception classes for the groundwork runtime.

This module defines the exceptions raised by the spec tables, the argument
parser, the configuration merger, state persistence and the bootstrap
sequencer. Every error carries an ``exit_code`` so the entry point can
surface a distinct process status for each failure class.
"""

from typing import List, Optional, Tuple

from core.lifecycle import ExitCode

Origin = Tuple[str, int, str]


class BootstrapError(RuntimeError):
    """
    Base exception for all groundwork errors.

    ``phase`` names the bootstrap phase that failed, ``origin`` is the
    (file, line, function) triple where the failure was raised.
    """

    exit_code: int = ExitCode.FAILURE

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        origin: Optional[Origin] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.phase = phase
        self.origin = origin
        if exit_code is not None:
            self.exit_code = int(exit_code)

    def __str__(self) -> str:
        base_msg = super().__str__()

        context_parts = []
        if self.phase:
            context_parts.append(f"phase={self.phase}")
        if self.origin:
            file_name, line_no, func_name = self.origin
            context_parts.append(f"at {file_name}:{line_no} in function {func_name}")

        if context_parts:
            return f"{base_msg} ({', '.join(context_parts)})"
        return base_msg


class NotBootstrappedError(BootstrapError):
    """Raised when runtime state is requested before bootstrap() has run."""
    pass


class SpecTableError(BootstrapError):
    """
    Raised when a spec table row or manifest is malformed.

    Collects every row error so a table is rejected once, at load time.
    """

    def __init__(self, message: str, row_errors: Optional[List[str]] = None):
        super().__init__(message)
        self.row_errors = row_errors or []

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.row_errors:
            error_list = "\n  - ".join(self.row_errors)
            return f"{base_msg}\nRow errors:\n  - {error_list}"
        return base_msg


class ArgumentParseError(BootstrapError):
    """Raised for unknown options, missing values and invalid enum values."""

    def __init__(self, message: str, option: Optional[str] = None, choices: Optional[List[str]] = None):
        super().__init__(message)
        self.option = option
        self.choices = list(choices or [])


class ConfigurationError(BootstrapError):
    """
    Raised when a configuration file is present but cannot be read.

    An absent file is never an error; a present but unreadable or
    undecodable one is.
    """

    def __init__(self, message: str, path: Optional[str] = None, domain: Optional[str] = None):
        super().__init__(message)
        self.path = path
        self.domain = domain


class StatePersistenceError(BootstrapError):
    """Raised when the state file cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class LibraryLoadError(BootstrapError):
    """Raised when a core or script-declared library module fails to import."""

    def __init__(self, message: str, module_name: Optional[str] = None):
        super().__init__(message)
        self.module_name = module_name


class StyleLoadError(BootstrapError):
    """Raised when the UI palette or style file is missing or unreadable."""
    pass


class PrivilegeError(BootstrapError):
    """Raised when the process identity violates the declared root constraint."""
    pass


class LicenseError(BootstrapError):
    """Raised when the license text cannot be hashed or acceptance cannot be stored."""
    pass


class LicenseDeclinedError(LicenseError):
    """Raised when the user declines the license; distinct exit status."""

    exit_code: int = ExitCode.DECLINED


__all__ = [
    'BootstrapError', 'NotBootstrappedError', 'SpecTableError', 'ArgumentParseError',
    'ConfigurationError', 'StatePersistenceError', 'LibraryLoadError', 'StyleLoadError',
    'PrivilegeError', 'LicenseError', 'LicenseDeclinedError',
]
