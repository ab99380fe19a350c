"""
Public bootstrap exception re-exports.

Import your exceptions like:
    from bootstrap.exceptions import BootstrapError, ArgumentParseError, ...
The actual definitions live in core.exceptions so lower layers can raise
them without importing the bootstrap package.
"""
from core.exceptions import *
from core.exceptions import __all__
