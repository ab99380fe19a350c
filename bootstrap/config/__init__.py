# bootstrap/config/__init__.py
"""
Bootstrap Configuration Module

Describes the calling script to the bootstrap sequencer.
"""

from bootstrap.config.bootstrap_config import BootstrapConfig

__all__ = ['BootstrapConfig']
