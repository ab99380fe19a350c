# tests/conftest.py
import logging
from pathlib import Path

import pytest

from bootstrap import BootstrapConfig, reset_bootstrap
from core.settings import SettingsStore
from runtime import logging_setup
from runtime.exit_dispatcher import ExitDispatcher

SCRIPT_ARGS = (
    'name|n|value|APP_NAME|Name to greet|',
    'mode|m|enum|APP_MODE|Processing mode|fast,slow',
    'loud|l|flag|APP_LOUD|Shout|',
)
SCRIPT_STATE = (
    'APP_NAME|Last name|world||',
    'APP_RUNS|Run counter|0|int|',
)
SCRIPT_GLOBALS = (
    'both|APP_GREETING|Greeting word|',
    'system|APP_SITE|Site name|',
)


@pytest.fixture(autouse=True)
def _isolate_process_state():
    """Each test starts without a process context and leaves no log handlers behind."""
    reset_bootstrap()
    root = logging.getLogger()
    level = root.level
    yield
    reset_bootstrap()
    for handler in list(logging_setup._installed):
        root.removeHandler(handler)
        handler.close()
    logging_setup._installed.clear()
    root.setLevel(level)


@pytest.fixture
def settings():
    return SettingsStore()


@pytest.fixture
def atexit_calls():
    """Stands in for atexit.register: collects the registered callbacks."""
    return []


@pytest.fixture
def dispatcher(atexit_calls):
    return ExitDispatcher(register=atexit_calls.append, install_signals=False)


@pytest.fixture
def roots(tmp_path) -> dict:
    app_root = tmp_path / 'app'
    home = tmp_path / 'home'
    app_root.mkdir()
    home.mkdir()
    return {'app': app_root, 'home': home}


@pytest.fixture
def make_config(roots):
    """
    Factory for a BootstrapConfig isolated under tmp_path: no process
    environment, roots and home redirected, license gate off unless the
    caller overrides GW_LICENSE_FILE, and a fresh fake-registered
    dispatcher per config.
    """

    def factory(**kwargs) -> BootstrapConfig:
        overrides = {
            'GW_APPLICATION_ROOT': str(roots['app']),
            'GW_USER_HOME': str(roots['home']),
            'GW_LICENSE_FILE': '',
            'GW_LOG_TO_CONSOLE': '0',
        }
        overrides.update(kwargs.pop('overrides', {}))
        kwargs.setdefault('args', SCRIPT_ARGS)
        kwargs.setdefault('state', SCRIPT_STATE)
        kwargs.setdefault('globals', SCRIPT_GLOBALS)
        kwargs.setdefault('environ', {})
        kwargs.setdefault(
            'existing_exit_dispatcher',
            ExitDispatcher(register=lambda callback: None, install_signals=False),
        )
        return BootstrapConfig.from_params(
            kwargs.pop('script_name', 'demo'),
            script_file=Path(__file__),
            description='Demo script',
            version='2.1',
            build='7',
            overrides=overrides,
            **kwargs,
        )

    return factory
