# tests/test_exit_dispatcher.py
from unittest.mock import MagicMock

import pytest

from runtime.exit_dispatcher import ExitDispatcher, exit_code_for, make_autosave_handler


def _recorder(calls, name):
    def handler(code):
        calls.append((name, code))
    handler.__name__ = name
    return handler


class TestExitDispatcher:
    """LIFO exit handler dispatch."""

    def test_handlers_run_in_reverse_registration_order(self, dispatcher):
        calls = []
        for name in ('A', 'B', 'C'):
            dispatcher.add(_recorder(calls, name))
        assert dispatcher.dispatch(0) == 0
        assert [name for name, _ in calls] == ['C', 'B', 'A']

    def test_dispatch_runs_once(self, dispatcher):
        calls = []
        dispatcher.add(_recorder(calls, 'A'))
        dispatcher.dispatch(0)
        dispatcher.dispatch(1)
        assert calls == [('A', 0)]
        assert dispatcher.dispatched

    def test_failing_handler_does_not_block_the_rest(self, dispatcher):
        calls = []
        dispatcher.add(_recorder(calls, 'A'))
        def broken(code):
            raise RuntimeError('boom')

        dispatcher.add(broken)
        dispatcher.add(_recorder(calls, 'C'))
        dispatcher.dispatch(0)
        assert calls == [('C', 0), ('A', 0)]

    @pytest.mark.parametrize('escape', [SystemExit(5), KeyboardInterrupt()])
    def test_exiting_handler_keeps_the_captured_code(self, dispatcher, escape):
        calls = []
        dispatcher.add(_recorder(calls, 'A'))
        def leaving(code):
            raise escape

        dispatcher.add(leaving)
        dispatcher.add(_recorder(calls, 'C'))
        assert dispatcher.dispatch(0) == 0
        assert calls == [('C', 0), ('A', 0)]

    def test_install_is_idempotent(self, dispatcher, atexit_calls):
        assert not dispatcher.installed
        assert dispatcher.install() is True
        assert dispatcher.install() is False
        assert dispatcher.installed
        assert len(atexit_calls) == 1

    def test_atexit_fallback_uses_the_recorded_code(self, dispatcher, atexit_calls):
        calls = []
        dispatcher.add(_recorder(calls, 'A'))
        dispatcher.install()
        dispatcher.record(130)
        dispatcher.record(1)
        atexit_calls[0]()
        assert calls == [('A', 130)]

    def test_atexit_fallback_defaults_to_zero(self, dispatcher, atexit_calls):
        calls = []
        dispatcher.add(_recorder(calls, 'A'))
        dispatcher.install()
        atexit_calls[0]()
        assert calls == [('A', 0)]

    def test_non_callable_handler(self, dispatcher):
        with pytest.raises(TypeError):
            dispatcher.add('echo bye')


class TestGuard:

    @pytest.mark.parametrize('raised, expected', [
        (SystemExit(3), 3),
        (SystemExit(None), 0),
        (SystemExit('fatal: config'), 1),
        (KeyboardInterrupt(), 130),
        (ValueError('bad'), 1),
    ])
    def test_exit_code_reaches_handlers_and_outcome_propagates(self, dispatcher, raised, expected):
        calls = []
        dispatcher.add(_recorder(calls, 'A'))
        with pytest.raises(type(raised)):
            with dispatcher.guard():
                raise raised
        assert calls == [('A', expected)]

    def test_normal_completion(self, dispatcher):
        calls = []
        dispatcher.add(_recorder(calls, 'A'))
        with dispatcher.guard():
            pass
        assert calls == [('A', 0)]

    def test_exit_code_for_normal_completion(self):
        assert exit_code_for(None) == 0


class TestAutosaveHandler:

    @pytest.mark.parametrize('code, saved', [(0, True), (130, False), (1, False)])
    def test_saves_only_on_clean_exit(self, code, saved):
        state = MagicMock()
        make_autosave_handler(state)(code)
        assert state.save.called is saved
