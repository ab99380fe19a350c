# tests/test_license.py
import builtins

import pytest

from core.exceptions import LicenseDeclinedError, LicenseError
from runtime.license import FIRST_TIME_QUESTION, UPDATED_QUESTION, LicenseGate, ask_yes_no


class FakePrompt:
    """Records every question and answers with a fixed reply."""

    def __init__(self, answer=True):
        self.answer = answer
        self.questions = []

    def __call__(self, question):
        self.questions.append(question)
        return self.answer


@pytest.fixture
def license_file(tmp_path):
    path = tmp_path / 'LICENSE'
    path.write_text('Use it kindly.\n', encoding='utf-8')
    return path


@pytest.fixture
def acceptance_file(tmp_path):
    return tmp_path / 'state' / 'LICENSE.accepted'


def _gate(license_file, acceptance_file, prompt, shown=None):
    return LicenseGate(license_file, acceptance_file, prompt=prompt, show=(shown if shown is not None else []).append)


class TestLicenseGate:
    """Hash-based license acceptance."""

    def test_first_acceptance_is_stored_and_reused(self, license_file, acceptance_file):
        prompt = FakePrompt()
        shown = []
        first = _gate(license_file, acceptance_file, prompt, shown).check()
        assert first.prompted and not first.previously_accepted
        assert prompt.questions == [FIRST_TIME_QUESTION]
        assert shown == ['Use it kindly.\n']
        assert acceptance_file.read_text(encoding='utf-8').strip() == first.license_hash

        second = _gate(license_file, acceptance_file, prompt).check()
        assert not second.prompted
        assert second.license_hash == first.license_hash
        assert len(prompt.questions) == 1

    def test_changed_license_asks_again(self, license_file, acceptance_file):
        prompt = FakePrompt()
        _gate(license_file, acceptance_file, prompt).check()
        license_file.write_text('Use it kindly. Updated.\n', encoding='utf-8')
        status = _gate(license_file, acceptance_file, prompt).check()
        assert status.prompted and status.previously_accepted
        assert prompt.questions == [FIRST_TIME_QUESTION, UPDATED_QUESTION]

    def test_decline_raises_with_distinct_exit_code(self, license_file, acceptance_file):
        with pytest.raises(LicenseDeclinedError) as exc_info:
            _gate(license_file, acceptance_file, FakePrompt(answer=False)).check()
        assert exc_info.value.exit_code == 2
        assert not acceptance_file.exists()

    def test_missing_license_file(self, tmp_path, acceptance_file):
        with pytest.raises(LicenseError) as exc_info:
            _gate(tmp_path / 'NOPE', acceptance_file, FakePrompt()).check()
        assert exc_info.value.exit_code == 1


class TestAskYesNo:

    def _answers(self, monkeypatch, answers):
        replies = iter(answers)

        def fake_input(_prompt):
            reply = next(replies)
            if isinstance(reply, BaseException):
                raise reply
            return reply

        monkeypatch.setattr(builtins, 'input', fake_input)

    def test_empty_answer_means_yes(self, monkeypatch):
        self._answers(monkeypatch, [''])
        assert ask_yes_no('Accept?') is True

    def test_reprompts_until_understood(self, monkeypatch, capsys):
        self._answers(monkeypatch, ['maybe', 'NO'])
        assert ask_yes_no('Accept?') is False
        assert 'Please answer y or n.' in capsys.readouterr().err

    def test_end_of_input_means_no(self, monkeypatch):
        self._answers(monkeypatch, [EOFError()])
        assert ask_yes_no('Accept?') is False
