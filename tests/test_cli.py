# tests/test_cli.py
import sys

from bootstrap.__main__ import SAMPLE_ARGS, SAMPLE_GLOBALS, SAMPLE_STATE, main_cli_entry, sample_main, validate_manifest
from bootstrap import bootstrap


class TestManifestValidation:

    def test_valid_manifest(self, tmp_path, capsys):
        path = tmp_path / 'ok.yaml'
        path.write_text('args:\n  - "loud|l|flag|APP_LOUD|Shout|"\nstate: []\n', encoding='utf-8')
        assert validate_manifest(str(path)) == 0
        assert 'PASSED: 1 args, 0 state, 0 globals' in capsys.readouterr().out

    def test_invalid_manifest(self, tmp_path, capsys):
        path = tmp_path / 'bad.yaml'
        path.write_text('args:\n  - "mode||enum|APP_MODE||"\n', encoding='utf-8')
        assert validate_manifest(str(path)) == 1
        assert 'FAILED' in capsys.readouterr().out

    def test_validate_needs_a_file(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, 'argv', ['groundwork-sample', '--validate'])
        assert main_cli_entry() == 1


class TestSampleScript:

    def test_greets_and_counts(self, make_config, capsys):
        config = make_config(
            script_name='groundwork-sample',
            args=SAMPLE_ARGS,
            state=SAMPLE_STATE,
            globals=SAMPLE_GLOBALS,
            overrides={'SAMPLE_GREETING': 'Hi'},
        )
        context = bootstrap(config, ['--state', '--name', 'Ada', '--loud', 'one'])
        assert sample_main(context) == 0
        out = capsys.readouterr().out
        assert 'HI, ADA!' in out
        assert 'Arguments: one' in out
        assert context.settings.get('SAMPLE_RUNS') == '1'
