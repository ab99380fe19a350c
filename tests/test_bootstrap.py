# tests/test_bootstrap.py
import io
import os

import pytest

from bootstrap import (
    ArgumentParseError, BootstrapError, LibraryLoadError, NotBootstrappedError, PrivilegeError,
    bootstrap, current_context, last_result, reset_bootstrap, run_script,
)
from bootstrap.core.main import BootstrapSequencer
from bootstrap.reporting import handle_builtin_flags
from configs.kv_store import KeyValueFile
from core.lifecycle import RootMode, RunMode, StateMode


def _user_cfg(roots, name):
    return roots['home'] / '.config' / 'groundwork' / name


def _state_file(roots, script='demo'):
    return roots['home'] / '.state' / 'groundwork' / f'{script}.state'


class TestBootstrapSequence:
    """End-to-end runs of the phase sequence against an isolated tree."""

    def test_plain_run(self, make_config, roots):
        context = bootstrap(make_config(), ['--name', 'Ada', 'extra'])
        settings = context.settings
        assert settings.get('APP_NAME') == 'Ada'
        assert settings.source_of('APP_NAME') == 'cli'
        assert settings.get('APP_MODE') == ''
        assert settings.get('APP_LOUD') == '0'
        assert context.positionals == ['extra']
        assert context.run_mode is RunMode.COMMIT
        assert settings.get('RUN_MODE') == 'COMMIT'
        assert context.state_mode is StateMode.NONE
        assert context.root_mode is RootMode.NONE
        assert settings.get('GW_STATE_FILE') == str(_state_file(roots))
        assert settings.get('GW_SYSCFG_FILE') == str(roots['app'] / 'etc' / 'groundwork' / 'demo.cfg')
        assert 'reset' in context.palette
        assert 'messages' in context.style
        assert 'runtime.state' in context.loaded_modules

    def test_bootstrap_is_idempotent(self, make_config):
        first = bootstrap(make_config(), ['--name', 'Ada'])
        second = bootstrap(make_config(), ['--name', 'Grace'])
        assert second is first
        assert current_context() is first
        assert current_context().settings.get('APP_NAME') == 'Ada'

    def test_context_before_bootstrap(self):
        with pytest.raises(NotBootstrappedError):
            current_context()
        assert last_result() is None

    def test_result_summary(self, make_config):
        bootstrap(make_config(), [])
        result = last_result()
        assert result.success
        assert 'PrivilegePhase' in result.skipped_phases
        summary = result.get_summary()
        assert summary['script'] == 'demo'
        assert summary['run_mode'] == 'COMMIT'

    def test_switches_builtins_and_end_of_options(self, make_config):
        context = bootstrap(make_config(), ['--state', '--dryrun', '--', '--name', 'x'])
        assert context.state_mode is StateMode.LOAD
        assert context.dry_run
        assert context.settings.get('RUN_MODE') == 'DRYRUN'
        assert context.settings.get('APP_NAME') == 'world'
        assert context.positionals == ['--name', 'x']

    def test_switch_terminator_is_consumed(self, make_config):
        context = bootstrap(make_config(), ['--', '--verbose', '-n', 'Ada'])
        assert context.settings.flag('FLAG_VERBOSE')
        assert context.settings.get('APP_NAME') == 'Ada'
        assert context.positionals == []

    def test_script_without_args_keeps_positionals(self, make_config):
        context = bootstrap(make_config(args=()), ['--debug', '--', 'a', 'b'])
        assert context.settings.flag('FLAG_DEBUG')
        assert context.positionals == ['a', 'b']

    def test_help_exits_zero_with_usage(self, make_config, capsys):
        with pytest.raises(SystemExit) as exc_info:
            bootstrap(make_config(), ['--help'])
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert 'Script options:' in out
        assert '-n, --name VALUE' in out
        assert 'Builtin options:' in out
        assert '--dryrun' in out

    def test_unknown_script_option(self, make_config):
        with pytest.raises(ArgumentParseError) as exc_info:
            bootstrap(make_config(), ['--bogus'])
        assert exc_info.value.phase == 'ScriptArgsPhase'
        assert exc_info.value.origin is not None
        assert 'phase=ScriptArgsPhase' in str(exc_info.value)
        with pytest.raises(NotBootstrappedError):
            current_context()

    def test_conflicting_root_switches(self, make_config):
        with pytest.raises(ArgumentParseError) as exc_info:
            bootstrap(make_config(), ['--needroot', '--cannotroot'])
        assert exc_info.value.phase == 'BootstrapSwitchPhase'

    def test_cannotroot_as_root(self, make_config, monkeypatch):
        monkeypatch.setattr(os, 'geteuid', lambda: 0)
        with pytest.raises(PrivilegeError):
            bootstrap(make_config(), ['--cannotroot'])

    def test_missing_library(self, make_config):
        with pytest.raises(LibraryLoadError) as exc_info:
            bootstrap(make_config(using=('no_such_module_for_groundwork',)), [])
        assert exc_info.value.module_name == 'no_such_module_for_groundwork'
        assert exc_info.value.phase == 'LibraryLoadPhase'

    def test_missing_style(self, make_config):
        with pytest.raises(BootstrapError) as exc_info:
            bootstrap(make_config(overrides={'GW_UI_STYLE': 'nope.yaml', 'GW_UI_PALETTE': 'gone.yaml'}), [])
        error = exc_info.value
        assert error.phase == 'StyleLoadPhase'
        assert 'GW_UI_PALETTE' in str(error) and 'GW_UI_STYLE' in str(error)
        assert error.origin[0].endswith('style_load_phase.py')
        assert error.origin[2] == 'execute'

    def test_phase_list_is_fixed(self, make_config):
        names = [type(phase).__name__ for phase in BootstrapSequencer(make_config())._get_phases()]
        assert names == [
            'PathResolutionPhase', 'BootstrapSwitchPhase', 'LibraryLoadPhase', 'StyleLoadPhase',
            'FrameworkConfigPhase', 'BuiltinArgsPhase', 'PrivilegePhase', 'LicensePhase',
            'StatePhase', 'ScriptConfigPhase', 'ScriptArgsPhase',
        ]


class TestSettingsPrecedence:

    def test_caller_beats_environment_beats_default(self, make_config):
        config = make_config(
            overrides={'GW_LOG_KEEP': '5'},
            environ={'GW_LOG_KEEP': '7', 'GW_LOG_MAX_BYTES': '100'},
        )
        settings = bootstrap(config, []).settings
        assert settings.get('GW_LOG_KEEP') == '5'
        assert settings.source_of('GW_LOG_KEEP') == 'caller'
        assert settings.get('GW_LOG_MAX_BYTES') == '100'
        assert settings.source_of('GW_LOG_MAX_BYTES') == 'env'
        assert settings.source_of('GW_LOG_COMPRESS') == 'default'

    def test_bootstrap_cfg_file(self, make_config, tmp_path):
        cfg = tmp_path / 'groundwork.cfg'
        cfg.write_text('GW_FRAMEWORK_ROOT=/opt/gw\nGW_STATE_DIR=/ignored\n', encoding='utf-8')
        settings = bootstrap(make_config(bootstrap_cfg_file=cfg), []).settings
        assert settings.get('GW_FRAMEWORK_ROOT') == '/opt/gw'
        assert settings.source_of('GW_FRAMEWORK_ROOT') == 'bootstrap-cfg'
        assert settings.source_of('GW_STATE_DIR') == 'derived'

    def test_missing_bootstrap_cfg_file(self, make_config, tmp_path):
        with pytest.raises(BootstrapError) as exc_info:
            bootstrap(make_config(bootstrap_cfg_file=tmp_path / 'absent.cfg'), [])
        assert exc_info.value.phase == 'PathResolutionPhase'

    def test_framework_user_cfg_moves_the_state_dir(self, make_config, roots, tmp_path):
        other = tmp_path / 'elsewhere'
        path = _user_cfg(roots, 'groundwork_framework.cfg')
        path.parent.mkdir(parents=True)
        path.write_text(f'GW_STATE_DIR={other}\nGW_LOG_PATH=/not/allowed/from/user\n', encoding='utf-8')
        context = bootstrap(make_config(), [])
        settings = context.settings
        assert settings.get('GW_STATE_DIR') == str(other)
        assert settings.get('GW_STATE_FILE') == str(other / 'demo.state')
        assert settings.get('GW_LOG_PATH') != '/not/allowed/from/user'
        assert context.domain_results['Framework'].user_loaded

    def test_script_config_domain(self, make_config, roots):
        path = _user_cfg(roots, 'demo.cfg')
        path.parent.mkdir(parents=True)
        path.write_text('APP_GREETING=Howdy\nAPP_SITE=user-cannot-set-this\n', encoding='utf-8')
        settings = bootstrap(make_config(), []).settings
        assert settings.get('APP_GREETING') == 'Howdy'
        assert settings.source_of('APP_GREETING') == 'user-cfg'
        assert 'APP_SITE' not in settings

    def test_console_switch_beats_config_file(self, make_config, roots):
        path = _user_cfg(roots, 'groundwork_framework.cfg')
        path.parent.mkdir(parents=True)
        path.write_text('GW_CONSOLE_MSGTYPES=WARN\n', encoding='utf-8')
        settings = bootstrap(make_config(), ['--console']).settings
        assert settings.get('GW_LOG_TO_CONSOLE') == '1'
        assert settings.source_of('GW_LOG_TO_CONSOLE') == 'cli'
        assert settings.get('GW_CONSOLE_MSGTYPES') == 'WARN'

    def test_initcfg_writes_user_skeletons(self, make_config, roots):
        context = bootstrap(make_config(), ['--initcfg'])
        framework_cfg = _user_cfg(roots, 'groundwork_framework.cfg')
        script_cfg = _user_cfg(roots, 'demo.cfg')
        assert framework_cfg in context.created_files
        assert script_cfg in context.created_files
        assert 'GW_STATE_DIR=' in framework_cfg.read_text(encoding='utf-8')
        assert 'APP_GREETING=' in script_cfg.read_text(encoding='utf-8')
        assert not (roots['app'] / 'etc' / 'groundwork' / 'groundwork_framework.cfg').exists()


class TestStateLifecycle:

    @staticmethod
    def _remember(context):
        context.settings.set('APP_RUNS', str(context.settings.as_int('APP_RUNS') + 1))
        return 0

    def test_autostate_saves_on_clean_exit_and_state_loads_it(self, make_config, roots):
        assert run_script(make_config(), self._remember, ['--autostate', '--name', 'Grace']) == 0
        assert KeyValueFile(_state_file(roots)).load() == {'APP_NAME': 'Grace', 'APP_RUNS': '1'}

        reset_bootstrap()
        context = bootstrap(make_config(), ['--state'])
        assert context.settings.get('APP_NAME') == 'Grace'
        assert context.settings.source_of('APP_NAME') == 'state'
        assert context.dispatcher.installed
        assert context.dispatcher.handlers == []

    def test_failed_main_does_not_save(self, make_config, roots):
        def failing(context):
            return 3

        assert run_script(make_config(), failing, ['--autostate', '--name', 'Grace']) == 3
        assert not _state_file(roots).exists()

    def test_interrupted_main_does_not_save(self, make_config, roots):
        def interrupted(context):
            raise KeyboardInterrupt

        assert run_script(make_config(), interrupted, ['--autostate']) == 130
        assert not _state_file(roots).exists()

    def test_state_without_switch_is_not_loaded(self, make_config, roots):
        KeyValueFile(_state_file(roots)).set('APP_NAME', 'Grace')
        context = bootstrap(make_config(), [])
        assert context.settings.get('APP_NAME') == ''
        assert not context.dispatcher.installed

    def test_statereset(self, make_config, roots):
        KeyValueFile(_state_file(roots)).set('APP_NAME', 'Grace')
        context = bootstrap(make_config(), ['--state', '--statereset'])
        assert not _state_file(roots).exists()
        assert context.settings.get('APP_NAME') == 'world'

    def test_statereset_dry_run_keeps_the_file(self, make_config, roots):
        KeyValueFile(_state_file(roots)).set('APP_NAME', 'Grace')
        bootstrap(make_config(), ['--statereset', '--dryrun'])
        assert _state_file(roots).exists()


class TestLicensePhase:

    @pytest.fixture
    def license_text(self, tmp_path):
        path = tmp_path / 'docs' / 'LICENSE'
        path.parent.mkdir()
        path.write_text('Terms.\n', encoding='utf-8')
        return path

    def test_accepted_once(self, make_config, license_text, roots):
        questions = []

        def prompt(question):
            questions.append(question)
            return True

        def config():
            return make_config(
                overrides={'GW_LICENSE_FILE': str(license_text)},
                license_prompt=prompt,
                license_printer=lambda text: None,
            )

        context = bootstrap(config(), [])
        assert context.license_status.prompted
        assert context.settings.get('GW_LICENSE_ACCEPTED') == '1'
        assert (roots['home'] / '.state' / 'groundwork' / 'LICENSE.accepted').exists()

        reset_bootstrap()
        assert not bootstrap(config(), []).license_status.prompted
        assert len(questions) == 1

    def test_declined_exit_code(self, make_config, license_text):
        config = make_config(
            overrides={'GW_LICENSE_FILE': str(license_text)},
            license_prompt=lambda question: False,
            license_printer=lambda text: None,
        )
        assert run_script(config, lambda context: 0, []) == 2


class TestRunScript:

    def test_main_receives_the_context(self, make_config):
        seen = []
        assert run_script(make_config(), seen.append, ['--loud']) == 0
        assert seen[0] is current_context()
        assert seen[0].settings.flag('APP_LOUD')

    def test_bootstrap_failure_code(self, make_config):
        assert run_script(make_config(), lambda context: 0, ['--bogus']) == 1

    def test_sys_exit_inside_main(self, make_config):
        def main(context):
            raise SystemExit(4)

        assert run_script(make_config(), main, []) == 4

    def test_interrupt_during_bootstrap(self, make_config, tmp_path):
        license_file = tmp_path / 'LICENSE'
        license_file.write_text('Terms.\n', encoding='utf-8')

        def interrupted(question):
            raise KeyboardInterrupt

        config = make_config(
            overrides={'GW_LICENSE_FILE': str(license_file)},
            license_prompt=interrupted,
            license_printer=lambda text: None,
        )
        ran = []
        assert run_script(config, ran.append, []) == 130
        assert ran == []

    def test_version_report(self, make_config, capsys):
        assert run_script(make_config(), lambda context: 0, ['--version']) == 0
        out = capsys.readouterr().out
        assert 'demo 2.1 (build 7)' in out
        assert 'groundwork 1.0.0' in out

    @pytest.mark.parametrize('flag, expected', [
        ('--showargs', 'Script arguments'),
        ('--showcfg', 'Framework user settings'),
        ('--showstate', 'Last name'),
    ])
    def test_reports(self, make_config, flag, expected):
        context = bootstrap(make_config(), [flag])
        out = io.StringIO()
        with pytest.raises(SystemExit) as exc_info:
            handle_builtin_flags(context, out=out)
        assert exc_info.value.code == 0
        assert expected in out.getvalue()
