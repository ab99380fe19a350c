# groundwork/bootstrap/__main__.py
"""
Sample script exercising every bootstrap phase.

    python -m bootstrap [bootstrap switches] [builtin options] [--name NAME] [--mode fast|slow] [args...]
    python -m bootstrap --validate <manifest.yaml>
"""
import logging
import sys
from pathlib import Path

from bootstrap import BootstrapConfig, run_script
from core.exceptions import SpecTableError
from domain.spec_table import SpecManifest

logger = logging.getLogger(__name__)

SAMPLE_ARGS = (
    'name|n|value|SAMPLE_NAME|Name to greet|',
    'mode|m|enum|SAMPLE_MODE|Processing mode|fast,slow',
    'loud|l|flag|SAMPLE_LOUD|Shout the greeting|',
)
SAMPLE_STATE = (
    'SAMPLE_NAME|Last name greeted|world||',
    'SAMPLE_RUNS|Number of runs|0|int|',
)
SAMPLE_GLOBALS = (
    'both|SAMPLE_GREETING|Greeting word|',
    'system|SAMPLE_SITE|Site name shown in the greeting|',
)


def sample_main(context) -> int:
    settings = context.settings
    greeting = settings.get('SAMPLE_GREETING') or 'Hello'
    text = f"{greeting}, {settings.get('SAMPLE_NAME') or 'world'}!"
    if settings.flag('SAMPLE_LOUD'):
        text = text.upper()
    site = settings.get('SAMPLE_SITE')
    if site:
        text += f' ({site})'
    print(text)
    if context.positionals:
        print(f"Arguments: {' '.join(context.positionals)}")
    if context.dry_run:
        logger.info('Dry run: run counter not updated')
    else:
        settings.set('SAMPLE_RUNS', str(settings.as_int('SAMPLE_RUNS') + 1), source='runtime')
    return 0


def validate_manifest(path: str) -> int:
    try:
        manifest = SpecManifest.from_yaml(path)
    except SpecTableError as e:
        print(f'✗ FAILED: {e}')
        return 1
    print(f'✓ PASSED: {len(manifest.args)} args, {len(manifest.state)} state, {len(manifest.globals)} globals')
    return 0


def main_cli_entry() -> int:
    argv = sys.argv[1:]
    if argv[:1] == ['--validate']:
        if len(argv) < 2:
            print('Error: --validate requires a manifest file')
            return 1
        return validate_manifest(argv[1])

    config = BootstrapConfig.from_params(
        'groundwork-sample',
        script_file=Path(__file__),
        description='Greets someone, remembering the last name between runs.',
        version='1.0',
        build='1',
        examples=['python -m bootstrap --autostate -- --name Ada', 'python -m bootstrap --showargs'],
        args=SAMPLE_ARGS,
        state=SAMPLE_STATE,
        globals=SAMPLE_GLOBALS,
    )
    return run_script(config, sample_main, argv)


if __name__ == '__main__':
    sys.exit(main_cli_entry())
