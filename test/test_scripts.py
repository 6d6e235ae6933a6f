from __future__ import annotations

import shutil
import sys
from pathlib import Path

import pytest

from assetline.core import Context, Rule
from assetline.paths import AssetClassConfig, DirPathCalc, GlobMatcher
from assetline.scripts import ScriptTranspileStep
from assetline.settings import BuildSettings
from assetline.simple import BaseCommandTransform
from assetline.stages import Stage
from assetline.test_harness import RecordingNotifier, list_tree, write_files


class UpperCommand(BaseCommandTransform):
    def get_command(self, path: Path):
        return [sys.executable, '-c', 'import sys; sys.stdout.write(sys.stdin.read().upper())']


class RejectingCommand(BaseCommandTransform):
    def get_command(self, path: Path):
        return [sys.executable, '-c', f'import sys; sys.stderr.write("cannot read {path.name}"); sys.exit(2)']


def test_command_transform(tmp_path: Path):
    source = tmp_path / 'app.js'
    source.write_text('var a;')
    assert UpperCommand().transform(source, 'var a;') == 'VAR A;'


def test_command_transform_failure(tmp_path: Path):
    with pytest.raises(RuntimeError, match='cannot read app.js'):
        RejectingCommand().transform(tmp_path / 'app.js', 'var a;')


def test_command_failure_notifies(tmp_path: Path):
    settings = BuildSettings(tmp_path / 'src', tmp_path / 'dist')
    config = AssetClassConfig('js', settings.input_dir / 'js', '*.js', '**/*.js', settings.output_dir / 'js')
    write_files(config.source_dir, {'app.js': 'var a;'})
    stage = Stage(config, 'JavaScript', [
        Rule(GlobMatcher('*.js', config.source_dir), DirPathCalc.for_config(config), RejectingCommand()),
    ])
    notifier = RecordingNotifier()
    report = Context(settings, [stage], notifier).run_stage(stage)

    assert report.failures[0].message == 'cannot read app.js'
    assert notifier.notifications == [('JavaScript', f'{config.source_dir / "app.js"}: cannot read app.js')]
    assert list_tree(settings.output_dir) == set()


def test_transpile_command():
    assert ScriptTranspileStep('es2017').get_command(Path('js/app.js')) == [
        'esbuild',
        '--loader=js',
        '--target=es2017',
        '--sourcefile=app.js',
        '--log-level=error',
    ]


@pytest.mark.skipif(not shutil.which('esbuild'), reason='esbuild is not installed')
def test_transpile(tmp_path: Path):
    source = tmp_path / 'app.js'
    code = 'const double = (x) => x ** 2;\n'
    source.write_text(code)
    output = ScriptTranspileStep('es2015').transform(source, code)
    assert '**' not in output
    assert 'Math.pow' in output


@pytest.mark.skipif(not shutil.which('esbuild'), reason='esbuild is not installed')
def test_transpile_syntax_error(tmp_path: Path):
    with pytest.raises(RuntimeError):
        ScriptTranspileStep().transform(tmp_path / 'app.js', 'function (')
