from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from assetline.core import Context, Rule, Step
from assetline.paths import AssetClassConfig, DirPathCalc, GlobMatcher
from assetline.settings import BuildSettings
from assetline.stages import Stage
from assetline.test_harness import RecordingNotifier, list_tree, set_mtime, write_files


class DummyStep(Step):
    def __call__(self, path: Path, output_paths: list[Path]):
        pass


class UpperStep(Step):
    def __call__(self, path: Path, output_paths: list[Path]):
        for o_path in output_paths:
            o_path.parent.mkdir(parents=True, exist_ok=True)
            o_path.write_text(path.read_text().upper())


class FailingStep(UpperStep):
    def __call__(self, path: Path, output_paths: list[Path]):
        if path.name.startswith('bad'):
            raise ValueError('broken input')
        super().__call__(path, output_paths)


@pytest.fixture
def settings(tmp_path: Path):
    return BuildSettings(input_dir=tmp_path / 'src', output_dir=tmp_path / 'dist')


@pytest.fixture
def config(settings: BuildSettings):
    return AssetClassConfig(
        'text',
        settings.input_dir / 'text',
        '**/*.txt',
        '**/*.txt',
        settings.output_dir / 'text',
    )


def text_stage(config: AssetClassConfig, step: Step, check_freshness: bool = False):
    return Stage(config, 'Text', [
        Rule(GlobMatcher('**/*', config.source_dir), DirPathCalc.for_config(config), step),
    ], check_freshness=check_freshness)


def test_context_match_paths(settings: BuildSettings, config: AssetClassConfig):
    i_a = config.source_dir / 'a.txt'
    i_b = config.source_dir / 'b.txt'
    i_c = config.source_dir / 'c.md'
    o_a = config.destination / 'a.txt'
    o_b = config.destination / 'b.txt'

    b_step = DummyStep()
    all_step = DummyStep()
    stage = Stage(config, 'Text', [
        Rule(GlobMatcher('b*', config.source_dir), DirPathCalc.for_config(config), b_step),
        Rule(GlobMatcher('**/*', config.source_dir), DirPathCalc.for_config(config), all_step),
    ])
    context = Context(settings, [stage])
    assert context.match_paths(stage, [i_a, i_b, i_c]) == [
        (all_step, i_a, [o_a]),
        (b_step, i_b, [o_b]),
        (all_step, i_b, [o_b]),
    ]


def test_context_match_paths_stop_matching(settings: BuildSettings, config: AssetClassConfig):
    i_a = config.source_dir / 'a.txt'
    i_b = config.source_dir / 'b.txt'
    i_skip = config.source_dir / '_skip.txt'

    b_step = DummyStep()
    all_step = DummyStep()
    stage = Stage(config, 'Text', [
        Rule(GlobMatcher('_*', config.source_dir), None),
        Rule(GlobMatcher('b*', config.source_dir), [DirPathCalc.for_config(config, '.out'), None], b_step),
        Rule(GlobMatcher('**/*', config.source_dir), DirPathCalc.for_config(config), all_step),
    ])
    context = Context(settings, [stage])
    assert context.match_paths(stage, [i_a, i_b, i_skip]) == [
        (all_step, i_a, [config.destination / 'a.txt']),
        (b_step, i_b, [config.destination / 'b.out']),
    ]


def test_run_stage_writes_outputs(settings: BuildSettings, config: AssetClassConfig):
    write_files(config.source_dir, {'a.txt': 'a', 'nested/b.txt': 'b', 'ignored.md': 'c'})
    stage = text_stage(config, UpperStep())
    report = Context(settings, [stage]).run_stage(stage)

    assert report.ok
    assert len(report.written) == 2
    assert list_tree(config.destination) == {'a.txt', 'nested/b.txt'}
    assert (config.destination / 'nested/b.txt').read_text() == 'B'


def test_run_stage_missing_source_dir(settings: BuildSettings, config: AssetClassConfig):
    stage = text_stage(config, UpperStep())
    report = Context(settings, [stage]).run_stage(stage)
    assert report.ok
    assert not report.results


def test_run_stage_isolates_failures(settings: BuildSettings, config: AssetClassConfig):
    write_files(config.source_dir, {'a.txt': 'a', 'bad.txt': 'x', 'c.txt': 'c'})
    notifier = RecordingNotifier()
    stage = text_stage(config, FailingStep())
    report = Context(settings, [stage], notifier).run_stage(stage)

    assert not report.ok
    assert [f.source.name for f in report.failures] == ['bad.txt']
    assert report.failures[0].message == 'broken input'
    assert list_tree(config.destination) == {'a.txt', 'c.txt'}
    assert len(notifier.notifications) == 1
    title, message = notifier.notifications[0]
    assert title == 'Text'
    assert 'broken input' in message


def test_run_stage_freshness_skip(settings: BuildSettings, config: AssetClassConfig):
    write_files(config.source_dir, {'a.txt': 'a'})
    source = config.source_dir / 'a.txt'
    output = config.destination / 'a.txt'
    stage = text_stage(config, UpperStep(), check_freshness=True)
    context = Context(settings, [stage])

    context.run_stage(stage)
    output.write_text('sentinel')
    set_mtime(output, source.stat().st_mtime + 100)

    report = context.run_stage(stage)
    assert len(report.skipped) == 1
    assert output.read_text() == 'sentinel'

    set_mtime(source, output.stat().st_mtime + 100)
    report = context.run_stage(stage)
    assert len(report.written) == 1
    assert output.read_text() == 'A'


def test_run_stage_without_freshness_rewrites(settings: BuildSettings, config: AssetClassConfig):
    write_files(config.source_dir, {'a.txt': 'a'})
    output = config.destination / 'a.txt'
    stage = text_stage(config, UpperStep())
    context = Context(settings, [stage])

    context.run_stage(stage)
    output.write_text('sentinel')
    set_mtime(output, (config.source_dir / 'a.txt').stat().st_mtime + 100)
    context.run_stage(stage)
    assert output.read_text() == 'A'


def test_clean_missing_output(settings: BuildSettings):
    context = Context(settings, [])
    context.clean()
    assert not settings.output_dir.exists()


def test_run_cleans_previous_build(settings: BuildSettings, config: AssetClassConfig):
    stage = text_stage(config, UpperStep())
    context = Context(settings, [stage])
    write_files(config.source_dir, {'first.txt': '1', 'shared.txt': 's'})
    write_files(settings.output_dir, {'stray.txt': 'leftover'})
    context.run()
    assert list_tree(settings.output_dir) == {'text/first.txt', 'text/shared.txt'}

    shutil.rmtree(config.source_dir)
    write_files(config.source_dir, {'second.txt': '2', 'shared.txt': 's'})
    report = context.run()
    assert report.ok
    assert list_tree(settings.output_dir) == {'text/second.txt', 'text/shared.txt'}


def test_run_fans_out_all_stages(settings: BuildSettings):
    stages = []
    for name in ['one', 'two', 'three']:
        config = AssetClassConfig(
            name,
            settings.input_dir / name,
            '*.txt',
            '**/*.txt',
            settings.output_dir / name,
        )
        write_files(config.source_dir, {f'{name}.txt': name})
        stages.append(text_stage(config, FailingStep() if name == 'two' else UpperStep()))
    write_files(settings.input_dir / 'two', {'bad.txt': 'x'})

    report = Context(settings, stages, RecordingNotifier()).run()

    assert [s.name for s in report.stages] == ['one', 'two', 'three']
    assert [f.source.name for f in report.failures] == ['bad.txt']
    assert not report.ok
    assert list_tree(settings.output_dir) == {'one/one.txt', 'two/two.txt', 'three/three.txt'}


def test_get_stage(settings: BuildSettings, config: AssetClassConfig):
    stage = text_stage(config, DummyStep())
    context = Context(settings, [stage])
    assert context.get_stage('text') is stage
    with pytest.raises(KeyError):
        context.get_stage('missing')
