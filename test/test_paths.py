from __future__ import annotations

from pathlib import Path

import pytest

from assetline.paths import ASSET_CLASSES, DirPathCalc, GlobMatcher, asset_paths, glob_to_regex


SRC = Path('src')
DIST = Path('dist')


def test_asset_paths_table():
    configs = asset_paths(SRC, DIST)
    assert set(configs) == set(ASSET_CLASSES)
    assert {name: c.destination for name, c in configs.items()} == {
        'html': DIST,
        'css': DIST / 'assets/css',
        'js': DIST / 'assets/js',
        'img': DIST / 'assets/img',
        'fonts': DIST / 'assets/fonts',
        'libs': DIST / 'assets/libs',
        'meta': DIST,
    }


@pytest.mark.parametrize('name,source,watch', [
    ('html', 'src/html/*.njk', 'src/html/**/*.njk'),
    ('css', 'src/css/*.{scss,sass}', 'src/css/**/*.{scss,sass}'),
    ('js', 'src/js/*.js', 'src/js/**/*.js'),
    ('img', 'src/img/**/*.{png,jpg,jpeg,gif,svg}', 'src/img/**/*.{png,jpg,jpeg,gif,svg}'),
    ('fonts', 'src/fonts/**/*.{eot,ttf,otf,otc,ttc,woff,woff2,svg}',
     'src/fonts/**/*.{eot,ttf,otf,otc,ttc,woff,woff2,svg}'),
    ('libs', 'src/libs/**/*', 'src/libs/**/*'),
    ('meta', 'src/meta/**/*', 'src/meta/**/*'),
])
def test_asset_patterns(name: str, source: str, watch: str):
    config = asset_paths(SRC, DIST)[name]
    assert config.source_pattern == source
    assert config.watch_pattern == watch


@pytest.mark.parametrize('glob,path,expected', [
    ('*.njk', 'index.njk', True),
    ('*.njk', 'layouts/base.njk', False),
    ('**/*.njk', 'layouts/base.njk', True),
    ('**/*.njk', 'index.njk', True),
    ('*.{scss,sass}', 'main.sass', True),
    ('*.{scss,sass}', 'main.css', False),
    ('**/*', 'a/b/c.txt', True),
    ('**/_*', 'partials/_grid.scss', True),
    ('**/_*', 'main.scss', False),
    ('?.js', 'a.js', True),
    ('?.js', 'ab.js', False),
    ('*.js', 'app.js.map', False),
])
def test_glob_to_regex(glob: str, path: str, expected: bool):
    import re
    assert bool(re.fullmatch(glob_to_regex(glob), path)) is expected


def test_glob_matcher_relative_to_base():
    matcher = GlobMatcher('*.njk', SRC / 'html')
    assert matcher(None, SRC / 'html' / 'index.njk')
    assert not matcher(None, SRC / 'html' / 'layouts' / 'base.njk')
    assert not matcher(None, SRC / 'css' / 'index.njk')


def test_glob_matcher_absolute_path():
    matcher = GlobMatcher('**/*.js', SRC / 'js')
    assert matcher(None, (SRC / 'js' / 'vendor' / 'a.js').resolve())


@pytest.mark.parametrize('ext,source,expected', [
    (None, SRC / 'img' / 'icons' / 'a.png', DIST / 'assets/img' / 'icons' / 'a.png'),
    ('.css', SRC / 'img' / 'main.scss', DIST / 'assets/img' / 'main.css'),
    ('.woff2', SRC / 'img' / 'sub' / 'Font.ttf', DIST / 'assets/img' / 'sub' / 'Font.woff2'),
])
def test_dir_path_calc(ext: str | None, source: Path, expected: Path):
    calc = DirPathCalc(DIST / 'assets/img', SRC / 'img', ext)
    assert calc(None, source, None) == expected


def test_dir_path_calc_outside_base():
    calc = DirPathCalc(DIST, SRC / 'meta')
    with pytest.raises(ValueError):
        calc(None, Path('elsewhere/robots.txt'), None)
