"""
The asset class path table, plus the glob Matcher and PathCalc used to turn
source paths into output paths.
"""
from __future__ import annotations

import re
import typing as t
from dataclasses import dataclass
from pathlib import Path

from .core import Context, Matcher, PathCalc


@dataclass(frozen=True)
class AssetClassConfig:
    """
    Source, watch, and destination locations for one asset class. Globs are
    relative to @source_dir.
    """
    name: str
    source_dir: Path
    source_glob: str
    watch_glob: str
    destination: Path

    @property
    def source_pattern(self) -> str:
        return f'{self.source_dir.as_posix()}/{self.source_glob}'

    @property
    def watch_pattern(self) -> str:
        return f'{self.source_dir.as_posix()}/{self.watch_glob}'


IMAGE_GLOB = '**/*.{png,jpg,jpeg,gif,svg}'
FONT_GLOB = '**/*.{eot,ttf,otf,otc,ttc,woff,woff2,svg}'

# name: (source subdirectory, source glob, watch glob, destination subdirectory)
ASSET_CLASSES: dict[str, tuple[str, str, str, str]] = {
    'html': ('html', '*.njk', '**/*.njk', ''),
    'css': ('css', '*.{scss,sass}', '**/*.{scss,sass}', 'assets/css'),
    'js': ('js', '*.js', '**/*.js', 'assets/js'),
    'img': ('img', IMAGE_GLOB, IMAGE_GLOB, 'assets/img'),
    'fonts': ('fonts', FONT_GLOB, FONT_GLOB, 'assets/fonts'),
    'libs': ('libs', '**/*', '**/*', 'assets/libs'),
    'meta': ('meta', '**/*', '**/*', ''),
}


def asset_paths(input_dir: Path, output_dir: Path) -> dict[str, AssetClassConfig]:
    """
    Build the AssetClassConfig of every asset class from the source root
    @input_dir and the destination root @output_dir.
    """
    return {
        name: AssetClassConfig(
            name,
            input_dir / source,
            source_glob,
            watch_glob,
            output_dir / dest if dest else output_dir,
        )
        for name, (source, source_glob, watch_glob, dest) in ASSET_CLASSES.items()
    }


def glob_to_regex(pattern: str) -> str:
    """
    Translate a glob into a regular expression string. `*` and `?` never cross
    a `/`, `**/` matches any number of whole directories, and `{a,b}` matches
    either alternative.
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith('**/', i):
            parts.append('(?:[^/]+/)*')
            i += 3
        elif pattern.startswith('**', i):
            parts.append('.*')
            i += 2
        elif char == '*':
            parts.append('[^/]*')
            i += 1
        elif char == '?':
            parts.append('[^/]')
            i += 1
        elif char == '{' and (end := pattern.find('}', i)) != -1:
            options = pattern[i + 1:end].split(',')
            parts.append('(?:' + '|'.join(glob_to_regex(o) for o in options) + ')')
            i = end + 1
        else:
            parts.append(re.escape(char))
            i += 1
    return ''.join(parts)


def relative_to_base(path: Path, base: Path) -> Path | None:
    """
    Return @path relative to @base, resolving both if they do not share a
    prefix as given (as with absolute paths from a file watcher), or None if
    @path is not under @base.
    """
    if path.is_relative_to(base):
        return path.relative_to(base)
    resolved, resolved_base = path.resolve(), base.resolve()
    if resolved.is_relative_to(resolved_base):
        return resolved.relative_to(resolved_base)
    return None


class GlobMatcher(Matcher[re.Match | None]):
    """
    Path Matcher using a glob evaluated relative to @base.
    """
    def __init__(self, glob: str, base: Path):
        self.glob = glob
        self.base = base
        self.regex = re.compile(glob_to_regex(glob))

    def __call__(self, context: Context | None, path: Path):
        rel = relative_to_base(path, self.base)
        if rel is None:
            return None
        return self.regex.fullmatch(rel.as_posix())

    def __repr__(self):
        return f'GlobMatcher({self.glob!r}, {self.base!r})'


class DirPathCalc(PathCalc[t.Any]):
    """
    PathCalc which moves its input paths from @base to @dest, keeping their
    relative structure. If @ext is specified, it will replace the extension of
    input paths.
    """
    def __init__(self, dest: Path, base: Path, ext: str | None = None):
        self.dest = dest
        self.base = base
        self.ext = ext

    @classmethod
    def for_config(cls, config: AssetClassConfig, ext: str | None = None):
        return cls(config.destination, config.source_dir, ext)

    def __call__(self, context: Context | None, path: Path, match: t.Any) -> Path:
        rel = relative_to_base(path, self.base)
        if rel is None:
            raise ValueError(f'{path} is not under {self.base}')
        new_path = self.dest / rel
        if self.ext is not None:
            new_path = new_path.with_suffix(self.ext)
        return new_path
