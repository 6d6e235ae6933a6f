"""
Build-mode settings and the per-class option bundles passed to Steps.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass, field
from pathlib import Path


MediaQuerySort = t.Literal['desktop-first', 'mobile-first']


@dataclass(frozen=True)
class HTMLOptions:
    """
    Options for template rendering and HTML minification. An empty
    @search_paths means the markup source directory.
    """
    collapse_whitespace: bool = True
    remove_comments: bool = True
    search_paths: tuple[Path, ...] = ()


@dataclass(frozen=True)
class StyleOptions:
    """
    Options for style compilation and post-processing. @browsers is a
    browserslist query used for vendor prefixing.
    """
    media_query_sort: MediaQuerySort = 'desktop-first'
    browsers: tuple[str, ...] = ('defaults',)
    minify: bool = True


@dataclass(frozen=True)
class ScriptOptions:
    target: str = 'es2015'
    minify: bool = True


@dataclass(frozen=True)
class ImageOptions:
    jpeg_quality: int = 85
    optimize: bool = True


@dataclass(frozen=True)
class BuildSettings:
    """
    Immutable configuration for a run, constructed once at process entry.

    The option bundles do not branch on @production; the flag selects between
    building and developing, makes file failures fail a production build, and
    is exposed to templates.
    """
    input_dir: Path
    output_dir: Path
    production: bool = False
    html: HTMLOptions = field(default_factory=HTMLOptions)
    css: StyleOptions = field(default_factory=StyleOptions)
    js: ScriptOptions = field(default_factory=ScriptOptions)
    img: ImageOptions = field(default_factory=ImageOptions)

    @property
    def development(self) -> bool:
        return not self.production

    @property
    def template_search_paths(self) -> list[Path]:
        return list(self.html.search_paths) or [self.input_dir / 'html']
