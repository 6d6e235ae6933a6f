"""
Steps for compiling and post-processing style sheets.
"""
from __future__ import annotations

from pathlib import Path

from ..dependencies import PipDependency
from ..simple import TextTransformStep


class SassCompileStep(TextTransformStep):
    """
    Compile SCSS (or indented Sass, for `.sass` files) into plain CSS with
    libsass. Imports resolve relative to the source file and then to
    @include_paths.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('libsass', check_name='sass'),
        }

    def __init__(self, include_paths: list[Path] | None = None, output_style: str = 'expanded'):
        self.include_paths = include_paths or []
        self.output_style = output_style

    def transform(self, path: Path, data: str):
        import sass
        return sass.compile(
            string=data,
            indented=path.suffix == '.sass',
            include_paths=[str(p) for p in [path.parent, *self.include_paths]],
            output_style=self.output_style,
        )


class MediaQuerySortStep(TextTransformStep):
    """
    Group top-level media queries and move them to the end of the style sheet
    in 'desktop-first' or 'mobile-first' order.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('tinycss2'),
        }

    def __init__(self, sort: str = 'desktop-first'):
        from .media import SORTS
        if sort not in SORTS:
            raise ValueError(f'Unknown media query sort {sort!r}; expected one of {sorted(SORTS)}')
        self.sort = sort

    def transform(self, path: Path, data: str):
        from .media import sort_media_queries
        return sort_media_queries(data, self.sort)
