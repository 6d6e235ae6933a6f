"""
Web font conversion with fontTools.
"""
from __future__ import annotations

from pathlib import Path

from .core import Step
from .dependencies import PipDependency


class WebFontStep(Step):
    """
    Convert a TrueType or OpenType font into web font formats. The format of
    each output is chosen by its extension, `.woff` or `.woff2`, and each is
    written independently.
    """
    flavors = {'.woff': 'woff', '.woff2': 'woff2'}

    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('fonttools', check_name='fontTools'),
            PipDependency('brotli'),
        }

    def __call__(self, path: Path, output_paths: list[Path]):
        from fontTools.ttLib import TTFont

        for o_path in output_paths:
            try:
                flavor = self.flavors[o_path.suffix]
            except KeyError as e:
                raise ValueError(f'Unsupported web font format for {o_path}') from e
            o_path.parent.mkdir(parents=True, exist_ok=True)
            with TTFont(path) as font:
                font.flavor = flavor
                font.save(o_path)
