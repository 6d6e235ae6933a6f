"""
Template rendering with Jinja.
"""
from __future__ import annotations

import typing as t
from pathlib import Path

from .dependencies import PipDependency
from .simple import TextTransformStep

if t.TYPE_CHECKING:
    from collections.abc import Sequence
    from jinja2 import Environment


class TemplateRenderStep(TextTransformStep):
    """
    A Step rendering a source file as a Jinja template. `{% extends %}` and
    `{% include %}` are resolved from @search_paths, which default to the
    Context's template search paths.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('jinja2'),
        }

    def __init__(self,
                 search_paths: Sequence[Path] | None = None,
                 env: Environment | None = None,
                 extra_globals: dict[str, t.Any] | None = None):
        if env and extra_globals:
            env.globals.update(extra_globals)
        self.search_paths = list(search_paths) if search_paths else None
        self._env = env
        self._extra_globals = extra_globals

    @property
    def env(self):
        """
        Returns the Jinja `Environment` for this Step, creating and caching it
        if necessary.
        """
        if self._env:
            return self._env

        from jinja2 import Environment, FileSystemLoader, select_autoescape
        search_paths = self.search_paths or self.context.settings.template_search_paths
        self._env = Environment(
            loader=FileSystemLoader(search_paths),
            autoescape=select_autoescape(['html', 'htm', 'njk']),
        )
        self._env.globals['production'] = self.context.settings.production
        if self._extra_globals:
            self._env.globals.update(self._extra_globals)
        return self._env

    def transform(self, path: Path, data: str):
        return self.env.from_string(data).render(source_name=path.name)
