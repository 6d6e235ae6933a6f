"""
Script transpiling through esbuild.
"""
from __future__ import annotations

from pathlib import Path

from .dependencies import WebExecDependency
from .simple import BaseCommandTransform


class ScriptTranspileStep(BaseCommandTransform):
    """
    Transpile modern JavaScript down to @target with esbuild. Minification is
    left to `ScriptMinifierStep`.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            WebExecDependency('esbuild', 'https://esbuild.github.io/getting-started/'),
        }

    def __init__(self, target: str = 'es2015'):
        self.target = target

    def get_command(self, path: Path):
        return [
            'esbuild',
            '--loader=js',
            f'--target={self.target}',
            f'--sourcefile={path.name}',
            '--log-level=error',
        ]
