"""
Simple Steps, text transform chaining, and a base class for transforms that
invoke external commandline tools.
"""
from __future__ import annotations

import abc
import contextlib
import shutil
import subprocess
import typing as t
from pathlib import Path

from .core import Context, Step


class DirectCopyStep(Step):
    """
    A simple Step which only copies a file to its output paths without
    modification.
    """
    def __call__(self, path: Path, output_paths: list[Path]):
        for target_path in output_paths:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(path, target_path)


class BaseStandardStep(Step):
    """
    A base class providing helper behaviors for typical steps creating one file
    and copying to others.
    """
    encoding = 'utf-8'
    newline = '\n'

    def ensure_output_dirs(self, output_paths: list[Path]):
        for o_path in output_paths:
            o_path.parent.mkdir(parents=True, exist_ok=True)

    def duplicate_output_paths(self, output_paths: list[Path]):
        for o_path in output_paths[1:]:
            shutil.copy(output_paths[0], o_path)

    @contextlib.contextmanager
    def ensure_outputs(self, output_paths: list[Path]):
        self.ensure_output_dirs(output_paths)
        yield
        self.duplicate_output_paths(output_paths)

    def write_outputs(self, data: str, output_paths: list[Path]):
        if not output_paths:
            return
        with self.ensure_outputs(output_paths):
            output_paths[0].write_text(data, self.encoding, newline=self.newline)


class TextTransformStep(BaseStandardStep):
    """
    A Step whose work is a pure function of a source file's text. Usable on its
    own, or as one link of a `ChainStep`.
    """
    @abc.abstractmethod
    def transform(self, path: Path, data: str) -> str:
        """
        Return the transformed version of @data, which is the current content
        for the source file at @path.
        """

    def __call__(self, path: Path, output_paths: list[Path]):
        self.write_outputs(self.transform(path, path.read_text(self.encoding)), output_paths)


class ChainStep(BaseStandardStep):
    """
    A Step which reads a source file once, passes its text through each of
    @steps in order, and writes the final result. Nothing is written if any
    transform raises.
    """
    def __init__(self, steps: t.Sequence[TextTransformStep]):
        self.steps = list(steps)

    def bind(self, context: Context):
        super().bind(context)
        for step in self.steps:
            context.bind(step)

    def __call__(self, path: Path, output_paths: list[Path]):
        data = path.read_text(self.encoding)
        for step in self.steps:
            data = step.transform(path, data)
        self.write_outputs(data, output_paths)

    def __repr__(self):
        return f'ChainStep([{", ".join(type(s).__name__ for s in self.steps)}])'


class BaseCommandTransform(TextTransformStep):
    """
    A base class for transforms that pipe text through an external command.
    """
    @abc.abstractmethod
    def get_command(self, path: Path) -> list[str]:
        """
        Abstract method that must return a commandline ready for subprocess.
        The command reads the source on stdin and writes the result to stdout.
        """

    def transform(self, path: Path, data: str):
        try:
            result = subprocess.run(
                self.get_command(path),
                input=data,
                capture_output=True,
                text=True,
                encoding=self.encoding,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise RuntimeError(e.stderr.strip() or str(e)) from e
        return result.stdout
