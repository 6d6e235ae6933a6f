"""
Per-file results collected into per-stage and per-build reports.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass, field
from pathlib import Path

from .pretty_utils import print_with_style


FileStatus = t.Literal['written', 'skipped', 'failed']


@dataclass(frozen=True)
class FileResult:
    """
    Outcome of processing one source file.
    """
    source: Path
    outputs: list[Path]
    status: FileStatus
    error: BaseException | None = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error else ''


@dataclass
class StageReport:
    name: str
    label: str
    results: list[FileResult] = field(default_factory=list)

    def add(self, result: FileResult):
        self.results.append(result)

    def _with_status(self, status: FileStatus):
        return [r for r in self.results if r.status == status]

    @property
    def written(self):
        return self._with_status('written')

    @property
    def skipped(self):
        return self._with_status('skipped')

    @property
    def failures(self):
        return self._with_status('failed')

    @property
    def ok(self):
        return not self.failures

    def summary(self):
        return (
            f'{self.label}: {len(self.written)} written, '
            f'{len(self.skipped)} skipped, {len(self.failures)} failed'
        )


@dataclass
class BuildReport:
    """
    The StageReports of a full build, in Stage order.
    """
    stages: list[StageReport]

    @property
    def failures(self):
        return [f for s in self.stages for f in s.failures]

    @property
    def ok(self):
        return all(s.ok for s in self.stages)

    def print_summary(self):
        for stage in self.stages:
            print_with_style(stage.summary(), style=None if stage.ok else 'red')
        if self.ok:
            print_with_style('✓ Build finished', style='green')
        else:
            print_with_style(f'✗ Build finished with {len(self.failures)} failure(s)', style='red')
