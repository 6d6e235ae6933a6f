"""
Core classes and types for the assetline build pipeline.
"""
from __future__ import annotations

import abc
import shutil
import typing as t
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .dependencies import Dependency
from .notify import ConsoleNotifier, Notifier
from .pretty_utils import print_with_style
from .reports import BuildReport, FileResult, StageReport

if t.TYPE_CHECKING:
    from collections.abc import Sequence, Set
    from .settings import BuildSettings
    from .stages import Stage


T = t.TypeVar('T')
T2 = t.TypeVar('T2')
ContextDir = t.Literal['input_dir', 'output_dir']


def is_fresh(path: Path, output_paths: list[Path]):
    """
    Return whether every output of @path exists and none is older than it.
    """
    if not output_paths:
        return False
    source_mtime = path.stat().st_mtime
    for o_path in output_paths:
        if not o_path.exists() or o_path.stat().st_mtime < source_mtime:
            return False
    return True


class Context:
    """
    A context binding BuildSettings to the Stages of a build, responsible for
    running single stages, cleaning the destination, and running full builds.
    """
    def __init__(self,
                 settings: BuildSettings,
                 stages: list[Stage],
                 notifier: Notifier | None = None):
        self.settings = settings
        self.notifier = notifier or ConsoleNotifier()
        self.stages: list[Stage] = []
        for stage in stages:
            self.stages.append(stage)
            for rule in stage.rules:
                self.bind(rule.step)

    def __getitem__(self, key: ContextDir) -> Path:
        return getattr(self.settings, key)

    def bind(self, step: Step | None):
        """
        Bind a Step to this Context, checking to ensure its availability.
        """
        if step:
            if not step.is_available():
                raise StepUnavailableException(step)
            step.bind(self)

    def get_stage(self, name: str):
        """
        Look up a bound Stage by asset class name.
        """
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)

    def find_inputs(self, path: Path) -> t.Iterator[Path]:
        """
        Overridable function to get paths to process based on a given @path.
        Default behavior is to recursively search for files but exclude the
        directories themselves. A missing @path yields nothing.
        """
        if not path.is_dir():
            return
        for candidate in sorted(path.iterdir()):
            if candidate.is_dir():
                yield from self.find_inputs(candidate)
            else:
                yield candidate

    def match_paths(self, stage: Stage, input_paths: list[Path]):
        """
        Match a set of input paths against a Stage's source glob and Rules,
        and associate them with the Steps of those Rules.
        """
        tasks: list[tuple[Step, Path, list[Path]]] = []

        for path in input_paths:
            if not stage.matcher(self, path):
                continue
            for rule in stage.rules:
                if match := rule.matcher(self, path):
                    # None can be used to halt further rule processing.
                    if not rule.step:
                        break
                    output_paths: list[Path] = []
                    for pathcalc in rule.path_calcs:
                        # None can be used to halt further rule processing in
                        # paths as well. This allows a single rule to both do
                        # processing and also halt further processing.
                        if not pathcalc:
                            break
                        output_paths.append(pathcalc(self, path, match))
                    else:
                        tasks.append((rule.step, path, output_paths))
                        # We didn't break above, avoid the break below!
                        continue
                    tasks.append((rule.step, path, output_paths))
                    # We need two breaks because we're trying to get out of the
                    # surrounding for loop.
                    break

        return tasks

    def run_stage(self, stage: Stage, input_paths: list[Path] | None = None):
        """
        Run a single Stage over @input_paths, or over everything under its
        source directory if @input_paths is empty or None. A failing file is
        reported to the notifier and recorded, and never stops the Stage.
        """
        input_paths = input_paths or list(self.find_inputs(stage.config.source_dir))
        report = StageReport(stage.name, stage.label)

        for step, path, output_paths in self.match_paths(stage, input_paths):
            try:
                if stage.check_freshness and is_fresh(path, output_paths):
                    print_with_style('Skipped', _describe(path, output_paths), style='yellow')
                    report.add(FileResult(path, output_paths, 'skipped'))
                    continue
                step(path, output_paths)
            except Exception as e:  # pylint: disable=broad-except
                self.notifier.notify(stage.label, f'{path}: {e}')
                report.add(FileResult(path, output_paths, 'failed', e))
            else:
                print_with_style(f'[{stage.label}]', _describe(path, output_paths))
                report.add(FileResult(path, output_paths, 'written'))

        return report

    def clean(self):
        """
        Recursively delete the output directory. Deleting a missing directory
        is not an error; any other failure propagates.
        """
        output_dir = self['output_dir']
        if output_dir.exists():
            shutil.rmtree(output_dir)

    def run(self):
        """
        Clean the output directory, then run every Stage concurrently and wait
        for all of them to finish.
        """
        self.clean()
        with ThreadPoolExecutor(max_workers=max(len(self.stages), 1)) as executor:
            futures = [executor.submit(self.run_stage, stage) for stage in self.stages]
            report = BuildReport([f.result() for f in futures])
        report.print_summary()
        return report


def _describe(path: Path, output_paths: Sequence[Path]):
    return f'{path} ⇒ {", ".join(str(p) for p in output_paths)}'


class Matcher(t.Generic[T], abc.ABC):
    """
    Abstract base class for Path Matchers. Provides pre-baked ability to
    combine Matchers with |, & and ~.
    """
    @abc.abstractmethod
    def __call__(self, context: Context, path: Path) -> T:
        ...

    def __or__(self, other: Matcher[T2]):
        return _OrMatcher(self, other)

    def __and__(self, other: Matcher[T2]):
        return _AndMatcher(self, other)

    def __invert__(self):
        return _NotMatcher(self)


class _OrMatcher(Matcher[T | T2]):
    def __init__(self, left: Matcher[T], right: Matcher[T2]):
        self.left = left
        self.right = right

    def __call__(self, context: Context, path: Path):
        return self.left(context, path) or self.right(context, path)


class _AndMatcher(Matcher[T | T2]):
    def __init__(self, left: Matcher[T], right: Matcher[T2]):
        self.left = left
        self.right = right

    def __call__(self, context: Context, path: Path):
        return self.left(context, path) and self.right(context, path)


class _NotMatcher(Matcher[bool]):
    def __init__(self, inner: Matcher[t.Any]):
        self.inner = inner

    def __call__(self, context: Context, path: Path):
        return not self.inner(context, path)


class PathCalc(t.Generic[T], abc.ABC):
    """
    Abstract base class for path calculators which use `Matcher` match data to
    determine output paths from input paths.
    """
    @abc.abstractmethod
    def __call__(self, context: Context, path: Path, match: T) -> Path:
        ...


class Rule(t.Generic[T]):
    """
    A single rule within a Stage, with a matcher, output path calculators, and
    an optional Step to run.
    """
    def __init__(self,
                 matcher: Matcher[T],
                 path_calc: t.Sequence[PathCalc[T] | None] | PathCalc[T] | None,
                 step: Step | None = None):
        self.matcher = matcher
        self.step = step
        if not isinstance(path_calc, t.Sequence):
            path_calc = [path_calc]
        self.path_calcs = list(path_calc)


class Step(abc.ABC):
    """
    Abstract base class for Steps, individual transformations used to build a
    Stage.
    """
    context: Context

    @classmethod
    def is_available(cls) -> bool:
        """
        Return whether this Step's requirements are installed, making it
        available for use.
        """
        return all(d.satisfied for d in cls.get_dependencies())

    @classmethod
    def get_dependencies(cls) -> Set[Dependency]:
        """
        Return the requirements for this Step.
        """
        return set()

    def bind(self, context: Context):
        """
        Bind this Step to a Context.
        """
        self.context = context

    @abc.abstractmethod
    def __call__(self, path: Path, output_paths: list[Path]) -> None:
        ...


class StepUnavailableException(Exception):
    """
    Exception raised with a step to be used is unavailable due to missing
    dependencies.
    """
    def __init__(self, step: Step, *args: t.Any):
        self.step = step
        super().__init__(*args)
