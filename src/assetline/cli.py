"""
Command line entry point: a one-shot build with `--production`, otherwise a
build followed by watching and serving with live reload.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .core import Context, StepUnavailableException
from .notify import ConsoleNotifier, DesktopNotifier
from .pretty_utils import print_with_style
from .settings import BuildSettings
from .stages import default_stages
from .watch import develop


def parse_args(argv: list[str] | None = None, **kw):
    parser = argparse.ArgumentParser(
        description='Build static site assets, or build, watch, and serve them.',
        **kw
    )
    parser.add_argument('--production',
                        help='build once and exit instead of watching and serving',
                        action='store_true')
    parser.add_argument('-i', '--input',
                        help='source directory',
                        type=Path,
                        dest='input_dir',
                        default=Path('src'))
    parser.add_argument('-o', '--output',
                        help='destination directory, deleted before every build',
                        type=Path,
                        dest='output_dir',
                        default=Path('dist'))
    parser.add_argument('--host',
                        help='host to serve from in development',
                        default='localhost')
    parser.add_argument('-p', '--port',
                        help='port to serve from in development',
                        type=int,
                        default=3000)
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace):
    return BuildSettings(
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        production=args.production,
    )


def pprint_missing_deps(e: StepUnavailableException):
    """
    Prettily display an error for the given Step with missing dependencies.
    """
    print_with_style(
        f'{type(e.step).__name__} is unavailable due to missing dependencies!',
        file='stderr',
        style='red'
    )
    for dep in e.step.get_dependencies():
        if dep.satisfied:
            print_with_style(f'✓ {dep}', style='green')
        else:
            print_with_style(f'✗ {dep}: {dep.install_hint}', style='red')


def main(arguments: list[str] | None = None):
    """
    assetline main function.
    """
    args = parse_args(arguments)
    settings = settings_from_args(args)
    notifier = ConsoleNotifier() if settings.production else DesktopNotifier()

    try:
        context = Context(settings, default_stages(settings), notifier)
        if settings.production:
            report = context.run()
            if not report.ok:
                sys.exit(1)
        else:
            develop(context, args.host, args.port)
    except StepUnavailableException as e:
        pprint_missing_deps(e)
        sys.exit(1)
    except OSError as e:
        print_with_style(f'Build aborted: {e}', file='stderr', style='red')
        sys.exit(1)


if __name__ == '__main__':
    main()
