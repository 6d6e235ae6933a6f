"""
Internal utilities for pretty printing.
"""
import sys

import rich.console

_consoles = {
    'stdout': rich.console.Console(file=sys.stdout, highlight=False),
    'stderr': rich.console.Console(file=sys.stderr, highlight=False),
}


def print_with_style(*args, sep=' ', end='\n', file: str = 'stdout', style=None):
    """
    print() replacement writing through a shared rich Console. Markup is
    disabled so that paths and error messages containing brackets are printed
    as-is.
    """
    _consoles[file].print(*args, sep=sep, end=end, style=style, markup=False)
