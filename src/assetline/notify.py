"""
User-visible failure notifications.
"""
from __future__ import annotations

import abc
import subprocess

from .dependencies import WebExecDependency
from .pretty_utils import print_with_style


class Notifier(abc.ABC):
    """
    Abstract base class for channels that report a Stage failure to the user.
    """
    @abc.abstractmethod
    def notify(self, title: str, message: str) -> None:
        ...


class ConsoleNotifier(Notifier):
    """
    Print failures to stderr.
    """
    def notify(self, title: str, message: str):
        print_with_style(f'✗ [{title}] {message}', file='stderr', style='red')


class DesktopNotifier(ConsoleNotifier):
    """
    Print failures to stderr and additionally pop up a desktop notification
    using notify-send, when it is installed.
    """
    dependency = WebExecDependency('notify-send', 'https://gitlab.gnome.org/GNOME/libnotify')

    def __init__(self, app_name: str = 'assetline'):
        self.app_name = app_name
        self.enabled = self.dependency.satisfied

    def notify(self, title: str, message: str):
        super().notify(title, message)
        if self.enabled:
            subprocess.run(
                ['notify-send', '--app-name', self.app_name, title, message],
                check=False,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
