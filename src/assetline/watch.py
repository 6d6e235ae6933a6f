"""
File watching and the development loop: rebuild a Stage when its sources
change, then tell the live-reload server.
"""
from __future__ import annotations

import threading
import typing as t
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .pretty_utils import print_with_style
from .server import LiveReloadServer

if t.TYPE_CHECKING:
    from .core import Context
    from .stages import Stage


WATCHED_EVENTS = {'created', 'modified', 'deleted', 'moved'}


class StageEventHandler(FileSystemEventHandler):
    """
    Re-run one Stage whenever a file matching its watch glob changes. The
    observer dispatches events one at a time on its own thread, so re-runs
    never overlap.
    """
    def __init__(self,
                 context: Context,
                 stage: Stage,
                 on_rebuilt: t.Callable[[Stage], None] | None = None):
        self.context = context
        self.stage = stage
        self.on_rebuilt = on_rebuilt

    def event_paths(self, event: FileSystemEvent):
        paths = [event.src_path]
        if dest_path := getattr(event, 'dest_path', None):
            paths.append(dest_path)
        return [Path(p if isinstance(p, str) else p.decode()) for p in paths]

    def matches(self, event: FileSystemEvent):
        if event.is_directory or event.event_type not in WATCHED_EVENTS:
            return False
        return any(self.stage.watch_matcher(self.context, p) for p in self.event_paths(event))

    def on_any_event(self, event: FileSystemEvent):
        if not self.matches(event):
            return
        print_with_style(f'[{self.stage.label}] {event.event_type}: {event.src_path}', style='cyan')
        self.context.run_stage(self.stage)
        if self.on_rebuilt:
            self.on_rebuilt(self.stage)


class Watcher:
    """
    One file system subscription per Stage, on the Stage's source directory.
    """
    def __init__(self,
                 context: Context,
                 on_rebuilt: t.Callable[[Stage], None] | None = None,
                 observer_cls: t.Callable[[], t.Any] = Observer):
        self.context = context
        self.on_rebuilt = on_rebuilt
        self.observer = observer_cls()
        self.handlers: list[StageEventHandler] = []

    def start(self):
        for stage in self.context.stages:
            source_dir = stage.config.source_dir
            if not source_dir.is_dir():
                print_with_style(f'Not watching {source_dir}: no such directory', style='yellow')
                continue
            handler = StageEventHandler(self.context, stage, self.on_rebuilt)
            self.observer.schedule(handler, str(source_dir), recursive=True)
            self.handlers.append(handler)
            print_with_style(f'Watching {stage.config.watch_pattern}')
        self.observer.start()

    def stop(self):
        self.observer.stop()
        self.observer.join()


class DevSession:
    """
    A running development session: the live-reload server on the output
    directory plus a Watcher whose rebuilds trigger reloads.
    """
    def __init__(self,
                 context: Context,
                 server: LiveReloadServer | None = None,
                 observer_cls: t.Callable[[], t.Any] = Observer):
        self.context = context
        self.server = server or LiveReloadServer()
        self.watcher = Watcher(context, self.rebuilt, observer_cls)
        self._stopped = threading.Event()

    def rebuilt(self, stage: Stage):
        self.server.reload()

    def start(self):
        self.server.start(self.context['output_dir'])
        self.watcher.start()

    def wait(self, timeout: float | None = None):
        """
        Block until `stop()` is called or @timeout expires.
        """
        return self._stopped.wait(timeout)

    def stop(self):
        self.watcher.stop()
        self.server.stop()
        self._stopped.set()


def develop(context: Context, host: str = 'localhost', port: int = 3000):
    """
    Build, then serve and watch until interrupted.
    """
    context.run()
    session = DevSession(context, LiveReloadServer(host, port))
    session.start()
    try:
        # Wake up periodically so KeyboardInterrupt is delivered promptly.
        while not session.wait(1.0):
            pass
    except KeyboardInterrupt:
        print_with_style('Stopping...')
    finally:
        session.stop()
