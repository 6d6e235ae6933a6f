"""
A threaded static file server with ETag support and a live-reload channel.
"""
from __future__ import annotations

import argparse
import hashlib
import http.server
import mimetypes
import os
import pathlib
import threading
import typing

from .pretty_utils import print_with_style

if typing.TYPE_CHECKING:
    from socketserver import _AfInetAddress


INDEX_FILE = 'index.html'
# Default used by nginx
DEFAULT_MIME_TYPE = 'application/octet-stream'
RELOAD_PATH = '/__livereload'
KEEPALIVE_INTERVAL = 15.0
RELOAD_SCRIPT = f'''<script>
(function () {{
  var source = new EventSource("{RELOAD_PATH}");
  source.addEventListener("reload", function () {{ window.location.reload(); }});
}})();
</script>'''.encode('utf-8')


class ReloadChannel:
    """
    A versioned broadcast: `notify()` bumps the version and wakes every
    listener blocked in `wait()`.
    """
    def __init__(self):
        self.version = 0
        self.closed = False
        self._condition = threading.Condition()

    def notify(self):
        with self._condition:
            self.version += 1
            self._condition.notify_all()

    def close(self):
        with self._condition:
            self.closed = True
            self._condition.notify_all()

    def wait(self, seen: int, timeout: float | None = None):
        """
        Block until the version moves past @seen, the channel closes, or
        @timeout expires. Returns the current version.
        """
        with self._condition:
            self._condition.wait_for(lambda: self.version != seen or self.closed, timeout)
            return self.version


class ThreadedHTTPServer(http.server.ThreadingHTTPServer):
    """
    A simple HTTP server that handles each request in a separate thread. If
    @channel is given, HTML pages get a live-reload script injected and
    `RELOAD_PATH` streams reload events.
    """
    RequestHandlerClass: typing.Type[Handler]

    def __init__(self,
                 server_address: _AfInetAddress,
                 directory: str | pathlib.Path = '.',
                 channel: ReloadChannel | None = None,
                 handler_cls: typing.Type[Handler] | None = None,
                 bind_and_activate: bool = True) -> None:
        super().__init__(server_address, handler_cls or Handler, bind_and_activate)
        self.directory = str(directory)
        self.channel = channel

    def finish_request(self, request, client_address) -> None:
        self.RequestHandlerClass(request, client_address, self, directory=self.directory)


class Handler(http.server.SimpleHTTPRequestHandler):
    server: ThreadedHTTPServer

    def get_etag(self, file_path):
        """
        Generate an etag for a file based on its path and modification time.
        """
        mtime = os.path.getmtime(file_path)
        file_size = os.path.getsize(file_path)
        file_info = f"{file_size}-{mtime}"
        return hashlib.md5(file_info.encode('utf-8')).hexdigest()

    def log_message(self, format, *args):  # pylint: disable=redefined-builtin
        print_with_style(f'{self.address_string()} - {format % args}', style='dim')

    def do_GET(self):
        if self.server.channel and self.path.split('?', 1)[0] == RELOAD_PATH:
            return self.stream_reloads(self.server.channel)
        try:
            # Get the etag for the file
            file_path = pathlib.Path(self.translate_path(self.path))
            if file_path.is_dir():
                file_path /= INDEX_FILE

            # Double-check that we haven't escaped the directory.
            # self.translate_path() should discard any suspicious path
            # components, but it's better to be safe.
            if not file_path.resolve().is_relative_to(pathlib.Path(self.directory).resolve()):
                return self.send_error(403, 'Forbidden')

            etag = self.get_etag(file_path)
            # Check if the client already has the file
            if 'If-None-Match' in self.headers and self.headers['If-None-Match'] == etag:
                self.send_response(304)
                self.end_headers()
                return
            # Get the file extension and set the MIME type accordingly
            mime_type, _enc = mimetypes.guess_type(file_path)
            if self.server.channel and mime_type == 'text/html':
                return self.send_html(file_path, etag)
            self.send_response(200)
            self.send_header('Content-type', mime_type or DEFAULT_MIME_TYPE)
            self.send_header('ETag', etag)
            self.end_headers()
            # Serve the file
            with open(file_path, 'rb') as file:
                # Serve the file in chunks to avoid reading the entire file
                # into memory
                chunk_size = 8192
                while True:
                    chunk = file.read(chunk_size)
                    if not chunk:
                        break
                    self.wfile.write(chunk)
        except FileNotFoundError:
            self.send_error(404, f'File Not Found: {self.path}')

    def send_html(self, file_path: pathlib.Path, etag: str):
        """
        Serve an HTML page with the live-reload script added before `</body>`,
        or at the end if there is none.
        """
        body = file_path.read_bytes()
        index = body.lower().rfind(b'</body>')
        if index == -1:
            body += RELOAD_SCRIPT
        else:
            body = body[:index] + RELOAD_SCRIPT + body[index:]
        self.send_response(200)
        self.send_header('Content-type', 'text/html')
        self.send_header('Content-Length', str(len(body)))
        self.send_header('ETag', etag)
        self.end_headers()
        self.wfile.write(body)

    def stream_reloads(self, channel: ReloadChannel):
        """
        Hold the connection open as a server-sent event stream, emitting a
        `reload` event each time the channel is notified.
        """
        self.send_response(200)
        self.send_header('Content-type', 'text/event-stream')
        self.send_header('Cache-Control', 'no-cache')
        self.end_headers()
        seen = channel.version
        try:
            self.wfile.write(b': connected\n\n')
            self.wfile.flush()
            while not channel.closed:
                version = channel.wait(seen, KEEPALIVE_INTERVAL)
                if channel.closed:
                    break
                if version != seen:
                    seen = version
                    self.wfile.write(b'event: reload\ndata: reload\n\n')
                else:
                    self.wfile.write(b': keepalive\n\n')
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            pass
        self.close_connection = True


class LiveReloadServer:
    """
    Serves a directory in a background thread and pushes reload events to
    connected pages.
    """
    def __init__(self, host: str = 'localhost', port: int = 3000):
        self.host = host
        self.port = port
        self.channel = ReloadChannel()
        self.httpd: ThreadedHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def url(self):
        return f'http://{self.host}:{self.port}/'

    def start(self, directory: str | pathlib.Path):
        """
        Begin serving @directory and accepting live-reload listeners.
        """
        self.httpd = ThreadedHTTPServer((self.host, self.port), directory, self.channel)
        # Port 0 asks the OS for a free port.
        self.port = self.httpd.server_address[1]
        self._thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self._thread.start()
        print_with_style(f'Serving {directory} at {self.url}', style='green')

    def reload(self):
        """
        Tell every connected page to reload.
        """
        self.channel.notify()

    def stop(self):
        self.channel.close()
        if self.httpd:
            self.httpd.shutdown()
            self.httpd.server_close()
            self.httpd = None
        if self._thread:
            self._thread.join()
            self._thread = None


def serve(port: int, directory: str | pathlib.Path, host: str = 'localhost'):
    with ThreadedHTTPServer((host, port), directory) as httpd:
        print_with_style(f'Serving at http://{host}:{port}')
        httpd.serve_forever()


def main(arguments: list[str] | None = None):
    parser = argparse.ArgumentParser(description='Serve a directory over HTTP.')
    parser.add_argument('-p', '--port',
                        help='port to serve from',
                        type=int,
                        default=8080)
    parser.add_argument('-d', '--directory',
                        help='directory to serve',
                        type=pathlib.Path,
                        default='.')
    args = parser.parse_args(arguments)
    serve(args.port, args.directory)


if __name__ == '__main__':
    main()
