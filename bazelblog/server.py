"""Development server for BazelBlog.

Serves the built site with live reload for local authoring:
- Watches the source folders and the site root, debounces bursts of changes
  and rebuilds once the tree has been quiet for half a second.
- Rebuilds are serialized: a change arriving during a rebuild schedules one
  more rebuild after it instead of running concurrently.
- Each rebuild goes to a staging directory that replaces ``public/`` only on
  success, so a failing build keeps the previous output online.
- Served HTML pages poll ``/live-reload`` about once a second and reload when
  the last-build timestamp advances.

Key classes:
- BuildClock: Thread-safe "last build completed" timestamp.
- Debouncer: Single-shot timer restarted by every trigger.
- RebuildWorker: Serializes rebuilds (queue of one, superseding).
- ReloadHandler: HTTP handler that injects the reload script and serves /live-reload.
- ChangeHandler: File system event handler feeding the debouncer.
- DevServer: Wires everything together.
"""

from __future__ import annotations

import functools
import logging
import shutil
import threading
import time
from collections.abc import Callable
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import urlsplit

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import PUBLIC_DIR, build_site
from .config import CONFIG_FILENAME
from .content import PAGES_DIR, POSTS_DIR
from .html_utils import inject_before_body_end
from .templates import THEMES_DIR
from .utils import is_ignored_name

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEBOUNCE_SECONDS = 0.5
LIVE_RELOAD_PATH = "/live-reload"
WATCHED_DIRS = (POSTS_DIR, PAGES_DIR, THEMES_DIR)
WRITE_EVENTS = frozenset({"created", "modified", "moved", "deleted"})


class BuildClock:
    """Timestamp of the last successful build.

    Written by the rebuild worker and read by HTTP handler threads. Values
    only ever increase.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0.0

    def mark(self, when: float | None = None) -> float:
        """Record a completed build and return the new value."""
        when = time.time() if when is None else when
        with self._lock:
            self._value = max(when, self._value + 0.001)
            return self._value

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def token(self) -> str:
        """Return the value as the text served by ``/live-reload``."""
        return f"{self.value:.3f}"


class Debouncer:
    """Runs ``callback`` once the triggers have stopped for ``delay`` seconds.

    Every ``trigger()`` cancels the pending timer and starts a new one, so a
    burst of N triggers produces a single callback.
    """

    def __init__(self, callback: Callable[[], object], delay: float = DEBOUNCE_SECONDS):
        self.callback = callback
        self.delay = delay
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._generation = 0

    def trigger(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A later trigger or cancel superseded this timer.
            if generation != self._generation:
                return
            self._timer = None
        self.callback()


class RebuildWorker:
    """Serializes rebuilds.

    A request made while a rebuild is running marks a single pending rerun;
    any further requests fold into it. Build failures are logged and never
    propagate, and only successful builds advance the clock.

    Attributes:
        build: Callable performing one build.
        clock: Clock advanced after each successful build.
    """

    def __init__(self, build: Callable[[], object], clock: BuildClock):
        self.build = build
        self.clock = clock
        self._lock = threading.Lock()
        self._running = False
        self._pending = False

    def request(self) -> bool:
        """Rebuild now, or schedule a rerun if a rebuild is in flight.

        Returns:
            True if this call ran the rebuild loop, False if it was queued.
        """
        with self._lock:
            if self._running:
                self._pending = True
                return False
            self._running = True
        try:
            while True:
                self._rebuild_once()
                with self._lock:
                    if not self._pending:
                        return True
                    self._pending = False
        finally:
            with self._lock:
                self._running = False

    def _rebuild_once(self) -> None:
        logger.info("Rebuilding site...")
        try:
            self.build()
        except Exception as exc:
            logger.error("Build error: %s", exc)
            return
        self.clock.mark()
        logger.info("Site rebuilt successfully")


class ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects the live reload script into HTML pages.

    Attributes:
        clock: Clock whose value is served at ``/live-reload``.
    """

    # Bound per server by DevServer.handler_class().
    clock: BuildClock

    reload_script_template = """
<script>
(() => {{
  let lastBuild = {last_build};
  const check = () => {{
    fetch('{endpoint}?' + Date.now(), {{ cache: 'no-store' }})
      .then((response) => response.text())
      .then((stamp) => {{
        if (Number(stamp) > lastBuild) {{
          lastBuild = Number(stamp);
          location.reload();
        }}
      }})
      .catch(() => {{}});
  }};
  setInterval(check, 1000);
}})();
</script>
"""

    def log_message(self, format, *args):  # noqa: A002 - signature fixed by base class
        logger.debug("%s - %s", self.address_string(), format % args)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        # Never expose directory listings; treat as missing content.
        self.send_error(404, "File not found")
        return None

    def reload_script(self) -> str:
        return self.reload_script_template.format(
            last_build=self.clock.token(), endpoint=LIVE_RELOAD_PATH
        )

    def send_head(self):
        if urlsplit(self.path).path == LIVE_RELOAD_PATH:
            return self._send_bytes(
                self.clock.token().encode("utf-8"), "text/plain; charset=utf-8"
            )

        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            index_path = path_obj / "index.html"
            if not index_path.exists():
                self.send_error(404, "File not found")
                return None
            path_obj = index_path
        elif not path_obj.exists():
            self.send_error(404, "File not found")
            return None

        if path_obj.suffix == ".html":
            content = path_obj.read_text(encoding="utf-8")
            content = inject_before_body_end(content, self.reload_script())
            return self._send_bytes(content.encode("utf-8"), "text/html; charset=utf-8")
        return super().send_head()

    def _send_bytes(self, payload: bytes, content_type: str):
        self.send_response(200)
        self.send_header("Content-type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(payload)
        return None


class ChangeHandler(FileSystemEventHandler):
    """Feeds qualifying source changes into the debouncer.

    Directory events, dotfiles, ``.tmp`` files and anything inside the
    output directories are ignored.
    """

    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in WRITE_EVENTS:
            return
        # A move counts when either end is a source file.
        for raw in (event.src_path, getattr(event, "dest_path", "")):
            if not raw:
                continue
            path = Path(raw.decode() if isinstance(raw, bytes) else raw)
            if self._is_source(path):
                logger.info("File changed: %s", path)
                self.server.debouncer.trigger()
                return

    def _is_source(self, path: Path) -> bool:
        if is_ignored_name(path.name):
            return False
        return not any(path.is_relative_to(d) for d in self.server.output_dirs())


class DevServer:
    """Development server with live reload functionality.

    Attributes:
        site_root: Root directory of the site.
        port: Port for the HTTP server.
        output_dir: Directory being served (``public/``).
        clock: Last-build clock shared with HTTP handlers.
        worker: Serializing rebuild worker.
        debouncer: Debouncer in front of the worker.
    """

    def __init__(
        self,
        site_root: Path,
        port: int = DEFAULT_PORT,
        debounce_seconds: float = DEBOUNCE_SECONDS,
    ):
        self.site_root = site_root.resolve()
        self.port = port
        self.output_dir = self.site_root / PUBLIC_DIR
        self._staging_dir = self.site_root / f"{PUBLIC_DIR}.staging"
        self._retired_dir = self.site_root / f"{PUBLIC_DIR}.old"
        self.clock = BuildClock()
        self.worker = RebuildWorker(self.build_once, self.clock)
        self.debouncer = Debouncer(self.worker.request, debounce_seconds)
        self._observer: Observer | None = None
        self._httpd: ThreadingHTTPServer | None = None

    def output_dirs(self) -> tuple[Path, ...]:
        return (self.output_dir, self._staging_dir, self._retired_dir)

    def start(self) -> None:  # pragma: no cover - integration path
        """Build, start watching and serve until interrupted."""
        self.build_once()
        self.clock.mark()
        self._start_watcher()
        self._httpd = self._make_http_server()
        logger.info("Development server starting on http://localhost:%d", self.port)
        logger.info("Serving files from %s", self.output_dir)
        logger.info("Press Ctrl+C to stop")
        try:
            self._httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Stopping development server")
        finally:
            self.stop()

    def stop(self) -> None:
        """Release the watcher, the pending timer and the HTTP listener."""
        self.debouncer.cancel()
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._httpd:
            self._httpd.server_close()
            self._httpd = None

    def build_once(self) -> None:
        """Build into the staging directory and swap it into place.

        Raises:
            BuildError: If the build fails; ``public/`` is left untouched.
        """
        try:
            build_site(self.site_root, output_dir=self._staging_dir)
        except Exception:
            shutil.rmtree(self._staging_dir, ignore_errors=True)
            raise
        self._activate_staging()

    def _activate_staging(self) -> None:
        if self._retired_dir.exists():
            shutil.rmtree(self._retired_dir)
        retired = self.output_dir.exists()
        if retired:
            self.output_dir.rename(self._retired_dir)
        try:
            self._staging_dir.rename(self.output_dir)
        except OSError:
            if retired:
                self._retired_dir.rename(self.output_dir)
            shutil.rmtree(self._staging_dir, ignore_errors=True)
            raise
        shutil.rmtree(self._retired_dir, ignore_errors=True)

    def handler_class(self) -> type[ReloadHandler]:
        """Return a ReloadHandler subclass bound to this server's clock."""
        return type("_BoundReloadHandler", (ReloadHandler,), {"clock": self.clock})

    def _make_http_server(self) -> ThreadingHTTPServer:  # pragma: no cover - integration path
        handler = functools.partial(self.handler_class(), directory=str(self.output_dir))
        return ThreadingHTTPServer(("", self.port), handler)

    def _start_watcher(self) -> None:
        handler = ChangeHandler(self)
        observer = Observer()
        for folder in WATCHED_DIRS:
            watch_path = self.site_root / folder
            if watch_path.exists():
                observer.schedule(handler, str(watch_path), recursive=True)
        # Root is watched flat so bazel.yaml edits are picked up.
        observer.schedule(handler, str(self.site_root), recursive=False)
        observer.start()
        self._observer = observer
        logger.info("Watching %s for changes (config: %s)", self.site_root, CONFIG_FILENAME)
