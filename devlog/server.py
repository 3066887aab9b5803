"""Single-threaded WSGI listener bound to an OS-assigned port."""

import logging
import socket
import threading

from flask import Flask
from werkzeug.serving import make_server

logger = logging.getLogger(__name__)


class DevLogServer:
    """Runs the Flask app on one request-handling thread.

    The listening socket is bound here (port 0) so that bind failures
    surface as OSError to the caller, then handed to werkzeug.
    """

    def __init__(self, app: Flask, host: str = "127.0.0.1", backlog: int = 128):
        self._app = app
        self._host = host
        self._backlog = backlog
        self._httpd = None
        self._thread: threading.Thread | None = None
        self._port: int | None = None

    @property
    def port(self) -> int | None:
        """Bound port, or None before bind()."""
        return self._port

    @property
    def host(self) -> str:
        return self._host

    @property
    def is_serving(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def bind(self) -> int:
        """Bind an ephemeral port and return it.

        Raises:
            OSError: if no socket can be bound.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self._host, 0))
            sock.listen(self._backlog)
            # werkzeug duplicates the descriptor
            self._httpd = make_server(
                self._host, 0, self._app, threaded=False, fd=sock.fileno()
            )
        finally:
            sock.close()

        self._port = self._httpd.port
        logger.info("Bound %s:%d", self._host, self._port)
        return self._port

    def start(self):
        """Serve requests from a background thread."""
        if self._httpd is None:
            raise RuntimeError("bind() must be called before start()")
        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name="devlog-server", daemon=True
        )
        self._thread.start()

    def stop(self):
        """Stop serving and close the listening socket."""
        if self._httpd is None:
            return
        if self._thread is not None:
            self._httpd.shutdown()
            self._thread.join(timeout=5)
            self._thread = None
        self._httpd.server_close()
        self._httpd = None
        logger.info("Server stopped")
