"""Process lifecycle — single-instance takeover and self-verified startup.

Startup runs once, before any request is served:

    NO_PRIOR_INSTANCE -> STALE_INSTANCE_SIGNALED -> BOUND -> SELF_VERIFIED
                                                 BOUND -> SELF_CHECK_FAILED

A stale instance named by the pid record is probed and sent SIGTERM;
the pid record is removed whether or not that process was found.
"""

import logging
import os
from enum import Enum

import psutil
import requests
from flask import Flask

from devlog.config import Config
from devlog.server import DevLogServer
from devlog.store import EntryStore

logger = logging.getLogger(__name__)


class LifecycleState(Enum):
    NO_PRIOR_INSTANCE = "no_prior_instance"
    STALE_INSTANCE_SIGNALED = "stale_instance_signaled"
    BOUND = "bound"
    SELF_VERIFIED = "self_verified"
    SELF_CHECK_FAILED = "self_check_failed"


class SelfCheckError(Exception):
    """Raised when the freshly bound server does not answer /health with 200."""


class ProcessSignaler:
    """Liveness probe and graceful terminate for a process id, via psutil."""

    def is_alive(self, pid: int) -> bool:
        return psutil.pid_exists(pid)

    def terminate(self, pid: int) -> None:
        """Send SIGTERM (TerminateProcess on Windows) to *pid*."""
        psutil.Process(pid).terminate()


def _read_int(path: str) -> int | None:
    try:
        with open(path, "r") as f:
            return int(f.read().strip())
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable record %s: %s", path, e)
        return None


def _write_int(path: str, value: int) -> bool:
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w") as f:
            f.write(str(value))
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        return False
    return True


class LifecycleRecord:
    """The pid and port files, each a plain decimal number."""

    def __init__(self, pid_path: str, port_path: str):
        self.pid_path = pid_path
        self.port_path = port_path

    def exists(self) -> bool:
        return os.path.exists(self.pid_path)

    def read_pid(self) -> int | None:
        return _read_int(self.pid_path)

    def read_port(self) -> int | None:
        return _read_int(self.port_path)

    def write(self, pid: int, port: int) -> None:
        """Write pid and port independently; one failing does not stop the other."""
        _write_int(self.pid_path, pid)
        _write_int(self.port_path, port)

    def remove_pid(self) -> None:
        try:
            os.unlink(self.pid_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove %s: %s", self.pid_path, e)


def reap_stale_instance(record: LifecycleRecord, signaler: ProcessSignaler,
                        own_pid: int | None = None) -> bool:
    """Terminate the instance named by the pid record, if it is still alive.

    Returns True if a termination signal was sent. The pid record is
    removed afterwards regardless of the outcome.
    """
    if not record.exists():
        return False

    if own_pid is None:
        own_pid = os.getpid()

    signaled = False
    pid = record.read_pid()
    if pid and pid > 0 and pid != own_pid:
        try:
            if signaler.is_alive(pid):
                logger.info("Killing old process with PID %d", pid)
                signaler.terminate(pid)
                signaled = True
            else:
                logger.info("Old process %d not running, skipping kill", pid)
        except (psutil.Error, OSError) as e:
            logger.info("Could not signal old process %d: %s", pid, e)

    record.remove_pid()
    return signaled


def probe_host(host: str) -> str:
    """Address to reach a listener bound on *host* from this machine."""
    if host in ("", "0.0.0.0"):
        return "127.0.0.1"
    return host


def self_check(host: str, port: int, timeout: float = 2.0) -> None:
    """GET /health on the listener and require a 200.

    Raises:
        SelfCheckError: on connection error, timeout or non-200 status.
    """
    url = f"http://{probe_host(host)}:{port}/health"
    try:
        with requests.Session() as session:
            # Loopback probe, environment proxies do not apply
            session.trust_env = False
            resp = session.get(url, timeout=timeout)
    except requests.Timeout as e:
        raise SelfCheckError("timeout") from e
    except requests.RequestException as e:
        raise SelfCheckError(str(e)) from e

    if resp.status_code != 200:
        raise SelfCheckError(f"status {resp.status_code}")


class LifecycleManager:
    """Drives startup: reap, clear, bind, record, verify."""

    def __init__(self, config: Config, store: EntryStore,
                 signaler: ProcessSignaler | None = None):
        self.config = config
        self.store = store
        self.signaler = signaler or ProcessSignaler()
        self.record = LifecycleRecord(config.pid_path, config.port_path)
        self.state = LifecycleState.NO_PRIOR_INSTANCE
        self.server: DevLogServer | None = None

    def startup(self, app: Flask) -> DevLogServer:
        """Bring the server up and return it once it has answered /health.

        Raises:
            OSError: if the listener cannot be bound.
            StoreError: if the previous entry document cannot be removed.
            SelfCheckError: if the health probe fails; the server is stopped.
        """
        if reap_stale_instance(self.record, self.signaler):
            self.state = LifecycleState.STALE_INSTANCE_SIGNALED

        self.store.clear()

        server = DevLogServer(app, host=self.config.host)
        port = server.bind()
        self.state = LifecycleState.BOUND
        self.server = server

        pid = os.getpid()
        self.record.write(pid, port)
        logger.info("Dev-log server running on port %d", port)
        logger.info("PID: %d", pid)
        logger.info("Log file: %s", os.path.abspath(self.store.path))

        server.start()
        try:
            self_check(self.config.host, port, timeout=self.config.self_check_timeout)
        except SelfCheckError as e:
            self.state = LifecycleState.SELF_CHECK_FAILED
            logger.error("Self-test failed: %s", e)
            server.stop()
            raise

        self.state = LifecycleState.SELF_VERIFIED
        logger.info("Self-test passed: server is healthy")
        return server
