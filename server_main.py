"""Dev-log server — collects structured log entries over HTTP on an ephemeral port."""

import logging
import signal
import sys
import threading

from devlog.app import create_app
from devlog.config import load_config
from devlog.lifecycle import LifecycleManager, SelfCheckError
from devlog.store import EntryStore, StoreError

logger = logging.getLogger("devlog")


def main(argv: list[str] | None = None) -> int:
    config = load_config(argv)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # Per-request access lines
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    store = EntryStore(config.log_path)
    app = create_app(config, store)
    manager = LifecycleManager(config, store)

    try:
        server = manager.startup(app)
    except OSError as e:
        logger.error("Server error: could not bind %s: %s", config.host, e)
        return 1
    except StoreError as e:
        logger.error("Server error: %s", e)
        return 1
    except SelfCheckError:
        logger.error("Server self-test failed, exiting...")
        return 1

    shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        while not shutdown_event.is_set() and server.is_serving:
            shutdown_event.wait(1.0)
    finally:
        server.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
