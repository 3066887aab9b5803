"""CLI for the dev-log server — send entries, dump the collection, check health."""

import argparse
import json
import os
import sys

from devlog.client import ClientError, DevLogClient
from devlog.config import Config
from devlog.lifecycle import LifecycleRecord


def _build_client(args) -> DevLogClient:
    if args.port is not None:
        return DevLogClient(args.host, args.port, timeout=args.timeout)
    record = LifecycleRecord(
        os.path.join(args.data_dir, os.environ.get("DEVLOG_PID_FILE", Config.pid_filename)),
        os.path.join(args.data_dir, os.environ.get("DEVLOG_PORT_FILE", Config.port_filename)),
    )
    return DevLogClient.from_record(record, host=args.host, timeout=args.timeout)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Talk to a running dev-log server")
    parser.add_argument("--data-dir", default=os.environ.get("DEVLOG_DATA_DIR", "."),
                        help="Directory holding the server's port file")
    parser.add_argument("--host", default=os.environ.get("DEVLOG_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=None,
                        help="Server port (default: read from the port file)")
    parser.add_argument("--timeout", type=float, default=5.0)

    sub = parser.add_subparsers(dest="command", required=True)
    send = sub.add_parser("send", help="Post a JSON entry or array of entries")
    send.add_argument("payload", nargs="?", default=None,
                      help="JSON text (default: read from stdin)")
    sub.add_parser("dump", help="Print every collected entry")
    sub.add_parser("health", help="Query /health")

    args = parser.parse_args(argv)

    try:
        client = _build_client(args)
        if args.command == "send":
            text = args.payload if args.payload is not None else sys.stdin.read()
            try:
                payload = json.loads(text)
            except ValueError as e:
                print(f"Error: invalid JSON: {e}", file=sys.stderr)
                return 2
            result = client.send(payload)
        elif args.command == "dump":
            result = client.fetch()
        else:
            result = client.health()
    except ClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
