"""Configuration module — frozen dataclass loaded from YAML, env vars and CLI args."""

import argparse
import logging
import os
from dataclasses import dataclass, fields

import yaml

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

MAX_BODY_SIZE = 10 * 1024 * 1024


@dataclass(frozen=True)
class Config:
    host: str = "127.0.0.1"
    data_dir: str = "."
    log_filename: str = "dev-logs.json"
    pid_filename: str = "pid.txt"
    port_filename: str = "port.txt"
    max_body_size: int = MAX_BODY_SIZE
    self_check_timeout: float = 2.0
    log_level: str = "INFO"

    @property
    def log_path(self) -> str:
        return os.path.join(self.data_dir, self.log_filename)

    @property
    def pid_path(self) -> str:
        return os.path.join(self.data_dir, self.pid_filename)

    @property
    def port_path(self) -> str:
        return os.path.join(self.data_dir, self.port_filename)


# Environment variable -> (field name, converter)
_ENV_VARS = {
    "DEVLOG_HOST": ("host", str),
    "DEVLOG_DATA_DIR": ("data_dir", str),
    "DEVLOG_LOG_FILE": ("log_filename", str),
    "DEVLOG_PID_FILE": ("pid_filename", str),
    "DEVLOG_PORT_FILE": ("port_filename", str),
    "DEVLOG_MAX_BODY_SIZE": ("max_body_size", int),
    "DEVLOG_SELF_CHECK_TIMEOUT": ("self_check_timeout", float),
    "DEVLOG_LOG_LEVEL": ("log_level", str),
}

_CONVERTERS = {name: convert for name, convert in _ENV_VARS.values()}


def _normalize_level(level: str) -> str:
    level = str(level).strip().upper()
    return level if level in LOG_LEVELS else "INFO"


def load_yaml(path: str | None) -> dict:
    """Load overrides from a YAML file.

    A missing path or file yields an empty dict; invalid YAML logs a
    warning and is ignored.
    """
    if not path:
        return {}
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", path)
        return {}

    if not isinstance(data, dict):
        return {}
    known = {f.name for f in fields(Config)}
    return {
        key: _CONVERTERS[key](value)
        for key, value in data.items()
        if key in known and value is not None
    }


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dev-log collection server")
    parser.add_argument("--config", type=str, default=None,
                        help="YAML file with configuration overrides")
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--data-dir", type=str, default=None,
                        help="Directory holding the log, pid and port files")
    parser.add_argument("--max-body-size", type=int, default=None)
    parser.add_argument("--self-check-timeout", type=float, default=None)
    parser.add_argument("--log-level", type=str, default=None)
    return parser


def load_config(argv: list[str] | None = None) -> Config:
    """Build Config from defaults <- YAML file <- env vars <- CLI args."""
    args = _build_parser().parse_args(argv)

    config_path = args.config or os.environ.get("DEVLOG_CONFIG")
    kwargs: dict = load_yaml(config_path)

    for env_name, (field_name, convert) in _ENV_VARS.items():
        value = os.environ.get(env_name)
        if value is not None:
            kwargs[field_name] = convert(value)

    cli_overrides = {
        "host": args.host,
        "data_dir": args.data_dir,
        "max_body_size": args.max_body_size,
        "self_check_timeout": args.self_check_timeout,
        "log_level": args.log_level,
    }
    kwargs.update({k: v for k, v in cli_overrides.items() if v is not None})

    if "log_level" in kwargs:
        kwargs["log_level"] = _normalize_level(kwargs["log_level"])

    return Config(**kwargs)
