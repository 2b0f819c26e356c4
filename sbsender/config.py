"""Sender configuration from the environment, a JSON file and command-line flags."""

from __future__ import annotations

import argparse
import json
import os
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from rich.console import Console

from . import __version__

DEFAULT_CONFIG_PATH = "./sender.config.json"

# JSON file keys -> SenderConfig fields
FILE_KEYS = {
    "count": "count",
    "msgprefix": "prefix",
    "queueName": "queue_name",
    "connectionString": "connection_string",
}

ENV_KEYS = {
    "SERVICE_BUS_CONNECTION_STRING": "connection_string",
    "SERVICE_BUS_QUEUE_NAME": "queue_name",
}

console = Console()


@dataclass(frozen=True)
class SenderConfig:
    count: int = 5
    prefix: str = ""
    queue_name: str = ""
    connection_string: str = ""

    def describe(self) -> List[Tuple[str, str]]:
        return [
            ("count", str(self.count)),
            ("msgprefix", self.prefix),
            ("queueName", self.queue_name),
            ("connectionString", mask_connection_string(self.connection_string)),
        ]


def mask_connection_string(raw: str) -> str:
    return re.sub(r"(SharedAccessKey=)[^;]*", r"\1***", raw, flags=re.IGNORECASE)


def read_config_file(path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load overrides from the JSON config file, tolerating a missing or bad file."""
    try:
        with open(path, encoding="utf-8") as handle:
            raw = json.load(handle)
    except OSError as exc:
        console.print(f"[yellow]Failed to read config file '{path}': {exc.strerror or exc}")
        return {}
    except json.JSONDecodeError as exc:
        console.print(f"[yellow]Invalid JSON in config file '{path}': {exc}")
        return {}

    if not isinstance(raw, dict):
        console.print(f"[yellow]Config file '{path}' must contain a JSON object, ignoring it")
        return {}

    return {field: raw[key] for key, field in FILE_KEYS.items() if key in raw}


def read_environment(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    return {field: environ[name] for name, field in ENV_KEYS.items() if environ.get(name)}


def non_negative_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count '{raw}', expected an integer") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"count must be >= 0, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sbsend",
        description="Send a batch of numbered text messages to a Service Bus queue",
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument(
        "-c",
        "--count",
        dest="count",
        type=non_negative_int,
        metavar="MessageCount",
        help="Number of messages sent to the queue (default: 5)",
    )
    parser.add_argument(
        "-p",
        "--prefix",
        dest="prefix",
        metavar="MessagePrefix",
        help="Message prefix. With prefix 'hoge' a message reads 'hoge msg 1/5 yyyy/mm/dd hh:mm:ss'",
    )
    parser.add_argument("-n", "--name", dest="queue_name", metavar="QueueName", help="Destination queue name")
    parser.add_argument(
        "-s",
        "--connectionstring",
        dest="connection_string",
        metavar="ConnectionString",
        help="Service Bus connection string",
    )
    parser.add_argument(
        "-f",
        "--config",
        dest="config_path",
        metavar="ConfigPath",
        help=f"JSON config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_flags(argv: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """Return only the flags present on the command line; repeated flags keep the last value."""
    return vars(build_parser().parse_args(argv))


def merge_config(*layers: Mapping[str, Any]) -> SenderConfig:
    """Fold override layers over the defaults, later layers winning per value."""
    known = {field.name for field in fields(SenderConfig)}
    config = SenderConfig()
    for layer in layers:
        config = replace(config, **{key: value for key, value in layer.items() if key in known})

    if isinstance(config.count, bool) or not isinstance(config.count, int):
        raise ValueError(f"count must be an integer, got {config.count!r}")
    if config.count < 0:
        raise ValueError(f"count must be >= 0, got {config.count}")
    for name in ("prefix", "queue_name", "connection_string"):
        value = getattr(config, name)
        if value is None:
            config = replace(config, **{name: ""})
        elif not isinstance(value, str):
            raise ValueError(f"{name} must be a string, got {value!r}")
    return config
