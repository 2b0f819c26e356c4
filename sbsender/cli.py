"""Send a batch of generated text messages to an Azure Service Bus queue."""

from __future__ import annotations

from typing import Optional, Sequence

from azure.servicebus import ServiceBusClient
from azure.servicebus.exceptions import ServiceBusError
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import (
    DEFAULT_CONFIG_PATH,
    SenderConfig,
    build_parser,
    merge_config,
    parse_flags,
    read_config_file,
    read_environment,
)
from .dispatcher import DispatchResult, MessageTooLargeError, ServiceBusTransport, dispatch
from .messages import create_messages

console = Console()


def display_abstract() -> None:
    console.rule("[bold]ServiceBus Sender!")
    console.print(f"ServiceBusSender v{__version__} - simple messages sending utility to ServiceBus")
    console.print()
    console.print(build_parser().format_help(), markup=False, highlight=False)


def print_configuration(config: SenderConfig) -> None:
    console.rule()
    for label, value in config.describe():
        console.print(f"[bold]{label}:[/] {escape(value)}", highlight=False, soft_wrap=True)
    console.rule()


def send_messages(config: SenderConfig) -> DispatchResult:
    def report(index: int, size: int) -> None:
        console.print(f"[green]Submitted batch {index} with {size} message(s)")

    with ServiceBusClient.from_connection_string(config.connection_string) as client:
        with client.get_queue_sender(config.queue_name) as sender:
            messages = create_messages(config.count, config.prefix)
            for message in messages:
                console.print(message, markup=False, highlight=False)
            return dispatch(messages, ServiceBusTransport(sender), on_batch=report)


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()

    flags = parse_flags(argv)
    config_path = flags.pop("config_path", DEFAULT_CONFIG_PATH)

    try:
        config = merge_config(read_environment(), read_config_file(config_path), flags)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    if not config.connection_string:
        display_abstract()
        return 0

    if not config.queue_name:
        raise SystemExit("Invalid configuration: a queue name is required (-n/--name or queueName)")

    print_configuration(config)

    try:
        result = send_messages(config)
    except MessageTooLargeError as exc:
        raise SystemExit(f"Failed to send messages: {exc}") from exc
    except ServiceBusError as exc:
        raise SystemExit(f"Failed to send messages to queue '{config.queue_name}': {exc}") from exc
    except ValueError as exc:
        # malformed connection string, rejected while building the client
        raise SystemExit(f"Failed to send messages to queue '{config.queue_name}': {exc}") from exc

    console.print(
        f"Sent a batch of {result.sent} messages to the queue: {config.queue_name} "
        f"({result.batches} batch(es))"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
