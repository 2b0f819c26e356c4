"""Pack messages into size-limited transport batches and submit them."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from azure.servicebus import ServiceBusMessage, ServiceBusMessageBatch, ServiceBusSender
from azure.servicebus.exceptions import MessageSizeExceededError


class SenderError(Exception):
    """Base error for failures while sending messages."""


class MessageTooLargeError(SenderError):
    def __init__(self, position: int, total: int) -> None:
        self.position = position
        self.total = total
        super().__init__(f"message {position} of {total} exceeds capacity")


class Batch(Protocol):
    def try_add(self, message: str) -> bool:
        """Add ``message`` if it fits; leave the batch untouched and return False otherwise."""


class Transport(Protocol):
    def open_batch(self) -> Batch:
        ...

    def submit(self, batch: Batch) -> None:
        ...


@dataclass(frozen=True)
class DispatchResult:
    batches: int
    sent: int


def dispatch(
    messages: Sequence[str],
    transport: Transport,
    on_batch: Optional[Callable[[int, int], None]] = None,
) -> DispatchResult:
    """Greedily fill batches in order and submit each one until nothing is pending.

    A message that does not fit into a freshly opened batch can never be sent, so
    :class:`MessageTooLargeError` is raised with its 1-based position. Batches
    submitted before that point are not rolled back. Errors raised by
    ``transport.submit`` propagate unchanged.
    """
    total = len(messages)
    pending = deque(messages)
    batches = 0
    sent = 0

    while pending:
        batch = transport.open_batch()
        if not batch.try_add(pending[0]):
            raise MessageTooLargeError(sent + 1, total)
        pending.popleft()
        size = 1

        while pending and batch.try_add(pending[0]):
            pending.popleft()
            size += 1

        transport.submit(batch)
        batches += 1
        sent += size
        if on_batch is not None:
            on_batch(batches, size)

    return DispatchResult(batches=batches, sent=sent)


class ServiceBusBatch:
    """Adapter exposing ``try_add`` over a :class:`ServiceBusMessageBatch`."""

    def __init__(self, batch: ServiceBusMessageBatch) -> None:
        self.batch = batch

    def try_add(self, message: str) -> bool:
        try:
            self.batch.add_message(ServiceBusMessage(message))
        except MessageSizeExceededError:
            return False
        return True


class ServiceBusTransport:
    """Transport backed by a queue sender. The caller owns the sender's lifetime."""

    def __init__(self, sender: ServiceBusSender) -> None:
        self.sender = sender

    def open_batch(self) -> ServiceBusBatch:
        return ServiceBusBatch(self.sender.create_message_batch())

    def submit(self, batch: ServiceBusBatch) -> None:
        self.sender.send_messages(batch.batch)
