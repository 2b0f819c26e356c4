from typing import List

import pytest


class FakeBatch:
    """In-memory batch bounded by the UTF-8 size of its messages."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.used = 0
        self.messages: List[str] = []

    def try_add(self, message: str) -> bool:
        size = len(message.encode("utf-8"))
        if self.used + size > self.capacity:
            return False
        self.used += size
        self.messages.append(message)
        return True


class FakeTransport:
    def __init__(self, capacity: int, fail_on_submit: int = 0) -> None:
        self.capacity = capacity
        self.fail_on_submit = fail_on_submit
        self.opened = 0
        self.submitted: List[List[str]] = []

    def open_batch(self) -> FakeBatch:
        self.opened += 1
        return FakeBatch(self.capacity)

    def submit(self, batch: FakeBatch) -> None:
        if self.fail_on_submit and len(self.submitted) + 1 == self.fail_on_submit:
            raise ConnectionError("service unavailable")
        self.submitted.append(list(batch.messages))

    @property
    def sent(self) -> List[str]:
        return [message for batch in self.submitted for message in batch]


@pytest.fixture
def make_transport():
    return FakeTransport
