"""In-memory transport — two connected ends inside one event loop."""

from __future__ import annotations

import asyncio

_EOF = None


class MemoryTransport:
    """One end of an in-process duplex channel.

    Build connected ends with :func:`memory_transport_pair`. Closing either
    end delivers end-of-stream to both, so both receive loops finish.
    """

    def __init__(self, inbox: asyncio.Queue[str | None], outbox: asyncio.Queue[str | None]) -> None:
        self._inbox = inbox
        self._outbox = outbox
        self._peer: MemoryTransport | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> None:
        """Nothing to open; the queues already exist."""

    async def send(self, message: str) -> None:
        if self._closed:
            msg = "Transport closed"
            raise RuntimeError(msg)
        await self._outbox.put(message)

    async def receive(self) -> str | None:
        if self._closed and self._inbox.empty():
            return _EOF
        return await self._inbox.get()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._inbox.put(_EOF)
        if self._peer is not None and not self._peer._closed:
            self._peer._closed = True
            await self._outbox.put(_EOF)


def memory_transport_pair() -> tuple[MemoryTransport, MemoryTransport]:
    """Return two transports wired to each other."""
    a_to_b: asyncio.Queue[str | None] = asyncio.Queue()
    b_to_a: asyncio.Queue[str | None] = asyncio.Queue()
    left = MemoryTransport(inbox=b_to_a, outbox=a_to_b)
    right = MemoryTransport(inbox=a_to_b, outbox=b_to_a)
    left._peer = right
    right._peer = left
    return left, right
