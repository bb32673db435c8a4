"""Transport protocol — the duplex frame channel the engine runs over."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """Abstract ordered duplex channel of JSON text frames.

    ``receive`` returns ``None`` once the peer has closed the channel.
    Failures are raised as ordinary exceptions; the engine wraps them in
    :class:`~tether.errors.TransportError`.
    """

    async def connect(self) -> None: ...
    async def send(self, message: str) -> None: ...
    async def receive(self) -> str | None: ...
    async def close(self) -> None: ...
