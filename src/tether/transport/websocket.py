"""WebSocket transport — one JSON text frame per websocket message."""

from __future__ import annotations

from typing import Any


class WebSocketTransport:
    """Communicates with a server over WebSocket.

    Requires the ``websockets`` package (optional dependency ``ws``).
    """

    def __init__(self, url: str) -> None:
        self._url = url
        self._ws: Any = None  # websockets ClientConnection

    async def connect(self) -> None:
        """Open the WebSocket connection."""
        try:
            import websockets  # type: ignore[import-untyped]
        except ImportError as exc:
            msg = "websockets package required, install with: pip install tether-rpc[ws]"
            raise ImportError(msg) from exc
        self._ws = await websockets.connect(self._url)  # type: ignore[no-untyped-call]

    async def send(self, message: str) -> None:
        """Send one frame over the WebSocket."""
        if self._ws is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        await self._ws.send(message)

    async def receive(self) -> str | None:
        """Receive one frame; ``None`` once the connection is closed."""
        if self._ws is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        from websockets.exceptions import ConnectionClosed  # type: ignore[import-untyped]

        try:
            raw = await self._ws.recv()
        except ConnectionClosed:
            return None
        if isinstance(raw, bytes):
            return raw.decode()
        return str(raw)

    async def close(self) -> None:
        """Close the WebSocket connection."""
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
