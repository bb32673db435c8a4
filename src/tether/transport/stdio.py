"""Stdio transports — newline-delimited JSON over pipes.

:class:`StdioTransport` launches a server subprocess and talks to it over
its stdin/stdout. :class:`ServerStdioTransport` is the other end: a server
process reading its own stdin and writing its own stdout.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from typing import IO

logger = logging.getLogger(__name__)

# Upper bound for a single frame. asyncio's default of 64 KiB is too small
# for large tool listings or results.
STREAM_LIMIT = 16 * 1024 * 1024


def _decode_line(line: bytes | str) -> str | None:
    """Strip one line; ``None`` for blank lines and undecodable bytes."""
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("Dropping frame that is not valid UTF-8: %s", exc)
            return None
    return line.strip() or None


class StdioTransport:
    """Communicates with a server subprocess via its stdin/stdout.

    The child's stderr is inherited so that its logs stay visible and can
    never fill an unread pipe.
    """

    def __init__(
        self,
        command: str,
        env: dict[str, str] | None = None,
        *,
        limit: int = STREAM_LIMIT,
    ) -> None:
        self._command = command
        self._env = env
        self._limit = limit
        self._process: asyncio.subprocess.Process | None = None

    async def connect(self) -> None:
        """Launch the subprocess."""
        parts = shlex.split(self._command)
        logger.debug("Launching stdio server: %s", parts)
        self._process = await asyncio.create_subprocess_exec(
            *parts,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            env=self._env,
            limit=self._limit,
        )

    async def send(self, message: str) -> None:
        """Write one line to the child's stdin."""
        if self._process is None or self._process.stdin is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        self._process.stdin.write((message + "\n").encode())
        await self._process.stdin.drain()

    async def receive(self) -> str | None:
        """Read one usable line from the child's stdout; ``None`` at EOF."""
        if self._process is None or self._process.stdout is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        while True:
            line = await self._process.stdout.readline()
            if not line:
                return None
            text = _decode_line(line)
            if text is not None:
                return text

    async def close(self) -> None:
        """Terminate the subprocess."""
        if self._process is not None:
            if self._process.stdin:
                self._process.stdin.close()
            if self._process.returncode is None:
                self._process.terminate()
            await self._process.wait()
            self._process = None


class ServerStdioTransport:
    """Serves over the current process's stdin/stdout.

    Blocking reads and writes run in worker threads so the event loop stays
    free. By default stdin is read as bytes so one undecodable line is
    dropped without losing the lines after it. Anything other than protocol
    frames must go to stderr.
    """

    def __init__(self, stdin: IO[bytes] | IO[str] | None = None, stdout: IO[str] | None = None) -> None:
        self._stdin = stdin or sys.stdin.buffer
        self._stdout = stdout or sys.stdout
        self._closed = False

    async def connect(self) -> None:
        """Nothing to open; the streams already exist."""

    async def send(self, message: str) -> None:
        if self._closed:
            msg = "Transport closed"
            raise RuntimeError(msg)
        await asyncio.to_thread(self._write_line, message)

    def _write_line(self, message: str) -> None:
        self._stdout.write(message + "\n")
        self._stdout.flush()

    async def receive(self) -> str | None:
        """Read lines until a usable one is found; ``None`` at EOF."""
        while not self._closed:
            line = await asyncio.to_thread(self._stdin.readline)
            if not line:
                return None
            text = _decode_line(line)
            if text is not None:
                return text
        return None

    async def close(self) -> None:
        self._closed = True
