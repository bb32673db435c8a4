"""E2E tests: a real Client talking to a real Server."""

from __future__ import annotations

import asyncio
import shlex
import sys
from pathlib import Path
from typing import Any

import pytest

from tether.client import Client
from tether.config import ProtocolConfig
from tether.errors import ProtocolVersionError, RpcError
from tether.protocol.engine import ProtocolEngine, RequestOptions
from tether.protocol.models import Implementation
from tether.server import Server
from tether.tools import ToolRegistry
from tether.transport import StdioTransport, memory_transport_pair

_ECHO_SERVER = Path(__file__).resolve().parents[2] / "examples" / "echo_server.py"
_CLIENT_INFO = Implementation(name="e2e", version="1.0")


def _registry() -> ToolRegistry:
    tools = ToolRegistry()

    @tools.tool("greet", description="Greet someone")
    def greet(arguments: dict[str, Any]) -> str:
        return f"Hello, {arguments['name']}!"

    @tools.tool("fail")
    def fail(arguments: dict[str, Any]) -> str:
        raise RuntimeError("tool exploded")

    return tools


async def _start_server(server_config: ProtocolConfig | None = None) -> tuple[Client, Server, asyncio.Task[None]]:
    client_end, server_end = memory_transport_pair()
    server = Server(server_end, tools=_registry(), config=server_config)
    listener = asyncio.create_task(server.listen())
    return Client(client_end), server, listener


class TestInMemoryRoundTrip:
    async def test_echo_request(self) -> None:
        client, server, listener = await _start_server()
        server.protocol.set_request_handler("echo", lambda params: params)

        async with client:
            assert await client.request("echo", {"x": 1}) == {"x": 1}

        await asyncio.wait_for(listener, 1)

    async def test_handshake_and_tools(self) -> None:
        client, server, listener = await _start_server()

        async with client:
            init = await client.initialize(_CLIENT_INFO)
            assert init.server_info.name == "tether"
            assert init.capabilities.tools == {}

            await client.ping()
            assert server.initialized
            assert server.client_info == _CLIENT_INFO

            tools = await client.list_tools()
            assert {t.name for t in tools} == {"greet", "fail"}

            greeting = await client.call_tool("greet", {"name": "Ada"})
            assert greeting.text() == "Hello, Ada!"
            assert not greeting.is_error

            failure = await client.call_tool("fail", {})
            assert failure.is_error
            assert "tool exploded" in failure.text()

            missing = await client.call_tool("missing", {})
            assert missing.is_error
            assert "not found" in missing.text()

        await asyncio.wait_for(listener, 1)

    async def test_version_mismatch_skips_initialized(self) -> None:
        client, server, listener = await _start_server(ProtocolConfig(protocol_version="1999-01-01"))

        async with client:
            with pytest.raises(ProtocolVersionError):
                await client.initialize(_CLIENT_INFO)
            await client.ping()
            assert not server.initialized

        await asyncio.wait_for(listener, 1)

    async def test_concurrent_requests_with_slow_handler(self) -> None:
        client, server, listener = await _start_server()
        release = asyncio.Event()

        async def slow(_params: Any) -> str:
            await release.wait()
            return "slow"

        server.protocol.set_request_handler("slow", slow)
        server.protocol.set_request_handler("fast", lambda params: params["n"])

        async with client:
            slow_task = asyncio.create_task(client.request("slow"))
            fast = await asyncio.gather(*(client.request("fast", {"n": n}) for n in range(5)))
            assert fast == [0, 1, 2, 3, 4]
            assert not slow_task.done()

            release.set()
            assert await slow_task == "slow"

        await asyncio.wait_for(listener, 1)

    async def test_remote_errors_surface_as_rpc_error(self) -> None:
        client, _server, listener = await _start_server()

        async with client:
            with pytest.raises(RpcError) as exc_info:
                await client.request("does/not/exist")
            assert exc_info.value.code == -32601

            # The connection survives the error.
            await client.ping(RequestOptions(timeout=1))

        await asyncio.wait_for(listener, 1)


@pytest.mark.skipif(not _ECHO_SERVER.exists(), reason="example server not present")
class TestStdioSubprocess:
    async def test_round_trip_over_stdio(self) -> None:
        command = f"{shlex.quote(sys.executable)} {shlex.quote(str(_ECHO_SERVER))}"

        async with Client(StdioTransport(command), config=ProtocolConfig(request_timeout=10)) as client:
            init = await client.initialize(_CLIENT_INFO)
            assert init.server_info.name == "echo-server"

            names = [t.name for t in await client.list_tools()]
            assert names == ["echo", "add"]

            result = await client.call_tool("add", {"a": 2, "b": 3})
            assert result.text() == "5"

            echoed = await client.call_tool("echo", {"x": 1})
            assert echoed.text() == '{"x": 1}'

    async def test_frames_larger_than_default_stream_limit(self) -> None:
        command = f"{shlex.quote(sys.executable)} {shlex.quote(str(_ECHO_SERVER))}"
        payload = "x" * 200_000

        async with Client(StdioTransport(command), config=ProtocolConfig(request_timeout=10)) as client:
            await client.initialize(_CLIENT_INFO)
            echoed = await client.call_tool("echo", {"s": payload})
            assert echoed.text() == f'{{"s": "{payload}"}}'

            # The connection is still usable afterwards.
            await client.ping()


_BAD_BYTES_CHILD = (
    "import sys; "
    "sys.stdout.buffer.write(b'\\xff\\xfe\\n'); "
    "sys.stdout.buffer.write(b'{\"jsonrpc\": \"2.0\", \"method\": \"hello\", \"params\": {\"n\": 1}}\\n'); "
    "sys.stdout.buffer.flush(); "
    "sys.stdin.read()"
)


class TestStdioUndecodableFrame:
    async def test_invalid_utf8_line_is_skipped(self) -> None:
        command = f"{shlex.quote(sys.executable)} -c {shlex.quote(_BAD_BYTES_CHILD)}"
        transport = StdioTransport(command)
        await transport.connect()
        engine = ProtocolEngine(transport)

        received: asyncio.Queue[Any] = asyncio.Queue()
        engine.set_notification_handler("hello", received.put_nowait)
        listener = asyncio.create_task(engine.listen())

        assert await asyncio.wait_for(received.get(), 5) == {"n": 1}
        assert not engine.closed

        await engine.close()
        await asyncio.wait_for(asyncio.gather(listener, return_exceptions=True), 5)
