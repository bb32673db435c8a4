"""Tests for the stdio transports with mocked pipes and streams."""

import io
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tether.transport import ServerStdioTransport, StdioTransport, Transport
from tether.transport.stdio import STREAM_LIMIT


class TestTransportProtocol:
    def test_stdio_satisfies_protocol(self) -> None:
        assert isinstance(StdioTransport(command="echo test"), Transport)

    def test_server_stdio_satisfies_protocol(self) -> None:
        assert isinstance(ServerStdioTransport(io.StringIO(), io.StringIO()), Transport)


class TestStdioTransport:
    async def test_connect_launches_subprocess(self) -> None:
        mock_proc = AsyncMock()
        with patch("asyncio.create_subprocess_exec", return_value=mock_proc) as mock_exec:
            transport = StdioTransport(command="python -m server --flag")
            await transport.connect()

        args = mock_exec.call_args
        assert args.args == ("python", "-m", "server", "--flag")
        assert "stderr" not in args.kwargs
        assert args.kwargs["limit"] == STREAM_LIMIT

    async def test_connect_with_env(self) -> None:
        env = {"API_KEY": "secret"}
        with patch("asyncio.create_subprocess_exec", return_value=AsyncMock()) as mock_exec:
            transport = StdioTransport(command="tool serve", env=env)
            await transport.connect()
        assert mock_exec.call_args.kwargs["env"] == env

    async def test_send_writes_line(self) -> None:
        mock_stdin = MagicMock()
        mock_stdin.drain = AsyncMock()
        mock_proc = MagicMock()
        mock_proc.stdin = mock_stdin

        transport = StdioTransport(command="echo test")
        transport._process = mock_proc

        await transport.send('{"id":1}')
        mock_stdin.write.assert_called_once_with(b'{"id":1}\n')
        mock_stdin.drain.assert_awaited_once()

    async def test_receive_skips_blank_lines(self) -> None:
        mock_stdout = MagicMock()
        mock_stdout.readline = AsyncMock(side_effect=[b"\n", b'{"id":1}\n'])
        mock_proc = MagicMock()
        mock_proc.stdout = mock_stdout

        transport = StdioTransport(command="echo test")
        transport._process = mock_proc

        assert await transport.receive() == '{"id":1}'

    async def test_receive_drops_invalid_utf8(self) -> None:
        mock_stdout = MagicMock()
        mock_stdout.readline = AsyncMock(side_effect=[b"\xff\xfe\n", b'{"id":2}\n'])
        mock_proc = MagicMock()
        mock_proc.stdout = mock_stdout

        transport = StdioTransport(command="echo test")
        transport._process = mock_proc

        assert await transport.receive() == '{"id":2}'

    async def test_receive_eof_returns_none(self) -> None:
        mock_stdout = MagicMock()
        mock_stdout.readline = AsyncMock(return_value=b"")
        mock_proc = MagicMock()
        mock_proc.stdout = mock_stdout

        transport = StdioTransport(command="echo test")
        transport._process = mock_proc

        assert await transport.receive() is None

    async def test_send_without_connect_raises(self) -> None:
        transport = StdioTransport(command="echo test")
        with pytest.raises(RuntimeError, match="not connected"):
            await transport.send("{}")

    async def test_receive_without_connect_raises(self) -> None:
        transport = StdioTransport(command="echo test")
        with pytest.raises(RuntimeError, match="not connected"):
            await transport.receive()

    async def test_close_terminates_running_process(self) -> None:
        mock_proc = MagicMock()
        mock_proc.returncode = None
        mock_proc.wait = AsyncMock()

        transport = StdioTransport(command="echo test")
        transport._process = mock_proc

        await transport.close()
        mock_proc.stdin.close.assert_called_once()
        mock_proc.terminate.assert_called_once()
        assert transport._process is None

    async def test_close_skips_terminate_after_exit(self) -> None:
        mock_proc = MagicMock()
        mock_proc.returncode = 0
        mock_proc.wait = AsyncMock()

        transport = StdioTransport(command="echo test")
        transport._process = mock_proc

        await transport.close()
        mock_proc.terminate.assert_not_called()


class TestServerStdioTransport:
    async def test_reads_lines_until_eof(self) -> None:
        stdin = io.StringIO('{"id":1}\n\n   \n{"id":2}\n')
        transport = ServerStdioTransport(stdin=stdin, stdout=io.StringIO())

        assert await transport.receive() == '{"id":1}'
        assert await transport.receive() == '{"id":2}'
        assert await transport.receive() is None

    async def test_send_writes_line(self) -> None:
        stdout = io.StringIO()
        transport = ServerStdioTransport(stdin=io.StringIO(), stdout=stdout)

        await transport.send('{"result":1}')
        assert stdout.getvalue() == '{"result":1}\n'

    async def test_closed_transport(self) -> None:
        transport = ServerStdioTransport(stdin=io.StringIO('{"id":1}\n'), stdout=io.StringIO())
        await transport.close()

        assert await transport.receive() is None
        with pytest.raises(RuntimeError, match="closed"):
            await transport.send("{}")

    async def test_binary_stdin_drops_invalid_utf8(self) -> None:
        stdin = io.BytesIO(b'\xff\xfe\n{"id":1}\n')
        transport = ServerStdioTransport(stdin=stdin, stdout=io.StringIO())

        assert await transport.receive() == '{"id":1}'
        assert await transport.receive() is None

    async def test_send_runs_in_worker_thread(self) -> None:
        stdout = io.StringIO()
        transport = ServerStdioTransport(stdin=io.StringIO(), stdout=stdout)

        with patch("tether.transport.stdio.asyncio.to_thread", new=AsyncMock()) as to_thread:
            await transport.send("{}")

        to_thread.assert_awaited_once_with(transport._write_line, "{}")
        assert stdout.getvalue() == ""
