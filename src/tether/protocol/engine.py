"""ProtocolEngine — multiplexes requests, responses and notifications.

One engine owns one :class:`~tether.transport.base.Transport`. Outbound
``request`` calls register a future in the pending table keyed by a fresh
id; the receive loop (:meth:`ProtocolEngine.listen`) resolves those futures
as responses arrive, and dispatches inbound requests and notifications to
registered handlers.

Every pending future reaches exactly one terminal state: a response, a
timeout, a cancellation of the awaiting task, or connection closure.
Whichever happens first removes the table entry; the others find it gone.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from tether.errors import (
    ConnectionClosedError,
    ErrorCode,
    MethodNotFoundError,
    ProtocolError,
    RequestTimeoutError,
    RpcError,
    TransportError,
)
from tether.protocol.codec import decode_message, encode_message, to_jsonable
from tether.protocol.models import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    Params,
    RequestId,
)
from tether.telemetry import ATTR_RPC_ERROR_CODE, ATTR_RPC_ID, ATTR_RPC_METHOD, get_tracer

if TYPE_CHECKING:
    from tether.transport.base import Transport

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

# A handler receives the request's params and returns a JSON-compatible
# value (or a pydantic model), either directly or as an awaitable.
Handler = Callable[[Any], Any]
NotificationHandler = Callable[[Any], Any]


class RequestOptions(BaseModel):
    """Per-call options for :meth:`ProtocolEngine.request`."""

    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the response; None falls back to the engine default.",
    )


def error_object_from(exc: BaseException) -> JsonRpcError:
    """Build the error object sent back when a handler fails."""
    if isinstance(exc, RpcError):
        return JsonRpcError(code=int(exc.code), message=exc.message, data=to_jsonable(exc.data))
    return JsonRpcError(
        code=int(ErrorCode.INTERNAL_ERROR),
        message=str(exc) or type(exc).__name__,
    )


class ProtocolEngine:
    """JSON-RPC endpoint over a single transport.

    Usage::

        engine = ProtocolEngine(transport)
        engine.set_request_handler("echo", lambda params: params)
        listener = asyncio.create_task(engine.listen())

        response = await engine.request("ping", options=RequestOptions(timeout=5))
        await engine.notify("notifications/progress", {"value": 0.5})
    """

    def __init__(self, transport: Transport, *, request_timeout: float | None = None) -> None:
        self._transport = transport
        self._request_timeout = request_timeout
        self._next_id = 1
        self._pending: dict[RequestId, asyncio.Future[JsonRpcResponse]] = {}
        self._handlers: dict[str, Handler] = {}
        self._notification_handlers: dict[str, NotificationHandler] = {}
        self._inflight: set[asyncio.Task[None]] = set()
        self._send_lock = asyncio.Lock()
        self._closed = False

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        """Number of locally issued requests still awaiting a response."""
        return len(self._pending)

    def set_request_handler(self, method: str, handler: Handler) -> None:
        """Register *handler* for inbound requests named *method*."""
        self._handlers[method] = handler

    def set_notification_handler(self, method: str, handler: NotificationHandler) -> None:
        """Register *handler* for inbound notifications named *method*."""
        self._notification_handlers[method] = handler

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        params: Params | None = None,
        options: RequestOptions | None = None,
    ) -> JsonRpcResponse:
        """Send a request and wait for its response.

        The returned response may carry either a result or an error object;
        local failures are raised instead.

        Raises
        ------
        ConnectionClosedError
            If the engine is closed, or closes before the response arrives.
        TransportError
            If the request could not be sent.
        RequestTimeoutError
            If no response arrived within the timeout.
        """
        if self._closed:
            msg = f"cannot send '{method}'"
            raise ConnectionClosedError(msg)

        timeout = self._request_timeout
        if options is not None and options.timeout is not None:
            timeout = options.timeout

        request_id, future = self._register_pending()
        with _tracer.start_as_current_span("tether.request") as span:
            span.set_attribute(ATTR_RPC_METHOD, method)
            span.set_attribute(ATTR_RPC_ID, str(request_id))
            try:
                frame = encode_message(JsonRpcRequest(id=request_id, method=method, params=params))
                await self._send_frame(frame)
                if timeout is None:
                    response = await future
                else:
                    response = await asyncio.wait_for(future, timeout)
            except asyncio.TimeoutError:
                logger.debug("Request %r (%s) timed out after %ss", request_id, method, timeout)
                raise RequestTimeoutError(method, timeout) from None  # type: ignore[arg-type]
            finally:
                self._pending.pop(request_id, None)

            if response.error is not None:
                span.set_attribute(ATTR_RPC_ERROR_CODE, response.error.code)
            return response

    async def notify(self, method: str, params: Params | None = None) -> None:
        """Send a notification; no response is expected."""
        if self._closed:
            msg = f"cannot send '{method}'"
            raise ConnectionClosedError(msg)
        await self._send_frame(encode_message(JsonRpcNotification(method=method, params=params)))

    def _register_pending(self) -> tuple[int, asyncio.Future[JsonRpcResponse]]:
        request_id = self._next_id
        self._next_id += 1
        future: asyncio.Future[JsonRpcResponse] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        return request_id, future

    async def _send_frame(self, frame: str) -> None:
        try:
            async with self._send_lock:
                await self._transport.send(frame)
        except Exception as exc:
            msg = f"Failed to send message: {exc}"
            raise TransportError(msg) from exc
        logger.debug("-> %s", frame)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def listen(self) -> None:
        """Run the receive loop until the transport closes.

        Returns normally on orderly closure. A failing ``receive`` ends the
        loop with :class:`TransportError`. Either way, every request still
        pending fails with :class:`ConnectionClosedError`.
        """
        reason = "transport closed"
        try:
            while True:
                try:
                    frame = await self._transport.receive()
                except Exception as exc:
                    reason = f"transport failed: {exc}"
                    msg = f"Failed to receive message: {exc}"
                    raise TransportError(msg) from exc
                if frame is None:
                    logger.debug("Transport reported end of stream")
                    return
                await self._handle_frame(frame)
        finally:
            self._shutdown(reason)

    async def _handle_frame(self, frame: str) -> None:
        logger.debug("<- %s", frame)
        try:
            message = decode_message(frame)
        except ProtocolError as exc:
            logger.warning("Dropping malformed message: %s", exc)
            if exc.request_id is not None:
                error = JsonRpcError(code=int(exc.code), message=str(exc))
                frame = encode_message(JsonRpcResponse.failure(exc.request_id, error))
                await self._reply(exc.request_id, frame)
            return

        if isinstance(message, JsonRpcResponse):
            self._resolve(message)
        elif isinstance(message, JsonRpcRequest):
            # Each request runs in its own task so a slow handler does not
            # hold up responses to later messages.
            task = asyncio.create_task(self._handle_request(message))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
        else:
            await self._handle_notification(message)

    def _resolve(self, response: JsonRpcResponse) -> None:
        future = self._pending.pop(response.id, None) if response.id is not None else None
        if future is None:
            logger.debug("Discarding response with unknown id %r", response.id)
            return
        if not future.done():
            future.set_result(response)

    async def _handle_request(self, request: JsonRpcRequest) -> None:
        handler = self._handlers.get(request.method)
        try:
            if handler is None:
                raise MethodNotFoundError(request.method)
            result = handler(request.params)
            if inspect.isawaitable(result):
                result = await result
            frame = encode_message(JsonRpcResponse.success(request.id, to_jsonable(result)))
        except Exception as exc:
            if not isinstance(exc, RpcError):
                logger.warning("Handler for '%s' failed", request.method, exc_info=True)
            frame = self._failure_frame(request.id, exc)

        await self._reply(request.id, frame)

    def _failure_frame(self, request_id: RequestId, exc: Exception) -> str:
        try:
            return encode_message(JsonRpcResponse.failure(request_id, error_object_from(exc)))
        except (TypeError, ValueError):
            logger.warning("Error data for request %r is not JSON-encodable; dropping it", request_id)
            error = JsonRpcError(code=int(ErrorCode.INTERNAL_ERROR), message=str(exc) or type(exc).__name__)
            return encode_message(JsonRpcResponse.failure(request_id, error))

    async def _reply(self, request_id: RequestId, frame: str) -> None:
        try:
            await self._send_frame(frame)
        except TransportError as exc:
            logger.warning("Could not reply to request %r: %s", request_id, exc)

    async def _handle_notification(self, notification: JsonRpcNotification) -> None:
        handler = self._notification_handlers.get(notification.method)
        if handler is None:
            logger.debug("Ignoring notification '%s'", notification.method)
            return
        try:
            result = handler(notification.params)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.warning("Notification handler for '%s' failed", notification.method, exc_info=True)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Fail pending requests and close the transport."""
        self._shutdown("engine closed")
        await self._transport.close()

    def _shutdown(self, reason: str) -> None:
        self._closed = True
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(ConnectionClosedError(reason))
        if pending:
            logger.debug("Failed %d pending request(s): %s", len(pending), reason)
        for task in list(self._inflight):
            task.cancel()
