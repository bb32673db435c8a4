"""Message codec — converts between transport frames and envelope models.

A frame is one JSON text. Decoding classifies the envelope once, at the
boundary, so the engine only ever sees a validated :data:`Message`.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ValidationError

from tether.errors import ErrorCode, ProtocolError
from tether.protocol.models import (
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    Message,
)


def decode_message(frame: str | bytes | dict[str, Any]) -> Message:
    """Parse one frame into a request, response or notification.

    Raises
    ------
    ProtocolError
        If the frame is not JSON, not an object, or not a valid envelope.
    """
    if isinstance(frame, dict):
        data: Any = frame
    else:
        try:
            data = json.loads(frame)
        except (TypeError, ValueError) as exc:
            msg = f"Frame is not valid JSON: {exc}"
            raise ProtocolError(msg, code=ErrorCode.PARSE_ERROR) from exc

    if not isinstance(data, dict):
        msg = f"Expected a JSON object, got {type(data).__name__}"
        raise ProtocolError(msg)

    try:
        if "method" in data:
            if data.get("id") is not None:
                return JsonRpcRequest.model_validate(data)
            return JsonRpcNotification.model_validate(data)
        if "id" in data:
            return JsonRpcResponse.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid JSON-RPC envelope: {exc.errors(include_url=False)}"
        request_id = _request_id_of(data) if "method" in data else None
        raise ProtocolError(msg, request_id=request_id) from exc

    msg = "Message has neither 'method' nor 'id'"
    raise ProtocolError(msg)


def _request_id_of(data: dict[str, Any]) -> int | str | None:
    request_id = data.get("id")
    # bool is an int subclass but never a valid id.
    if isinstance(request_id, (int, str)) and not isinstance(request_id, bool):
        return request_id
    return None


def message_to_dict(message: Message) -> dict[str, Any]:
    """Convert an envelope to its wire dict."""
    if isinstance(message, JsonRpcResponse):
        data: dict[str, Any] = {"jsonrpc": message.jsonrpc, "id": message.id}
        if message.error is not None:
            data["error"] = message.error.model_dump(mode="json", exclude_none=True)
        else:
            data["result"] = to_jsonable(message.result)
        return data
    data = message.model_dump(mode="json", exclude_none=True, exclude={"params"})
    if message.params is not None:
        data["params"] = to_jsonable(message.params)
    return data


def encode_message(message: Message) -> str:
    """Serialize an envelope into one frame."""
    return json.dumps(message_to_dict(message), separators=(",", ":"))


def to_jsonable(value: Any) -> Any:
    """Dump pydantic models (by wire alias) found in a handler result."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value
