"""Configuration models — protocol defaults and server references."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from tether.protocol.models import LATEST_PROTOCOL_VERSION


class ProtocolConfig(BaseModel):
    """Settings shared by the client and server facades."""

    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Default seconds to wait for a response; None waits until the connection closes.",
    )
    protocol_version: str = Field(
        default=LATEST_PROTOCOL_VERSION,
        description="Protocol version sent and required during the initialize handshake.",
    )


class ServerRef(BaseModel):
    """Reference to a server reachable over stdio or websocket."""

    name: str
    transport: Literal["stdio", "websocket"] = "stdio"
    command: str | None = None
    url: str | None = None
    env: dict[str, str] = {}
