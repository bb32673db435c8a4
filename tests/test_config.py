"""Tests for configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tether.config import ProtocolConfig, ServerRef
from tether.protocol.models import LATEST_PROTOCOL_VERSION


class TestProtocolConfig:
    def test_defaults(self) -> None:
        config = ProtocolConfig()
        assert config.request_timeout is None
        assert config.protocol_version == LATEST_PROTOCOL_VERSION

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_timeout_must_be_positive(self, timeout: float) -> None:
        with pytest.raises(ValidationError):
            ProtocolConfig(request_timeout=timeout)


class TestServerRef:
    def test_stdio_default(self) -> None:
        ref = ServerRef(name="fs", command="python server.py")
        assert ref.transport == "stdio"
        assert ref.env == {}

    def test_rejects_unknown_transport(self) -> None:
        with pytest.raises(ValidationError):
            ServerRef(name="x", transport="carrier-pigeon")  # type: ignore[arg-type]

    def test_env_not_shared_between_instances(self) -> None:
        first = ServerRef(name="a", command="a")
        first.env["KEY"] = "1"
        assert ServerRef(name="b", command="b").env == {}
