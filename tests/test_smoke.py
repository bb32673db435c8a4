"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import tether

    assert tether.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from tether.cli import main

    assert callable(main)


def test_top_level_exports() -> None:
    import tether

    assert tether.Client is not None
    assert tether.Server is not None
    assert tether.ProtocolEngine is not None
    assert tether.ToolRegistry is not None
    assert tether.FunctionTool is not None
    assert issubclass(tether.RequestTimeoutError, TimeoutError)
