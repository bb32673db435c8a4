"""tether CLI entrypoint."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from tether import __version__


@click.group()
@click.version_option(version=__version__, prog_name="tether")
@click.option("-v", "--verbose", is_flag=True, help="Log protocol traffic to stderr.")
@click.option(
    "--otlp-endpoint",
    envvar="TETHER_OTLP_ENDPOINT",
    default=None,
    help="Export request and tool-call spans to this OTLP/gRPC collector.",
)
def main(verbose: bool, otlp_endpoint: str | None) -> None:
    """tether — talk to JSON-RPC tool servers."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )
    if otlp_endpoint:
        from tether.telemetry import configure_telemetry

        try:
            configure_telemetry(service_name="tether-cli", otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            raise click.ClickException(str(exc)) from exc


# Register subcommands
from tether.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
