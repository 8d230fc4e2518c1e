# Copyright 2025 Fake Handshaker Contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Fake Handshaker CLI
Runs the fake handshaker service and exercises it.
"""

import asyncio
import json

import grpc
import typer
from rich.console import Console
from rich.table import Table

from .config import Settings
from .constants import Ciphersuite, TLSVersion
from .credentials import load_channel_credentials
from .errors import HandshakerError
from .loopback import simulate_handshake
from .models import Identity, SessionResult

app = typer.Typer(
    name="fake-handshaker", help="Fake S2A handshaker for TLS-free end-to-end tests", no_args_is_help=True
)
console = Console()


def _identity(spiffe_id: str | None) -> Identity | None:
    return Identity(spiffe_id=spiffe_id) if spiffe_id else None


def _describe(identity: Identity | None) -> str:
    if identity is None:
        return "-"
    return identity.spiffe_id or identity.hostname or "-"


def _result_table(title: str, results: dict[str, SessionResult]) -> Table:
    table = Table(title=title)
    table.add_column("Role", style="cyan")
    table.add_column("Protocol")
    table.add_column("TLS")
    table.add_column("Ciphersuite")
    table.add_column("Local identity")
    table.add_column("Peer identity")
    for role, result in results.items():
        table.add_row(
            role,
            result.application_protocol,
            TLSVersion(result.state.tls_version).name,
            Ciphersuite(result.state.tls_ciphersuite).name,
            _describe(result.local_identity),
            _describe(result.peer_identity),
        )
    return table


def _emit(title: str, results: dict[str, SessionResult], output: str) -> None:
    if output == "json":
        typer.echo(json.dumps({role: result.model_dump(mode="json") for role, result in results.items()}, indent=2))
    else:
        console.print(_result_table(title, results))


@app.command()
def serve(
    port: int | None = typer.Option(None, "--port", "-p", help="gRPC port (default HANDSHAKER_PORT or 50051)"),
    health_port: int | None = typer.Option(None, "--health-port", help="HTTP health port"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level"),
):
    """Run the fake handshaker service until interrupted"""
    from .service import serve as run_service

    try:
        settings = Settings.from_env(port=port, health_port=health_port, log_level=log_level)
    except HandshakerError as err:
        console.print(f"[red]Invalid configuration:[/red] {err}")
        raise typer.Exit(2) from err
    asyncio.run(run_service(settings))


@app.command()
def probe(
    target: str = typer.Option("localhost:50051", "--target", "-t", help="Handshaker address"),
    role: str = typer.Option("client", "--role", "-r", help="Role to play: client or server"),
    spiffe_id: str | None = typer.Option(None, "--spiffe-id", help="Local SPIFFE identity"),
    peer_spiffe_id: str | None = typer.Option(None, "--peer-spiffe-id", help="Target SPIFFE identity (client role)"),
    ca: str | None = typer.Option(None, "--ca", help="CA bundle; enables TLS to the handshaker"),
    output: str = typer.Option("table", "--output", "-o", help="Output format (table, json)"),
):
    """Drive one handshake against a running service"""
    from .client import probe as run_probe

    if role not in ("client", "server"):
        console.print(f"[red]Unknown role:[/red] {role}")
        raise typer.Exit(2)
    try:
        credentials = load_channel_credentials(ca) if ca else None
        result = asyncio.run(
            run_probe(target, role, _identity(spiffe_id), _identity(peer_spiffe_id), credentials)  # type: ignore
        )
    except (HandshakerError, grpc.RpcError) as err:
        console.print(f"[red]Handshake failed:[/red] {err}")
        raise typer.Exit(1) from err
    _emit(f"Probe against {target}", {role: result}, output)


@app.command()
def simulate(
    client_spiffe_id: str | None = typer.Option(None, "--client-spiffe-id", help="Initiator identity"),
    server_spiffe_id: str | None = typer.Option(None, "--server-spiffe-id", help="Responder identity"),
    output: str = typer.Option("table", "--output", "-o", help="Output format (table, json)"),
):
    """Run an in-process handshake between both roles"""
    try:
        client_result, server_result = simulate_handshake(_identity(client_spiffe_id), _identity(server_spiffe_id))
    except HandshakerError as err:
        console.print(f"[red]Handshake failed:[/red] {err}")
        raise typer.Exit(1) from err
    _emit("Simulated handshake", {"client": client_result, "server": server_result}, output)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
