from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_house, render_houses, render_ingestion


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Manage monitored houses and push test telemetry.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """Show every house with its bin statuses."""
    state = _get_state(ctx)
    render_houses(state.client.list_houses())


@app.command("add")
def add_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Display name, unique ignoring case."),
) -> None:
    """Provision a new house."""
    state = _get_state(ctx)
    house = state.client.create_house(name)
    typer.secho(f"Created house {house['id']}.", fg=typer.colors.GREEN)
    render_house(house)


@app.command("rename")
def rename_command(
    ctx: typer.Context,
    house_id: str = typer.Argument(..., help="Identifier of the house, e.g. rmh01."),
    name: str = typer.Argument(..., help="New display name."),
) -> None:
    """Change the display name of a house."""
    state = _get_state(ctx)
    house = state.client.rename_house(house_id, name)
    render_house(house)


@app.command("remove")
def remove_command(
    ctx: typer.Context,
    house_id: str = typer.Argument(..., help="Identifier of the house to remove."),
) -> None:
    """Remove a house; later telemetry for it is dropped."""
    state = _get_state(ctx)
    state.client.delete_house(house_id)
    typer.secho(f"Removed house {house_id}.", fg=typer.colors.GREEN)


@app.command("send")
def send_command(
    ctx: typer.Context,
    topic: str = typer.Argument(..., help="Topic such as iot/kompos or iot/sampah."),
    payload: str = typer.Argument(..., help='JSON payload, e.g. {"rumahId": "rmh01", "volume": 40}.'),
) -> None:
    """Push one telemetry message through the ingestion pipeline."""
    state = _get_state(ctx)
    render_ingestion(state.client.send_telemetry(topic, payload))
