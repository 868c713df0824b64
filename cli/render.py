from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

_STATUS_COLORS = {
    "Normal": typer.colors.GREEN,
    "NeedsCheck": typer.colors.YELLOW,
    "Full": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _status(value: Any) -> str:
    return typer.style(str(value), fg=_STATUS_COLORS.get(str(value)))


def render_house(house: Dict[str, Any]) -> None:
    compost = house.get("compost_data") or {}
    trash = house.get("trash_data") or {}
    echo_heading(f"{house.get('name')} ({house.get('id')})")
    typer.echo(
        f"  compost: {_status(house.get('compost_status'))} "
        f"temperature={compost.get('temperature')} volume={compost.get('volume')}"
    )
    typer.echo(f"  trash:   {_status(house.get('trash_status'))} volume={trash.get('volume')}")


def render_houses(houses: Iterable[Dict[str, Any]]) -> None:
    rendered = False
    for house in houses:
        render_house(house)
        rendered = True
    if not rendered:
        typer.echo("No houses provisioned.")


def render_ingestion(payload: Dict[str, Any]) -> None:
    echo_heading("Ingestion Result")
    echo_key_values(
        [
            ("topic", payload.get("topic")),
            ("outcome", payload.get("outcome")),
            ("house_id", payload.get("house_id")),
            ("status", payload.get("status")),
        ]
    )
    if payload.get("reason"):
        typer.echo(f"reason: {payload['reason']}")
