from __future__ import annotations

from typing import Any, Dict, List, NoReturn

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the house monitor service."""

    def __init__(self, config: CLIConfig, transport: httpx.BaseTransport | None = None) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url, timeout=config.timeout, transport=transport
        )

    def close(self) -> None:
        self._client.close()

    def list_houses(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/houses").json()

    def create_house(self, name: str) -> Dict[str, Any]:
        return self._request("POST", "/houses", json={"name": name}).json()

    def rename_house(self, house_id: str, name: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/houses/{house_id}", json={"name": name}).json()

    def delete_house(self, house_id: str) -> None:
        self._request("DELETE", f"/houses/{house_id}")

    def send_telemetry(self, topic: str, payload: str) -> Dict[str, Any]:
        segments = topic.strip("/").split("/")
        if len(segments) != 2 or not all(segments):
            raise typer.BadParameter(f"Topic {topic!r} must look like <namespace>/<type>.")
        return self._request(
            "POST",
            f"/telemetry/{segments[0]}/{segments[1]}",
            content=payload.encode("utf-8"),
            headers={"content-type": "application/json"},
        ).json()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
