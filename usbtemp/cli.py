"""Typer CLI entrypoint."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from usbtemp.core.config import load_config, parse_hex_id
from usbtemp.core.device_match import matched_model
from usbtemp.core.errors import UsbtempError
from usbtemp.core.model import SensorReading
from usbtemp.core.service import SensorService

app = typer.Typer(help="Read USB temperature/humidity probes")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_service(
    config_path: Path | None,
    vendor_id: str | None = None,
    product_id: str | None = None,
) -> SensorService:
    config = load_config(config_path)
    if (vendor_id is None) != (product_id is None):
        raise typer.BadParameter("--vendor-id and --product-id must be given together")
    if vendor_id is not None and product_id is not None:
        config = config.with_override(
            parse_hex_id(vendor_id, context="--vendor-id"),
            parse_hex_id(product_id, context="--product-id"),
        )
    return SensorService(config)


def _format_reading(reading: SensorReading) -> str:
    device = reading.device
    where = f"{device.busnum:03d}:{device.devnum:03d} {device.id_string}" if device else "<unknown>"
    if not reading.ok:
        return f"{where} error: {reading.error}"
    values = " ".join(f"{name}={value:.2f}" for name, value in reading.values().items())
    return f"{where} {reading.firmware} {values}"


@app.command("devices")
def list_devices(
    config: Path | None = typer.Option(None, "--config", help="Path to config YAML"),
) -> None:
    """List attached probes that match a known model."""
    try:
        service = _build_service(config)
        devices = service.list_devices()
        if not devices:
            typer.echo("No known USB probes found")
            return

        for device in devices:
            model = matched_model(device, service.config.allowed_models)
            name = model.name if model and model.name else device.product
            nodes = ", ".join(device.nodes) or "<no nodes>"
            typer.echo(f"{device.busnum:03d}:{device.devnum:03d} {device.id_string} {name} [{nodes}]")
    except UsbtempError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("read")
def read_sensors(
    as_json: bool = typer.Option(False, "--json", help="Print readings as JSON"),
    vendor_id: str | None = typer.Option(None, "--vendor-id", help="Hex vendor id overriding the known models"),
    product_id: str | None = typer.Option(None, "--product-id", help="Hex product id overriding the known models"),
    config: Path | None = typer.Option(None, "--config", help="Path to config YAML"),
) -> None:
    """Query every matched probe and print its reading."""
    try:
        service = _build_service(config, vendor_id, product_id)
        readings = service.read_all()
    except UsbtempError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if as_json:
        typer.echo(json.dumps([r.as_dict() for r in readings], indent=2))
        return
    if not readings:
        typer.echo("No known USB probes found")
        return
    for reading in readings:
        typer.echo(_format_reading(reading))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
