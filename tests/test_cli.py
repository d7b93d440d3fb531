from __future__ import annotations

import json

from typer.testing import CliRunner

from usbtemp import cli
from usbtemp.core.config import AgentConfig
from usbtemp.core.errors import DeviceDiscoveryError
from usbtemp.core.model import SensorReading, UsbDeviceDescriptor

DEVICE = UsbDeviceDescriptor(
    vendor_id=0x413D,
    product_id=0x2107,
    manufacturer="PCsensor",
    product="TEMPerX",
    busnum=1,
    devnum=2,
    path="/sys/bus/usb/devices/1-1",
    nodes=("hidraw0", "hidraw1"),
)


class FakeService:
    def __init__(self, config: AgentConfig) -> None:
        self.config = config

    def list_devices(self):
        return [DEVICE]

    def read_all(self):
        return [
            SensorReading(
                device=DEVICE,
                firmware="TEMPerX_V3.1",
                internal_temperature=40.0,
                internal_humidity=30.0,
            ),
            SensorReading(device=DEVICE, error="no hid/tty devices available"),
        ]


class BrokenService(FakeService):
    def read_all(self):
        raise DeviceDiscoveryError("Cannot enumerate USB devices under /sys/bus/usb/devices")


def test_devices_lists_matched_probes(monkeypatch) -> None:
    monkeypatch.setattr(cli, "SensorService", FakeService)
    monkeypatch.setattr(cli, "load_config", lambda path: AgentConfig())
    runner = CliRunner()

    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 0
    assert "001:002 413d:2107 TEMPerX/TEMPerHUM (HID) [hidraw0, hidraw1]" in result.stdout


def test_read_prints_values_and_errors(monkeypatch) -> None:
    monkeypatch.setattr(cli, "SensorService", FakeService)
    monkeypatch.setattr(cli, "load_config", lambda path: AgentConfig())
    runner = CliRunner()

    result = runner.invoke(cli.app, ["read"])
    assert result.exit_code == 0
    assert "TEMPerX_V3.1 internal_temperature=40.00 internal_humidity=30.00" in result.stdout
    assert "error: no hid/tty devices available" in result.stdout


def test_read_json(monkeypatch) -> None:
    monkeypatch.setattr(cli, "SensorService", FakeService)
    monkeypatch.setattr(cli, "load_config", lambda path: AgentConfig())
    runner = CliRunner()

    result = runner.invoke(cli.app, ["read", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload[0]["internal_humidity"] == 30.0
    assert payload[1]["error"] == "no hid/tty devices available"


def test_read_override_pair(monkeypatch) -> None:
    seen: list[AgentConfig] = []

    def build(config: AgentConfig) -> FakeService:
        seen.append(config)
        return FakeService(config)

    monkeypatch.setattr(cli, "SensorService", build)
    monkeypatch.setattr(cli, "load_config", lambda path: AgentConfig())
    runner = CliRunner()

    result = runner.invoke(cli.app, ["read", "--vendor-id", "16c0", "--product-id", "0x0480"])
    assert result.exit_code == 0
    assert seen[0].override == (0x16C0, 0x0480)


def test_read_reports_errors(monkeypatch) -> None:
    monkeypatch.setattr(cli, "SensorService", BrokenService)
    monkeypatch.setattr(cli, "load_config", lambda path: AgentConfig())
    runner = CliRunner()

    result = runner.invoke(cli.app, ["read"])
    assert result.exit_code == 1
    assert "Error: Cannot enumerate USB devices" in result.output
