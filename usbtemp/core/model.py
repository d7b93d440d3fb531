"""Core data models used across discovery, transports, decoding, and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransportKind(str, Enum):
    HIDRAW = "hidraw"
    SERIAL = "tty"


@dataclass(frozen=True)
class KnownModel:
    vendor_id: int
    product_id: int
    name: str = ""

    @property
    def pair(self) -> tuple[int, int]:
        return self.vendor_id, self.product_id


@dataclass(frozen=True)
class UsbDeviceDescriptor:
    vendor_id: int
    product_id: int
    manufacturer: str
    product: str
    busnum: int
    devnum: int
    path: str
    nodes: tuple[str, ...] = ()

    @property
    def sort_key(self) -> int:
        return self.busnum * 1000 + self.devnum

    @property
    def id_string(self) -> str:
        return f"{self.vendor_id:04x}:{self.product_id:04x}"


@dataclass(frozen=True)
class ProtocolReading:
    kind: TransportKind
    node: str
    firmware: str
    hex_firmware: str
    hex_data: str
    data: bytes = field(default=b"", repr=False)


@dataclass(frozen=True)
class SensorReading:
    """One decoded probe reading, or the error that prevented it.

    A field is ``None`` only when the probe never reported it; a literal
    ``0.0`` is a real measurement.
    """

    device: UsbDeviceDescriptor | None = None
    firmware: str | None = None
    internal_temperature: float | None = None
    internal_humidity: float | None = None
    external_temperature: float | None = None
    external_humidity: float | None = None
    error: str | None = None
    hex_firmware: str | None = None
    hex_data: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def values(self) -> dict[str, float]:
        candidates = {
            "internal_temperature": self.internal_temperature,
            "internal_humidity": self.internal_humidity,
            "external_temperature": self.external_temperature,
            "external_humidity": self.external_humidity,
        }
        return {name: value for name, value in candidates.items() if value is not None}

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.device is not None:
            out.update(
                {
                    "vendor_id": f"{self.device.vendor_id:04x}",
                    "product_id": f"{self.device.product_id:04x}",
                    "manufacturer": self.device.manufacturer,
                    "product": self.device.product,
                    "busnum": self.device.busnum,
                    "devnum": self.device.devnum,
                    "path": self.device.path,
                }
            )
        if self.firmware is not None:
            out["firmware"] = self.firmware
        if self.hex_firmware is not None:
            out["hex_firmware"] = self.hex_firmware
        if self.hex_data is not None:
            out["hex_data"] = self.hex_data
        out.update(self.values())
        if self.error is not None:
            out["error"] = self.error
        return out
