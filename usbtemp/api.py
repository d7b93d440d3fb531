"""Stable public API for building tooling on top of usbtemp.

This module is the supported integration surface for third-party callers
such as threshold checkers and report formatters. Avoid importing from
internal modules unless intentionally depending on non-stable internals.
"""

from __future__ import annotations

from pathlib import Path

from usbtemp.core.config import AgentConfig, HidSettings, SerialSettings, load_config
from usbtemp.core.errors import (
    ConfigLoadError,
    ConfigValidationError,
    DeviceDiscoveryError,
    NoFirmwareError,
    TransportError,
    TransportOpenError,
    TransportSendError,
    TransportTimeoutError,
    UnsupportedNodeError,
    UsbtempError,
)
from usbtemp.core.model import KnownModel, ProtocolReading, SensorReading, TransportKind, UsbDeviceDescriptor
from usbtemp.core.service import SensorService
from usbtemp.transports.base import Transport

__all__ = [
    "UsbtempError",
    "ConfigLoadError",
    "ConfigValidationError",
    "DeviceDiscoveryError",
    "NoFirmwareError",
    "TransportError",
    "TransportOpenError",
    "TransportSendError",
    "TransportTimeoutError",
    "UnsupportedNodeError",
    "AgentConfig",
    "HidSettings",
    "SerialSettings",
    "KnownModel",
    "ProtocolReading",
    "SensorReading",
    "TransportKind",
    "UsbDeviceDescriptor",
    "Transport",
    "Client",
]


class Client:
    """Public client for reading attached USB temperature probes.

    A `Client` wraps configuration loading, sysfs discovery, and per-probe
    protocol handling. Readings come back in bus/device order, one per
    matched probe, each carrying either values or an error string.
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        *,
        config_path: Path | str | None = None,
        hidraw_transport: Transport | None = None,
        serial_transport: Transport | None = None,
    ) -> None:
        if config is None:
            config = load_config(config_path)
        self._service = SensorService(
            config,
            hidraw_transport=hidraw_transport,
            serial_transport=serial_transport,
        )

    @property
    def config(self) -> AgentConfig:
        return self._service.config

    def list_devices(self) -> list[UsbDeviceDescriptor]:
        return self._service.list_devices()

    def read_sensors(self) -> list[SensorReading]:
        return self._service.read_all()
