"""Service layer used by the public API and CLI."""

from __future__ import annotations

import logging
import os
from dataclasses import replace

from usbtemp.core.catalog import DeviceCatalog
from usbtemp.core.config import AgentConfig
from usbtemp.core.decoder import decode
from usbtemp.core.device_match import is_known_device, select_node, transport_kind
from usbtemp.core.errors import UsbtempError
from usbtemp.core.model import SensorReading, TransportKind, UsbDeviceDescriptor
from usbtemp.transports.base import Transport
from usbtemp.transports.hidraw import HidrawTransport
from usbtemp.transports.serial_tty import SerialTransport

NO_NODES_ERROR = "no hid/tty devices available"
LOGGER = logging.getLogger(__name__)


class SensorService:
    def __init__(
        self,
        config: AgentConfig | None = None,
        *,
        catalog: DeviceCatalog | None = None,
        hidraw_transport: Transport | None = None,
        serial_transport: Transport | None = None,
    ) -> None:
        self.config = config or AgentConfig()
        self.catalog = catalog or DeviceCatalog(self.config.sysfs_root)
        self.transports: dict[TransportKind, Transport] = {
            TransportKind.HIDRAW: hidraw_transport or HidrawTransport(self.config.hid),
            TransportKind.SERIAL: serial_transport or SerialTransport(self.config.serial),
        }

    def list_devices(self) -> list[UsbDeviceDescriptor]:
        allowed = self.config.allowed_models
        devices = [d for d in self.catalog.scan().values() if is_known_device(d, allowed)]
        return sorted(devices, key=lambda d: d.sort_key)

    def read_all(self) -> list[SensorReading]:
        return [self.read_device(device) for device in self.list_devices()]

    def read_device(self, device: UsbDeviceDescriptor) -> SensorReading:
        node = select_node(device)
        if node is None:
            return SensorReading(device=device, error=NO_NODES_ERROR)

        try:
            transport = self.transports[transport_kind(node)]
            raw = transport.query(os.path.join(self.config.dev_root, node))
        except UsbtempError as exc:
            LOGGER.warning("Reading %s (%s) failed: %s", device.id_string, node, exc)
            return SensorReading(device=device, error=str(exc))

        return replace(decode(raw), device=device)
