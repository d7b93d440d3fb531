"""USB device discovery over the sysfs device hierarchy."""

from __future__ import annotations

import logging
import os
import re

from usbtemp.core.errors import DeviceDiscoveryError
from usbtemp.core.model import UsbDeviceDescriptor

_NODE_RES = (
    re.compile(r"^tty\w*?\d+$"),
    re.compile(r"^hidraw\d+$"),
)
LOGGER = logging.getLogger(__name__)


def _read_attr(device_path: str, name: str) -> str:
    with open(os.path.join(device_path, name), encoding="utf-8", errors="replace") as handle:
        return handle.read().strip()


def _read_optional_attr(device_path: str, name: str) -> str:
    try:
        return _read_attr(device_path, name)
    except OSError:
        return ""


def find_device_nodes(root: str) -> tuple[str, ...]:
    """Return distinct hidraw/tty node names below ``root`` in depth-first order.

    Symlinked directories are not followed; sysfs is full of back-links.
    """
    nodes: list[str] = []

    def _walk(directory: str) -> None:
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as exc:
            LOGGER.debug("Cannot list %s: %s", directory, exc)
            return
        for entry in entries:
            if entry.name not in nodes and any(pattern.match(entry.name) for pattern in _NODE_RES):
                nodes.append(entry.name)
            if entry.is_dir(follow_symlinks=False):
                _walk(entry.path)

    _walk(root)
    return tuple(nodes)


class DeviceCatalog:
    def __init__(self, sysfs_root: str) -> None:
        self.sysfs_root = sysfs_root

    def scan(self) -> dict[str, UsbDeviceDescriptor]:
        try:
            entries = sorted(os.scandir(self.sysfs_root), key=lambda e: e.name)
        except OSError as exc:
            raise DeviceDiscoveryError(
                f"Cannot enumerate USB devices under {self.sysfs_root}: {exc}"
            ) from exc

        devices: dict[str, UsbDeviceDescriptor] = {}
        for entry in entries:
            if not entry.is_dir():
                continue
            descriptor = self._build_descriptor(entry.path)
            if descriptor is not None:
                devices[entry.path] = descriptor
        return devices

    def _build_descriptor(self, device_path: str) -> UsbDeviceDescriptor | None:
        try:
            vendor_id = int(_read_attr(device_path, "idVendor"), 16)
        except (OSError, ValueError):
            # Interfaces and hubs' ports have no idVendor; not a device.
            return None

        try:
            product_id = int(_read_attr(device_path, "idProduct"), 16)
            busnum = int(_read_attr(device_path, "busnum"))
            devnum = int(_read_attr(device_path, "devnum"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Skipping USB device %s: %s", device_path, exc)
            return None

        return UsbDeviceDescriptor(
            vendor_id=vendor_id,
            product_id=product_id,
            manufacturer=_read_optional_attr(device_path, "manufacturer"),
            product=_read_optional_attr(device_path, "product"),
            busnum=busnum,
            devnum=devnum,
            path=device_path,
            nodes=find_device_nodes(device_path),
        )
