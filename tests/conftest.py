from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


def _make_usb_device(
    root: Path,
    name: str,
    *,
    vendor: str | None = "413d",
    product: str = "2107",
    busnum: str = "1",
    devnum: str = "2",
    manufacturer: str | None = "PCsensor",
    product_name: str | None = "TEMPerX",
    nodes: tuple[str, ...] = (),
) -> Path:
    device = root / name
    device.mkdir(parents=True)
    attrs = {
        "idVendor": vendor,
        "idProduct": product,
        "busnum": busnum,
        "devnum": devnum,
        "manufacturer": manufacturer,
        "product": product_name,
    }
    for attr, value in attrs.items():
        if value is not None:
            (device / attr).write_text(f"{value}\n", encoding="utf-8")
    for relative in nodes:
        (device / relative).mkdir(parents=True)
    return device


@pytest.fixture
def make_usb_device() -> Callable[..., Path]:
    """Factory creating a fake sysfs USB device directory with attribute files."""
    return _make_usb_device
