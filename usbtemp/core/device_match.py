"""Descriptor-to-model matching and node selection."""

from __future__ import annotations

from collections.abc import Iterable

from usbtemp.core.errors import UnsupportedNodeError
from usbtemp.core.model import KnownModel, TransportKind, UsbDeviceDescriptor


def matched_model(
    descriptor: UsbDeviceDescriptor,
    known_models: Iterable[KnownModel],
) -> KnownModel | None:
    pair = (descriptor.vendor_id, descriptor.product_id)
    for model in known_models:
        if model.pair == pair:
            return model
    return None


def is_known_device(descriptor: UsbDeviceDescriptor, known_models: Iterable[KnownModel]) -> bool:
    return matched_model(descriptor, known_models) is not None


def select_node(descriptor: UsbDeviceDescriptor) -> str | None:
    # Most recently discovered node wins; earlier duplicates are ignored.
    if not descriptor.nodes:
        return None
    return descriptor.nodes[-1]


def transport_kind(node: str) -> TransportKind:
    if node.startswith(TransportKind.HIDRAW.value):
        return TransportKind.HIDRAW
    if node.startswith(TransportKind.SERIAL.value):
        return TransportKind.SERIAL
    raise UnsupportedNodeError(f"No transport for device node '{node}'")
