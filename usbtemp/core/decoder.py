"""Turn raw probe replies into engineering units.

HID probes answer with 8-byte frames whose layout depends on the firmware
family. The family is chosen by an ordered prefix match on the firmware
identifier; each family carries a divisor and the offsets of its
big-endian signed 16-bit fields. Serial probes answer with text lines.
"""

from __future__ import annotations

import logging
import re
import struct
from dataclasses import dataclass, replace
from enum import Enum

from usbtemp.core.model import ProtocolReading, SensorReading, TransportKind

NOT_CONNECTED = b"\x4e\x20"
NO_VALUES_ERROR = "no sensor values in reply"

_INNER_RE = re.compile(r"Temp-Inner:\s*(-?\d+(?:\.\d+)?)[^,\r\n]*,\s*(-?\d+(?:\.\d+)?)")
_OUTER_RE = re.compile(r"Temp-Outer:\s*(-?\d+(?:\.\d+)?)")
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldLayout:
    name: str
    offset: int
    # Temperature slot of the same probe; its sentinel blanks this field too.
    probe_offset: int


@dataclass(frozen=True)
class FirmwareLayout:
    prefixes: tuple[str, ...]
    divisor: float
    fields: tuple[FieldLayout, ...]


def _field(name: str, offset: int, probe_offset: int | None = None) -> FieldLayout:
    return FieldLayout(name, offset, offset if probe_offset is None else probe_offset)


class FirmwareFamily(Enum):
    TEMPER_F14 = FirmwareLayout(
        prefixes=("TEMPerF1.4", "TEMPer1F1."),
        divisor=256.0,
        fields=(_field("internal_temperature", 2),),
    )
    TEMPER_GOLD = FirmwareLayout(
        prefixes=("TEMPerGold_V3.1",),
        divisor=100.0,
        fields=(_field("internal_temperature", 2),),
    )
    TEMPER_X = FirmwareLayout(
        prefixes=("TEMPerX_V3.1", "TEMPerX_V3.3"),
        divisor=100.0,
        fields=(
            _field("internal_temperature", 2),
            _field("internal_humidity", 6, probe_offset=2),
            _field("external_temperature", 10),
            _field("external_humidity", 14, probe_offset=10),
        ),
    )
    UNKNOWN = None

    @classmethod
    def identify(cls, firmware: str) -> tuple[FirmwareFamily, str]:
        """Return the family and the matched prefix (``UNKNOWN`` and ``firmware`` otherwise)."""
        for family in cls:
            if family.value is None:
                continue
            for prefix in family.value.prefixes:
                if firmware.startswith(prefix):
                    return family, prefix
        return cls.UNKNOWN, firmware


def extract_field(data: bytes, offset: int, divisor: float) -> float | None:
    """Big-endian signed 16-bit value at ``offset``, scaled; ``None`` if absent."""
    if data[offset : offset + 2] == NOT_CONNECTED:
        return None
    try:
        (raw,) = struct.unpack_from(">h", data, offset)
    except struct.error:
        return None
    return raw / divisor


def decode_sample(reading: ProtocolReading) -> SensorReading:
    family, tag = FirmwareFamily.identify(reading.firmware)
    base = SensorReading(firmware=tag, hex_firmware=reading.hex_firmware, hex_data=reading.hex_data)

    if family is FirmwareFamily.UNKNOWN:
        return replace(
            base,
            error=(
                f"unknown firmware {reading.firmware!r}: "
                f"firmware={reading.hex_firmware} data={reading.hex_data}"
            ),
        )

    layout = family.value
    values: dict[str, float] = {}
    for spec in layout.fields:
        if reading.data[spec.probe_offset : spec.probe_offset + 2] == NOT_CONNECTED:
            continue
        value = extract_field(reading.data, spec.offset, layout.divisor)
        if value is None:
            LOGGER.debug("%s absent in %s reply %s", spec.name, tag, reading.hex_data)
            continue
        values[spec.name] = value

    if not values:
        return replace(base, error=f"{NO_VALUES_ERROR}: data={reading.hex_data}")
    return replace(base, **values)


def decode_text(reading: ProtocolReading) -> SensorReading:
    text = reading.data.decode("latin-1")
    base = SensorReading(
        firmware=reading.firmware,
        hex_firmware=reading.hex_firmware,
        hex_data=reading.hex_data,
    )

    values: dict[str, float] = {}
    inner = _INNER_RE.search(text)
    if inner is not None:
        values["internal_temperature"] = float(inner.group(1))
        values["internal_humidity"] = float(inner.group(2))
    outer = _OUTER_RE.search(text)
    if outer is not None:
        values["external_temperature"] = float(outer.group(1))

    if not values:
        return replace(base, error=f"{NO_VALUES_ERROR}: {text.strip()!r}")
    return replace(base, **values)


def decode(reading: ProtocolReading) -> SensorReading:
    if reading.kind is TransportKind.SERIAL:
        return decode_text(reading)
    return decode_sample(reading)
