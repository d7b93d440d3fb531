from __future__ import annotations

import struct

import pytest

from usbtemp.core.decoder import FirmwareFamily, decode, decode_sample, decode_text, extract_field
from usbtemp.core.model import ProtocolReading, TransportKind


def _hid(firmware: str, data_hex: str) -> ProtocolReading:
    data = bytes.fromhex(data_hex)
    return ProtocolReading(
        kind=TransportKind.HIDRAW,
        node="/dev/hidraw1",
        firmware=firmware,
        hex_firmware=firmware.encode("latin-1").hex(),
        hex_data=data.hex(),
        data=data,
    )


def _serial(firmware: str, reply: str) -> ProtocolReading:
    data = reply.encode("latin-1")
    return ProtocolReading(
        kind=TransportKind.SERIAL,
        node="/dev/ttyUSB0",
        firmware=firmware,
        hex_firmware=firmware.encode("latin-1").hex(),
        hex_data=data.hex(),
        data=data,
    )


def test_temperx_reference_frame() -> None:
    reading = decode_sample(_hid("TEMPerX_V3.1", "00020fa000000bb800004e2000000000"))
    assert reading.ok
    assert reading.firmware == "TEMPerX_V3.1"
    assert reading.internal_temperature == pytest.approx(40.00)
    assert reading.internal_humidity == pytest.approx(30.00)
    assert reading.external_temperature is None
    assert reading.external_humidity is None


def test_temperx_with_external_probe() -> None:
    data = "0002" + "0a28" + "0000" + "1194" + "0001" + "fe0c" + "0000" + "0fa0"
    reading = decode_sample(_hid("TEMPerX_V3.3xyz", data))
    assert reading.firmware == "TEMPerX_V3.3"
    assert reading.internal_temperature == pytest.approx(26.0)
    assert reading.internal_humidity == pytest.approx(45.0)
    assert reading.external_temperature == pytest.approx(-5.0)
    assert reading.external_humidity == pytest.approx(40.0)


def test_f14_uses_256_divisor_and_truncates_tag() -> None:
    reading = decode_sample(_hid("TEMPer1F1.3Per1F1.3", "8080171000000000"))
    assert reading.firmware == "TEMPer1F1."
    assert reading.internal_temperature == pytest.approx(0x1710 / 256.0)
    assert reading.internal_humidity is None


def test_gold_negative_temperature() -> None:
    reading = decode_sample(_hid("TEMPerGold_V3.1 ", "8080fc1800000000"))
    assert reading.firmware == "TEMPerGold_V3.1"
    assert reading.internal_temperature == pytest.approx(-10.0)


def test_zero_is_a_value_not_absent() -> None:
    reading = decode_sample(_hid("TEMPerGold_V3.1", "8080000000000000"))
    assert reading.ok
    assert reading.internal_temperature == 0.0


@pytest.mark.parametrize("divisor", [100.0, 256.0])
def test_sentinel_means_absent_regardless_of_divisor(divisor: float) -> None:
    assert extract_field(bytes.fromhex("00004e20"), 2, divisor) is None


@pytest.mark.parametrize("family", [f for f in FirmwareFamily if f.value is not None])
@pytest.mark.parametrize("raw", [-32768, -1, 0, 1234, 32767])
def test_layout_fields_recover_signed_value(family: FirmwareFamily, raw: int) -> None:
    layout = family.value
    for field in layout.fields:
        data = bytearray(16)
        struct.pack_into(">h", data, field.offset, raw)
        assert extract_field(bytes(data), field.offset, layout.divisor) == raw / layout.divisor


def test_short_buffer_leaves_field_absent() -> None:
    reading = decode_sample(_hid("TEMPerX_V3.1", "00020fa0"))
    assert reading.internal_temperature == pytest.approx(40.0)
    assert reading.internal_humidity is None
    assert reading.ok


def test_all_fields_absent_is_an_error() -> None:
    reading = decode_sample(_hid("TEMPerGold_V3.1", "80804e2000000000"))
    assert not reading.ok
    assert "no sensor values" in reading.error


def test_unknown_firmware_reports_hex_dump() -> None:
    reading = decode_sample(_hid("UNKNOWN_X", "0102030405060708"))
    assert not reading.ok
    assert reading.values() == {}
    assert "UNKNOWN_X" in reading.error
    assert "0102030405060708" in reading.error
    assert "554e4b4e4f574e5f58" in reading.error


def test_identify_falls_through_to_unknown() -> None:
    assert FirmwareFamily.identify("TEMPerX_V2.0") == (FirmwareFamily.UNKNOWN, "TEMPerX_V2.0")


def test_serial_reply_inner_and_outer() -> None:
    reading = decode_text(_serial("TEMPerX232_V2.0", "Temp-Inner:23.56 [C],41.20 [%RH]\r\nTemp-Outer:-3.25 [C]\r\n"))
    assert reading.firmware == "TEMPerX232_V2.0"
    assert reading.internal_temperature == pytest.approx(23.56)
    assert reading.internal_humidity == pytest.approx(41.20)
    assert reading.external_temperature == pytest.approx(-3.25)
    assert reading.external_humidity is None


def test_serial_reply_zero_humidity_is_kept() -> None:
    reading = decode(_serial("TEMPer2_V1", "Temp-Inner:21.0,0\r\n"))
    assert reading.internal_humidity == 0.0


def test_serial_garbled_reply_is_an_error() -> None:
    reading = decode(_serial("TEMPer2_V1", "\x00\xffgarbage"))
    assert not reading.ok
