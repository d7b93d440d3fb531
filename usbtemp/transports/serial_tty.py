"""Serial transport for TEMPer probes behind a USB-serial bridge."""

from __future__ import annotations

import serial

from usbtemp.core.config import SerialSettings
from usbtemp.core.errors import (
    TransportOpenError,
    TransportSendError,
    TransportTimeoutError,
)
from usbtemp.core.model import ProtocolReading, TransportKind

VERSION_COMMAND = b"Version"
READ_COMMAND = b"ReadTemp"


class SerialTransport:
    def __init__(self, settings: SerialSettings | None = None) -> None:
        self.settings = settings or SerialSettings()

    def query(self, node_path: str) -> ProtocolReading:
        try:
            port = serial.Serial(
                port=node_path,
                baudrate=self.settings.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.settings.timeout_s,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise TransportOpenError(f"Cannot open {node_path}: {exc}") from exc

        try:
            try:
                port.write(VERSION_COMMAND)
                firmware = port.readline()
                port.write(READ_COMMAND)
                data = port.readline() + port.readline()
            except (serial.SerialException, OSError) as exc:
                raise TransportSendError(f"Serial I/O on {node_path} failed: {exc}") from exc
        finally:
            port.close()

        if not firmware:
            raise TransportTimeoutError(f"no firmware identifier received from {node_path}")

        return ProtocolReading(
            kind=TransportKind.SERIAL,
            node=node_path,
            firmware=firmware.decode("latin-1").strip(),
            hex_firmware=firmware.hex(),
            hex_data=data.hex(),
            data=data,
        )
