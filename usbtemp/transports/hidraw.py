"""Raw HID transport speaking the TEMPer 8-byte command frames."""

from __future__ import annotations

import logging
import os
import select

from usbtemp.core.config import HidSettings
from usbtemp.core.errors import (
    NoFirmwareError,
    TransportOpenError,
    TransportSendError,
)
from usbtemp.core.model import ProtocolReading, TransportKind

FIRMWARE_QUERY = bytes.fromhex("0186ff0100000000")
SAMPLE_QUERY = bytes.fromhex("0180330100000000")
FRAME_SIZE = 8
LOGGER = logging.getLogger(__name__)


class HidrawTransport:
    def __init__(self, settings: HidSettings | None = None) -> None:
        self.settings = settings or HidSettings()

    def query(self, node_path: str) -> ProtocolReading:
        try:
            fd = self._open(node_path)
        except OSError as exc:
            raise TransportOpenError(f"Cannot open {node_path}: {exc}") from exc

        try:
            firmware = self._read_firmware(fd, node_path)
            self._send(fd, SAMPLE_QUERY)
            data = self._collect(fd, self.settings.sample_timeout_s)
        finally:
            self._close(fd)

        return ProtocolReading(
            kind=TransportKind.HIDRAW,
            node=node_path,
            firmware=firmware.decode("latin-1").strip("\x00 \t\r\n"),
            hex_firmware=firmware.hex(),
            hex_data=data.hex(),
            data=data,
        )

    def _read_firmware(self, fd: int, node_path: str) -> bytes:
        # Probes often answer the identification query only partially
        # right after being plugged in, so the query is re-sent.
        firmware = b""
        for attempt in range(1, self.settings.firmware_retries + 1):
            self._send(fd, FIRMWARE_QUERY)
            reply = self._collect(fd, self.settings.firmware_timeout_s)
            if reply:
                firmware = reply
            if len(reply) > FRAME_SIZE:
                break
            LOGGER.debug(
                "Short firmware reply from %s on attempt %d: %r", node_path, attempt, reply
            )
        if not firmware:
            raise NoFirmwareError(f"no firmware identifier received from {node_path}")
        return firmware

    def _collect(self, fd: int, timeout_s: float) -> bytes:
        buffer = b""
        # Stops at the reply cap even if the device never goes quiet.
        while len(buffer) < self.settings.max_reply_bytes and self._wait_readable(fd, timeout_s):
            try:
                chunk = self._read(fd, FRAME_SIZE)
            except OSError as exc:
                raise TransportSendError(f"HID read failed: {exc}") from exc
            if not chunk:
                break
            buffer += chunk
        return buffer

    def _send(self, fd: int, frame: bytes) -> None:
        try:
            written = self._write(fd, frame)
        except OSError as exc:
            raise TransportSendError(f"HID write failed: {exc}") from exc
        if written != len(frame):
            raise TransportSendError(f"HID write was short: {written}/{len(frame)} bytes")

    # Thin OS wrappers, replaced in tests.

    def _open(self, node_path: str) -> int:
        return os.open(node_path, os.O_RDWR)

    def _close(self, fd: int) -> None:
        os.close(fd)

    def _write(self, fd: int, data: bytes) -> int:
        return os.write(fd, data)

    def _read(self, fd: int, size: int) -> bytes:
        return os.read(fd, size)

    def _wait_readable(self, fd: int, timeout_s: float) -> bool:
        poller = select.poll()
        poller.register(fd, select.POLLIN)
        return bool(poller.poll(int(timeout_s * 1000)))
