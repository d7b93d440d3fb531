"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from usbtemp.core.model import ProtocolReading


class Transport(Protocol):
    def query(self, node_path: str) -> ProtocolReading:
        """Identify the probe at ``node_path`` and fetch one raw sample."""
