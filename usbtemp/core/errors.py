"""Domain-specific errors for usbtemp."""


class UsbtempError(Exception):
    """Base error for usbtemp."""


class ConfigValidationError(UsbtempError):
    """Raised when a config file does not conform to schema or semantics."""


class ConfigLoadError(UsbtempError):
    """Raised when reading the config file fails."""


class DeviceDiscoveryError(UsbtempError):
    """Raised when the sysfs USB device root cannot be enumerated."""


class TransportError(UsbtempError):
    """Base transport error."""


class UnsupportedNodeError(TransportError):
    """Raised when a device node name matches no known transport."""


class TransportOpenError(TransportError):
    """Raised when a device node cannot be opened."""


class TransportSendError(TransportError):
    """Raised when writing a command or reading a reply fails."""


class TransportTimeoutError(TransportError):
    """Raised when a device does not answer within the poll budget."""


class NoFirmwareError(TransportTimeoutError):
    """Raised when a HID probe never returns its firmware identifier."""
