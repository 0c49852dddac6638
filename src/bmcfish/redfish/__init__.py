from .redfish import Redfish, detect, detect_driver
from .fishapi import RedfishAPI
from .errors import (
    RedfishError,
    AuthError,
    ConfigurationError,
    CapabilityError,
    ValidationError,
    NoCompatibleDeviceError,
    StateError,
    TransportError,
    RedfishProtocolError,
    TaskFailedError,
    TaskTimeoutError,
    UnsupportedVendorError,
    DriverNotImplementedError,
)

__all__ = [
    'Redfish',
    'RedfishAPI',
    'detect',
    'detect_driver',
    'RedfishError',
    'AuthError',
    'ConfigurationError',
    'CapabilityError',
    'ValidationError',
    'NoCompatibleDeviceError',
    'StateError',
    'TransportError',
    'RedfishProtocolError',
    'TaskFailedError',
    'TaskTimeoutError',
    'UnsupportedVendorError',
    'DriverNotImplementedError',
]
