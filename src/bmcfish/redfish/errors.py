"""
Redfish client error taxonomy.

Every failure raised by the client is a RedfishError subclass carrying the
resource URI and operation name it happened on, so callers can branch on the
class instead of matching message strings.
"""

from typing import Optional


class RedfishError(Exception):
    """Base exception for Redfish client operations"""

    def __init__(self, message: str, uri: Optional[str] = None, operation: Optional[str] = None,
                 status_code: Optional[int] = None):
        self.message = message
        self.uri = uri
        self.operation = operation
        self.status_code = status_code
        super().__init__(self.message)

    def __str__(self):
        context = []
        if self.operation:
            context.append(self.operation)
        if self.uri:
            context.append(self.uri)
        if context:
            return f'{self.message} ({", ".join(context)})'
        return self.message


class AuthError(RedfishError):
    """Credentials missing or rejected, or the session response was incomplete."""


class ConfigurationError(RedfishError):
    """An expected link or reference is absent from a resource document."""


class CapabilityError(RedfishError):
    """The BMC does not expose an action required by the operation."""


class ValidationError(RedfishError):
    """Caller input failed an allow-list or format check."""


class NoCompatibleDeviceError(RedfishError):
    """No virtual media device accepts the requested media type."""


class StateError(RedfishError):
    """The client or the remote system is in the wrong state for the operation."""


class TransportError(RedfishError):
    """Network failure or non-success HTTP status."""


class RedfishProtocolError(RedfishError):
    """Successful HTTP status carrying a Redfish error payload, or an undecodable body."""

    def __init__(self, message: str, messages: Optional[list] = None, **kwargs):
        self.messages = messages or []
        super().__init__(message, **kwargs)


class TaskFailedError(RedfishProtocolError):
    """A long-running task reached a terminal state without succeeding."""


class TaskTimeoutError(RedfishError, TimeoutError):
    """Task polling exceeded its time bound."""


class UnsupportedVendorError(RedfishError):
    """The service root carries no OEM marker to select a driver from."""


class DriverNotImplementedError(RedfishError, NotImplementedError):
    """The active vendor driver intentionally does not implement the capability."""

    def __init__(self, capability: str, vendor: str):
        self.capability = capability
        self.vendor = vendor
        super().__init__(f'{capability} is not implemented for vendor: {vendor}')


def extended_info_messages(data) -> list:
    """Collect the human readable messages of a Redfish error document.

    Args:
        data: Decoded response body

    Returns:
        List of message strings (empty if the body carries no error)
    """
    if not isinstance(data, dict):
        return []
    error = data.get('error')
    if not isinstance(error, dict):
        return []
    messages = []
    for info in error.get('@Message.ExtendedInfo') or []:
        if isinstance(info, dict):
            messages.append(info.get('Message') or info.get('MessageId') or '')
    if not messages and error.get('message'):
        messages.append(error['message'])
    return [m for m in messages if m]
