class StlinkError(Exception):
    pass

class TransportError(StlinkError):
    """USB bulk transfer failed, timed out or was short."""
    pass

class ProtocolError(StlinkError):
    """The probe answered a download with an unexpected state or status."""
    def __init__(self, message, reply=None):
        super().__init__(message)
        self.reply = reply

class DeviceError(ProtocolError):
    pass

class ReadProtectionError(DeviceError):
    pass

class TargetAddressError(DeviceError):
    pass

class GeometryError(StlinkError, ValueError):
    pass
