"""Exception types raised by the reading pipeline."""


class MeterScanError(Exception):
    """Base exception for the application."""


class CaptureDeviceError(MeterScanError):
    """The capture device failed to produce a photo."""


class RecognitionError(MeterScanError):
    """The recognition engine failed or returned nothing usable."""


class HistoryFetchError(MeterScanError):
    """The previous reading for a consumer could not be fetched."""


class SessionError(MeterScanError):
    """A command was rejected by the capture session."""


class SessionBusyError(SessionError):
    """The session is not in a state that accepts the command."""


class PermissionsNotGrantedError(SessionError):
    """Capture was requested without the required permissions."""
