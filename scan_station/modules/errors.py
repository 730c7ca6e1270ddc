# modules/errors.py


class ScanStationError(Exception):
    """Base class for errors reported to the operator."""


class ConfigError(ScanStationError):
    pass


class DeviceError(ScanStationError):
    """Camera could not be found, opened or read."""


class StorageError(ScanStationError):
    """Wraps sqlite3 failures on the scan history database."""


class ExportError(ScanStationError):
    """Workbook could not be written."""
