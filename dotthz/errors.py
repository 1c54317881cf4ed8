"""Exception types raised by dotthz"""


class DotthzFormatError(OSError):
    """The path exists but does not hold an HDF5 container."""


class MetadataEncodingError(ValueError):
    """A metadata value could not be stored as a UTF-8 text attribute."""


class ClosedFileError(ValueError):
    """A file, group or dataset handle was used after the file was closed."""
