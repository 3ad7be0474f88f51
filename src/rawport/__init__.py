"""Python bindings for LibRaw: metadata, thumbnails and full RAW decode."""

__version__ = "0.1.0"

from rawport.decode import (
    Camera,
    ContextReleasedError,
    DecodeError,
    InputMissingError,
    Lens,
    LibraryNotFoundError,
    LibraryVersionError,
    LibRawError,
    MemImageError,
    Metadata,
    MissingDependencyError,
    NoThumbnailError,
    OpenError,
    OutputExistsError,
    PixmapDecodeError,
    ProcessError,
    RawImageBuffer,
    StageError,
    UnpackError,
    WriteError,
    extract_metadata,
    extract_thumbnail,
    import_raw,
    import_raw_buffer,
)
from rawport.native import libraw_version
from rawport.write import export_ppm

__all__ = [
    "__version__",
    "Camera",
    "ContextReleasedError",
    "DecodeError",
    "InputMissingError",
    "Lens",
    "LibraryNotFoundError",
    "LibraryVersionError",
    "LibRawError",
    "MemImageError",
    "Metadata",
    "MissingDependencyError",
    "NoThumbnailError",
    "OpenError",
    "OutputExistsError",
    "PixmapDecodeError",
    "ProcessError",
    "RawImageBuffer",
    "StageError",
    "UnpackError",
    "WriteError",
    "export_ppm",
    "extract_metadata",
    "extract_thumbnail",
    "import_raw",
    "import_raw_buffer",
    "libraw_version",
]
