from .base import (
    ContextReleasedError,
    DecodeError,
    InputMissingError,
    LibraryNotFoundError,
    LibraryVersionError,
    LibRawError,
    MemImageError,
    MissingDependencyError,
    NoThumbnailError,
    OpenError,
    OutputExistsError,
    PixmapDecodeError,
    ProcessError,
    StageError,
    UnpackError,
    WriteError,
    translate,
)
from .types import Camera, Lens, Metadata, RawImageBuffer
from .metadata import extract_metadata
from .thumbnail import extract_thumbnail
from .pipeline import import_raw, import_raw_buffer

__all__ = [
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
    "extract_metadata",
    "extract_thumbnail",
    "import_raw",
    "import_raw_buffer",
    "translate",
]
