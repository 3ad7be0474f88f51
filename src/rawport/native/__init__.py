from .context import ProcessingContext, copy_processed_image
from .library import LibRaw, libraw_version, load_library, reset_library_cache, resolve_library

__all__ = [
    "LibRaw",
    "ProcessingContext",
    "copy_processed_image",
    "libraw_version",
    "load_library",
    "reset_library_cache",
    "resolve_library",
]
