from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from rawport.config import ProcessingConfig
from rawport.native.context import ProcessingContext
from rawport.native.library import resolve_library
from rawport.write.atomic import require_input

from .base import OpenError, ProcessError, UnpackError, check
from .pixmap import decode_buffer
from .types import RawImageBuffer


logger = logging.getLogger(__name__)


def develop(ctx: ProcessingContext, path: str | Path, processing: ProcessingConfig | None = None) -> None:
    """Open, unpack and demosaic ``path`` inside ``ctx``."""

    lib = ctx.lib
    check(ctx.open_file(path), lib, OpenError, f"failed to open file [{path}]", path)
    logger.debug("opened %s", path)

    check(ctx.unpack(), lib, UnpackError, f"failed to unpack file [{path}]", path)
    logger.debug("unpacked %s", path)

    ctx.apply(processing or ProcessingConfig())
    check(ctx.dcraw_process(), lib, ProcessError, f"failed to import file [{path}]", path)
    logger.debug("processed %s", path)


def import_raw_buffer(
    path: str | Path,
    lib: Any = None,
    processing: ProcessingConfig | None = None,
) -> RawImageBuffer:
    """Decode a RAW file and return a host-owned copy of the processed pixels."""

    require_input(path)
    lib = resolve_library(lib)
    with ProcessingContext.acquire(lib) as ctx:
        develop(ctx, path, processing)
        return ctx.copy_image(path)


def import_raw(path: str | Path, lib: Any = None, processing: ProcessingConfig | None = None) -> Any:
    """Decode a RAW file into a ``PIL.Image.Image``."""

    buf = import_raw_buffer(path, lib=lib, processing=processing)
    return decode_buffer(buf)
