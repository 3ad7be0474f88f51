from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from rawport.native.context import ProcessingContext
from rawport.native.library import resolve_library
from rawport.native.structs import THUMBNAIL_ABSENT_CODES
from rawport.write.atomic import require_input, require_new_output, staged_output

from .base import NoThumbnailError, OpenError, UnpackError, WriteError, check


logger = logging.getLogger(__name__)


def extract_thumbnail(input_path: str | Path, export_path: str | Path, lib: Any = None) -> None:
    """Write the preview image embedded in a RAW file to ``export_path``.

    Only the thumbnail is unpacked, which is an order of magnitude faster than
    importing the RAW data. Files without a usable thumbnail raise
    ``NoThumbnailError``.
    """

    require_new_output(export_path)
    require_input(input_path)

    lib = resolve_library(lib)
    with ProcessingContext.acquire(lib) as ctx:
        check(ctx.open_file(input_path), lib, OpenError, f"failed to open input file [{input_path}]", input_path)

        code = ctx.unpack_thumb()
        error_cls = NoThumbnailError if code in THUMBNAIL_ABSENT_CODES else UnpackError
        check(code, lib, error_cls, "unpacking thumbnail from RAW failed", input_path)

        with staged_output(export_path) as tmp:
            check(ctx.thumb_writer(tmp), lib, WriteError, "writing thumbnail failed", export_path)

    logger.info("thumbnail %s -> %s", input_path, export_path)
