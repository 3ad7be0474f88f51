from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from rawport.config import ProcessingConfig
from rawport.decode.base import WriteError, check
from rawport.decode.pipeline import develop
from rawport.native.context import ProcessingContext
from rawport.native.library import resolve_library

from .atomic import require_input, require_new_output, staged_output


logger = logging.getLogger(__name__)


def export_ppm(
    input_path: str | Path,
    export_path: str | Path,
    lib: Any = None,
    processing: ProcessingConfig | None = None,
) -> None:
    """Develop a RAW file and let LibRaw write it as PPM (or TIFF).

    ``processing.output_tiff`` switches LibRaw's writer to TIFF. No pixel data
    passes through Python on this path.
    """

    require_new_output(export_path)
    require_input(input_path)

    lib = resolve_library(lib)
    with ProcessingContext.acquire(lib) as ctx:
        develop(ctx, input_path, processing)
        with staged_output(export_path) as tmp:
            check(ctx.ppm_tiff_writer(tmp), lib, WriteError, f"failed to export file to [{export_path}]", export_path)

    logger.info("exported %s -> %s", input_path, export_path)
