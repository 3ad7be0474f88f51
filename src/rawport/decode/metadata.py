from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from rawport.native.context import ProcessingContext
from rawport.native.library import resolve_library
from rawport.native.structs import c_string
from rawport.write.atomic import require_input

from .base import InputMissingError, OpenError, check
from .types import Camera, Lens, Metadata


logger = logging.getLogger(__name__)


def _camera(iparams: Any) -> Camera:
    return Camera(
        make=c_string(iparams.normalized_make),
        model=c_string(iparams.normalized_model),
        software=c_string(iparams.software),
        colors=int(iparams.colors),
    )


def _lens(lensinfo: Any) -> Lens:
    return Lens(
        make=c_string(lensinfo.LensMake),
        model=c_string(lensinfo.Lens),
        serial=c_string(lensinfo.LensSerial),
        min_focal=float(lensinfo.MinFocal),
        max_focal=float(lensinfo.MaxFocal),
        max_ap_for_min_focal=float(lensinfo.MaxAp4MinFocal),
        max_ap_for_max_focal=float(lensinfo.MaxAp4MaxFocal),
    )


def extract_metadata(path: str | Path, lib: Any = None) -> Metadata:
    """Read camera, lens and exposure metadata from a RAW file.

    The file is opened but never unpacked, so this is much cheaper than a
    full import.
    """

    require_input(path)
    try:
        stat = os.stat(path)
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise InputMissingError(path) from exc

    lib = resolve_library(lib)
    with ProcessingContext.acquire(lib) as ctx:
        check(ctx.open_file(path), lib, OpenError, f"failed to open input file [{path}]", path)

        iparams = ctx.iparams()
        lensinfo = ctx.lensinfo()
        other = ctx.imgother()
        width, height = ctx.raw_size()

        metadata = Metadata(
            timestamp=int(other.timestamp),
            width=width,
            height=height,
            data_size=int(stat.st_size),
            camera=_camera(iparams),
            lens=_lens(lensinfo),
            iso=int(other.iso_speed),
            aperture=float(other.aperture),
            shutter=float(other.shutter),
            focal_length=float(other.focal_len),
        )

    logger.debug("metadata for %s: %s %s %dx%d", path, metadata.camera.make, metadata.camera.model, width, height)
    return metadata
