from __future__ import annotations

from contextlib import contextmanager
import ctypes
import logging
from pathlib import Path
from typing import Any, Iterator

from rawport.config import ProcessingConfig
from rawport.decode.base import ContextReleasedError, MemImageError, check
from rawport.decode.types import RawImageBuffer

from .structs import LIBRAW_IMAGE_BITMAP, LibRawProcessedImage


logger = logging.getLogger(__name__)

_DATA_OFFSET = LibRawProcessedImage.data.offset


def copy_processed_image(image: Any) -> RawImageBuffer:
    """Copy a ``libraw_processed_image_t`` into host-owned bytes.

    ``image`` is a ctypes pointer; the copy is a single bulk read of exactly
    ``data_size`` bytes starting at the flexible ``data`` member.
    """

    header = image.contents
    if int(header.type) != LIBRAW_IMAGE_BITMAP:
        raise ValueError(f"processed image is not a bitmap (type={header.type})")

    height, width, colors, bits = int(header.height), int(header.width), int(header.colors), int(header.bits)
    if bits not in (8, 16):
        raise ValueError(f"unsupported sample depth {bits}")
    size = int(header.data_size)
    expected = width * height * colors * bits // 8
    if size != expected:
        raise ValueError(
            f"processed image holds {size} bytes, header describes {expected} "
            f"({width}x{height}x{colors}, {bits} bits)"
        )

    data = ctypes.string_at(ctypes.addressof(header) + _DATA_OFFSET, size)
    return RawImageBuffer(
        height=height,
        width=width,
        bits=bits,
        colors=colors,
        data_size=size,
        data=data,
    )


class ProcessingContext:
    """One ``libraw_data_t`` owned by a single operation.

    Use through :meth:`acquire`; the handle is closed when the ``with`` block
    exits, whichever way it exits.
    """

    def __init__(self, lib: Any, handle: int) -> None:
        self._lib = lib
        self._handle: int | None = handle

    @classmethod
    @contextmanager
    def acquire(cls, lib: Any) -> Iterator["ProcessingContext"]:
        handle = lib.init(0)
        if not handle:
            raise MemoryError("libraw_init returned NULL")
        ctx = cls(lib, handle)
        try:
            yield ctx
        finally:
            ctx.release()

    @property
    def released(self) -> bool:
        return self._handle is None

    @property
    def lib(self) -> Any:
        return self._lib

    def _live(self) -> int:
        if self._handle is None:
            raise ContextReleasedError("processing context used after release")
        return self._handle

    def release(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            self._lib.close(handle)

    def open_file(self, path: str | Path) -> int:
        return self._lib.open_file(self._live(), str(path))

    def unpack(self) -> int:
        return self._lib.unpack(self._live())

    def unpack_thumb(self) -> int:
        return self._lib.unpack_thumb(self._live())

    def dcraw_process(self) -> int:
        return self._lib.dcraw_process(self._live())

    def thumb_writer(self, path: str | Path) -> int:
        return self._lib.dcraw_thumb_writer(self._live(), str(path))

    def ppm_tiff_writer(self, path: str | Path) -> int:
        return self._lib.dcraw_ppm_tiff_writer(self._live(), str(path))

    def iparams(self) -> Any:
        return self._lib.get_iparams(self._live())

    def lensinfo(self) -> Any:
        return self._lib.get_lensinfo(self._live())

    def imgother(self) -> Any:
        return self._lib.get_imgother(self._live())

    def raw_size(self) -> tuple[int, int]:
        handle = self._live()
        return int(self._lib.get_raw_width(handle)), int(self._lib.get_raw_height(handle))

    def apply(self, processing: ProcessingConfig) -> None:
        handle = self._live()
        lib = self._lib
        lib.set_output_bps(handle, int(processing.output_bps))
        lib.set_output_color(handle, int(processing.output_color))
        lib.set_output_tif(handle, 1 if processing.output_tiff else 0)
        lib.set_no_auto_bright(handle, 1 if processing.no_auto_bright else 0)
        lib.set_bright(handle, float(processing.bright))
        lib.set_highlight(handle, int(processing.highlight_mode))
        lib.set_fbdd_noiserd(handle, int(processing.fbdd_noise_reduction))
        if processing.demosaic >= 0:
            lib.set_demosaic(handle, int(processing.demosaic))
        if processing.gamma is not None:
            lib.set_gamma(handle, 0, float(processing.gamma[0]))
            lib.set_gamma(handle, 1, float(processing.gamma[1]))

    @contextmanager
    def processed_image(self, path: str | Path) -> Iterator[Any]:
        """Yield LibRaw's processed memory image, freeing it on exit."""

        image, code = self._lib.dcraw_make_mem_image(self._live())
        try:
            check(code, self._lib, MemImageError, f"failed to import file [{path}]", path)
            if not image:
                raise MemImageError(f"failed to import file [{path}]: no image returned", path=path)
            yield image
        finally:
            if image:
                self._lib.dcraw_clear_mem(image)

    def copy_image(self, path: str | Path) -> RawImageBuffer:
        with self.processed_image(path) as image:
            try:
                buf = copy_processed_image(image)
            except ValueError as exc:
                raise MemImageError(f"failed to import file [{path}]: {exc}", path=path) from exc
        logger.debug(
            "copied %d bytes (%dx%d, %d colors, %d bits) from %s",
            buf.data_size,
            buf.width,
            buf.height,
            buf.colors,
            buf.bits,
            path,
        )
        return buf
