from __future__ import annotations

import ctypes
import itertools
from pathlib import Path
from typing import Any

import numpy as np
import pytest

from rawport.native.structs import (
    LIBRAW_FILE_UNSUPPORTED,
    LIBRAW_IMAGE_BITMAP,
    LIBRAW_NO_THUMBNAIL,
    LibRawImgOther,
    LibRawIParams,
    LibRawLensInfo,
    LibRawProcessedImage,
)


_MESSAGES = {
    -1: "Unspecified error",
    LIBRAW_FILE_UNSUPPORTED: "Unsupported file format or not RAW file",
    LIBRAW_NO_THUMBNAIL: "No thumbnail in file",
    -100008: "Corrupted data or unexpected EOF",
    -100009: "Input/output error",
}

JPEG_THUMB = b"\xff\xd8\xff\xe0fake-jpeg-preview\xff\xd9"


def rgb_pattern(width: int, height: int, bits: int = 8) -> np.ndarray:
    ys, xs = np.mgrid[0:height, 0:width]
    maxval = (1 << bits) - 1
    rgb = np.stack(
        [
            (xs * 37) % (maxval + 1),
            (ys * 91) % (maxval + 1),
            ((xs + ys) * 13) % (maxval + 1),
        ],
        axis=-1,
    )
    return rgb.astype(np.uint16 if bits > 8 else np.uint8)


class FakeLibRaw:
    """In-process stand-in for the LibRaw C API used by rawport.

    ``fail`` maps a stage name (``open``, ``unpack``, ``unpack_thumb``,
    ``process``, ``mem_image``, ``thumb_writer``, ``ppm_writer``) to the status
    code that stage returns.
    """

    def __init__(
        self,
        width: int = 4000,
        height: int = 3000,
        image: np.ndarray | None = None,
        fail: dict[str, int] | None = None,
        thumbnail: bytes = JPEG_THUMB,
    ) -> None:
        self.path = "fake://libraw"
        self.width = width
        self.height = height
        self.image = image if image is not None else rgb_pattern(6, 4)
        self.fail = dict(fail or {})
        self.thumbnail = thumbnail
        self.calls: list[str] = []
        self.settings: dict[str, Any] = {}
        self.open_handles: set[int] = set()
        self.live_images: dict[int, Any] = {}
        self.inits = 0
        self.closes = 0
        self.init_returns_null = False
        self.size_skew = 0
        self._ids = itertools.count(0x1000, 0x10)
        self._processed: set[int] = set()

    def version(self) -> str:
        return "0.21.2-Release"

    def version_number(self) -> int:
        return (0 << 16) | (21 << 8) | 2

    def strerror(self, code: int) -> str:
        return _MESSAGES.get(code, "Unknown error code")

    def init(self, flags: int = 0) -> int | None:
        self.calls.append("init")
        if self.init_returns_null:
            return None
        handle = next(self._ids)
        self.inits += 1
        self.open_handles.add(handle)
        return handle

    def close(self, handle: int) -> None:
        self.calls.append("close")
        assert handle in self.open_handles, "double close or unknown handle"
        self.open_handles.discard(handle)
        self._processed.discard(handle)
        self.closes += 1

    def _stage(self, handle: int, name: str) -> int:
        assert handle in self.open_handles, f"{name} on closed handle"
        self.calls.append(name)
        return self.fail.get(name, 0)

    def open_file(self, handle: int, path: str) -> int:
        return self._stage(handle, "open")

    def unpack(self, handle: int) -> int:
        return self._stage(handle, "unpack")

    def unpack_thumb(self, handle: int) -> int:
        return self._stage(handle, "unpack_thumb")

    def dcraw_process(self, handle: int) -> int:
        code = self._stage(handle, "process")
        if code == 0:
            self._processed.add(handle)
        return code

    def dcraw_make_mem_image(self, handle: int) -> tuple[Any, int]:
        code = self._stage(handle, "mem_image")
        if code:
            return None, code
        assert handle in self._processed, "make_mem_image before dcraw_process"

        img = np.ascontiguousarray(self.image)
        height, width = img.shape[:2]
        colors = img.shape[2] if img.ndim == 3 else 1
        bits = 16 if img.dtype == np.uint16 else 8
        payload = img.astype("=u2" if bits == 16 else np.uint8).tobytes()

        offset = LibRawProcessedImage.data.offset
        buf = ctypes.create_string_buffer(max(offset + len(payload), ctypes.sizeof(LibRawProcessedImage)))
        header = LibRawProcessedImage.from_buffer(buf)
        header.type = LIBRAW_IMAGE_BITMAP
        header.height = height
        header.width = width
        header.colors = colors
        header.bits = bits
        header.data_size = len(payload) + self.size_skew
        ctypes.memmove(ctypes.addressof(buf) + offset, payload, len(payload))

        self.live_images[ctypes.addressof(header)] = buf
        return ctypes.pointer(header), 0

    def dcraw_clear_mem(self, image: Any) -> None:
        self.calls.append("clear_mem")
        address = ctypes.addressof(image.contents)
        assert address in self.live_images, "double free of processed image"
        del self.live_images[address]

    def _write(self, handle: int, stage: str, path: str, content: bytes) -> int:
        code = self._stage(handle, stage)
        if code:
            # LibRaw may leave a truncated file behind on failure
            Path(path).write_bytes(content[: len(content) // 2])
            return code
        Path(path).write_bytes(content)
        return 0

    def dcraw_thumb_writer(self, handle: int, path: str) -> int:
        return self._write(handle, "thumb_writer", path, self.thumbnail)

    def dcraw_ppm_tiff_writer(self, handle: int, path: str) -> int:
        img = np.ascontiguousarray(self.image)
        if self.settings.get("output_tif"):
            content = b"II*\x00" + img.tobytes()
        else:
            height, width = img.shape[:2]
            content = f"P6\n{width} {height}\n255\n".encode("ascii") + img.astype(np.uint8).tobytes()
        return self._write(handle, "ppm_writer", path, content)

    def get_iparams(self, handle: int) -> LibRawIParams:
        self._stage(handle, "iparams")
        params = LibRawIParams()
        params.make = b"Canon"
        params.model = b"EOS R"
        params.normalized_make = b"Canon"
        params.normalized_model = b"EOS R"
        params.software = b"Firmware Version 1.8.0"
        params.colors = 3
        return params

    def get_lensinfo(self, handle: int) -> LibRawLensInfo:
        self._stage(handle, "lensinfo")
        lens = LibRawLensInfo()
        lens.LensMake = b"Canon"
        lens.Lens = b"RF24-105mm F4 L IS USM"
        lens.LensSerial = b"9215001234"
        lens.MinFocal = 24.0
        lens.MaxFocal = 105.0
        lens.MaxAp4MinFocal = 4.0
        lens.MaxAp4MaxFocal = 4.0
        return lens

    def get_imgother(self, handle: int) -> LibRawImgOther:
        self._stage(handle, "imgother")
        other = LibRawImgOther()
        other.iso_speed = 400.0
        other.shutter = 0.004
        other.aperture = 5.6
        other.focal_len = 50.0
        other.timestamp = 1700000000
        return other

    def get_raw_width(self, handle: int) -> int:
        self._stage(handle, "raw_width")
        return self.width

    def get_raw_height(self, handle: int) -> int:
        self._stage(handle, "raw_height")
        return self.height

    def _set(self, name: str, handle: int, value: Any) -> None:
        assert handle in self.open_handles
        self.settings[name] = value

    def set_output_bps(self, handle: int, value: int) -> None:
        self._set("output_bps", handle, value)

    def set_output_color(self, handle: int, value: int) -> None:
        self._set("output_color", handle, value)

    def set_output_tif(self, handle: int, value: int) -> None:
        self._set("output_tif", handle, value)

    def set_no_auto_bright(self, handle: int, value: int) -> None:
        self._set("no_auto_bright", handle, value)

    def set_bright(self, handle: int, value: float) -> None:
        self._set("bright", handle, value)

    def set_highlight(self, handle: int, value: int) -> None:
        self._set("highlight", handle, value)

    def set_demosaic(self, handle: int, value: int) -> None:
        self._set("demosaic", handle, value)

    def set_fbdd_noiserd(self, handle: int, value: int) -> None:
        self._set("fbdd_noiserd", handle, value)

    def set_gamma(self, handle: int, index: int, value: float) -> None:
        self._set(f"gamma{index}", handle, value)


@pytest.fixture
def fake_lib() -> FakeLibRaw:
    return FakeLibRaw()


@pytest.fixture
def raw_file(tmp_path: Path) -> Path:
    path = tmp_path / "IMG_0001.CR3"
    path.write_bytes(b"\x00" * 1234)
    return path
