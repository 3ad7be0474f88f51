from __future__ import annotations

import ctypes
import ctypes.util
import importlib.util
import logging
import os
from pathlib import Path
import threading
from typing import Any

from rawport.decode.base import LibraryNotFoundError, LibraryVersionError

from .structs import (
    MIN_LIBRAW_VERSION,
    LibRawImgOther,
    LibRawIParams,
    LibRawLensInfo,
    LibRawProcessedImage,
)


logger = logging.getLogger(__name__)

ENV_LIBRARY_PATH = "RAWPORT_LIBRAW"

_lock = threading.Lock()
_cache: dict[str, "LibRaw"] = {}


def _declare(cdll: ctypes.CDLL, name: str, restype: Any, argtypes: list[Any]) -> None:
    fn = getattr(cdll, name)
    fn.restype = restype
    fn.argtypes = argtypes


def _declare_prototypes(cdll: ctypes.CDLL) -> None:
    vp = ctypes.c_void_p
    c_int = ctypes.c_int

    _declare(cdll, "libraw_version", ctypes.c_char_p, [])
    _declare(cdll, "libraw_versionNumber", c_int, [])
    _declare(cdll, "libraw_strerror", ctypes.c_char_p, [c_int])

    _declare(cdll, "libraw_init", vp, [ctypes.c_uint])
    _declare(cdll, "libraw_close", None, [vp])
    _declare(cdll, "libraw_open_file", c_int, [vp, ctypes.c_char_p])
    _declare(cdll, "libraw_unpack", c_int, [vp])
    _declare(cdll, "libraw_unpack_thumb", c_int, [vp])
    _declare(cdll, "libraw_dcraw_process", c_int, [vp])
    _declare(
        cdll,
        "libraw_dcraw_make_mem_image",
        ctypes.POINTER(LibRawProcessedImage),
        [vp, ctypes.POINTER(c_int)],
    )
    _declare(cdll, "libraw_dcraw_clear_mem", None, [ctypes.POINTER(LibRawProcessedImage)])
    _declare(cdll, "libraw_dcraw_thumb_writer", c_int, [vp, ctypes.c_char_p])
    _declare(cdll, "libraw_dcraw_ppm_tiff_writer", c_int, [vp, ctypes.c_char_p])

    _declare(cdll, "libraw_get_iparams", ctypes.POINTER(LibRawIParams), [vp])
    _declare(cdll, "libraw_get_lensinfo", ctypes.POINTER(LibRawLensInfo), [vp])
    _declare(cdll, "libraw_get_imgother", ctypes.POINTER(LibRawImgOther), [vp])
    _declare(cdll, "libraw_get_raw_width", c_int, [vp])
    _declare(cdll, "libraw_get_raw_height", c_int, [vp])

    _declare(cdll, "libraw_set_output_bps", None, [vp, c_int])
    _declare(cdll, "libraw_set_output_color", None, [vp, c_int])
    _declare(cdll, "libraw_set_output_tif", None, [vp, c_int])
    _declare(cdll, "libraw_set_no_auto_bright", None, [vp, c_int])
    _declare(cdll, "libraw_set_bright", None, [vp, ctypes.c_float])
    _declare(cdll, "libraw_set_highlight", None, [vp, c_int])
    _declare(cdll, "libraw_set_demosaic", None, [vp, c_int])
    _declare(cdll, "libraw_set_gamma", None, [vp, c_int, ctypes.c_float])
    _declare(cdll, "libraw_set_fbdd_noiserd", None, [vp, c_int])


class LibRaw:
    """Typed facade over the LibRaw C API.

    Every method maps one-to-one onto a ``libraw_*`` function. Handles are
    plain integers (``libraw_data_t*`` addresses); structs come back as ctypes
    views that stay valid only while the owning handle is open.
    """

    def __init__(self, cdll: ctypes.CDLL, path: str) -> None:
        _declare_prototypes(cdll)
        self._cdll = cdll
        self.path = path

    def version(self) -> str:
        return (self._cdll.libraw_version() or b"").decode("ascii", errors="replace")

    def version_number(self) -> int:
        return int(self._cdll.libraw_versionNumber())

    def strerror(self, code: int) -> str:
        return (self._cdll.libraw_strerror(code) or b"").decode("utf-8", errors="replace")

    def init(self, flags: int = 0) -> int | None:
        return self._cdll.libraw_init(flags)

    def close(self, handle: int) -> None:
        self._cdll.libraw_close(handle)

    def open_file(self, handle: int, path: str) -> int:
        return self._cdll.libraw_open_file(handle, os.fsencode(path))

    def unpack(self, handle: int) -> int:
        return self._cdll.libraw_unpack(handle)

    def unpack_thumb(self, handle: int) -> int:
        return self._cdll.libraw_unpack_thumb(handle)

    def dcraw_process(self, handle: int) -> int:
        return self._cdll.libraw_dcraw_process(handle)

    def dcraw_make_mem_image(self, handle: int) -> tuple[Any, int]:
        err = ctypes.c_int(0)
        image = self._cdll.libraw_dcraw_make_mem_image(handle, ctypes.byref(err))
        return image, int(err.value)

    def dcraw_clear_mem(self, image: Any) -> None:
        self._cdll.libraw_dcraw_clear_mem(image)

    def dcraw_thumb_writer(self, handle: int, path: str) -> int:
        return self._cdll.libraw_dcraw_thumb_writer(handle, os.fsencode(path))

    def dcraw_ppm_tiff_writer(self, handle: int, path: str) -> int:
        return self._cdll.libraw_dcraw_ppm_tiff_writer(handle, os.fsencode(path))

    def get_iparams(self, handle: int) -> LibRawIParams:
        return self._cdll.libraw_get_iparams(handle).contents

    def get_lensinfo(self, handle: int) -> LibRawLensInfo:
        return self._cdll.libraw_get_lensinfo(handle).contents

    def get_imgother(self, handle: int) -> LibRawImgOther:
        return self._cdll.libraw_get_imgother(handle).contents

    def get_raw_width(self, handle: int) -> int:
        return int(self._cdll.libraw_get_raw_width(handle))

    def get_raw_height(self, handle: int) -> int:
        return int(self._cdll.libraw_get_raw_height(handle))

    def set_output_bps(self, handle: int, value: int) -> None:
        self._cdll.libraw_set_output_bps(handle, value)

    def set_output_color(self, handle: int, value: int) -> None:
        self._cdll.libraw_set_output_color(handle, value)

    def set_output_tif(self, handle: int, value: int) -> None:
        self._cdll.libraw_set_output_tif(handle, value)

    def set_no_auto_bright(self, handle: int, value: int) -> None:
        self._cdll.libraw_set_no_auto_bright(handle, value)

    def set_bright(self, handle: int, value: float) -> None:
        self._cdll.libraw_set_bright(handle, value)

    def set_highlight(self, handle: int, value: int) -> None:
        self._cdll.libraw_set_highlight(handle, value)

    def set_demosaic(self, handle: int, value: int) -> None:
        self._cdll.libraw_set_demosaic(handle, value)

    def set_fbdd_noiserd(self, handle: int, value: int) -> None:
        self._cdll.libraw_set_fbdd_noiserd(handle, value)

    def set_gamma(self, handle: int, index: int, value: float) -> None:
        self._cdll.libraw_set_gamma(handle, index, value)


def _rawpy_bundled_candidates() -> list[str]:
    """LibRaw copies shipped inside an installed rawpy wheel, if any."""
    try:
        spec = importlib.util.find_spec("rawpy")
    except (ImportError, ValueError):
        return []
    if spec is None or not spec.submodule_search_locations:
        return []

    pkg_dir = Path(list(spec.submodule_search_locations)[0])
    search_dirs = [pkg_dir, pkg_dir / ".dylibs", pkg_dir.parent / "rawpy.libs"]
    patterns = ("libraw_r*.so*", "libraw_r*.dylib", "libraw_r*.dll", "libraw*.so*", "libraw*.dylib", "libraw*.dll")

    found: list[str] = []
    for directory in search_dirs:
        if not directory.is_dir():
            continue
        for pattern in patterns:
            for candidate in sorted(directory.glob(pattern)):
                if str(candidate) not in found:
                    found.append(str(candidate))
    return found


def _candidate_paths(explicit: str | Path | None) -> list[str]:
    if explicit is not None:
        return [str(Path(explicit).expanduser())]

    env_path = os.environ.get(ENV_LIBRARY_PATH)
    if env_path:
        return [str(Path(env_path).expanduser())]

    candidates: list[str] = []
    # The reentrant build is safe to use from several threads at once.
    for name in ("raw_r", "raw"):
        found = ctypes.util.find_library(name)
        if found:
            candidates.append(found)
    candidates.extend(_rawpy_bundled_candidates())
    return candidates


def _open(path: str) -> LibRaw:
    cdll = ctypes.CDLL(path)
    lib = LibRaw(cdll, path)
    number = lib.version_number()
    if number < MIN_LIBRAW_VERSION:
        raise LibraryVersionError(f"LibRaw {lib.version()} at {path} is too old; 0.20 or newer is required")
    logger.debug("loaded LibRaw %s from %s", lib.version(), path)
    return lib


def load_library(path: str | Path | None = None) -> LibRaw:
    """Locate, load and cache the LibRaw shared library.

    Lookup order:
    1) explicit ``path`` argument
    2) ``RAWPORT_LIBRAW`` environment variable
    3) system ``raw_r`` / ``raw`` via ``ctypes.util.find_library``
    4) the copy bundled in an installed rawpy wheel
    """

    candidates = _candidate_paths(path)
    with _lock:
        for candidate in candidates:
            cached = _cache.get(candidate)
            if cached is not None:
                return cached

        errors: list[str] = []
        for candidate in candidates:
            try:
                lib = _open(candidate)
            except LibraryVersionError:
                raise
            except (OSError, AttributeError) as exc:
                logger.debug("could not load LibRaw from %s: %s", candidate, exc)
                errors.append(f"{candidate}: {exc}")
                continue
            _cache[candidate] = lib
            return lib

    detail = "; ".join(errors) if errors else "no candidates found"
    raise LibraryNotFoundError(
        "LibRaw shared library not found "
        f"({detail}). Install libraw (e.g. apt install libraw-dev), "
        f"set {ENV_LIBRARY_PATH}, or pip install '.[raw]'"
    )


def reset_library_cache() -> None:
    with _lock:
        _cache.clear()


def libraw_version(path: str | Path | None = None) -> str:
    return load_library(path).version()


def resolve_library(lib: Any = None, path: str | Path | None = None) -> Any:
    """Return ``lib`` when given, otherwise the process-wide LibRaw."""
    if lib is not None:
        return lib
    return load_library(path)
