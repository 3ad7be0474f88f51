from __future__ import annotations

import ctypes
import sys

# Layouts follow libraw_types.h from LibRaw 0.20 onwards. Only the leading
# members that rawport reads are declared; the structs are only ever accessed
# through pointers returned by LibRaw, so trailing members can be omitted.

LIBRAW_SUCCESS = 0
LIBRAW_UNSPECIFIED_ERROR = -1
LIBRAW_FILE_UNSUPPORTED = -2
LIBRAW_REQUEST_FOR_NONEXISTENT_IMAGE = -3
LIBRAW_OUT_OF_ORDER_CALL = -4
LIBRAW_NO_THUMBNAIL = -5
LIBRAW_UNSUPPORTED_THUMBNAIL = -6
LIBRAW_INPUT_CLOSED = -7
LIBRAW_NOT_IMPLEMENTED = -8
LIBRAW_REQUEST_FOR_NONEXISTENT_THUMBNAIL = -9
LIBRAW_UNSUFFICIENT_MEMORY = -100007
LIBRAW_DATA_ERROR = -100008
LIBRAW_IO_ERROR = -100009
LIBRAW_CANCELLED_BY_CALLBACK = -100010
LIBRAW_BAD_CROP = -100011
LIBRAW_TOO_BIG = -100012
LIBRAW_MEMPOOL_OVERFLOW = -100013

THUMBNAIL_ABSENT_CODES = frozenset(
    {
        LIBRAW_NO_THUMBNAIL,
        LIBRAW_UNSUPPORTED_THUMBNAIL,
        LIBRAW_REQUEST_FOR_NONEXISTENT_THUMBNAIL,
    }
)

# enum LibRaw_image_formats
LIBRAW_IMAGE_JPEG = 1
LIBRAW_IMAGE_BITMAP = 2

# 0.20.0 encoded as (major << 16) | (minor << 8) | patch
MIN_LIBRAW_VERSION = (0 << 16) | (20 << 8) | 0


class LibRawIParams(ctypes.Structure):
    _fields_ = [
        ("guard", ctypes.c_char * 4),
        ("make", ctypes.c_char * 64),
        ("model", ctypes.c_char * 64),
        ("software", ctypes.c_char * 64),
        ("normalized_make", ctypes.c_char * 64),
        ("normalized_model", ctypes.c_char * 64),
        ("maker_index", ctypes.c_uint),
        ("raw_count", ctypes.c_uint),
        ("dng_version", ctypes.c_uint),
        ("is_foveon", ctypes.c_uint),
        ("colors", ctypes.c_int),
        ("filters", ctypes.c_uint),
        ("xtrans", (ctypes.c_char * 6) * 6),
        ("xtrans_abs", (ctypes.c_char * 6) * 6),
        ("cdesc", ctypes.c_char * 5),
    ]


class LibRawLensInfo(ctypes.Structure):
    _fields_ = [
        ("MinFocal", ctypes.c_float),
        ("MaxFocal", ctypes.c_float),
        ("MaxAp4MinFocal", ctypes.c_float),
        ("MaxAp4MaxFocal", ctypes.c_float),
        ("EXIF_MaxAp", ctypes.c_float),
        ("LensMake", ctypes.c_char * 128),
        ("Lens", ctypes.c_char * 128),
        ("LensSerial", ctypes.c_char * 128),
        ("InternalLensSerial", ctypes.c_char * 128),
        ("FocalLengthIn35mmFormat", ctypes.c_ushort),
    ]


class LibRawImgOther(ctypes.Structure):
    _fields_ = [
        ("iso_speed", ctypes.c_float),
        ("shutter", ctypes.c_float),
        ("aperture", ctypes.c_float),
        ("focal_len", ctypes.c_float),
        # time_t is 64-bit on Windows where C long is not
        ("timestamp", ctypes.c_int64 if sys.platform == "win32" else ctypes.c_long),
        ("shot_order", ctypes.c_uint),
    ]


class LibRawProcessedImage(ctypes.Structure):
    _fields_ = [
        ("type", ctypes.c_int),
        ("height", ctypes.c_ushort),
        ("width", ctypes.c_ushort),
        ("colors", ctypes.c_ushort),
        ("bits", ctypes.c_ushort),
        ("data_size", ctypes.c_uint),
        ("data", ctypes.c_ubyte * 1),
    ]


def c_string(buf: bytes | ctypes.Array) -> str:
    """Copy a fixed-size native char buffer up to its first NUL into a str."""
    raw = bytes(buf)
    end = raw.find(b"\x00")
    if end >= 0:
        raw = raw[:end]
    return raw.decode("utf-8", errors="replace")
