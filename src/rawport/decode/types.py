from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

import numpy as np


@dataclass(frozen=True)
class Camera:
    make: str = ""
    model: str = ""
    software: str = ""
    colors: int = 0


@dataclass(frozen=True)
class Lens:
    make: str = ""
    model: str = ""
    serial: str = ""
    min_focal: float = 0.0
    max_focal: float = 0.0
    max_ap_for_min_focal: float = 0.0
    max_ap_for_max_focal: float = 0.0


@dataclass(frozen=True)
class Metadata:
    timestamp: int
    width: int
    height: int
    data_size: int
    camera: Camera = field(default_factory=Camera)
    lens: Lens = field(default_factory=Lens)
    iso: int = 0
    aperture: float = 0.0
    shutter: float = 0.0
    focal_length: float = 0.0

    @property
    def captured_at(self) -> datetime | None:
        if self.timestamp <= 0:
            return None
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    def to_json_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        captured = self.captured_at
        payload["captured_at"] = captured.isoformat() if captured is not None else None
        return payload


@dataclass(frozen=True)
class RawImageBuffer:
    """Host-owned copy of a LibRaw processed memory image."""

    height: int
    width: int
    bits: int
    colors: int
    data_size: int
    data: bytes = field(repr=False)

    @property
    def maxval(self) -> int:
        return (1 << self.bits) - 1

    @property
    def bytes_per_sample(self) -> int:
        return 2 if self.bits > 8 else 1

    @property
    def expected_size(self) -> int:
        return self.width * self.height * self.colors * self.bytes_per_sample

    def as_array(self) -> np.ndarray:
        # LibRaw writes 16-bit samples in host byte order.
        dtype = np.uint16 if self.bytes_per_sample == 2 else np.uint8
        arr = np.frombuffer(self.data, dtype=dtype, count=self.width * self.height * self.colors)
        return arr.reshape(self.height, self.width, self.colors)

    def to_pixmap(self) -> bytes:
        from .pixmap import build_pixmap

        return build_pixmap(self)
