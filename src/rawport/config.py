from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class LibraryConfig:
    path: Path | None = None


@dataclass
class ProcessingConfig:
    output_bps: int = 8
    no_auto_bright: bool = False
    bright: float = 1.0
    highlight_mode: int = 0
    demosaic: int = -1
    fbdd_noise_reduction: int = 0
    output_color: int = 1
    gamma: tuple[float, float] | None = None
    output_tiff: bool = False


@dataclass
class AppConfig:
    library: LibraryConfig = field(default_factory=LibraryConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    log_level: str = "INFO"
    log_file: Path | None = None


def _expand_path(value: str | None, base: Path) -> Path | None:
    if value in (None, ""):
        return None
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base / path).resolve()
    return path


def _as_gamma(raw: Any) -> tuple[float, float] | None:
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise ValueError("processing.gamma must be a [power, slope] pair")
    return (float(raw[0]), float(raw[1]))


def _validate(processing: ProcessingConfig) -> None:
    if processing.output_bps not in (8, 16):
        raise ValueError(f"processing.output_bps must be 8 or 16, got {processing.output_bps}")
    if not 0 <= processing.highlight_mode <= 9:
        raise ValueError(f"processing.highlight_mode must be in 0..9, got {processing.highlight_mode}")
    if not 0 <= processing.output_color <= 6:
        raise ValueError(f"processing.output_color must be in 0..6, got {processing.output_color}")
    if not 0 <= processing.fbdd_noise_reduction <= 2:
        raise ValueError(f"processing.fbdd_noise_reduction must be in 0..2, got {processing.fbdd_noise_reduction}")
    if processing.bright <= 0:
        raise ValueError("processing.bright must be positive")


def load_config(path: str | Path | None = None) -> AppConfig:
    if path is None:
        return AppConfig()

    try:
        import yaml  # type: ignore
    except Exception as exc:
        raise RuntimeError("PyYAML is required for config loading. Install with: pip install PyYAML") from exc

    cfg_path = Path(path).expanduser().resolve()
    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    base = cfg_path.parent
    library_raw = raw.get("library", {}) or {}
    processing_raw = raw.get("processing", {}) or {}

    library = LibraryConfig(path=_expand_path(library_raw.get("path"), base))

    processing = ProcessingConfig(
        output_bps=int(processing_raw.get("output_bps", 8)),
        no_auto_bright=bool(processing_raw.get("no_auto_bright", False)),
        bright=float(processing_raw.get("bright", 1.0)),
        highlight_mode=int(processing_raw.get("highlight_mode", 0)),
        demosaic=int(processing_raw.get("demosaic", -1)),
        fbdd_noise_reduction=int(processing_raw.get("fbdd_noise_reduction", 0)),
        output_color=int(processing_raw.get("output_color", 1)),
        gamma=_as_gamma(processing_raw.get("gamma")),
        output_tiff=bool(processing_raw.get("output_tiff", False)),
    )
    _validate(processing)

    app = AppConfig(
        library=library,
        processing=processing,
        log_level=str(raw.get("log_level", "INFO")),
        log_file=_expand_path(raw.get("log_file"), base),
    )

    if app.log_file is not None:
        app.log_file.parent.mkdir(parents=True, exist_ok=True)
    return app
