from __future__ import annotations

from pathlib import Path

import pytest

from rawport.config import AppConfig, load_config


def test_load_config_defaults_without_file() -> None:
    cfg = load_config(None)
    assert cfg == AppConfig()
    assert cfg.processing.output_bps == 8
    assert cfg.library.path is None


def test_load_config_resolves_relative_paths(tmp_path: Path) -> None:
    cfg_file = tmp_path / "rawport.yaml"
    cfg_file.write_text(
        """
library:
  path: ./lib/libraw_r.so.23
processing:
  output_bps: 16
  demosaic: 3
  gamma: [1.0, 1.0]
  output_tiff: true
log_level: DEBUG
log_file: ./logs/rawport.log
""",
        encoding="utf-8",
    )

    cfg = load_config(cfg_file)
    assert cfg.library.path == (tmp_path / "lib" / "libraw_r.so.23").resolve()
    assert cfg.processing.output_bps == 16
    assert cfg.processing.demosaic == 3
    assert cfg.processing.gamma == (1.0, 1.0)
    assert cfg.processing.output_tiff is True
    assert cfg.log_level == "DEBUG"
    assert cfg.log_file is not None
    assert cfg.log_file.parent.exists()


def test_load_config_rejects_bad_bps(tmp_path: Path) -> None:
    cfg_file = tmp_path / "rawport.yaml"
    cfg_file.write_text("processing:\n  output_bps: 12\n", encoding="utf-8")

    with pytest.raises(ValueError, match="output_bps"):
        load_config(cfg_file)


def test_load_config_rejects_bad_gamma(tmp_path: Path) -> None:
    cfg_file = tmp_path / "rawport.yaml"
    cfg_file.write_text("processing:\n  gamma: 2.2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="gamma"):
        load_config(cfg_file)


def test_empty_config_file(tmp_path: Path) -> None:
    cfg_file = tmp_path / "rawport.yaml"
    cfg_file.write_text("", encoding="utf-8")
    assert load_config(cfg_file) == AppConfig()
