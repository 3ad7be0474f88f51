from __future__ import annotations

import json
from pathlib import Path

import pytest

from rawport import cli

from conftest import JPEG_THUMB, FakeLibRaw


@pytest.fixture
def patched_lib(monkeypatch: pytest.MonkeyPatch) -> FakeLibRaw:
    lib = FakeLibRaw()
    monkeypatch.setattr(cli, "load_library", lambda path=None: lib)
    return lib


def test_metadata_json(raw_file: Path, patched_lib: FakeLibRaw, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["metadata", str(raw_file), "--json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["width"] == 4000
    assert payload["height"] == 3000
    assert payload["camera"]["make"] == "Canon"


def test_metadata_text(raw_file: Path, patched_lib: FakeLibRaw, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["metadata", str(raw_file)]) == 0

    out = capsys.readouterr().out
    assert "Camera: Canon EOS R" in out
    assert "range: 24-105mm" in out
    assert "ISO 400 1/250 f/5.6 50mm" in out


def test_thumbnail(raw_file: Path, tmp_path: Path, patched_lib: FakeLibRaw) -> None:
    out = tmp_path / "thumb.jpg"
    assert cli.main(["thumbnail", str(raw_file), str(out)]) == 0
    assert out.read_bytes() == JPEG_THUMB


def test_import_saves_png(raw_file: Path, tmp_path: Path, patched_lib: FakeLibRaw) -> None:
    from PIL import Image

    out = tmp_path / "decoded.png"
    assert cli.main(["import", str(raw_file), str(out)]) == 0

    with Image.open(out) as img:
        assert img.size == (6, 4)


def test_export_tiff_flag(raw_file: Path, tmp_path: Path, patched_lib: FakeLibRaw) -> None:
    out = tmp_path / "dev.tiff"
    assert cli.main(["export", str(raw_file), str(out), "--tiff", "--bps", "16"]) == 0
    assert patched_lib.settings["output_tif"] == 1
    assert patched_lib.settings["output_bps"] == 16


def test_missing_input_exit_code(tmp_path: Path, patched_lib: FakeLibRaw, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["metadata", str(tmp_path / "missing.CR2")]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_version(patched_lib: FakeLibRaw, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["version"]) == 0
    assert "LibRaw 0.21.2-Release" in capsys.readouterr().out


def test_import_into_missing_directory(raw_file: Path, tmp_path: Path, patched_lib: FakeLibRaw) -> None:
    out = tmp_path / "missing" / "decoded.png"

    assert cli.main(["import", str(raw_file), str(out)]) == 1
    assert not out.parent.exists()
    assert patched_lib.calls == []
