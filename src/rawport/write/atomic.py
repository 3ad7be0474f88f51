from __future__ import annotations

from contextlib import contextmanager
import logging
import os
from pathlib import Path
from typing import Iterator
import uuid

from rawport.decode.base import InputMissingError, OutputExistsError, WriteError


logger = logging.getLogger(__name__)

_STAGING_ATTEMPTS = 16


def require_input(path: str | Path) -> Path:
    p = Path(path)
    if not p.exists():
        raise InputMissingError(p)
    return p


def require_new_output(path: str | Path) -> Path:
    p = Path(path)
    if p.exists():
        raise OutputExistsError(p)
    return p


def _create_staging_file(final: Path) -> Path:
    # os.open honours the umask, unlike tempfile.mkstemp which forces 0600.
    for _ in range(_STAGING_ATTEMPTS):
        tmp = final.with_name(f".{final.name}.{uuid.uuid4().hex[:12]}.part")
        try:
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o666)
        except FileExistsError:
            continue
        os.close(fd)
        return tmp
    raise FileExistsError(f"could not create a staging file beside [{final}]")


def _publish(tmp: Path, final: Path) -> None:
    """Move ``tmp`` to ``final`` without ever replacing an existing file."""

    try:
        os.link(tmp, final)
    except FileExistsError:
        raise OutputExistsError(final) from None
    except OSError as exc:
        # Filesystems without hard links; fall back to a checked rename.
        logger.debug("hard link %s -> %s unavailable (%s), renaming", tmp, final, exc)
        if final.exists():
            raise OutputExistsError(final) from None
        os.replace(tmp, final)


@contextmanager
def staged_output(path: str | Path) -> Iterator[Path]:
    """Yield a temporary path beside ``path``; move it into place on success.

    The parent directory must already exist. On any exception the temporary
    file is removed and ``path`` is never created or replaced.
    """

    final = Path(path)
    if not final.parent.is_dir():
        raise WriteError(f"output directory [{final.parent}] does not exist", path=final)

    tmp = _create_staging_file(final)
    try:
        yield tmp
        _publish(tmp, final)
        logger.debug("moved %s -> %s", tmp, final)
    finally:
        if tmp.exists():
            tmp.unlink()
