from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Protocol


class DecodeError(RuntimeError):
    pass


class MissingDependencyError(DecodeError):
    pass


class LibraryNotFoundError(MissingDependencyError):
    pass


class LibraryVersionError(MissingDependencyError):
    pass


class InputMissingError(DecodeError, FileNotFoundError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(f"input file [{path}] does not exist")
        self.path = Path(path)


class OutputExistsError(DecodeError, FileExistsError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(f"output file [{path}] already exists")
        self.path = Path(path)


class ContextReleasedError(DecodeError):
    pass


class LibRawError(DecodeError):
    """A non-zero LibRaw status code with LibRaw's own description."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"libraw error: {message}")
        self.code = code
        self.message = message


class StageError(DecodeError):
    stage = "libraw"

    def __init__(self, message: str, path: str | Path, code: int | None = None) -> None:
        super().__init__(message)
        self.path = Path(path)
        self.code = code


class OpenError(StageError):
    stage = "open"


class UnpackError(StageError):
    stage = "unpack"


class NoThumbnailError(UnpackError):
    stage = "unpack_thumb"


class ProcessError(StageError):
    stage = "process"


class MemImageError(StageError):
    stage = "mem_image"


class WriteError(StageError):
    stage = "write"


class PixmapDecodeError(DecodeError):
    pass


class StatusSource(Protocol):
    def strerror(self, code: int) -> str:
        ...


def translate(code: int, lib: StatusSource) -> LibRawError | None:
    """Map a LibRaw status code to ``None`` (success) or a ``LibRawError``.

    Positive codes are errno values propagated from LibRaw's file open.
    """

    code = int(code)
    if code == 0:
        return None
    if code > 0:
        return LibRawError(code, os.strerror(code))
    return LibRawError(code, lib.strerror(code))


def check(code: int, lib: StatusSource, error_cls: type[StageError], message: str, path: str | Path) -> None:
    err = translate(code, lib)
    if err is None:
        return
    raise error_cls(f"{message} with [{err.message}]", path=path, code=err.code) from err


def describe(exc: BaseException) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    for key in ("stage", "code", "path"):
        value = getattr(exc, key, None)
        if value is not None:
            payload[key] = str(value) if isinstance(value, Path) else value
    return payload
