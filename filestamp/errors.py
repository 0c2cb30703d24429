from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_EXACT = "missing_exact"
    MISSING_FOLLOWING = "missing_following"
    APPEARED = "appeared"
    CHANGED = "changed"
    EMPTY_SNAPSHOT = "empty_snapshot"
    UNKNOWN_PATH = "unknown_path"
    DECODE = "decode"
    PROBE = "probe"


STALENESS_REASONS = {
    ErrorKind.MISSING_EXACT: "missing",
    ErrorKind.MISSING_FOLLOWING: "missing",
    ErrorKind.APPEARED: "newly appeared",
    ErrorKind.CHANGED: "changed",
    ErrorKind.EMPTY_SNAPSHOT: "empty snapshot",
}


class FileStampError(Exception):
    """Base class for errors raised by the snapshot store itself."""

    kind: ErrorKind

    def __init__(self, kind: ErrorKind, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = path


class StalenessError(FileStampError):
    """The live filesystem no longer matches the recorded snapshot."""

    def __init__(self, kind: ErrorKind, message: str, path: str | None = None) -> None:
        if kind not in STALENESS_REASONS:
            raise ValueError(f"Not a staleness kind: {kind}")
        super().__init__(kind, message, path)

    @property
    def reason(self) -> str:
        return STALENESS_REASONS[self.kind]


class UnknownPathError(FileStampError):
    def __init__(self, path: str) -> None:
        super().__init__(ErrorKind.UNKNOWN_PATH, f"File {path!r} is unknown", path)


class DecodeError(FileStampError, ValueError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.DECODE, message)


def classify(exc: BaseException) -> ErrorKind | None:
    """Map an exception raised by the store to its kind, or None if foreign."""
    if isinstance(exc, FileStampError):
        return exc.kind
    if isinstance(exc, OSError):
        return ErrorKind.PROBE
    return None
