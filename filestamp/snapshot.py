from __future__ import annotations

import logging
import os
from collections.abc import Iterator

from filestamp import codec
from filestamp.errors import DecodeError, ErrorKind, StalenessError, UnknownPathError
from filestamp.models import PathRecord, ProbeResult
from filestamp.prober import probe_exact, probe_following


logger = logging.getLogger(__name__)

WIRE_PATH = "Path"
WIRE_MTIME = "Modtime"
WIRE_EXISTS = "Exists"


def normalize_path(path: str | os.PathLike[str]) -> str:
    # abspath only cleans lexically; symlinks must stay unresolved.
    return os.path.abspath(os.fspath(path))


def formatted(record: PathRecord, reference_dir: str | os.PathLike[str]) -> str:
    return record.formatted(reference_dir)


def _live_probe(probe, path: str) -> tuple[ProbeResult | None, OSError | None]:
    try:
        return probe(path), None
    except OSError as exc:
        return None, exc


def check_record(record: PathRecord) -> None:
    """Raise if ``record`` no longer matches the filesystem.

    Raises ``StalenessError`` for a stale record and the underlying ``OSError``
    when the filesystem cannot be inspected.
    """
    path = record.path
    stat, stat_err = _live_probe(probe_following, path)
    lstat, lstat_err = _live_probe(probe_exact, path)

    # First confirmed absence decides, whatever the other probe reported.
    if lstat is not None and not lstat.exists:
        if record.exists:
            logger.debug("Lstat Check: %s: gone", path)
            raise StalenessError(ErrorKind.MISSING_EXACT, f"File {path!r} is missing (lstat)", path)
        logger.debug("Check: %s: still absent", path)
        return
    if stat is not None and not stat.exists:
        if record.exists:
            logger.debug("Stat Check: %s: gone", path)
            raise StalenessError(ErrorKind.MISSING_FOLLOWING, f"File {path!r} is missing (stat)", path)
        logger.debug("Check: %s: still absent (stat)", path)
        return
    if lstat_err is not None:
        logger.debug("Lstat Check: %s: ERR: %s", path, lstat_err)
        raise lstat_err
    if stat_err is not None:
        logger.debug("Stat Check: %s: ERR: %s", path, stat_err)
        raise stat_err

    if not record.exists:
        logger.debug("Check: %s: appeared", path)
        raise StalenessError(ErrorKind.APPEARED, f"File {path!r} newly created", path)
    if stat.mtime != record.mtime and lstat.mtime != record.mtime:
        logger.debug(
            "Check: %s: stale (stat: %s, lstat: %s, lastcheck: %s)",
            path,
            stat.mtime,
            lstat.mtime,
            record.mtime,
        )
        raise StalenessError(ErrorKind.CHANGED, f"File {path!r} has changed", path)
    logger.debug("Check: %s: up to date", path)


def _record_from_wire(item: object) -> PathRecord:
    if not isinstance(item, dict):
        raise DecodeError(f"Snapshot entry is not an object: {item!r}")
    path = item.get(WIRE_PATH)
    mtime = item.get(WIRE_MTIME, 0)
    exists = item.get(WIRE_EXISTS, False)
    if not isinstance(path, str) or not path:
        raise DecodeError(f"Snapshot entry has no valid path: {item!r}")
    if isinstance(mtime, bool) or not isinstance(mtime, int):
        raise DecodeError(f"Snapshot entry has a non-integer time: {item!r}")
    if not isinstance(exists, bool):
        raise DecodeError(f"Snapshot entry has a non-boolean exists flag: {item!r}")
    return PathRecord(path=path, mtime=mtime, exists=exists)


class Snapshot:
    """Recorded state of a set of paths, keyed by normalized absolute path."""

    def __init__(self, records: list[PathRecord] | None = None) -> None:
        self._records: dict[str, PathRecord] = {}
        for record in records or ():
            self.new_time(record.path, record.mtime, record.exists)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PathRecord]:
        return iter(self._records.values())

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return normalize_path(path) in self._records

    def __repr__(self) -> str:
        return f"Snapshot({list(self._records.values())!r})"

    @property
    def records(self) -> list[PathRecord]:
        return list(self._records.values())

    def get(self, path: str | os.PathLike[str]) -> PathRecord | None:
        return self._records.get(normalize_path(path))

    def update(self, path: str | os.PathLike[str]) -> PathRecord:
        # Both probes run first so a hard error leaves the snapshot untouched.
        following = probe_following(path)
        exact = probe_exact(path)

        mtime = 0
        exists = False
        for result in (following, exact):
            if result.exists:
                exists = True
                mtime = max(mtime, result.mtime)
        return self.new_time(path, mtime, exists)

    def new_time(self, path: str | os.PathLike[str], mtime: int, exists: bool) -> PathRecord:
        key = normalize_path(path)
        record = self._records.get(key)
        if record is None:
            record = PathRecord(path=key, mtime=mtime, exists=exists)
            self._records[key] = record
        else:
            record.mtime = mtime
            record.exists = exists
        return record

    def check(self) -> None:
        if not self._records:
            raise StalenessError(ErrorKind.EMPTY_SNAPSHOT, "Times list is empty")
        for record in self._records.values():
            check_record(record)

    def check_one(self, path: str | os.PathLike[str]) -> None:
        key = normalize_path(path)
        record = self._records.get(key)
        if record is None:
            raise UnknownPathError(key)
        check_record(record)

    def marshal(self) -> str:
        return codec.dumps(
            [
                {WIRE_PATH: r.path, WIRE_MTIME: r.mtime, WIRE_EXISTS: r.exists}
                for r in self._records.values()
            ]
        )

    @classmethod
    def unmarshal(cls, text: str) -> "Snapshot":
        data = codec.loads(text)
        if data is None:
            return cls()
        if not isinstance(data, list):
            raise DecodeError("Snapshot payload is not a list")
        return cls([_record_from_wire(item) for item in data])
