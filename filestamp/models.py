from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime, timedelta


UNRENDERABLE_TIME = "<<???>>"


def rfc3339(moment: datetime) -> str:
    stamp = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        return stamp[: -len("+00:00")] + "Z"
    return stamp


@dataclass(slots=True)
class PathRecord:
    path: str
    mtime: int
    exists: bool

    def formatted(self, reference_dir: str | os.PathLike[str]) -> str:
        try:
            stamp = rfc3339(datetime.fromtimestamp(self.mtime).astimezone())
        except (OverflowError, OSError, ValueError):
            stamp = UNRENDERABLE_TIME
        try:
            path = os.path.relpath(self.path, os.fspath(reference_dir))
        except ValueError:
            path = self.path
        return f"{json.dumps(path, ensure_ascii=False)} - {stamp}"


@dataclass(slots=True, frozen=True)
class ProbeResult:
    mtime: int
    exists: bool
