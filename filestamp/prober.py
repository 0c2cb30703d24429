from __future__ import annotations

import os

from filestamp.models import ProbeResult


NS_PER_SECOND = 1_000_000_000


def _probe(path: str | os.PathLike[str], *, follow_symlinks: bool) -> ProbeResult:
    try:
        stat = os.stat(path, follow_symlinks=follow_symlinks)
    except FileNotFoundError:
        return ProbeResult(mtime=0, exists=False)
    return ProbeResult(mtime=stat.st_mtime_ns // NS_PER_SECOND, exists=True)


def probe_following(path: str | os.PathLike[str]) -> ProbeResult:
    """Stat ``path`` through any symlinks. Errors other than absence propagate."""
    return _probe(path, follow_symlinks=True)


def probe_exact(path: str | os.PathLike[str]) -> ProbeResult:
    """Stat ``path`` itself without following a terminal symlink."""
    return _probe(path, follow_symlinks=False)
