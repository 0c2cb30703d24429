import os

import pytest


def set_mtime(path, seconds, *, follow_symlinks=True):
    os.utime(path, (seconds, seconds), follow_symlinks=follow_symlinks)


@pytest.fixture
def make_file(tmp_path):
    """Create a file under tmp_path with a fixed modification time."""

    def _make(name, mtime=1_000_000, content="x"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        set_mtime(path, mtime)
        return path

    return _make


requires_lutimes = pytest.mark.skipif(
    os.utime not in os.supports_follow_symlinks or not hasattr(os, "symlink"),
    reason="platform cannot set symlink timestamps",
)
