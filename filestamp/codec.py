from __future__ import annotations

import base64
import binascii
import json
import zlib
from typing import Any

from filestamp.errors import DecodeError


def dumps(value: Any) -> str:
    """Encode ``value`` as compressed JSON in URL-safe base64."""
    raw = json.dumps(value, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(zlib.compress(raw, 9)).decode("ascii")


def loads(text: str) -> Any:
    payload = (text or "").strip()
    try:
        compressed = base64.urlsafe_b64decode(payload.encode("ascii"))
        raw = zlib.decompress(compressed)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, zlib.error, UnicodeError, ValueError) as exc:
        raise DecodeError(f"Malformed snapshot payload: {exc}") from exc
