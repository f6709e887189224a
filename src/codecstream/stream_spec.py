"""Stream spec (v1) for codecstream.

Goal: make codec settings reproducible and portable (CLI, scripts, CI).

This module intentionally stays *small* and strict:
  - JSON only
  - explicit schema id
  - unknown keys are rejected
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from codecstream.core.session import CODECS
from codecstream.core.status import Wrapper
from codecstream.engine.staging import WORK_DATA_SIZE
from codecstream.engine.stream import CodecStream, Mode
from codecstream.errors import UsageError

SPEC_ID_V1 = "codecstream.stream.v1"


class StreamSpecError(UsageError):
    pass


def _load_json_arg(spec_arg: str) -> dict[str, Any]:
    s = spec_arg.strip()
    if not s:
        raise StreamSpecError("stream spec: empty argument")

    if s.startswith("@"):
        p = Path(s[1:]).expanduser()
        if not p.exists() or not p.is_file():
            raise StreamSpecError(f"stream spec: file not found: {p}")
        raw = p.read_text(encoding="utf-8")
        try:
            obj = json.loads(raw)
        except Exception as e:
            raise StreamSpecError(f"stream spec: invalid JSON in {p}: {e}") from e
        if not isinstance(obj, dict):
            raise StreamSpecError(f"stream spec: the JSON in {p} must be an object")
        return obj

    try:
        obj = json.loads(s)
    except Exception as e:
        raise StreamSpecError(f"stream spec: invalid inline JSON: {e}") from e
    if not isinstance(obj, dict):
        raise StreamSpecError("stream spec: inline JSON must be an object")
    return obj


def _optional_int(obj: dict[str, Any], key: str) -> int | None:
    if key not in obj or obj.get(key) is None:
        return None
    v = obj.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(v, bool) or not isinstance(v, int):
        raise StreamSpecError(f"stream spec: field '{key}' must be an integer")
    return v


def _optional_bool(obj: dict[str, Any], key: str) -> bool | None:
    if key not in obj:
        return None
    v = obj.get(key)
    if isinstance(v, bool):
        return v
    raise StreamSpecError(f"stream spec: field '{key}' must be a boolean")


@dataclass(frozen=True)
class StreamSpecV1:
    """Codec settings for one stream (either direction)."""

    codec: str = "zlib"
    level: int | None = None
    wrapper: Wrapper | None = None
    buffer_size: int = WORK_DATA_SIZE
    leave_open: bool = False

    def open(self, stream: Any, mode: str | Mode) -> CodecStream:
        return CodecStream(
            stream,
            mode,
            level=self.level,
            leave_open=self.leave_open,
            codec=self.codec,
            wrapper=self.wrapper,
            buffer_size=self.buffer_size,
        )

    def to_json(self) -> str:
        obj: dict[str, Any] = {"spec": SPEC_ID_V1, "codec": self.codec}
        if self.level is not None:
            obj["level"] = self.level
        if self.wrapper is not None:
            obj["wrapper"] = self.wrapper.value
        obj["buffer_size"] = self.buffer_size
        obj["leave_open"] = self.leave_open
        return json.dumps(obj, separators=(",", ":"))


def load_stream_spec(spec_arg: str) -> StreamSpecV1:
    """Load and validate a stream spec.

    spec_arg:
      - '@file.json'
      - inline JSON object
    """
    obj = _load_json_arg(spec_arg)

    # Strict key set (keep it small and stable).
    allowed = {"spec", "codec", "level", "wrapper", "buffer_size", "leave_open"}
    extra = sorted(set(obj.keys()) - allowed)
    if extra:
        raise StreamSpecError(f"stream spec: unsupported keys: {', '.join(extra)}")

    spec_id = obj.get("spec")
    if spec_id != SPEC_ID_V1:
        raise StreamSpecError(
            f"stream spec: unsupported spec: {spec_id!r} (expected {SPEC_ID_V1!r})"
        )

    codec = obj.get("codec", "zlib")
    if not isinstance(codec, str) or not codec.strip():
        raise StreamSpecError("stream spec: field 'codec' must be a string")
    codec = codec.strip().lower()
    if codec not in CODECS:
        raise StreamSpecError(
            f"stream spec: unknown codec {codec!r} (expected one of: {', '.join(CODECS)})"
        )

    wrapper: Wrapper | None = None
    if obj.get("wrapper") is not None:
        w = obj.get("wrapper")
        if not isinstance(w, str):
            raise StreamSpecError("stream spec: field 'wrapper' must be a string")
        try:
            wrapper = Wrapper.parse(w)
        except ValueError as e:
            raise StreamSpecError(f"stream spec: {e}") from e

    buffer_size = _optional_int(obj, "buffer_size")
    if buffer_size is None:
        buffer_size = WORK_DATA_SIZE
    if buffer_size < 1:
        raise StreamSpecError("stream spec: 'buffer_size' must be >= 1")

    leave_open = _optional_bool(obj, "leave_open")

    return StreamSpecV1(
        codec=codec,
        level=_optional_int(obj, "level"),
        wrapper=wrapper,
        buffer_size=buffer_size,
        leave_open=bool(leave_open),
    )
