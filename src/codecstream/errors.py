"""Typed errors for codecstream.

Single source of truth for exit codes lives here.

Policy:
- Errors are small and boring.
- Codec failures carry the native status code and diagnostic message.
- The CLI maps errors to stable exit codes (see EXIT_* constants).
- docs/exit_codes.md is generated from this module (scripts/gen_exit_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

from codecstream.core.status import status_name

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_GENERIC = 10
EXIT_CODEC_INIT = 11
EXIT_CORRUPT_STREAM = 12


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success"),
    ExitCodeInfo(
        EXIT_USAGE,
        "USAGE",
        "Usage/config error (invalid args, invalid stream spec, wrong stream direction)",
    ),
    ExitCodeInfo(EXIT_GENERIC, "GENERIC", "Generic failure (I/O error, unexpected error, etc.)"),
    ExitCodeInfo(EXIT_CODEC_INIT, "CODEC_INIT", "Codec could not be initialized (bad level/format)"),
    ExitCodeInfo(
        EXIT_CORRUPT_STREAM,
        "CORRUPT_STREAM",
        "Codec step failed (corrupt or truncated compressed data)",
    ),
)

_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE, do not edit manually.\n")
    lines.append("> Source of truth: `src/codecstream/errors.py` (EXIT_CODES).\n")
    lines.append("> Regenerate: `python scripts/gen_exit_codes_md.py`.\n\n")
    lines.append("These are the CLI exit codes you can rely on.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Every library error extends `CodecStreamError` and carries an `exit_code`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class CodecStreamError(Exception):
    """Base error for codecstream."""

    exit_code: int = EXIT_GENERIC


class UsageError(CodecStreamError, ValueError):
    exit_code = EXIT_USAGE


class InvalidOperation(CodecStreamError):
    """Operation not allowed for this stream's direction or state."""

    exit_code = EXIT_USAGE


class NotSupported(InvalidOperation):
    """Seek/length/position on a forward-only stream."""


class StreamClosed(InvalidOperation):
    def __init__(self, message: str = "I/O operation on closed stream") -> None:
        super().__init__(message)


class _StatusError(CodecStreamError):
    """Error carrying a native codec status and optional diagnostic."""

    what = "codec error"

    def __init__(self, code: int, message: str | None = None) -> None:
        self.code = int(code)
        self.message = message
        super().__init__(self._render())

    def _render(self) -> str:
        s = f"{self.what} {self.code} ({status_name(self.code)})"
        if self.message:
            s += f": {self.message}"
        return s


class CodecInitError(_StatusError):
    exit_code = EXIT_CODEC_INIT
    what = "codec init failed with status"


class CodecError(_StatusError):
    exit_code = EXIT_CORRUPT_STREAM
    what = "codec error"
