"""codecstream CLI.

This is the stable CLI entrypoint (console-script: ``codecstream``).

UX policy:
  - ``compress`` / ``decompress`` stream a file (or '-' for stdin/stdout)
    through CodecStream; nothing is loaded whole into memory.
  - ``--config`` takes a stream spec (JSON) and overrides the per-flag options.
  - Errors print ``[codecstream] ...`` on stderr and map to stable exit codes.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from codecstream.core.session import CODECS
from codecstream.core.status import Wrapper
from codecstream.engine.staging import WORK_DATA_SIZE
from codecstream.errors import EXIT_GENERIC, EXIT_OK, CodecStreamError, UsageError
from codecstream.files import compress_file, decompress_file
from codecstream.stream_spec import StreamSpecV1, load_stream_spec

__version__ = "0.1.0"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--debug", action="store_true", help="Show stack traces on errors")
    p.add_argument("-v", "--verbose", action="store_true", help="Log codec/stream events on stderr")


def _add_codec_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--config",
        default=None,
        help=(
            "Stream spec (JSON). Use '@file.json' to load from file, or pass JSON inline. "
            "When set, --codec/--level/--wrapper/--buffer-size are ignored. "
            "'leave_open' is rejected here: the CLI owns its files."
        ),
    )
    p.add_argument("--codec", default="zlib", choices=list(CODECS), help="Codec id")
    p.add_argument(
        "--wrapper",
        default=None,
        choices=[w.value for w in Wrapper],
        help="zlib framing (default: zlib when compressing, auto when decompressing)",
    )
    p.add_argument(
        "--buffer-size",
        type=int,
        default=WORK_DATA_SIZE,
        help=f"Staging buffer size in bytes (default: {WORK_DATA_SIZE})",
    )


def _stream_opts(ns: argparse.Namespace, *, with_level: bool) -> dict[str, Any]:
    if ns.config is not None:
        spec = load_stream_spec(str(ns.config))
        if spec.leave_open:
            raise UsageError("stream spec: 'leave_open' is not supported by the CLI")
    else:
        spec = StreamSpecV1(
            codec=ns.codec,
            level=ns.level if with_level else None,
            wrapper=Wrapper.parse(ns.wrapper) if ns.wrapper else None,
            buffer_size=int(ns.buffer_size),
        )
    opts: dict[str, Any] = {
        "codec": spec.codec,
        "wrapper": spec.wrapper,
        "buffer_size": spec.buffer_size,
    }
    if with_level:
        opts["level"] = spec.level
    return opts


def _cmd_compress(ns: argparse.Namespace) -> int:
    ratio = compress_file(ns.input, ns.output, **_stream_opts(ns, with_level=True))
    if ns.stats:
        print(f"ratio: {ratio:.2f}%", file=sys.stderr)
    return EXIT_OK


def _cmd_decompress(ns: argparse.Namespace) -> int:
    ratio = decompress_file(ns.input, ns.output, **_stream_opts(ns, with_level=False))
    if ns.stats:
        print(f"ratio: {ratio:.2f}%", file=sys.stderr)
    return EXIT_OK


def _cmd_config_validate(ns: argparse.Namespace) -> int:
    # load is the validation
    spec = load_stream_spec(str(ns.config))
    print("OK")
    if ns.show:
        print(spec.to_json())
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="codecstream", description="Forward-only compress/decompress streams (zlib, zstd)"
    )
    p.add_argument("--version", action="version", version=f"codecstream {__version__}")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_c = sub.add_parser("compress", help="Compress a file ('-' = stdin/stdout)")
    p_c.add_argument("input", type=Path)
    p_c.add_argument("output", type=Path)
    _add_codec_args(p_c)
    p_c.add_argument(
        "--level",
        type=int,
        default=None,
        help="Compression level (zlib: -1..9, zstd: up to 22; default: codec default)",
    )
    p_c.add_argument("--stats", action="store_true", help="Print the compression ratio on stderr")
    _add_common_args(p_c)

    p_d = sub.add_parser("decompress", help="Decompress a file ('-' = stdin/stdout)")
    p_d.add_argument("input", type=Path)
    p_d.add_argument("output", type=Path)
    _add_codec_args(p_d)
    p_d.add_argument("--stats", action="store_true", help="Print the compression ratio on stderr")
    _add_common_args(p_d)

    p_v = sub.add_parser("config-validate", help="Validate a stream spec (v1)")
    p_v.add_argument("config", help="Stream spec JSON (@file.json or inline JSON)")
    p_v.add_argument("--show", action="store_true", help="Print the normalized spec")
    _add_common_args(p_v)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)

    if getattr(ns, "verbose", False):
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        if ns.cmd == "compress":
            return _cmd_compress(ns)
        if ns.cmd == "decompress":
            return _cmd_decompress(ns)
        if ns.cmd == "config-validate":
            return _cmd_config_validate(ns)
        raise AssertionError("unreachable")

    except SystemExit:
        raise
    except CodecStreamError as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[codecstream] {e}", file=sys.stderr)
        return int(getattr(e, "exit_code", EXIT_GENERIC) or EXIT_GENERIC)
    except Exception as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[codecstream] error: {e}", file=sys.stderr)
        return EXIT_GENERIC


if __name__ == "__main__":
    raise SystemExit(main())
