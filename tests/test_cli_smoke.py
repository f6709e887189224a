from __future__ import annotations

import gzip
import json
import subprocess
import sys
import zlib
from pathlib import Path

from codecstream.stream_spec import SPEC_ID_V1

DATA = "FATTURA 1001\nRIGA ARTICOLO: vite M3 qty=10 prezzo=1.20\nTOTALE 12.00\n" * 200


def _run_cli(
    *args: str, cwd: Path | None = None, stdin: bytes | None = None
) -> subprocess.CompletedProcess[bytes]:
    """Run the codecstream CLI through a python -c wrapper.

    This avoids assuming the console-script entrypoint is installed.
    """
    cmd = [
        sys.executable,
        "-c",
        "from codecstream.cli import main; raise SystemExit(main())",
        *args,
    ]
    return subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        input=stdin,
        capture_output=True,
    )


def test_cli_file_roundtrip_zlib(tmp_path: Path) -> None:
    inp = tmp_path / "in.txt"
    out = tmp_path / "out.z"
    back = tmp_path / "back.txt"
    inp.write_text(DATA, encoding="utf-8")

    r = _run_cli("compress", str(inp), str(out), "--level", "9", "--stats")
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert b"ratio:" in r.stderr
    assert zlib.decompress(out.read_bytes()).decode("utf-8") == DATA

    r = _run_cli("decompress", str(out), str(back))
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert back.read_text(encoding="utf-8") == DATA


def test_cli_stdin_stdout_zstd() -> None:
    r = _run_cli("compress", "-", "-", "--codec", "zstd", stdin=DATA.encode("utf-8"))
    assert r.returncode == 0, r.stderr
    blob = r.stdout

    r = _run_cli("decompress", "-", "-", "--codec", "zstd", stdin=blob)
    assert r.returncode == 0, r.stderr
    assert r.stdout == DATA.encode("utf-8")


def test_cli_gzip_wrapper(tmp_path: Path) -> None:
    inp = tmp_path / "in.txt"
    out = tmp_path / "out.gz"
    inp.write_text(DATA, encoding="utf-8")

    r = _run_cli("compress", str(inp), str(out), "--wrapper", "gzip", "--buffer-size", "64")
    assert r.returncode == 0, r.stderr
    assert gzip.decompress(out.read_bytes()).decode("utf-8") == DATA


def test_cli_config_validate_and_use_inline_json(tmp_path: Path) -> None:
    inp = tmp_path / "in.txt"
    out = tmp_path / "out.zst"
    back = tmp_path / "back.txt"
    inp.write_text(DATA, encoding="utf-8")

    spec_arg = json.dumps({"spec": SPEC_ID_V1, "codec": "zstd", "level": 5}, separators=(",", ":"))

    r = _run_cli("config-validate", spec_arg, "--show")
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert b"OK" in r.stdout
    assert b'"codec":"zstd"' in r.stdout

    r = _run_cli("compress", str(inp), str(out), "--config", spec_arg)
    assert r.returncode == 0, r.stderr

    r = _run_cli("decompress", str(out), str(back), "--config", spec_arg)
    assert r.returncode == 0, r.stderr
    assert back.read_text(encoding="utf-8") == DATA


def test_cli_config_validate_rejects_bad_json_exit_2() -> None:
    r = _run_cli("config-validate", "{}")
    assert r.returncode == 2
    assert b"[codecstream]" in r.stderr


def test_cli_bad_level_exit_11(tmp_path: Path) -> None:
    inp = tmp_path / "in.txt"
    inp.write_text(DATA, encoding="utf-8")

    r = _run_cli("compress", str(inp), str(tmp_path / "out.z"), "--level", "42")
    assert r.returncode == 11
    assert b"[codecstream] codec init failed" in r.stderr


def test_cli_corrupt_input_exit_12(tmp_path: Path) -> None:
    bad = tmp_path / "bad.z"
    bad.write_bytes(b"\x78\x9c" + b"\xff" * 64)

    r = _run_cli("decompress", str(bad), str(tmp_path / "out.txt"))
    assert r.returncode == 12
    assert b"[codecstream] codec error" in r.stderr


def test_cli_truncated_input_exit_12(tmp_path: Path) -> None:
    trunc = tmp_path / "trunc.z"
    trunc.write_bytes(zlib.compress(DATA.encode("utf-8"))[:-10])

    r = _run_cli("decompress", str(trunc), str(tmp_path / "out.txt"))
    assert r.returncode == 12
    assert b"buffer error" in r.stderr


def test_cli_missing_input_exit_10(tmp_path: Path) -> None:
    r = _run_cli("compress", str(tmp_path / "nope.txt"), str(tmp_path / "out.z"))
    assert r.returncode == 10
    assert b"[codecstream] error:" in r.stderr


def test_cli_config_with_leave_open_is_rejected_exit_2(tmp_path: Path) -> None:
    inp = tmp_path / "in.txt"
    inp.write_text(DATA, encoding="utf-8")
    spec_arg = json.dumps({"spec": SPEC_ID_V1, "leave_open": True})

    r = _run_cli("compress", str(inp), str(tmp_path / "out.z"), "--config", spec_arg)
    assert r.returncode == 2
    assert b"leave_open" in r.stderr
    assert not (tmp_path / "out.z").exists()
