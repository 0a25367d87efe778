"""CLI integration tests for the scripts under tools/."""

from __future__ import annotations

import json
import os
from pathlib import Path
import struct
import subprocess
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
TOOLS = REPO_ROOT / "tools"

END_OF_TRACK = b"\x00\xff\x2f\x00"


def _smf(*tracks: bytes, fmt: int = 1, division: int = 96) -> bytes:
    out = b"MThd" + struct.pack(">IHHH", 6, fmt, len(tracks), division)
    for body in tracks:
        out += b"MTrk" + struct.pack(">I", len(body)) + body
    return out


def _write(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    return path


def _run_tool(script: str, *args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = str(REPO_ROOT)
    return subprocess.run(
        [sys.executable, str(TOOLS / script), *args],
        cwd=str(REPO_ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def _single_note(tmp_path: Path) -> Path:
    body = b"\x00\x90\x3c\x40" + b"\x60\x80\x3c\x00" + END_OF_TRACK
    return _write(tmp_path / "note.mid", _smf(body, fmt=0))


def _key_change(tmp_path: Path) -> Path:
    conductor = b"\x00\xff\x59\x02\x01\x00" + b"\x81\x40\xff\x59\x02\xfe\x00" + END_OF_TRACK
    melody = b"\x00\x90\x42\x50" + b"\x60\x42\x00" + b"\x60\x46\x50" + b"\x60\x46\x00" + END_OF_TRACK
    return _write(tmp_path / "keys.mid", _smf(conductor, melody))


def test_inspect_summary(tmp_path: Path) -> None:
    path = _single_note(tmp_path)
    proc = _run_tool("inspect_midi.py", str(path))
    assert proc.returncode == 0, proc.stderr
    assert "format=0 tracks=1 division=0x0060 (96 ticks/quarter)" in proc.stdout
    assert "MTrk size=12" in proc.stdout
    assert "events=3" in proc.stdout
    assert proc.stderr == ""


def test_inspect_lists_events(tmp_path: Path) -> None:
    path = _key_change(tmp_path)
    proc = _run_tool("inspect_midi.py", "--events", str(path))
    assert proc.returncode == 0, proc.stderr
    assert "[G ionian: F#]" in proc.stdout
    assert "[Bb ionian: Bb Eb]" in proc.stdout
    assert "[FG 369hz ch0]" in proc.stdout


def test_inspect_reports_bad_file_and_continues(tmp_path: Path) -> None:
    bad = _write(tmp_path / "bad.mid", b"RIFF\x00\x00\x00\x06")
    good = _single_note(tmp_path)
    proc = _run_tool("inspect_midi.py", str(bad), str(good))
    assert proc.returncode == 1
    assert "bad header tag" in proc.stderr
    assert f"file: {good}" in proc.stdout


def test_inspect_verbose_logs_to_stderr(tmp_path: Path) -> None:
    proc = _run_tool("inspect_midi.py", "-v", str(_single_note(tmp_path)))
    assert proc.returncode == 0
    assert "decoded format 0 file" in proc.stderr


def test_targets_to_stdout(tmp_path: Path) -> None:
    proc = _run_tool("midi_to_targets.py", str(_single_note(tmp_path)))
    assert proc.returncode == 0, proc.stderr
    payload = json.loads(proc.stdout)
    assert (payload["tonic"], payload["mode"], payload["octave"]) == ("C", "ionian", 5)
    assert [(e["type"], e["timestamp"], e["degree"]) for e in payload["events"]] == [
        ("Note On", 0.0, 0),
        ("Note Off", 0.5, 0),
    ]


def test_targets_follow_key_changes(tmp_path: Path) -> None:
    out = tmp_path / "out" / "keys.json"
    proc = _run_tool("midi_to_targets.py", str(_key_change(tmp_path)), "-o", str(out))
    assert proc.returncode == 0, proc.stderr
    assert "Wrote" in proc.stdout
    events = json.loads(out.read_text(encoding="utf-8"))["events"]
    keys = [(e["tonic"], e["mode"]) for e in events if e["type"] == "Key Signature"]
    assert keys == [("G", "ionian"), ("Bb", "ionian")]
    onsets = [(e["note"], e["degree"], e["accidental"]) for e in events if e["type"] == "Note On"]
    # F# in G major, then Bb in Bb major.
    assert onsets == [(66, -1, 0), (70, 0, 0)]


def test_targets_session_file_and_overrides(tmp_path: Path) -> None:
    session = tmp_path / "session.json"
    session.write_text(json.dumps({"tonic": "D", "mode": "dorian", "muted_tracks": [0]}), encoding="utf-8")
    proc = _run_tool(
        "midi_to_targets.py",
        str(_single_note(tmp_path)),
        "--session",
        str(session),
        "--octave",
        "4",
    )
    assert proc.returncode == 0, proc.stderr
    payload = json.loads(proc.stdout)
    assert (payload["tonic"], payload["mode"], payload["octave"]) == ("D", "dorian", 4)
    assert payload["events"] == []


def test_targets_rejects_unknown_tonic(tmp_path: Path) -> None:
    proc = _run_tool("midi_to_targets.py", str(_single_note(tmp_path)), "--tonic", "H")
    assert proc.returncode == 2
    assert "tonic must be one of" in proc.stderr


def test_targets_rejects_octave_out_of_range(tmp_path: Path) -> None:
    proc = _run_tool("midi_to_targets.py", str(_single_note(tmp_path)), "--octave", "40")
    assert proc.returncode == 2
    assert "octave=40 outside [-1, 9]" in proc.stderr


def test_targets_reports_truncated_file(tmp_path: Path) -> None:
    path = _write(tmp_path / "cut.mid", _single_note(tmp_path).read_bytes()[:-2])
    proc = _run_tool("midi_to_targets.py", str(path))
    assert proc.returncode == 1
    assert "declares 12 bytes" in proc.stderr


def test_compare_with_mido(tmp_path: Path) -> None:
    key_file = _key_change(tmp_path)
    smpte = _write(tmp_path / "smpte.mid", _smf(b"\x00\x90\x3c\x40" + END_OF_TRACK, fmt=0, division=0xE728))
    proc = _run_tool("compare_with_mido.py", str(key_file), str(smpte))
    assert proc.returncode == 0, proc.stdout + proc.stderr
    assert f"ok    {key_file} notes=4" in proc.stdout
    assert f"skip  {smpte}" in proc.stdout
