import stat
import sys

from netdiag.core import utils
from netdiag.core.utils import CheckResult, Status, find_command, print_result, run_command


# ── find_command ──────────────────────────────────────────────────────────────


def test_find_command_nothing_found():
    assert find_command("nonexistentcommand", ["/no/such/path"]) == ""


def test_find_command_prefers_candidate(tmp_path):
    tool = tmp_path / "mytool"
    tool.write_text("#!/bin/sh\nexit 0\n")
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR)
    assert find_command("mytool", ["/no/such/path", str(tool)]) == str(tool)


def test_find_command_falls_back_to_path(monkeypatch):
    seen = []

    def which(cmd):
        seen.append(cmd)
        return "/opt/bin/ip" if cmd == "ip" else None

    monkeypatch.setattr(utils.shutil, "which", which)
    assert find_command("ip", ["/bin/ip", "/sbin/ip"]) == "/opt/bin/ip"
    assert seen == ["/bin/ip", "/sbin/ip", "ip"]


# ── run_command ───────────────────────────────────────────────────────────────


def test_run_command_separate_streams():
    rc, out, err = run_command([sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"])
    assert rc == 0
    assert out.strip() == "out"
    assert err.strip() == "err"


def test_run_command_merged_streams():
    code = "import sys; print('out', flush=True); print('err', file=sys.stderr, flush=True); sys.exit(3)"
    rc, out, err = run_command([sys.executable, "-c", code], merge_stderr=True)
    assert rc == 3
    assert out.split() == ["out", "err"]
    assert err == ""


def test_run_command_not_found():
    rc, out, err = run_command(["/no/such/binary-netdiag"])
    assert rc == -1
    assert out == ""
    assert "not found" in err


def test_run_command_timeout():
    rc, _, err = run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)
    assert rc == -2
    assert "timed out" in err


# ── Presentation ──────────────────────────────────────────────────────────────


def test_print_result_renders(capsys):
    print_result(CheckResult(
        title="Ping — Reachability Check",
        status=Status.PARTIAL,
        target="8.8.8.8",
        summary="Host is reachable.",
        details=["Sent: 4"],
        raw_output="4 packets transmitted",
    ), show_raw=True)
    out = capsys.readouterr().out
    assert "Host is reachable." in out
    assert "4 packets transmitted" in out
