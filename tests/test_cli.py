import pytest

from netdiag import __version__, cli
from netdiag.core import dns_lookup, ping as ping_mod
from netdiag.core.utils import CheckResult, Status


def test_parser_ping_arguments():
    args = cli._build_parser().parse_args(["ping", "8.8.8.8", "-c", "2", "-t", "1.5", "-s", "100"])
    assert (args.command, args.target, args.count, args.timeout, args.size) == ("ping", "8.8.8.8", 2, 1.5, 100)


def test_parser_info_refresh():
    args = cli._build_parser().parse_args(["info", "--refresh"])
    assert args.command == "info" and args.refresh


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    cli.main([])
    assert "usage: netdiag" in capsys.readouterr().out


def test_ping_dispatch(monkeypatch):
    seen = {}

    def fake_check(host, options):
        seen["host"], seen["options"] = host, options
        return CheckResult(title="Ping", status=Status.SUCCESS, target=host)

    monkeypatch.setattr(ping_mod, "ping_check", fake_check)
    cli.main(["ping", "example.com", "-c", "3"])
    assert seen["host"] == "example.com"
    assert seen["options"].count == 3


def test_empty_domain_exits_with_error(monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["lookup", "https://"])
    assert exc.value.code == 1


def test_lookup_dispatch(monkeypatch, capsys):
    monkeypatch.setattr(dns_lookup, "lookup_hosts", lambda target: ["93.184.215.14"])
    cli.main(["lookup", "example.com"])
    assert "93.184.215.14" in capsys.readouterr().out
