import json

import pytest

from witr import cli
from witr.models import Process, Source, SourceType, TargetError

ANCESTRY = [
    Process(pid=1, ppid=0, command="systemd", user="root"),
    Process(pid=200, ppid=1, command="crond", user="root"),
    Process(pid=300, ppid=200, command="backup", cmdline="/usr/local/bin/backup --nightly",
            user="root", env=("HOME=/root",)),
]


@pytest.fixture
def fake_system(monkeypatch):
    resolved = {}

    def fake_resolve(pid=0, port=0, name=None):
        resolved.update(pid=pid, port=port, name=name)
        return 300

    monkeypatch.setattr(cli, "resolve_target", fake_resolve)
    monkeypatch.setattr(cli, "have_proc_net", lambda: False)
    monkeypatch.setattr(cli, "build_ancestry", lambda pid, reader: list(ANCESTRY) if pid == 300 else [])
    monkeypatch.setattr(cli, "detect", lambda ancestry: Source(SourceType.CRON, "cron", 0.6))
    return resolved


def test_json_output(fake_system, capsys):
    assert cli.main(["--pid", "300", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)

    assert fake_system["pid"] == 300
    assert data["source"]["Type"] == "cron"
    assert data["warnings"] == ["Process is running as root"]
    assert [a["Command"] for a in data["ancestry"]] == ["systemd", "crond", "backup"]


def test_short_output(fake_system, capsys):
    assert cli.main(["backup", "--short", "--no-color"]) == 0
    assert capsys.readouterr().out.strip() == "systemd (pid 1) → crond (pid 200) → backup (pid 300)"
    assert fake_system["name"] == "backup"


def test_tree_output(fake_system, capsys):
    assert cli.main(["--port", "8080", "--tree", "--no-color"]) == 0
    assert capsys.readouterr().out.splitlines()[-1] == "    └─ backup (pid 300)"
    assert fake_system["port"] == 8080


def test_warnings_only(fake_system, capsys):
    assert cli.main(["--pid", "300", "--warnings", "--no-color"]) == 0
    assert capsys.readouterr().out.strip() == "• Process is running as root"


def test_env_output(fake_system, capsys):
    assert cli.main(["--pid", "300", "--env", "--json"]) == 0
    assert json.loads(capsys.readouterr().out) == {
        "command": "/usr/local/bin/backup --nightly",
        "env": ["HOME=/root"],
    }


def test_standard_output(fake_system, capsys):
    assert cli.main(["--pid", "300", "--no-color"]) == 0
    out = capsys.readouterr().out
    assert "Source: cron" in out
    assert "Why It Exists:" in out


def test_unreadable_target(monkeypatch, capsys):
    monkeypatch.setattr(cli, "resolve_target", lambda pid=0, port=0, name=None: pid)
    monkeypatch.setattr(cli, "have_proc_net", lambda: False)
    monkeypatch.setattr(cli, "build_ancestry", lambda pid, reader: [])

    assert cli.main(["--pid", "4040"]) == 1
    assert capsys.readouterr().err.strip() == "Error: cannot read process 4040"


def test_ambiguous_name_lists_candidates(monkeypatch, capsys):
    def fake_resolve(pid=0, port=0, name=None):
        raise TargetError("multiple processes found, re-run with: witr --pid <pid>",
                          candidates=((10, "python a.py"), (11, "python b.py")))

    monkeypatch.setattr(cli, "resolve_target", fake_resolve)

    assert cli.main(["python"]) == 1
    captured = capsys.readouterr()
    assert "  [1] PID 10  python a.py" in captured.out
    assert "  [2] PID 11  python b.py" in captured.out
    assert captured.err.startswith("Error: multiple processes found")


def test_no_target(capsys):
    assert cli.main([]) == 1
    assert "no target specified" in capsys.readouterr().err


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.startswith("witr ")
