from __future__ import annotations

import time

import pytest

from dotstrap.errors import BootstrapError
from dotstrap.lib import sudo as sudo_mod
from dotstrap.lib.sudo import SudoSession, SudoUnavailable


@pytest.fixture
def session_factory(monkeypatch: pytest.MonkeyPatch, recorder):
    monkeypatch.setattr(sudo_mod, "run_cmd", recorder)
    sessions = []

    def make(**kwargs) -> SudoSession:
        s = SudoSession(**kwargs)
        sessions.append(s)
        return s

    yield make
    for s in sessions:
        s.stop()


def test_dry_run_never_calls_sudo(session_factory, recorder):
    s = session_factory(dry_run=True)
    s.ensure()
    s.run(["apt-get", "update"])

    assert recorder.calls == [["sudo", "-n", "apt-get", "update"]]
    assert recorder.kwargs[0]["dry_run"] is True
    assert not s.keepalive_running


def test_run_passes_environment_through_env(session_factory, recorder):
    s = session_factory(environ={"SUDO_KEEPALIVE_INTERVAL": "3600"})

    s.run(["apt-get", "install", "-y", "jq"], env={"DEBIAN_FRONTEND": "noninteractive"})

    assert recorder.calls[0] == ["sudo", "-n", "true"]
    assert recorder.calls[-1] == [
        "sudo", "-n", "env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "install", "-y", "jq",
    ]
    assert s.keepalive_running


def test_interactive_prompt_failure_raises(session_factory, recorder):
    recorder.respond(["sudo", "-n", "true"], 1)
    recorder.respond(["sudo", "-v"], 1)
    s = session_factory()

    with pytest.raises(SudoUnavailable):
        s.ensure()
    assert recorder.kwargs[-1]["interactive"] is True


def test_unattended_without_credentials_times_out(session_factory, recorder):
    recorder.respond(["sudo", "-n", "true"], 1)
    s = session_factory(
        unattended=True,
        environ={"SUDO_REFRESH_TIMEOUT": "0.05", "SUDO_REFRESH_INTERVAL": "0.01"},
    )

    with pytest.raises(BootstrapError, match="Timed out"):
        s.ensure()
    assert ["sudo", "-v"] not in recorder.calls


def test_repeated_ensure_keeps_one_keepalive_thread(session_factory, recorder):
    s = session_factory(environ={"SUDO_KEEPALIVE_INTERVAL": "3600"})
    s.ensure()
    first = s._thread

    s.ensure()

    assert s.keepalive_running
    assert s._thread is first


def test_keepalive_refreshes_until_stopped(session_factory, recorder):
    s = session_factory(environ={"SUDO_KEEPALIVE_INTERVAL": "0.01"})
    s.ensure()

    deadline = time.monotonic() + 2
    while ["sudo", "-n", "-v"] not in recorder.calls and time.monotonic() < deadline:
        time.sleep(0.01)
    s.stop()

    assert ["sudo", "-n", "-v"] in recorder.calls
    assert not s.keepalive_running


def test_keepalive_stops_when_credentials_expire(session_factory, recorder):
    recorder.respond(["sudo", "-n", "-v"], 1)
    s = session_factory(environ={"SUDO_KEEPALIVE_INTERVAL": "0.01"})
    s.ensure()

    s._thread.join(timeout=2)

    assert not s.keepalive_running
    assert recorder.calls.count(["sudo", "-n", "-v"]) == 1


def test_non_numeric_interval_falls_back_to_default():
    s = SudoSession(environ={"SUDO_KEEPALIVE_INTERVAL": "soon"})
    assert s.keepalive_interval == sudo_mod.DEFAULT_KEEPALIVE_INTERVAL
