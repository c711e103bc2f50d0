from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import pytest

from dotstrap.context import RunContext
from dotstrap.lib.command import CmdResult, CommandError
from dotstrap.lib.env import Paths
from dotstrap.state_store import ensure_defaults


class FakeSudo:
    """SudoSession stand-in that records argv instead of running it."""

    def __init__(self, failing: Iterable[str] = ()) -> None:
        self.calls: List[List[str]] = []
        self.envs: List[Any] = []
        self.inputs: List[Any] = []
        self.ensured = 0
        self.stopped = False
        self.failing = set(failing)

    def ensure(self) -> None:
        self.ensured += 1

    def run(self, argv: Sequence[str], *, check: bool = True, env: Any = None, input_text: Any = None) -> CmdResult:
        argv = list(argv)
        self.calls.append(argv)
        self.envs.append(env)
        self.inputs.append(input_text)
        rc = 1 if argv and argv[0] in self.failing else 0
        result = CmdResult(argv=argv, returncode=rc, stdout="", stderr="")
        if check and rc != 0:
            raise CommandError(result)
        return result

    def stop(self) -> None:
        self.stopped = True


class FakeInstaller:
    name = "fake"
    update_error = None

    def __init__(self, present: Iterable[str] = (), failing: Iterable[str] = ()) -> None:
        self.present = set(present)
        self.failing = set(failing)
        self.calls: List[str] = []

    def is_installed(self, package: str) -> bool:
        return package in self.present

    def install(self, package: str) -> None:
        self.calls.append(package)
        if package in self.failing:
            raise CommandError(CmdResult(argv=["install", package], returncode=100, stdout="", stderr="boom"))
        self.present.add(package)


class CommandRecorder:
    """Replaces a module's ``run_cmd``; answers by the longest matching argv prefix."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.kwargs: List[Dict[str, Any]] = []
        self.responses: Dict[Tuple[str, ...], Tuple[int, str]] = {}

    def respond(self, prefix: Sequence[str], returncode: int = 0, stdout: str = "") -> None:
        self.responses[tuple(prefix)] = (returncode, stdout)

    def __call__(self, argv: Sequence[str], **kwargs: Any) -> CmdResult:
        argv = list(argv)
        self.calls.append(argv)
        self.kwargs.append(kwargs)

        rc, out, best = 0, "", -1
        for prefix, (r, o) in self.responses.items():
            if tuple(argv[: len(prefix)]) == prefix and len(prefix) > best:
                rc, out, best = r, o, len(prefix)

        result = CmdResult(argv=argv, returncode=rc, stdout=out, stderr="")
        if kwargs.get("check", True) and rc != 0:
            raise CommandError(result)
        return result


def answers(*replies: str):
    """input() replacement returning the given replies in order."""

    it = iter(replies)

    def _input(prompt: str) -> str:
        return next(it)

    return _input


def no_input(prompt: str) -> str:
    raise AssertionError(f"unexpected prompt: {prompt}")


@pytest.fixture
def home(tmp_path: Path) -> Path:
    h = tmp_path / "home"
    h.mkdir(parents=True, exist_ok=True)
    return h


@pytest.fixture
def dotfiles(tmp_path: Path) -> Path:
    d = tmp_path / "dotfiles"
    d.mkdir(parents=True, exist_ok=True)
    return d


@pytest.fixture
def environ(home: Path) -> Dict[str, str]:
    return {"HOME": str(home), "SHELL": "/bin/bash", "USER": "tester"}


@pytest.fixture
def paths(environ: Dict[str, str], dotfiles: Path) -> Paths:
    return Paths.from_env(environ, dotfiles_dir=str(dotfiles))


@pytest.fixture
def sudo() -> FakeSudo:
    return FakeSudo()


@pytest.fixture
def ctx(paths: Paths, sudo: FakeSudo, environ: Dict[str, str]) -> RunContext:
    return RunContext(paths=paths, sudo=sudo, environ=environ, input_fn=no_input)


@pytest.fixture
def state() -> Dict[str, Any]:
    return ensure_defaults({})


@pytest.fixture
def recorder() -> CommandRecorder:
    return CommandRecorder()
