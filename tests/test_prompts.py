from __future__ import annotations

import pytest

from conftest import answers, no_input
from dotstrap.lib.prompts import (
    DEFAULT_NO,
    DEFAULT_YES,
    NO_PROMPT,
    NoAnswer,
    ask_text,
    resolve_toggle,
    validate_email,
    yesno,
)
from dotstrap.state_store import ensure_defaults


def _eof(prompt: str) -> str:
    raise EOFError


@pytest.mark.parametrize(
    "reply,default,expected",
    [
        ("y", DEFAULT_NO, True),
        ("YES", DEFAULT_NO, True),
        ("n", DEFAULT_YES, False),
        ("", DEFAULT_YES, True),
        ("", DEFAULT_NO, False),
    ],
)
def test_yesno_answers(reply, default, expected):
    assert yesno("Continue?", default, input_fn=answers(reply)) is expected


def test_yesno_reasks_on_invalid_input(capsys: pytest.CaptureFixture[str]):
    assert yesno("Continue?", input_fn=answers("maybe", "y")) is True
    assert "Please enter 'y' for yes or 'n' for no" in capsys.readouterr().out


def test_yesno_eof_uses_default():
    assert yesno("Continue?", DEFAULT_YES, input_fn=_eof) is True


def test_yesno_unattended_and_no_prompt_never_ask():
    assert yesno("Continue?", DEFAULT_YES, unattended=True, input_fn=no_input) is True
    assert yesno("Continue?", DEFAULT_NO, unattended=True, input_fn=no_input) is False
    assert yesno("Continue?", NO_PROMPT, input_fn=no_input) is True


def test_resolve_toggle_asks_once_and_stores_answer():
    state = ensure_defaults({})
    state["config"]["options"]["github_auth"] = "ask"

    assert resolve_toggle(state, "github_auth", "Login?", input_fn=answers("y")) is True
    assert state["config"]["options"]["github_auth"] == "yes"
    assert resolve_toggle(state, "github_auth", "Login?", input_fn=no_input) is True


def test_resolve_toggle_uses_preset_value():
    state = ensure_defaults({"config": {"options": {"change_shell": "no"}}})
    assert resolve_toggle(state, "change_shell", "Change?", DEFAULT_YES, input_fn=no_input) is False


def test_resolve_toggle_unattended_takes_default():
    state = ensure_defaults({"config": {"unattended": True}})
    assert resolve_toggle(state, "setup_dev_dir", "Dev dir?", DEFAULT_YES, input_fn=no_input) is True
    assert state["config"]["options"]["setup_dev_dir"] == "yes"


def test_ask_text_validates_and_confirms(capsys: pytest.CaptureFixture[str]):
    value = ask_text(
        "Email: ",
        what="Email",
        validator=validate_email,
        invalid_message="Invalid email format",
        input_fn=answers("", "not-an-email", "ada@example.com", "n", "ada@example.org", ""),
    )

    assert value == "ada@example.org"
    out = capsys.readouterr().out
    assert "Email cannot be empty" in out
    assert "Invalid email format" in out


@pytest.mark.parametrize(
    "email,ok",
    [("user@example.com", True), ("first.last+tag@sub.example.co", True), ("nope", False), ("a@b", False)],
)
def test_validate_email(email, ok):
    assert validate_email(email) is ok


def test_ask_text_closed_input_raises_no_answer():
    with pytest.raises(NoAnswer, match="No name entered"):
        ask_text("Name: ", what="Name", input_fn=_eof)
