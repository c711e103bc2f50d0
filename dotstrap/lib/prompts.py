from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]

DEFAULT_YES = "default_yes"
DEFAULT_NO = "default_no"
NO_PROMPT = "no_prompt"

_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


class NoAnswer(Exception):
    """Input was closed before a value was entered."""


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def yesno(
    prompt: str,
    default: str = DEFAULT_NO,
    *,
    unattended: bool = False,
    input_fn: InputFn = input,
) -> bool:
    """Ask a yes/no question.

    ``no_prompt`` answers yes without asking; unattended runs answer with the
    default. EOF on stdin counts as an empty answer.
    """

    default_answer = default in {DEFAULT_YES, NO_PROMPT}
    if unattended or default == NO_PROMPT:
        return default_answer

    suffix = "[Y/n]" if default == DEFAULT_YES else "[y/N]"
    while True:
        try:
            reply = input_fn(f"{prompt} {suffix} ")
        except EOFError:
            reply = ""
        reply = reply.strip().lower()
        if not reply:
            return default_answer
        if reply in {"y", "yes"}:
            return True
        if reply in {"n", "no"}:
            return False
        print("Please enter 'y' for yes or 'n' for no")


def resolve_toggle(
    state: Dict[str, Any],
    key: str,
    prompt: str,
    default: str = DEFAULT_NO,
    *,
    input_fn: InputFn = input,
) -> bool:
    """Turn an ``ask`` option into yes/no (asking once) and remember the answer."""

    cfg = state.setdefault("config", {})
    options = cfg.setdefault("options", {})
    value = options.get(key, "ask")
    if value == "ask":
        answer = yesno(prompt, default, unattended=bool(cfg.get("unattended")), input_fn=input_fn)
        value = "yes" if answer else "no"
        options[key] = value
        logger.debug("Option %s resolved to %s", key, value)
    return value == "yes"


def ask_text(
    prompt: str,
    *,
    what: str,
    validator: Optional[Callable[[str], bool]] = None,
    invalid_message: str = "",
    input_fn: InputFn = input,
) -> str:
    """Ask for a non-empty value, validate it and have the user confirm it.

    Raises NoAnswer when stdin hits EOF (e.g. run with </dev/null).
    """

    while True:
        try:
            value = input_fn(prompt).strip()
        except EOFError:
            raise NoAnswer(f"No {what.lower()} entered (input closed)") from None
        if not value:
            print(f"{what} cannot be empty")
            continue
        if validator is not None and not validator(value):
            print(invalid_message or f"Invalid {what.lower()}")
            continue
        print(f"{what}: {value}")
        if yesno(f"Is this {what.lower()} correct?", DEFAULT_YES, input_fn=input_fn):
            return value
        print(f"Please enter your {what.lower()} again")
