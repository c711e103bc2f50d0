from __future__ import annotations

from typing import Any, Dict

from ..context import RunContext
from ..lib.prompts import DEFAULT_NO, resolve_toggle
from ..state_store import add_warning


class BaseStep:
    step_id = ""
    title = ""

    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx

    def warn(self, state: Dict[str, Any], message: str) -> None:
        add_warning(state, self.step_id, message)

    def toggle(self, state: Dict[str, Any], key: str, prompt: str, default: str = DEFAULT_NO) -> bool:
        return resolve_toggle(state, key, prompt, default, input_fn=self.ctx.input_fn)

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError
