from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import BootstrapError

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    try:
        if _detect_format(p) in {"yaml", "yml"}:
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text) if text.strip() else {}
    except (yaml.YAMLError, ValueError) as e:
        raise BootstrapError(f"Corrupt state file {p}: {e}; delete it to start over") from e

    if not isinstance(data, dict):
        raise BootstrapError(f"State file {p} must be an object/dict, got {type(data).__name__}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(state, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.debug("State saved to %s", p)


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with sane defaults (without overriding saved values)."""

    state.setdefault("version", STATE_VERSION)
    state.setdefault("config", {})
    state.setdefault("host", {})
    state.setdefault("execution", {})

    cfg = state["config"]
    cfg.setdefault("options", {})
    cfg.setdefault("dry_run", False)
    cfg.setdefault("unattended", False)

    exe = state["execution"]
    exe.setdefault("current_step", None)
    exe.setdefault("completed_steps", [])
    exe.setdefault("errors", [])
    exe.setdefault("warnings", [])
    exe.setdefault("decisions", {})

    return state


def merge_options(state: Dict[str, Any], options: Dict[str, str]) -> None:
    """Fresh yes/no values replace saved ones; a saved answer beats a fresh "ask"."""

    saved = state.setdefault("config", {}).setdefault("options", {})
    for key, value in options.items():
        if value != "ask" or key not in saved:
            saved[key] = value


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    exe = state.setdefault("execution", {})
    completed = exe.setdefault("completed_steps", [])
    if step_id not in completed:
        completed.append(step_id)


def is_step_completed(state: Dict[str, Any], step_id: str) -> bool:
    exe = state.get("execution") or {}
    completed = exe.get("completed_steps") or []
    return step_id in completed


def add_warning(state: Dict[str, Any], step_id: str | None, message: str) -> None:
    """Record a best-effort failure. The run continues."""

    logger.warning(message)
    state.setdefault("execution", {}).setdefault("warnings", []).append(
        {"step": step_id, "message": message}
    )


def record_decision(state: Dict[str, Any], key: str, value: Any) -> None:
    state.setdefault("execution", {}).setdefault("decisions", {})[key] = value
