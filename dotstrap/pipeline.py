from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from .errors import BootstrapError
from .state_store import is_step_completed, mark_step_completed

logger = logging.getLogger(__name__)


class Step(Protocol):
    """One desired-state assertion: check, then install or skip."""

    step_id: str
    title: str

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    skipped_steps: List[str]


def select_steps(
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> List[Tuple[int, Step]]:
    """The (1-based position, step) window between --start-at and --stop-after."""

    ids = [s.step_id for s in steps]
    for flag, step_id in (("--start-at", start_at), ("--stop-after", stop_after)):
        if step_id is not None and step_id not in ids:
            raise BootstrapError(f"Unknown step for {flag}: {step_id} (known: {', '.join(ids)})")

    first = ids.index(start_at) if start_at else 0
    last = ids.index(stop_after) if stop_after else len(ids) - 1
    if start_at and stop_after and last < first:
        raise BootstrapError(f"--stop-after {stop_after} comes before --start-at {start_at}")
    return list(enumerate(steps, start=1))[first : last + 1]


def run_pipeline(
    *,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
) -> PipelineResult:
    """Run the selected steps in order.

    Completed steps are skipped unless ``force``. A dry run never marks a
    step completed, so the real run that follows still executes it.
    A step that raises is left unmarked and ``execution.current_step`` keeps
    its id for the error report.
    """

    selected = select_steps(steps, start_at, stop_after)
    dry_run = bool((state.get("config") or {}).get("dry_run", False))
    total = len(steps)

    ran: List[str] = []
    skipped: List[str] = []

    for index, step in selected:
        if not force and is_step_completed(state, step.step_id):
            logger.info("[%d/%d] %s (already completed, skipping)", index, total, step.title)
            skipped.append(step.step_id)
            continue

        state.setdefault("execution", {})["current_step"] = step.step_id
        logger.info("[%d/%d] %s", index, total, step.title)
        started = time.monotonic()

        state = step.run(state)

        exe = state.setdefault("execution", {})
        exe.setdefault("step_seconds", {})[step.step_id] = round(time.monotonic() - started, 3)
        if dry_run:
            logger.debug("Dry run: %s not marked completed", step.step_id)
        else:
            mark_step_completed(state, step.step_id)
        ran.append(step.step_id)

    if stop_after is not None:
        logger.info("Stopped after %s", stop_after)
    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, skipped_steps=skipped)
