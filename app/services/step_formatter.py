import re
from typing import Any, List, Optional, Sequence

import structlog
from pydantic import ValidationError

from app.models.zephyr import TestStep

logger = structlog.get_logger()

_NUMBERING = re.compile(r"^[0-9]+\.\s*")


def parse_numbered_steps(steps_text: Optional[str], expected_result: Optional[str] = None) -> List[TestStep]:
    """Turn a free-text block ("1. Open app\\n2. Log in") into steps.

    Blank lines are dropped and a leading "N." is stripped from each line.
    Only the last step carries the expected result.
    """
    if not steps_text or not isinstance(steps_text, str):
        return []

    lines = [line.strip() for line in steps_text.split("\n")]
    actions = [_NUMBERING.sub("", line, count=1) for line in lines if line]

    return [
        TestStep(
            step=action,
            data="",
            result=(expected_result or "") if index == len(actions) - 1 else "",
        )
        for index, action in enumerate(actions)
    ]


def _coerce_steps(raw_steps: Sequence[Any]) -> List[TestStep]:
    steps: List[TestStep] = []
    for position, entry in enumerate(raw_steps):
        if isinstance(entry, TestStep):
            steps.append(entry)
            continue
        if isinstance(entry, dict):
            entry = {k: ("" if v is None and k in ("data", "result") else v) for k, v in entry.items()}
        try:
            steps.append(TestStep.model_validate(entry))
        except ValidationError as e:
            logger.warning("Dropping malformed test step", position=position, error=str(e))
    return steps


def format_steps(raw_steps: Any, expected_result: Optional[str] = None) -> List[TestStep]:
    """Normalize either accepted step shape into an ordered list of TestStep."""
    if isinstance(raw_steps, str):
        return parse_numbered_steps(raw_steps, expected_result)
    if isinstance(raw_steps, (list, tuple)):
        return _coerce_steps(raw_steps)
    return []
