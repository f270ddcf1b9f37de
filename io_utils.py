# io_utils.py

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from schemas import PrdPayload
from story_graph.models import WorkItem

OPERATOR_LABEL = "Operator"
DASHBOARD_LABEL = "Dashboard"


def get_user_input() -> str:
    """
    Get a line of input from the operator.
    This is the *only* place where the CLI prompt string lives.
    """
    return input(f"{OPERATOR_LABEL} > ")


def print_dashboard(text: str) -> None:
    print(f"{DASHBOARD_LABEL}:\n{text}\n")


def load_prd_file(path: str | Path) -> List[WorkItem]:
    """
    Read a prd.json ({"stories": [...]}) or a bare list of stories from disk.
    """
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    if isinstance(data, list):
        data = {"stories": data}
    prd = PrdPayload.model_validate(data)
    return [s.to_work_item() for s in prd.stories]
