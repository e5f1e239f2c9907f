"""Read-side progress computation for wizard instances and their steps.

Everything here is pure: callers load rows, these functions derive step
completion, country visibility, percentages, grouping and the next step to
work on.
"""

import math
from typing import Any, Iterable, Sequence

# Lower sorts first: things needing attention before finished work.
STATUS_PRIORITY: dict[str, int] = {
    "blocked": 0,
    "in_progress": 1,
    "active": 1,
    "not_started": 2,
    "completed": 3,
}
_UNKNOWN_PRIORITY = 99

ATTENTION_STATUSES = {"blocked", "in_progress", "active"}
PENDING_STATUSES = {"not_started"}
COMPLETED_STATUSES = {"completed"}


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


# ── Steps ────────────────────────────────────────────────────

def step_value(data: dict | None) -> Any:
    """The answer stored in an input blob (`{"value": ...}`)."""
    if not data:
        return None
    return data.get("value")


def is_step_complete(step_type: str, value: Any) -> bool:
    """Checkbox steps need a literal True; the rest need visible text."""
    if step_type == "checkbox":
        return value is True
    return isinstance(value, str) and value.strip() != ""


def step_status(step_type: str, value: Any) -> str:
    return "complete" if is_step_complete(step_type, value) else "empty"


def is_step_visible(step_type: str, config: dict | None, country: str | None) -> bool:
    """Country-specific steps only show for projects in an allowed country.

    A project without a country sees every step.
    """
    if step_type != "country_specific" or not country:
        return True
    if not isinstance(config, dict):
        return False
    allowed = config.get("countries")
    if not isinstance(allowed, list):
        return False
    return country in allowed


def visible_steps(steps: Iterable, country: str | None) -> list:
    """Filter step rows (anything with step_type/config) for a project country."""
    return [s for s in steps if is_step_visible(s.step_type, s.config, country)]


def next_step(steps: Sequence, values: dict[str, Any]) -> Any | None:
    """First step, in the given order, that is not complete yet."""
    for step in steps:
        if not is_step_complete(step.step_type, values.get(step.id)):
            return step
    return None


# ── Instances ────────────────────────────────────────────────

def instance_percentage(
    stored: int | None,
    completed: int | None,
    required: int | None,
) -> int:
    """Stored percentage when present, else completed / required."""
    if stored is not None:
        return int(stored)
    if not required:
        return 0
    return min(100, round_half_up((completed or 0) / required * 100))


def status_priority(status: str | None) -> int:
    return STATUS_PRIORITY.get((status or "").lower(), _UNKNOWN_PRIORITY)


def sort_by_status(instances: Iterable[dict]) -> list[dict]:
    """Stable sort of instance dicts by status priority."""
    return sorted(instances, key=lambda i: status_priority(i["status"]))


def group_instances(instances: Iterable[dict]) -> dict[str, list[dict]]:
    """Bucket instance dicts into attention / pending / completed.

    Statuses outside the three buckets are left out of the groups but
    still count toward totals.
    """
    groups: dict[str, list[dict]] = {"attention": [], "pending": [], "completed": []}
    for inst in sort_by_status(instances):
        status = (inst["status"] or "").lower()
        if status in ATTENTION_STATUSES:
            groups["attention"].append(inst)
        elif status in PENDING_STATUSES:
            groups["pending"].append(inst)
        elif status in COMPLETED_STATUSES:
            groups["completed"].append(inst)
    return groups


def overall_progress(percentages: Sequence[int]) -> int:
    if not percentages:
        return 0
    return round_half_up(sum(percentages) / len(percentages))
