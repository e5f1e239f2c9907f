"""Customer summary and PM draft generation from wizard step answers.

Derived text only, nothing is persisted. Served by the outputs endpoint,
which stays off unless `settings.wizard_outputs_enabled` is set.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from app.services.progress import round_half_up

RULE_WIDTH = 60


@dataclass
class OutputStep:
    step_key: str
    title: str
    description: str | None
    step_type: str
    position: int
    is_required: bool
    input_value: Any = None


def _is_answered(step: OutputStep) -> bool:
    return step.input_value is not None and step.input_value != ""


def format_value_for_display(value: Any, step_type: str) -> str:
    """Human-readable rendering of a stored answer."""
    if value is None:
        return "(not provided)"

    if step_type == "checkbox":
        return "✓ Yes" if value is True else "✗ No"

    if isinstance(value, str):
        return value.strip() or "(empty)"

    if isinstance(value, bool):
        return "Yes" if value else "No"

    if isinstance(value, (int, float)):
        return str(value)

    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def generate_customer_summary(wizard_name: str, steps: list[OutputStep]) -> str:
    """Markdown summary of what the customer has submitted."""
    lines = [
        f"# {wizard_name} - Your Submission Summary",
        "",
        "Thank you for completing this onboarding wizard. "
        "Here is a summary of the information you provided:",
        "",
    ]

    answered = [s for s in steps if _is_answered(s)]
    if not answered:
        lines.append("No information has been submitted yet.")
        return "\n".join(lines)

    for step in answered:
        lines.append(f"## {step.position}. {step.title}")
        if step.description:
            lines.append(f"*{step.description}*")
        lines.append(f"**Answer:** {format_value_for_display(step.input_value, step.step_type)}")
        lines.append("")

    lines.append("---")
    lines.append("If you need to make changes, please contact your project manager.")
    return "\n".join(lines)


def _append_step_block(lines: list[str], steps: list[OutputStep]) -> None:
    for step in steps:
        lines.append(f"[{step.step_key}] {step.title}")
        lines.append(f"  → {format_value_for_display(step.input_value, step.step_type)}")
        lines.append("")


def generate_pm_draft(
    wizard_name: str,
    project_name: str,
    organization_name: str,
    steps: list[OutputStep],
    generated_at: datetime | None = None,
) -> str:
    """Delimited plain-text report for the PM handover / support ticket."""
    generated_at = generated_at or datetime.now(timezone.utc)
    lines = [
        "=" * RULE_WIDTH,
        f"ONBOARDING INFORMATION: {wizard_name}",
        "=" * RULE_WIDTH,
        "",
        f"Organization: {organization_name}",
        f"Project: {project_name}",
        f"Generated: {generated_at.isoformat()}",
        "",
        "-" * RULE_WIDTH,
        "",
    ]

    answered = [s for s in steps if _is_answered(s)]
    if not answered:
        lines.append("⚠️ NO INFORMATION SUBMITTED YET")
        lines.append("")
        lines.append("Customer has not completed any steps in this wizard.")
        return "\n".join(lines)

    required = [s for s in answered if s.is_required]
    optional = [s for s in answered if not s.is_required]

    if required:
        lines.append("📋 REQUIRED INFORMATION")
        lines.append("")
        _append_step_block(lines, required)

    if optional:
        lines.append("-" * RULE_WIDTH)
        lines.append("")
        lines.append("📝 ADDITIONAL INFORMATION")
        lines.append("")
        _append_step_block(lines, optional)

    lines.append("=" * RULE_WIDTH)
    lines.append("END OF ONBOARDING INFORMATION")
    lines.append("=" * RULE_WIDTH)
    return "\n".join(lines)


def calculate_completion_stats(steps: list[OutputStep]) -> dict[str, int]:
    total = len(steps)
    required = sum(1 for s in steps if s.is_required)
    completed = sum(1 for s in steps if _is_answered(s))
    required_completed = sum(1 for s in steps if s.is_required and _is_answered(s))
    percent = round_half_up(required_completed / required * 100) if required else 100
    return {
        "total": total,
        "completed": completed,
        "required": required,
        "required_completed": required_completed,
        "percent_complete": percent,
    }
