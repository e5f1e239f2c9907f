"""Pydantic schemas for wizard activation, step inputs and progress views."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ── Activation ──────────────────────────────────────────────

class ActivateWizardsRequest(BaseModel):
    """Payload for POST /api/sales-handover/activate-wizards."""
    sales_handover_id: str = Field(..., min_length=1)


class WizardInstanceOut(BaseModel):
    id: str
    org_id: str
    project_id: str
    wizard_id: str
    status: str
    progress_percentage: int | None = None
    completed_steps_count: int | None = None
    total_required_steps: int | None = None
    activated_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ActivationResponse(BaseModel):
    """Serialized with exclude_unset: keys the activator did not report are omitted."""
    message: str
    activated_count: int | None = None
    wizard_count: int | None = None
    wizard_instances: list[WizardInstanceOut] | None = None


# ── Step inputs ─────────────────────────────────────────────

class StepInputRequest(BaseModel):
    """Payload for POST /api/wizard-inputs. `data` must be a JSON object."""
    wizard_instance_id: str = Field(..., min_length=1)
    wizard_step_id: str = Field(..., min_length=1)
    data: dict[str, Any]


class StepInputOut(BaseModel):
    id: str
    org_id: str
    wizard_instance_id: str
    wizard_step_id: str
    data: dict[str, Any]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class StepInputResponse(BaseModel):
    success: bool = True
    data: StepInputOut


# ── Progress views ──────────────────────────────────────────

class WizardSummary(BaseModel):
    id: str
    name: str
    description: str | None = None


class InstanceListItem(BaseModel):
    id: str
    status: str
    progress_percentage: int
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    wizard: WizardSummary | None = None


class InstanceGroups(BaseModel):
    attention: list[InstanceListItem] = []
    pending: list[InstanceListItem] = []
    completed: list[InstanceListItem] = []


class ProjectWizardsResponse(BaseModel):
    project_id: str
    project_name: str
    total: int
    completed_count: int
    overall_progress: int
    instances: list[InstanceListItem]
    groups: InstanceGroups


class StepView(BaseModel):
    step_id: str
    step_key: str
    title: str
    description: str | None = None
    position: int
    is_required: bool
    step_type: str
    config: dict[str, Any] = {}
    existing_data: dict[str, Any] = {}
    status: str
    is_complete: bool


class InstanceDetailResponse(BaseModel):
    id: str
    status: str
    project_id: str
    project_country: str | None = None
    wizard: WizardSummary
    steps: list[StepView]
    completed_required: int
    required: int
    total_required_steps: int | None = None
    percentage: int
    next_step_id: str | None = None


class CompletionStats(BaseModel):
    total: int
    completed: int
    required: int
    required_completed: int
    percent_complete: int


class WizardOutputsResponse(BaseModel):
    customer_summary: str
    pm_draft: str
    stats: CompletionStats
