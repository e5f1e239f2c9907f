"""Project and wizard progress router.

Endpoints:
    GET  /api/projects/                                            List projects
    GET  /api/projects/{project_id}                                Project detail
    GET  /api/projects/{project_id}/wizards                        Instances grouped by status
    GET  /api/projects/{project_id}/wizards/{instance_id}          Steps, answers, progress
    GET  /api/projects/{project_id}/wizards/{instance_id}/outputs  Customer summary + PM draft
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_org_id
from app.config import settings
from app.database import get_db
from app.middleware.exceptions import ResourceNotFoundError
from app.models.organization import Organization
from app.models.project import Project
from app.models.wizard import WizardDefinition, WizardStep
from app.models.wizard_instance import WizardInstance, WizardStepInput
from app.schemas.project import ProjectOut
from app.schemas.wizard import (
    CompletionStats,
    InstanceDetailResponse,
    InstanceGroups,
    InstanceListItem,
    ProjectWizardsResponse,
    StepView,
    WizardOutputsResponse,
    WizardSummary,
)
from app.services import progress
from app.services.wizard_outputs import (
    OutputStep,
    calculate_completion_stats,
    generate_customer_summary,
    generate_pm_draft,
)

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

async def _get_project(db: AsyncSession, org_id: str, project_id: str) -> Project:
    result = await db.execute(
        select(Project).where(Project.id == project_id, Project.org_id == org_id)
    )
    project = result.scalar_one_or_none()
    if not project:
        raise ResourceNotFoundError("Project not found")
    return project


async def _load_instance(
    db: AsyncSession, org_id: str, project_id: str, instance_id: str
) -> tuple[WizardInstance, WizardDefinition, list[WizardStep], dict[str, dict]]:
    """Instance + its wizard, ordered steps and {step_id: input data}."""
    instance = (
        await db.execute(
            select(WizardInstance).where(
                WizardInstance.id == instance_id,
                WizardInstance.project_id == project_id,
                WizardInstance.org_id == org_id,
            )
        )
    ).scalar_one_or_none()
    if not instance:
        raise ResourceNotFoundError("Wizard instance not found")

    wizard = (
        await db.execute(
            select(WizardDefinition).where(WizardDefinition.id == instance.wizard_id)
        )
    ).scalar_one_or_none()
    if not wizard:
        raise ResourceNotFoundError("Wizard definition not found")

    steps = (
        await db.execute(
            select(WizardStep)
            .where(WizardStep.wizard_id == wizard.id)
            .order_by(WizardStep.position.asc())
        )
    ).scalars().all()

    inputs = (
        await db.execute(
            select(WizardStepInput.wizard_step_id, WizardStepInput.data).where(
                WizardStepInput.wizard_instance_id == instance.id
            )
        )
    ).all()
    inputs_by_step = {row.wizard_step_id: row.data or {} for row in inputs}

    return instance, wizard, list(steps), inputs_by_step


# ── GET /api/projects/ ───────────────────────────────────────

@router.get("", response_model=list[ProjectOut], include_in_schema=False)
@router.get("/", response_model=list[ProjectOut])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    org_id: str = Depends(get_current_org_id),
):
    result = await db.execute(
        select(Project)
        .where(Project.org_id == org_id)
        .order_by(Project.created_at.desc())
    )
    return result.scalars().all()


# ── GET /api/projects/{project_id} ───────────────────────────

@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    org_id: str = Depends(get_current_org_id),
):
    return await _get_project(db, org_id, project_id)


# ── GET /api/projects/{project_id}/wizards ───────────────────

@router.get("/{project_id}/wizards", response_model=ProjectWizardsResponse)
async def list_project_wizards(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    org_id: str = Depends(get_current_org_id),
):
    """Instances for a project, sorted and grouped by status."""
    project = await _get_project(db, org_id, project_id)

    instances = (
        await db.execute(
            select(WizardInstance)
            .where(
                WizardInstance.project_id == project.id,
                WizardInstance.org_id == org_id,
            )
            .order_by(WizardInstance.created_at.desc())
        )
    ).scalars().all()

    wizard_ids = {i.wizard_id for i in instances}
    wizards: dict[str, WizardDefinition] = {}
    if wizard_ids:
        result = await db.execute(
            select(WizardDefinition).where(WizardDefinition.id.in_(wizard_ids))
        )
        wizards = {w.id: w for w in result.scalars().all()}

    rows = []
    for inst in instances:
        wizard = wizards.get(inst.wizard_id)
        rows.append({
            "id": inst.id,
            "status": inst.status,
            "progress_percentage": progress.instance_percentage(
                inst.progress_percentage,
                inst.completed_steps_count,
                inst.total_required_steps,
            ),
            "started_at": inst.started_at,
            "completed_at": inst.completed_at,
            "created_at": inst.created_at,
            "wizard": (
                WizardSummary(id=wizard.id, name=wizard.name, description=wizard.description)
                if wizard
                else None
            ),
        })

    ordered = progress.sort_by_status(rows)
    groups = progress.group_instances(ordered)

    return ProjectWizardsResponse(
        project_id=project.id,
        project_name=project.name,
        total=len(ordered),
        completed_count=len(groups["completed"]),
        overall_progress=progress.overall_progress(
            [r["progress_percentage"] for r in ordered]
        ),
        instances=[InstanceListItem(**r) for r in ordered],
        groups=InstanceGroups(
            **{k: [InstanceListItem(**r) for r in v] for k, v in groups.items()}
        ),
    )


# ── GET /api/projects/{project_id}/wizards/{instance_id} ─────

@router.get(
    "/{project_id}/wizards/{instance_id}",
    response_model=InstanceDetailResponse,
)
async def get_wizard_instance(
    project_id: str,
    instance_id: str,
    db: AsyncSession = Depends(get_db),
    org_id: str = Depends(get_current_org_id),
):
    """Visible steps with stored answers and derived progress."""
    project = await _get_project(db, org_id, project_id)
    instance, wizard, steps, inputs_by_step = await _load_instance(
        db, org_id, project.id, instance_id
    )

    shown = progress.visible_steps(steps, project.country)
    values = {s.id: progress.step_value(inputs_by_step.get(s.id)) for s in shown}

    step_views = []
    for s in shown:
        complete = progress.is_step_complete(s.step_type, values[s.id])
        step_views.append(StepView(
            step_id=s.id,
            step_key=s.step_key,
            title=s.title,
            description=s.description,
            position=s.position,
            is_required=s.is_required,
            step_type=s.step_type,
            config=s.config or {},
            existing_data=inputs_by_step.get(s.id, {}),
            status=progress.step_status(s.step_type, values[s.id]),
            is_complete=complete,
        ))

    required = [v for v in step_views if v.is_required]
    completed_required = sum(1 for v in required if v.is_complete)
    upcoming = progress.next_step(shown, values)

    return InstanceDetailResponse(
        id=instance.id,
        status=instance.status,
        project_id=project.id,
        project_country=project.country,
        wizard=WizardSummary(id=wizard.id, name=wizard.name, description=wizard.description),
        steps=step_views,
        completed_required=completed_required,
        required=len(required),
        total_required_steps=instance.total_required_steps,
        percentage=progress.instance_percentage(
            instance.progress_percentage, completed_required, len(required)
        ),
        next_step_id=upcoming.id if upcoming else None,
    )


# ── GET /api/projects/{project_id}/wizards/{instance_id}/outputs ──

@router.get(
    "/{project_id}/wizards/{instance_id}/outputs",
    response_model=WizardOutputsResponse,
)
async def get_wizard_outputs(
    project_id: str,
    instance_id: str,
    db: AsyncSession = Depends(get_db),
    org_id: str = Depends(get_current_org_id),
):
    """Customer summary and PM draft. Disabled unless configured on."""
    if not settings.wizard_outputs_enabled:
        raise HTTPException(status_code=404, detail="Wizard outputs are disabled")

    project = await _get_project(db, org_id, project_id)
    instance, wizard, steps, inputs_by_step = await _load_instance(
        db, org_id, project.id, instance_id
    )
    organization = (
        await db.execute(select(Organization).where(Organization.id == org_id))
    ).scalar_one_or_none()

    output_steps = [
        OutputStep(
            step_key=s.step_key,
            title=s.title,
            description=s.description,
            step_type=s.step_type,
            position=s.position,
            is_required=s.is_required,
            input_value=progress.step_value(inputs_by_step.get(s.id)),
        )
        for s in steps
    ]

    return WizardOutputsResponse(
        customer_summary=generate_customer_summary(wizard.name, output_steps),
        pm_draft=generate_pm_draft(
            wizard.name,
            project.name,
            organization.name if organization else "Unknown Organization",
            output_steps,
        ),
        stats=CompletionStats(**calculate_completion_stats(output_steps)),
    )
