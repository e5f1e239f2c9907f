"""Step-input upsert: one answer blob per (wizard instance, step).

The existing-row check and the write are separate statements with no lock,
so two simultaneous first submissions for the same step can both insert.
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BackendOperationError, ResourceNotFoundError
from app.models.wizard import WizardStep
from app.models.wizard_instance import WizardInstance, WizardStepInput


async def upsert_step_input(
    db: AsyncSession,
    org_id: str,
    wizard_instance_id: str,
    wizard_step_id: str,
    data: dict,
) -> WizardStepInput:
    """Insert or overwrite the answer for one step of one instance."""
    try:
        instance = (
            await db.execute(
                select(WizardInstance).where(
                    WizardInstance.id == wizard_instance_id,
                    WizardInstance.org_id == org_id,
                )
            )
        ).scalar_one_or_none()
        if not instance:
            raise ResourceNotFoundError("Wizard instance not found")

        step = (
            await db.execute(
                select(WizardStep.id).where(
                    WizardStep.id == wizard_step_id,
                    WizardStep.wizard_id == instance.wizard_id,
                )
            )
        ).scalar_one_or_none()
        if not step:
            raise ResourceNotFoundError("Wizard step not found")

        existing = (
            await db.execute(
                select(WizardStepInput).where(
                    WizardStepInput.wizard_instance_id == wizard_instance_id,
                    WizardStepInput.wizard_step_id == wizard_step_id,
                )
            )
        ).scalars().first()

        if existing:
            existing.data = data
            existing.updated_at = datetime.now(timezone.utc)
            row = existing
        else:
            row = WizardStepInput(
                org_id=instance.org_id,
                wizard_instance_id=wizard_instance_id,
                wizard_step_id=wizard_step_id,
                data=data,
            )
            db.add(row)
        await db.flush()
    except SQLAlchemyError as exc:
        raise BackendOperationError("Failed to save wizard step input", exc) from exc

    return row
