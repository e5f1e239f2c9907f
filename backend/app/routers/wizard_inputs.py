"""Wizard step input router.

Endpoints:
    POST  /api/wizard-inputs   Save (insert or overwrite) the answer for one step
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_org_id
from app.database import get_db
from app.schemas.wizard import StepInputOut, StepInputRequest, StepInputResponse
from app.services.step_inputs import upsert_step_input

router = APIRouter()


@router.post("", response_model=StepInputResponse)
async def save_step_input(
    body: StepInputRequest,
    db: AsyncSession = Depends(get_db),
    org_id: str = Depends(get_current_org_id),
):
    row = await upsert_step_input(
        db,
        org_id,
        body.wizard_instance_id,
        body.wizard_step_id,
        body.data,
    )
    return StepInputResponse(success=True, data=StepInputOut.model_validate(row))
