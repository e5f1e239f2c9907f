"""Sales handover router.

Endpoints:
    POST  /api/sales-handover/activate-wizards   Create wizard instances for a confirmed handover
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_org_id
from app.database import get_db
from app.schemas.wizard import (
    ActivateWizardsRequest,
    ActivationResponse,
    WizardInstanceOut,
)
from app.services.activation import activate_wizards

router = APIRouter()


@router.post(
    "/activate-wizards",
    response_model=ActivationResponse,
    response_model_exclude_unset=True,
)
async def activate_handover_wizards(
    body: ActivateWizardsRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    org_id: str = Depends(get_current_org_id),
):
    """Activate the wizards a confirmed handover maps to.

    201 when instances were created, 200 with a message when there was
    nothing to do.
    """
    result = await activate_wizards(db, org_id, body.sales_handover_id)

    fields = {
        key: result[key]
        for key in ("message", "activated_count", "wizard_count")
        if key in result
    }
    instances = result.get("wizard_instances")
    if instances:
        response.status_code = status.HTTP_201_CREATED
        fields["wizard_instances"] = [
            WizardInstanceOut.model_validate(i) for i in instances
        ]

    return ActivationResponse(**fields)
