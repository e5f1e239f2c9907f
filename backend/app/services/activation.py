"""Handover-to-wizard activation.

Turns a confirmed sales handover into wizard instances for its project:
  - Matching handover items against the org's active mapping rules
  - Loading the active wizard definitions for the matched keys
  - Creating one ACTIVE instance per wizard the project doesn't have yet
  - Seeding each new instance with its required-step count

Idempotence is an existence check on (project, wizard). There is no unique
constraint behind it, so two concurrent activations of the same handover
can both insert.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.middleware.exceptions import (
    BackendOperationError,
    PreconditionFailedError,
    ResourceNotFoundError,
)
from app.models.sales_handover import (
    HANDOVER_CONFIRMED,
    SalesHandover,
    SalesHandoverItem,
    SalesHandoverWizardMap,
)
from app.models.wizard import WizardDefinition, WizardStep
from app.models.wizard_instance import INSTANCE_ACTIVE, WizardInstance

logger = logging.getLogger(__name__)


async def _execute(db: AsyncSession, stmt, failure: str):
    try:
        return await db.execute(stmt)
    except SQLAlchemyError as exc:
        raise BackendOperationError(failure, exc) from exc


def resolve_wizard_keys(
    items: Iterable[tuple[str, str]],
    mappings: Iterable[tuple[str, str, str]],
) -> set[str]:
    """Union of wizard keys whose (item_key, item_value) appears in items.

    `items` are (item_key, item_value) pairs; `mappings` are
    (item_key, item_value, wizard_key) rules. No weighting or priority.
    """
    pairs = set(items)
    return {
        wizard_key
        for item_key, item_value, wizard_key in mappings
        if (item_key, item_value) in pairs
    }


async def _count_required_steps(db: AsyncSession, wizard_id: str) -> int:
    result = await db.execute(
        select(func.count(WizardStep.id)).where(
            WizardStep.wizard_id == wizard_id,
            WizardStep.is_required == True,  # noqa: E712
        )
    )
    return result.scalar() or 0


async def _seed_required_step_counts(
    db: AsyncSession, instances: list[WizardInstance]
) -> None:
    """Write total_required_steps for freshly created instances.

    Best effort: each write runs in its own savepoint and a failure leaves
    that instance with a null count without failing the activation.
    """
    for instance in instances:
        try:
            async with db.begin_nested():
                count = await _count_required_steps(db, instance.wizard_id)
                await db.execute(
                    update(WizardInstance.__table__)
                    .where(WizardInstance.__table__.c.id == instance.id)
                    .values(total_required_steps=count)
                )
        except SQLAlchemyError:
            logger.warning(
                "Could not seed total_required_steps for wizard instance %s",
                instance.id,
                exc_info=True,
            )
            continue
        set_committed_value(instance, "total_required_steps", count)


async def activate_wizards(db: AsyncSession, org_id: str, sales_handover_id: str) -> dict:
    """Create wizard instances for a confirmed handover.

    Returns:
        {
            "message": str,
            "activated_count": int | None,
            "wizard_count": int | None,
            "wizard_instances": list[WizardInstance] | None,
        }

    `wizard_instances` is only present when at least one instance was
    created.

    Raises:
        ResourceNotFoundError     handover or wizard definitions missing
        PreconditionFailedError   handover not CONFIRMED
        BackendOperationError     any database failure
    """
    # ── Handover must exist and be confirmed ──────────────────
    handover = (
        await _execute(
            db,
            select(SalesHandover).where(
                SalesHandover.id == sales_handover_id,
                SalesHandover.org_id == org_id,
            ),
            "Failed to fetch sales handover",
        )
    ).scalar_one_or_none()
    if not handover:
        raise ResourceNotFoundError("Sales handover not found")

    if handover.status != HANDOVER_CONFIRMED:
        raise PreconditionFailedError(
            "Sales handover must be confirmed before activating wizards",
            error_code="HANDOVER_NOT_CONFIRMED",
        )

    # ── Items → mapping rules → wizard keys ───────────────────
    items = (
        await _execute(
            db,
            select(SalesHandoverItem.item_key, SalesHandoverItem.item_value).where(
                SalesHandoverItem.sales_handover_id == handover.id
            ),
            "Failed to fetch handover items",
        )
    ).all()
    if not items:
        return {"message": "No items found in handover, no wizards activated"}

    mappings = (
        await _execute(
            db,
            select(
                SalesHandoverWizardMap.item_key,
                SalesHandoverWizardMap.item_value,
                SalesHandoverWizardMap.wizard_key,
            ).where(
                SalesHandoverWizardMap.org_id == handover.org_id,
                SalesHandoverWizardMap.is_active == True,  # noqa: E712
            ),
            "Failed to fetch wizard mappings",
        )
    ).all()
    if not mappings:
        return {"message": "No wizard mappings found, no wizards activated"}

    wizard_keys = resolve_wizard_keys(
        ((i.item_key, i.item_value) for i in items),
        ((m.item_key, m.item_value, m.wizard_key) for m in mappings),
    )
    if not wizard_keys:
        return {"message": "No matching wizards found for handover items"}

    wizards = (
        await _execute(
            db,
            select(WizardDefinition).where(
                WizardDefinition.org_id == handover.org_id,
                WizardDefinition.is_active == True,  # noqa: E712
                WizardDefinition.key.in_(sorted(wizard_keys)),
            ),
            "Failed to fetch wizard definitions",
        )
    ).scalars().all()
    if not wizards:
        raise ResourceNotFoundError("No active wizards found matching the handover items")

    # ── Skip wizards the project already runs ─────────────────
    existing = (
        await _execute(
            db,
            select(WizardInstance.wizard_id).where(
                WizardInstance.project_id == handover.project_id
            ),
            "Failed to fetch existing wizard instances",
        )
    ).scalars().all()
    existing_ids = set(existing)

    to_create = [w for w in wizards if w.id not in existing_ids]
    if not to_create:
        return {
            "message": "All required wizards already activated",
            "activated_count": 0,
            "wizard_count": len(wizards),
        }

    now = datetime.now(timezone.utc)
    created = [
        WizardInstance(
            org_id=handover.org_id,
            project_id=handover.project_id,
            wizard_id=wizard.id,
            status=INSTANCE_ACTIVE,
            activated_at=now,
        )
        for wizard in to_create
    ]
    db.add_all(created)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        raise BackendOperationError("Failed to create wizard instances", exc) from exc

    await _seed_required_step_counts(db, created)

    logger.info(
        "Activated %d wizard(s) for handover %s (keys: %s)",
        len(created),
        handover.id,
        ", ".join(sorted(wizard_keys)),
    )

    return {
        "message": "Wizard instances activated successfully",
        "activated_count": len(created),
        "wizard_instances": created,
    }
