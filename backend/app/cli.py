"""Management CLI for operators.

Usage:
    python -m app.cli list-orgs                      # Show all organizations
    python -m app.cli activate-handover <handover>   # Run wizard activation for a handover
"""

import asyncio
import sys

from sqlalchemy import create_engine, select

from app.config import settings
from app.database import async_session
from app.middleware.exceptions import OnboardingException
from app.models.organization import Organization
from app.models.sales_handover import SalesHandover
from app.services.activation import activate_wizards


def list_orgs():
    engine = create_engine(settings.database_url_sync)
    with engine.connect() as conn:
        rows = conn.execute(select(Organization.id, Organization.name)).all()
    for org_id, name in rows:
        print(f"  {org_id}  {name}")
    print(f"\n{len(rows)} organization(s)")


async def _activate(handover_id: str) -> int:
    async with async_session() as db:
        org_id = (
            await db.execute(
                select(SalesHandover.org_id).where(SalesHandover.id == handover_id)
            )
        ).scalar_one_or_none()
        if not org_id:
            print(f"  Sales handover not found: {handover_id}")
            return 1
        try:
            result = await activate_wizards(db, org_id, handover_id)
            await db.commit()
        except OnboardingException as exc:
            await db.rollback()
            print(f"  FAILED: {exc.message}")
            return 1
    print(f"  {result['message']}")
    for inst in result.get("wizard_instances") or []:
        print(f"    {inst.id}  wizard={inst.wizard_id}  steps={inst.total_required_steps}")
    return 0


def activate_handover(handover_id: str) -> int:
    return asyncio.run(_activate(handover_id))


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "list-orgs":
        list_orgs()
    elif cmd == "activate-handover" and len(sys.argv) > 2:
        sys.exit(activate_handover(sys.argv[2]))
    else:
        print("Usage: python -m app.cli [list-orgs|activate-handover <handover_id>]")
