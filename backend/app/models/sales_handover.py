"""Sales-to-delivery handover records.

A handover is a set of key/value items captured by sales (e.g.
`payment_provider=stripe`). Once its status reaches CONFIRMED, the items are
matched against `sales_handover_wizard_map` to decide which onboarding
wizards a project needs.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

HANDOVER_CONFIRMED = "CONFIRMED"


class SalesHandover(Base):
    __tablename__ = "sales_handovers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    org_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id"), nullable=False, index=True
    )
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id"), nullable=False, index=True
    )
    # DRAFT → CONFIRMED
    status: Mapped[str] = mapped_column(String(50), default="DRAFT")
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    project = relationship("Project", back_populates="handovers")
    items = relationship("SalesHandoverItem", back_populates="handover")


class SalesHandoverItem(Base):
    __tablename__ = "sales_handover_items"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    sales_handover_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sales_handovers.id"), nullable=False, index=True
    )
    item_key: Mapped[str] = mapped_column(String(100), nullable=False)
    item_value: Mapped[str] = mapped_column(String(255), nullable=False)

    handover = relationship("SalesHandover", back_populates="items")


class SalesHandoverWizardMap(Base):
    """Org-scoped rule: (item_key, item_value) → wizard_key."""

    __tablename__ = "sales_handover_wizard_map"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    org_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id"), nullable=False, index=True
    )
    item_key: Mapped[str] = mapped_column(String(100), nullable=False)
    item_value: Mapped[str] = mapped_column(String(255), nullable=False)
    wizard_key: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
