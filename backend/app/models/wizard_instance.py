"""Per-project wizard runs and the answers collected for them.

Uniqueness of (project, wizard) instances and of (instance, step) inputs is
enforced by an existence check in the service layer, not by a constraint.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

INSTANCE_ACTIVE = "ACTIVE"


class WizardInstance(Base):
    __tablename__ = "wizard_instances"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    org_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id"), nullable=False, index=True
    )
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id"), nullable=False, index=True
    )
    wizard_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("wizards.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(50), default=INSTANCE_ACTIVE)

    # Progress counters. progress_percentage and completed_steps_count are
    # maintained outside this service; total_required_steps is written once
    # at activation.
    progress_percentage: Mapped[int | None] = mapped_column(Integer)
    completed_steps_count: Mapped[int | None] = mapped_column(Integer)
    total_required_steps: Mapped[int | None] = mapped_column(Integer)

    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    wizard = relationship("WizardDefinition")
    inputs = relationship("WizardStepInput", back_populates="instance")


class WizardStepInput(Base):
    __tablename__ = "wizard_step_inputs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    org_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id"), nullable=False, index=True
    )
    wizard_instance_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("wizard_instances.id"), nullable=False, index=True
    )
    wizard_step_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("wizard_steps.id"), nullable=False, index=True
    )
    # Answer blob, shaped {"value": ...} by the web client
    data: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    instance = relationship("WizardInstance", back_populates="inputs")
