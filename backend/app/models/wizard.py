"""Wizard templates: a definition plus its ordered steps."""

import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

STEP_TYPES = ("text", "textarea", "select", "checkbox", "country_specific")


class WizardDefinition(Base):
    __tablename__ = "wizards"
    __table_args__ = (UniqueConstraint("org_id", "key", name="uq_wizards_org_key"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    org_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id"), nullable=False, index=True
    )
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    steps = relationship(
        "WizardStep", back_populates="wizard", order_by="WizardStep.position"
    )


class WizardStep(Base):
    __tablename__ = "wizard_steps"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    wizard_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("wizards.id"), nullable=False, index=True
    )
    step_key: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, default=0)
    step_type: Mapped[str] = mapped_column(String(50), default="text")
    is_required: Mapped[bool] = mapped_column(Boolean, default=True)
    # Per-type settings: countries, options, placeholder, rows, label
    config: Mapped[dict | None] = mapped_column(JSON, default=dict)

    wizard = relationship("WizardDefinition", back_populates="steps")
