"""Aggregate model imports for Alembic auto-detection."""

from app.models.organization import Organization  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.project import Project  # noqa: F401
from app.models.sales_handover import (  # noqa: F401
    SalesHandover,
    SalesHandoverItem,
    SalesHandoverWizardMap,
)
from app.models.wizard import WizardDefinition, WizardStep  # noqa: F401
from app.models.wizard_instance import WizardInstance, WizardStepInput  # noqa: F401
