"""Initial schema: organizations, projects, handovers, wizards, instances, inputs.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

No unique constraint on (project_id, wizard_id) or on
(wizard_instance_id, wizard_step_id): uniqueness there is an application
existence check.
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

import sqlalchemy as sa
from alembic import op


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _org_fk() -> sa.Column:
    return sa.Column(
        "org_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False, index=True
    )


def upgrade() -> None:
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("org_id", sa.String(36), sa.ForeignKey("organizations.id"), index=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "projects",
        _id(),
        _org_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(50), server_default="active"),
        sa.Column("country", sa.String(2)),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "sales_handovers",
        _id(),
        _org_fk(),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.id"), nullable=False, index=True),
        sa.Column("status", sa.String(50), server_default="DRAFT"),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "sales_handover_items",
        _id(),
        sa.Column(
            "sales_handover_id", sa.String(36),
            sa.ForeignKey("sales_handovers.id"), nullable=False, index=True,
        ),
        sa.Column("item_key", sa.String(100), nullable=False),
        sa.Column("item_value", sa.String(255), nullable=False),
    )

    op.create_table(
        "sales_handover_wizard_map",
        _id(),
        _org_fk(),
        sa.Column("item_key", sa.String(100), nullable=False),
        sa.Column("item_value", sa.String(255), nullable=False),
        sa.Column("wizard_key", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
    )

    op.create_table(
        "wizards",
        _id(),
        _org_fk(),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.UniqueConstraint("org_id", "key", name="uq_wizards_org_key"),
    )

    op.create_table(
        "wizard_steps",
        _id(),
        sa.Column("wizard_id", sa.String(36), sa.ForeignKey("wizards.id"), nullable=False, index=True),
        sa.Column("step_key", sa.String(100), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("position", sa.Integer(), server_default="0"),
        sa.Column("step_type", sa.String(50), server_default="text"),
        sa.Column("is_required", sa.Boolean(), server_default=sa.true()),
        sa.Column("config", sa.JSON()),
    )

    op.create_table(
        "wizard_instances",
        _id(),
        _org_fk(),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.id"), nullable=False, index=True),
        sa.Column("wizard_id", sa.String(36), sa.ForeignKey("wizards.id"), nullable=False, index=True),
        sa.Column("status", sa.String(50), server_default="ACTIVE"),
        sa.Column("progress_percentage", sa.Integer()),
        sa.Column("completed_steps_count", sa.Integer()),
        sa.Column("total_required_steps", sa.Integer()),
        sa.Column("activated_at", sa.DateTime(timezone=True)),
        sa.Column("started_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "wizard_step_inputs",
        _id(),
        _org_fk(),
        sa.Column(
            "wizard_instance_id", sa.String(36),
            sa.ForeignKey("wizard_instances.id"), nullable=False, index=True,
        ),
        sa.Column(
            "wizard_step_id", sa.String(36),
            sa.ForeignKey("wizard_steps.id"), nullable=False, index=True,
        ),
        sa.Column("data", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )


def downgrade() -> None:
    for table in (
        "wizard_step_inputs",
        "wizard_instances",
        "wizard_steps",
        "wizards",
        "sales_handover_wizard_map",
        "sales_handover_items",
        "sales_handovers",
        "projects",
        "users",
        "organizations",
    ):
        op.drop_table(table)
