"""create_renovation_scope

Creates the renovation_scope table (one row per renovation line item):
  - descriptive fields + baselines (target_cost, est_value_add)
  - contractor_bid / timeline_weeks (written by bulk bid submission)
  - ai_risk_assessment (written by the risk annotator)

Created conditionally (IF NOT EXISTS semantics) so it is safe against a
database that already received the table via db.create_all().

Revision ID: a1c3e5f70b12
Revises:
Create Date: 2026-10-18 09:12:44.310215
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = 'a1c3e5f70b12'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    if "renovation_scope" in existing:
        return

    op.create_table(
        "renovation_scope",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("item_name", sa.String(length=200), nullable=False),
        sa.Column(
            "category", sa.String(length=40), nullable=False,
            comment="Phase 1 Essential | Phase 2 Discretionary | Deal Killer",
        ),
        sa.Column("critical_constraint", sa.Text(), nullable=True),
        sa.Column(
            "permit_type", sa.String(length=30), nullable=False,
            comment="OTC | OTC with Plans | Full Plan Check | Site Permit",
        ),
        sa.Column("regulatory_flags", sa.Text(), nullable=True),
        sa.Column("target_cost", sa.Float(), nullable=False),
        sa.Column("est_value_add", sa.Float(), nullable=False),
        sa.Column("contractor_bid", sa.Float(), nullable=True),
        sa.Column("timeline_weeks", sa.Integer(), nullable=True),
        sa.Column("ai_risk_assessment", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade():
    op.drop_table("renovation_scope")
