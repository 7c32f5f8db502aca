"""submitted inventory reports

Revision ID: k002
Revises: k001
Create Date: 2026-10-19 00:00:00.000000

End-of-day stock counts, one per tenant and report_date.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'k002'
down_revision = 'k001'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'submitted_inventory_reports',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('inventory_snapshot', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'report_date', name='uq_submitted_inventory_reports_tenant_date'),
    )
    op.create_index('ix_submitted_inventory_reports_tenant_id', 'submitted_inventory_reports', ['tenant_id'])
    op.create_index('ix_submitted_inventory_reports_user_id', 'submitted_inventory_reports', ['user_id'])
    op.create_index(
        'ix_submitted_inventory_reports_tenant_submitted',
        'submitted_inventory_reports',
        ['tenant_id', 'submitted_at'],
    )


def downgrade():
    op.drop_table('submitted_inventory_reports')
