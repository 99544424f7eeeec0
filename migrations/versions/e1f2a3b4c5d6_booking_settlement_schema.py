"""booking confirmation and settlement schema

Revision ID: e1f2a3b4c5d6
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'e1f2a3b4c5d6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'facilities',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=True),
        sa.Column('capacities_json', sa.Text(), nullable=False),
        sa.Column('admin_emails_json', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('facility_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('resource_type', sa.String(length=40), nullable=False),
        sa.Column('time', sa.String(length=5), nullable=False),
        sa.Column('requester_id', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('channel', sa.String(length=20), nullable=False),
        sa.Column('payment_id', sa.String(length=128), nullable=True),
        sa.Column('payment_json', sa.Text(), nullable=True),
        sa.Column('full_name', sa.String(length=120), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('reject_reason', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_id')
    )
    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_bookings_facility_id'), ['facility_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_bookings_requester_id'), ['requester_id'], unique=False)
        batch_op.create_index('ix_bookings_slot_status', ['facility_id', 'date', 'resource_type', 'time', 'status'], unique=False)

    op.create_table(
        'manual_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('facility_id', sa.String(length=64), nullable=False),
        sa.Column('facility_name', sa.String(length=120), nullable=True),
        sa.Column('date', sa.String(length=10), nullable=True),
        sa.Column('resource_type', sa.String(length=40), nullable=True),
        sa.Column('time', sa.String(length=5), nullable=True),
        sa.Column('user_id', sa.String(length=128), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=120), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('booking_id', sa.Integer(), nullable=True),
        sa.Column('reviewed_by', sa.String(length=128), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('manual_payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_manual_payments_facility_id'), ['facility_id'], unique=False)

    op.create_table(
        'settlement_line_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('facility_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('payment_id', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('total_charged', sa.Integer(), nullable=False),
        sa.Column('commission', sa.Integer(), nullable=False),
        sa.Column('base_fraction', sa.Integer(), nullable=False),
        sa.Column('pay_full', sa.Boolean(), nullable=False),
        sa.Column('deposit_pct', sa.Integer(), nullable=True),
        sa.Column('manual', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('facility_id', 'date', 'payment_id', name='uq_settlement_payment_once')
    )
    op.create_table(
        'daily_settlements',
        sa.Column('facility_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('count_total', sa.Integer(), nullable=False),
        sa.Column('count_full', sa.Integer(), nullable=False),
        sa.Column('count_deposit', sa.Integer(), nullable=False),
        sa.Column('sum_total_charged', sa.Integer(), nullable=False),
        sa.Column('sum_commission', sa.Integer(), nullable=False),
        sa.Column('sum_base_fraction', sa.Integer(), nullable=False),
        sa.Column('sum_net_to_facility', sa.Integer(), nullable=False),
        sa.Column('paid_out', sa.Boolean(), nullable=False),
        sa.Column('paid_out_at', sa.DateTime(), nullable=True),
        sa.Column('paid_out_by', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('facility_id', 'date')
    )
    op.create_table(
        'reconciliation_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('payment_id', sa.String(length=128), nullable=False),
        sa.Column('facility_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('resource_type', sa.String(length=40), nullable=False),
        sa.Column('time', sa.String(length=5), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=40), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('resolution_note', sa.String(length=255), nullable=True),
        sa.Column('resolved_by', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_id')
    )
    with op.batch_alter_table('reconciliation_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_reconciliation_items_facility_id'), ['facility_id'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('entity', sa.String(length=80), nullable=True),
        sa.Column('entity_id', sa.String(length=128), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('metadata_json', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('audit_logs')
    with op.batch_alter_table('reconciliation_items', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_reconciliation_items_facility_id'))
    op.drop_table('reconciliation_items')
    op.drop_table('daily_settlements')
    op.drop_table('settlement_line_items')
    with op.batch_alter_table('manual_payments', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_manual_payments_facility_id'))
    op.drop_table('manual_payments')
    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.drop_index('ix_bookings_slot_status')
        batch_op.drop_index(batch_op.f('ix_bookings_requester_id'))
        batch_op.drop_index(batch_op.f('ix_bookings_facility_id'))
    op.drop_table('bookings')
    op.drop_table('facilities')
