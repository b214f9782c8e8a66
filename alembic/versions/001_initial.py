"""Initial migration

Revision ID: 001
Revises:
Create Date: 2025-11-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns store member names, matching sqlalchemy.Enum(<enum class>)
table_status = sa.Enum('AVAILABLE', 'OCCUPIED', 'RESERVED', 'MAINTENANCE', 'BLOCKED', name='tablestatus')
reservation_status = sa.Enum(
    'PENDING', 'CONFIRMED', 'SEATED', 'COMPLETED', 'CANCELLED', 'NO_SHOW', name='reservationstatus'
)
reservation_source = sa.Enum(
    'PHONE', 'WEBSITE', 'WALK_IN', 'THIRD_PARTY', 'MOBILE_APP', name='reservationsource'
)
reservation_priority = sa.Enum('NORMAL', 'HIGH', 'VIP', name='reservationpriority')


def upgrade() -> None:
    # Create dining_tables table
    op.create_table(
        'dining_tables',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('number', sa.Integer(), unique=True, nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('min_capacity', sa.Integer(), default=1),
        sa.Column('max_capacity', sa.Integer()),
        sa.Column('seating_area', sa.String(100)),
        sa.Column('features', sa.JSON()),
        sa.Column('is_accessible', sa.Boolean(), default=False),
        sa.Column('status', table_status, nullable=False),
        sa.Column('current_reservation_id', postgresql.UUID(as_uuid=True)),
        sa.Column('notes', sa.Text()),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create customers table
    op.create_table(
        'customers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), unique=True, nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('total_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_spent_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_visit_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('confirmation_code', sa.String(6), unique=True, nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id')),
        sa.Column('customer_name', sa.String(255)),
        sa.Column('customer_phone', sa.String(20)),
        sa.Column('customer_email', sa.String(255)),
        sa.Column('table_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('dining_tables.id')),
        sa.Column('table_number', sa.Integer()),
        sa.Column('reservation_date', sa.Date(), nullable=False),
        sa.Column('reservation_time', sa.Time(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('preferred_seating_area', sa.String(100)),
        sa.Column('status', reservation_status, nullable=False),
        sa.Column('source', reservation_source),
        sa.Column('priority', reservation_priority),
        sa.Column('occasion', sa.String(100)),
        sa.Column('special_requests', sa.JSON()),
        sa.Column('allergies', sa.JSON()),
        sa.Column('dietary_restrictions', sa.JSON()),
        sa.Column('tags', sa.JSON()),
        sa.Column('estimated_spend_cents', sa.Integer()),
        sa.Column('actual_spend_cents', sa.Integer()),
        sa.Column('notes', sa.Text()),
        sa.Column('internal_notes', sa.JSON()),
        sa.Column('cancellation_reason', sa.Text()),
        sa.Column('reminders_sent', sa.JSON()),
        sa.Column('seated_at', sa.DateTime()),
        sa.Column('completed_at', sa.DateTime()),
        sa.Column('cancelled_at', sa.DateTime()),
        sa.Column('no_show_at', sa.DateTime()),
        sa.Column('created_by', sa.String(100)),
        sa.Column('updated_by', sa.String(100)),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create indexes
    op.create_index('ix_reservations_customer_phone', 'reservations', ['customer_phone'])
    op.create_index('ix_reservations_date_status', 'reservations', ['reservation_date', 'status'])
    op.create_index('ix_reservations_table_date', 'reservations', ['table_id', 'reservation_date'])


def downgrade() -> None:
    op.drop_index('ix_reservations_table_date')
    op.drop_index('ix_reservations_date_status')
    op.drop_index('ix_reservations_customer_phone')

    op.drop_table('reservations')
    op.drop_table('customers')
    op.drop_table('dining_tables')

    for enum_type in (reservation_priority, reservation_source, reservation_status, table_status):
        enum_type.drop(op.get_bind(), checkfirst=True)
