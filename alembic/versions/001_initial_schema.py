"""Initial schema

Revision ID: 001
Revises:
Create Date: 2025-04-01 00:00:00.000000

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

DEPARTMENTS = (
    "'operations', 'facilities', 'training', 'sales', "
    "'client_success', 'marketing', 'finance', 'management'"
)
PRIORITIES = "'low', 'medium', 'high', 'critical'"
ROLES = "'admin', 'manager', 'team_member', 'support_staff'"


def _uuid_pk() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True)


def upgrade() -> None:
    """Create all tables and indexes for the feedback desk."""

    op.create_table(
        'users',
        _uuid_pk(),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('profile_image_url', sa.String(length=1000), nullable=True),
        sa.Column('role', sa.String(length=20), server_default='support_staff', nullable=False),
        sa.Column('department', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint(f"role IN ({ROLES})", name='check_valid_role'),
        sa.CheckConstraint(f"department IN ({DEPARTMENTS})", name='check_valid_user_department'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    op.create_table(
        'teams',
        _uuid_pk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('manager_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['manager_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'categories',
        _uuid_pk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(length=100), nullable=True),
        sa.Column('color', sa.String(length=20), nullable=True),
        sa.Column('default_department', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        _created_at(),
        sa.CheckConstraint(
            f"default_department IN ({DEPARTMENTS})",
            name='check_valid_category_department'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table(
        'subcategories',
        _uuid_pk(),
        sa.Column('category_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('form_fields', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('default_department', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        _created_at(),
        sa.CheckConstraint(
            f"default_department IN ({DEPARTMENTS})",
            name='check_valid_subcategory_department'
        ),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_subcategories_category_id', 'subcategories', ['category_id'], unique=False)

    op.create_table(
        'locations',
        _uuid_pk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'tickets',
        _uuid_pk(),
        sa.Column('ticket_number', sa.String(length=32), nullable=False),
        sa.Column('category_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('subcategory_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('client_name', sa.String(length=255), nullable=False),
        sa.Column('client_email', sa.String(length=255), nullable=True),
        sa.Column('client_phone', sa.String(length=50), nullable=True),
        sa.Column('client_status', sa.String(length=100), nullable=True),
        sa.Column('client_mood', sa.String(length=100), nullable=True),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('action_taken_immediately', sa.Text(), nullable=True),
        sa.Column('location_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('incident_datetime', sa.DateTime(), nullable=True),
        sa.Column('reported_datetime', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='open', nullable=False),
        sa.Column('priority', sa.String(length=20), server_default='medium', nullable=False),
        sa.Column('department', sa.String(length=50), nullable=True),
        sa.Column('assignee_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('reported_by_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sla_deadline', sa.DateTime(), nullable=True),
        sa.Column('first_response_at', sa.DateTime(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.Column('ai_tags', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('ai_sentiment', sa.String(length=20), nullable=True),
        sa.Column('ai_sentiment_score', sa.Integer(), nullable=True),
        sa.Column('ai_suggested_category', sa.String(length=100), nullable=True),
        sa.Column('ai_keywords', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('form_data', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=True),
        sa.Column('is_escalated', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('escalated_at', sa.DateTime(), nullable=True),
        sa.Column('escalated_to_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('escalation_reason', sa.Text(), nullable=True),
        sa.Column('follow_up_required', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('follow_up_date', sa.DateTime(), nullable=True),
        sa.Column('attachments_count', sa.Integer(), server_default='0', nullable=False),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint(
            "status IN ('open', 'in_progress', 'pending', 'resolved', 'closed', 'escalated')",
            name='check_valid_status'
        ),
        sa.CheckConstraint(f"priority IN ({PRIORITIES})", name='check_valid_priority'),
        sa.CheckConstraint(f"department IN ({DEPARTMENTS})", name='check_valid_department'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['subcategory_id'], ['subcategories.id']),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['assignee_id'], ['users.id']),
        sa.ForeignKeyConstraint(['reported_by_id'], ['users.id']),
        sa.ForeignKeyConstraint(['escalated_to_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tickets_ticket_number', 'tickets', ['ticket_number'], unique=True)
    op.create_index('ix_tickets_category_id', 'tickets', ['category_id'], unique=False)
    op.create_index('ix_tickets_status', 'tickets', ['status'], unique=False)
    op.create_index('ix_tickets_priority', 'tickets', ['priority'], unique=False)
    op.create_index('ix_tickets_department', 'tickets', ['department'], unique=False)
    op.create_index('ix_tickets_assignee_id', 'tickets', ['assignee_id'], unique=False)
    op.create_index('ix_tickets_sla_deadline', 'tickets', ['sla_deadline'], unique=False)
    op.create_index('ix_tickets_created_at', 'tickets', ['created_at'], unique=False)

    op.create_table(
        'ticket_comments',
        _uuid_pk(),
        sa.Column('ticket_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_internal', sa.Boolean(), server_default='false', nullable=False),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ticket_comments_ticket_id', 'ticket_comments', ['ticket_id'], unique=False)

    op.create_table(
        'ticket_attachments',
        _uuid_pk(),
        sa.Column('ticket_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_type', sa.String(length=100), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('file_url', sa.String(length=1000), nullable=False),
        sa.Column('uploaded_by_id', postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['uploaded_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ticket_attachments_ticket_id', 'ticket_attachments', ['ticket_id'], unique=False)

    op.create_table(
        'ticket_history',
        _uuid_pk(),
        sa.Column('ticket_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('previous_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ticket_history_ticket_id', 'ticket_history', ['ticket_id'], unique=False)

    op.create_table(
        'notifications',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('ticket_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), server_default='false', nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'], unique=False)

    op.create_table(
        'assignment_rules',
        _uuid_pk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('subcategory_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('department', sa.String(length=50), nullable=True),
        sa.Column('priority', sa.String(length=20), nullable=True),
        sa.Column('assign_to_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('assign_to_team_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        _created_at(),
        sa.CheckConstraint(f"department IN ({DEPARTMENTS})", name='check_valid_rule_department'),
        sa.CheckConstraint(f"priority IN ({PRIORITIES})", name='check_valid_rule_priority'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['subcategory_id'], ['subcategories.id']),
        sa.ForeignKeyConstraint(['assign_to_user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['assign_to_team_id'], ['teams.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_assignment_rules_is_active', 'assignment_rules', ['is_active'], unique=False)

    op.create_table(
        'escalation_rules',
        _uuid_pk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('escalate_after_minutes', sa.Integer(), nullable=False),
        sa.Column('escalate_to_role', sa.String(length=20), nullable=False),
        sa.Column('notify_original_assignee', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        _created_at(),
        sa.CheckConstraint(f"priority IN ({PRIORITIES})", name='check_valid_escalation_priority'),
        sa.CheckConstraint(f"escalate_to_role IN ({ROLES})", name='check_valid_escalation_role'),
        sa.CheckConstraint('escalate_after_minutes > 0', name='check_escalation_delay_positive'),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('escalation_rules')
    op.drop_table('assignment_rules')
    op.drop_table('notifications')
    op.drop_table('ticket_history')
    op.drop_table('ticket_attachments')
    op.drop_table('ticket_comments')
    op.drop_table('tickets')
    op.drop_table('locations')
    op.drop_table('subcategories')
    op.drop_table('categories')
    op.drop_table('teams')
    op.drop_table('users')
