"""initial queue, maintenance, settings and authz tables

Revision ID: 0001_initial_queue
Revises: 
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_queue'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=64), nullable=False, unique=True),
        sa.Column('service', sa.String(length=32), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False, server_default='')
    )
    op.create_index('ix_permissions_code', 'permissions', ['code'])
    op.create_index('ix_permissions_service', 'permissions', ['service'])

    op.create_table('roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False, unique=True),
        sa.Column('is_system', sa.Boolean(), nullable=False, server_default=sa.text('0'))
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table('role_permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission_id', sa.Integer(), sa.ForeignKey('permissions.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('role_id', 'permission_id', name='uq_role_permission')
    )

    op.create_table('user_roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('user_id', 'role_id', name='uq_user_role')
    )

    op.create_table('vehicles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('brand', sa.String(length=80), nullable=False),
        sa.Column('model', sa.String(length=80), nullable=False),
        sa.Column('license_plate', sa.String(length=20), nullable=True, unique=True)
    )
    op.create_index('ix_vehicles_owner_id', 'vehicles', ['owner_id'])

    op.create_table('queue_tickets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('queue_number', sa.Integer(), nullable=False),
        sa.Column('vehicle_id', sa.Integer(), sa.ForeignKey('vehicles.id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('service_type', sa.String(length=100), nullable=False),
        sa.Column('estimated_time', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='waiting'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('called_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('service_start_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('service_end_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('service_date', 'queue_number', name='uq_ticket_date_queue_number')
    )
    op.create_index('ix_queue_tickets_customer_id', 'queue_tickets', ['customer_id'])
    op.create_index('ix_queue_tickets_service_date', 'queue_tickets', ['service_date'])
    op.create_index('ix_queue_tickets_status', 'queue_tickets', ['status'])
    op.create_index('ix_queue_tickets_deleted_at', 'queue_tickets', ['deleted_at'])

    op.create_table('maintenance_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('queue_tickets.id'), nullable=False),
        sa.Column('mechanic_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('item_type', sa.String(length=20), nullable=False, server_default='initial'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('priority', sa.String(length=20), nullable=False, server_default='normal'),
        sa.Column('estimated_cost', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('actual_cost', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('labor_hours', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('requires_approval', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('inspected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False)
    )
    op.create_index('ix_maintenance_items_ticket_id', 'maintenance_items', ['ticket_id'])
    op.create_index('ix_maintenance_items_status', 'maintenance_items', ['status'])

    op.create_table('settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(length=100), nullable=False, unique=True),
        sa.Column('value', sa.String(length=500), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('category', sa.String(length=50), nullable=False, server_default='general'),
        sa.Column('is_editable', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_settings_key', 'settings', ['key'])
    op.create_index('ix_settings_category', 'settings', ['category'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])


def downgrade():
    for table in ('audit_logs', 'settings', 'maintenance_items', 'queue_tickets', 'vehicles',
                  'user_roles', 'role_permissions', 'users', 'roles', 'permissions'):
        op.drop_table(table)
