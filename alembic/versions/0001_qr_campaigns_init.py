"""initial schema: users, campaigns, scan_events, notifications

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(conn, table_name: str) -> bool:
    insp = inspect(conn)
    return table_name in set(insp.get_table_names())


def upgrade():
    conn = op.get_bind()

    if not _table_exists(conn, 'users'):
        op.create_table(
            'users',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('username', sa.String(255), nullable=False, unique=True),
            sa.Column('password_hash', sa.String(255), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )

    if not _table_exists(conn, 'campaigns'):
        op.create_table(
            'campaigns',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('name', sa.String(255), nullable=False),
            sa.Column('category', sa.String(128), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('scan_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('scan_limit', sa.Integer(), nullable=True),
            sa.Column('status', sa.String(16), nullable=False, server_default='active'),
            sa.Column('start_date', sa.DateTime(), nullable=False),
            sa.Column('end_date', sa.DateTime(), nullable=False),
            sa.Column('created_by', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.Column('image_url', sa.String(1024), nullable=True),
            sa.Column('icon_path', sa.String(512), nullable=True),
            sa.Column('border_style', sa.String(16), nullable=False, server_default='none'),
            sa.Column('target_url', sa.String(2048), nullable=True),
        )
        op.create_index('ix_campaigns_created_by', 'campaigns', ['created_by'])
        op.create_index('ix_campaigns_status_end_date', 'campaigns', ['status', 'end_date'])
        op.create_index('ix_campaigns_category', 'campaigns', ['category'])

    if not _table_exists(conn, 'scan_events'):
        op.create_table(
            'scan_events',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('campaign_id', sa.String(36), sa.ForeignKey('campaigns.id'), nullable=False),
            sa.Column('region', sa.String(255), nullable=False),
            sa.Column('scanned_at', sa.DateTime(), nullable=False),
            sa.Column('user_agent', sa.String(512), nullable=True),
            sa.Column('ip_address', sa.String(64), nullable=True),
        )
        op.create_index('ix_scan_events_campaign_scanned', 'scan_events', ['campaign_id', 'scanned_at'])
        op.create_index('ix_scan_events_region', 'scan_events', ['region'])

    if not _table_exists(conn, 'notifications'):
        op.create_table(
            'notifications',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('type', sa.String(32), nullable=False),
            sa.Column('title', sa.String(255), nullable=False),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('campaign_id', sa.String(36), sa.ForeignKey('campaigns.id'), nullable=True),
            sa.Column('campaign_name', sa.String(255), nullable=True),
            sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'is_read'])
        op.create_index('ix_notifications_campaign_user_type', 'notifications', ['campaign_id', 'user_id', 'type'])


def downgrade():
    conn = op.get_bind()
    for table_name in ['notifications', 'scan_events', 'campaigns', 'users']:
        if _table_exists(conn, table_name):
            op.drop_table(table_name)
