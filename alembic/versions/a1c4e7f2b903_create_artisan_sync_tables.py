"""Create accounts, sellers, category tree, services, calls and artisan sync run tables

Revision ID: a1c4e7f2b903
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers
revision: str = 'a1c4e7f2b903'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(table_name):
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    # ── user_accounts ──
    if not _has_table('user_accounts'):
        op.create_table(
            'user_accounts',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('fullname', sa.String(), nullable=True),
            sa.Column('mobile', sa.String(), nullable=True, index=True),
            sa.Column('last_location', sa.String(), nullable=True),
            sa.Column('roles', sa.JSON(), nullable=True),
            sa.Column('refresh_token', sa.String(), nullable=True),
            sa.Column('source', sa.String(), nullable=True, index=True),
            sa.Column('source_id', sa.String(), nullable=True, index=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
            sa.UniqueConstraint('source', 'source_id', name='uq_user_accounts_source_source_id'),
        )

    # ── sellers ──
    if not _has_table('sellers'):
        op.create_table(
            'sellers',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('user_account_id', sa.String(36), sa.ForeignKey('user_accounts.id'), nullable=False, unique=True),
            sa.Column('fullname', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        )

    # ── categories ──
    if not _has_table('categories'):
        op.create_table(
            'categories',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('parent_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True, index=True),
            sa.Column('hcode', sa.String(), nullable=False, unique=True, index=True),
        )

    # ── seller_services ──
    if not _has_table('seller_services'):
        op.create_table(
            'seller_services',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('seller_id', sa.Integer(), sa.ForeignKey('sellers.id'), nullable=False, index=True),
            sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=False, index=True),
            sa.Column('co_ordinates', sa.String(), nullable=True),
            sa.UniqueConstraint('seller_id', 'category_id', 'name', name='uq_seller_services_seller_category_name'),
        )

    # ── seller_service_locations ──
    if not _has_table('seller_service_locations'):
        op.create_table(
            'seller_service_locations',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('seller_service_id', sa.Integer(), sa.ForeignKey('seller_services.id'), nullable=False, index=True),
            sa.Column('latitude', sa.Float(), nullable=True),
            sa.Column('longitude', sa.Float(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        )

    # ── user_account_calls ──
    if not _has_table('user_account_calls'):
        op.create_table(
            'user_account_calls',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('user_account_id', sa.String(36), sa.ForeignKey('user_accounts.id'), nullable=False, index=True),
            sa.Column('seller_id', sa.Integer(), sa.ForeignKey('sellers.id'), nullable=False, index=True),
            sa.Column('seller_service_id', sa.Integer(), sa.ForeignKey('seller_services.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), index=True),
        )

    # ── artisan_sync_runs ──
    if not _has_table('artisan_sync_runs'):
        op.create_table(
            'artisan_sync_runs',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('session_id', sa.String(64), nullable=False, unique=True, index=True),
            sa.Column('triggered_by', sa.String(20), nullable=False, index=True),
            sa.Column('target_date', sa.String(10), nullable=False, index=True),
            sa.Column('start_time', sa.DateTime(), nullable=False),
            sa.Column('end_time', sa.DateTime(), nullable=True),
            sa.Column('duration_seconds', sa.Float(), nullable=True),
            sa.Column('status', sa.String(20), nullable=False, index=True),
            sa.Column('pages_fetched', sa.Integer(), server_default='0'),
            sa.Column('records_inserted', sa.Integer(), server_default='0'),
            sa.Column('records_updated', sa.Integer(), server_default='0'),
            sa.Column('total_records', sa.Integer(), server_default='0'),
            sa.Column('error', sa.Text(), nullable=True),
            sa.Column('error_details', sa.Text(), nullable=True),
        )


def downgrade() -> None:
    for table_name in (
        'artisan_sync_runs',
        'user_account_calls',
        'seller_service_locations',
        'seller_services',
        'categories',
        'sellers',
        'user_accounts',
    ):
        if _has_table(table_name):
            op.drop_table(table_name)
