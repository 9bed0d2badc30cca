"""create_escrow_tables

Revision ID: 3c1f5a7e2b90
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f5a7e2b90'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False, comment='ORD-YYYYMMDD-NNNNN'),
        sa.Column('seller_id', sa.String(length=64), nullable=False),
        sa.Column('buyer_id', sa.String(length=64), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('product_price', sa.BigInteger(), nullable=False),
        sa.Column('platform_fee', sa.BigInteger(), nullable=False),
        sa.Column('total_amount', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='awaiting_payment'),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_by', sa.String(length=64), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
        sa.CheckConstraint('total_amount = product_price + platform_fee', name='ck_orders_total_amount'),
    )
    op.create_index('ix_orders_seller_id', 'orders', ['seller_id'])
    op.create_index('ix_orders_buyer_id', 'orders', ['buyer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_status_created_at', 'orders', ['status', 'created_at'])
    op.create_index('ix_orders_seller_created_at', 'orders', ['seller_id', 'created_at'])

    op.create_table(
        'payments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
    )
    op.create_index('ix_payments_status', 'payments', ['status'])

    op.create_table(
        'payment_proofs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('payment_id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=True),
        sa.Column('proof_url', sa.String(length=1024), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.String(length=64), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('submitted_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['payment_id'], ['payments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_proofs_payment_id', 'payment_proofs', ['payment_id'])
    op.create_index('ix_payment_proofs_order_id', 'payment_proofs', ['order_id'])
    op.create_index('ix_payment_proofs_status_created_at', 'payment_proofs', ['status', 'created_at'])

    op.create_table(
        'cancellation_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('requested_by', sa.String(length=64), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('reviewed_by', sa.String(length=64), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cancellation_requests_order_id', 'cancellation_requests', ['order_id'])
    op.create_index('ix_cancellation_requests_requested_by', 'cancellation_requests', ['requested_by'])
    op.create_index(
        'uq_cancellation_requests_pending_order',
        'cancellation_requests',
        ['order_id'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        'fund_releases',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('seller_id', sa.String(length=64), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('transferred_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('transferred_by', sa.String(length=64), nullable=True),
        sa.Column('transfer_proof', sa.String(length=1024), nullable=True),
        sa.Column('transfer_note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
    )
    op.create_index('ix_fund_releases_seller_id', 'fund_releases', ['seller_id'])
    op.create_index('ix_fund_releases_status_created_at', 'fund_releases', ['status', 'created_at'])

    op.create_table(
        'qris_settings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('qris_data', sa.Text(), nullable=False),
        sa.Column('merchant_name', sa.String(length=255), nullable=True),
        sa.Column('merchant_city', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_qris_settings_is_active', 'qris_settings', ['is_active'])

    op.create_table(
        'qris_transactions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=True),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('generated_qris', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_qris_transactions_user_id', 'qris_transactions', ['user_id'])
    op.create_index('ix_qris_transactions_order_id', 'qris_transactions', ['order_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=True),
        sa.Column('order_number', sa.String(length=32), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'is_read'])
    op.create_index('ix_notifications_user_created_at', 'notifications', ['user_id', 'created_at'])

    op.create_table(
        'fcm_tokens',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('token', sa.String(length=512), nullable=False),
        sa.Column('device_type', sa.String(length=32), nullable=False, server_default='web'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index('ix_fcm_tokens_user_id', 'fcm_tokens', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_fcm_tokens_user_id', table_name='fcm_tokens')
    op.drop_table('fcm_tokens')
    op.drop_index('ix_notifications_user_created_at', table_name='notifications')
    op.drop_index('ix_notifications_user_read', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_qris_transactions_order_id', table_name='qris_transactions')
    op.drop_index('ix_qris_transactions_user_id', table_name='qris_transactions')
    op.drop_table('qris_transactions')
    op.drop_index('ix_qris_settings_is_active', table_name='qris_settings')
    op.drop_table('qris_settings')
    op.drop_index('ix_fund_releases_status_created_at', table_name='fund_releases')
    op.drop_index('ix_fund_releases_seller_id', table_name='fund_releases')
    op.drop_table('fund_releases')
    op.drop_index('uq_cancellation_requests_pending_order', table_name='cancellation_requests')
    op.drop_index('ix_cancellation_requests_requested_by', table_name='cancellation_requests')
    op.drop_index('ix_cancellation_requests_order_id', table_name='cancellation_requests')
    op.drop_table('cancellation_requests')
    op.drop_index('ix_payment_proofs_status_created_at', table_name='payment_proofs')
    op.drop_index('ix_payment_proofs_order_id', table_name='payment_proofs')
    op.drop_index('ix_payment_proofs_payment_id', table_name='payment_proofs')
    op.drop_table('payment_proofs')
    op.drop_index('ix_payments_status', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_orders_seller_created_at', table_name='orders')
    op.drop_index('ix_orders_status_created_at', table_name='orders')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_buyer_id', table_name='orders')
    op.drop_index('ix_orders_seller_id', table_name='orders')
    op.drop_table('orders')
