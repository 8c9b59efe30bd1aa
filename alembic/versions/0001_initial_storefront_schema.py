"""Initial storefront schema: purchases, admin devices, products.

Revision ID: 0001_initial_storefront
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_storefront'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'purchase_histories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=False),
        sa.Column('external_transaction_id', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='Generated'),
        sa.Column('amount_paid', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('verification_count', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('external_transaction_id',
                            name='uq_purchase_histories_external_transaction_id'),
        sa.CheckConstraint(
            "status IN ('Generated', 'Succeeded', 'Failed', 'Expired')",
            name='ck_purchase_histories_status',
        ),
    )
    op.create_index('ix_purchase_histories_phone_number', 'purchase_histories', ['phone_number'])
    op.create_index('ix_purchase_histories_created_at', 'purchase_histories', ['created_at'])
    op.create_index('ix_purchase_histories_status', 'purchase_histories', ['status'])
    # Sliding-window attempt counts filter on both
    op.create_index('ix_purchase_histories_phone_created_at', 'purchase_histories',
                    ['phone_number', 'created_at'])

    op.create_table(
        'admin_devices',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('token', sa.String(255), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('image', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
    )


def downgrade() -> None:
    op.drop_table('products')
    op.drop_table('admin_devices')
    op.drop_index('ix_purchase_histories_phone_created_at', table_name='purchase_histories')
    op.drop_index('ix_purchase_histories_status', table_name='purchase_histories')
    op.drop_index('ix_purchase_histories_created_at', table_name='purchase_histories')
    op.drop_index('ix_purchase_histories_phone_number', table_name='purchase_histories')
    op.drop_table('purchase_histories')
