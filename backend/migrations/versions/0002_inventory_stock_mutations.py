"""inventory: products and the stock-mutation ledger

Revision ID: 0002_inventory_stock_mutations
Revises: 0001_initial_bizdash
Create Date: 2026-10-18 00:00:00.000000

- products: stock-tracked items (qty is the running balance)
- stock_mutations: IN/OUT/ADJUST movements, brand-scoped
- purchase_direct_items.product_id: links a purchase line to a product
- purchase_directs.received_at, status now defaults to Draft
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_inventory_stock_mutations'
down_revision = '0001_initial_bizdash'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('unit', sa.String(length=32), nullable=True),
        sa.Column('brand_profile_id', sa.Integer(), nullable=True),
        sa.Column('track_stock', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('qty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['brand_profile_id'], ['brand_profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_brand', 'products', ['brand_profile_id'])

    op.create_table('stock_mutations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('brand_profile_id', sa.Integer(), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('ref_table', sa.String(length=64), nullable=True),
        sa.Column('ref_id', sa.Integer(), nullable=True),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['brand_profile_id'], ['brand_profiles.id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stock_mutations_product_id', 'stock_mutations', ['product_id'])
    op.create_index('ix_stock_mutations_brand_created', 'stock_mutations', ['brand_profile_id', 'created_at'])
    op.create_index('ix_stock_mutations_ref', 'stock_mutations', ['ref_table', 'ref_id'])

    with op.batch_alter_table('purchase_direct_items', schema=None) as batch_op:
        batch_op.add_column(sa.Column('product_id', sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            'fk_purchase_direct_items_product_id', 'products', ['product_id'], ['id']
        )

    with op.batch_alter_table('purchase_directs', schema=None) as batch_op:
        batch_op.add_column(sa.Column('received_at', sa.DateTime(timezone=True), nullable=True))
        batch_op.alter_column(
            'status',
            existing_type=sa.String(length=16),
            existing_nullable=False,
            server_default='Draft',
        )


def downgrade():
    with op.batch_alter_table('purchase_directs', schema=None) as batch_op:
        batch_op.alter_column(
            'status',
            existing_type=sa.String(length=16),
            existing_nullable=False,
            server_default='Received',
        )
        batch_op.drop_column('received_at')

    with op.batch_alter_table('purchase_direct_items', schema=None) as batch_op:
        batch_op.drop_constraint('fk_purchase_direct_items_product_id', type_='foreignkey')
        batch_op.drop_column('product_id')

    op.drop_index('ix_stock_mutations_ref', 'stock_mutations')
    op.drop_index('ix_stock_mutations_brand_created', 'stock_mutations')
    op.drop_index('ix_stock_mutations_product_id', 'stock_mutations')
    op.drop_table('stock_mutations')
    op.drop_index('ix_products_brand', 'products')
    op.drop_table('products')
