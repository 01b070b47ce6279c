"""Initial POS schema: tenants, roles, customers, products, sales

Tables keep the hosted backend's names (org, user_role, cliente, producto,
venta, venta_item) so the service can point at the same database.

Revision ID: v001_initial_pos_schema
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'v001_initial_pos_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('org',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('nombre', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('user_role',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('admin', 'manager', 'cashier')", name='ck_user_role_role'),
        sa.ForeignKeyConstraint(['org_id'], ['org.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_role_user_id', 'user_role', ['user_id'])
    op.create_index('ix_user_role_org_id', 'user_role', ['org_id'])
    op.create_index('ix_user_role_user_active', 'user_role', ['user_id', 'is_active'])

    op.create_table('cliente',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=255), nullable=False),
        sa.Column('tipo_id', sa.String(length=8), nullable=True),
        sa.Column('idnum', sa.String(length=32), nullable=True),
        sa.Column('correo', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['org_id'], ['org.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_cliente_org_id', 'cliente', ['org_id'])
    op.create_index('ix_cliente_org_created', 'cliente', ['org_id', 'created_at'])

    op.create_table('producto',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('codigo', sa.String(length=64), nullable=False),
        sa.Column('nombre', sa.String(length=255), nullable=False),
        sa.Column('precio', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['org_id'], ['org.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('org_id', 'codigo', name='uq_producto_org_codigo')
    )
    op.create_index('ix_producto_org_id', 'producto', ['org_id'])
    op.create_index('ix_producto_org_created', 'producto', ['org_id', 'created_at'])

    op.create_table('venta',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('cliente_id', sa.Integer(), nullable=True),
        sa.Column('numero', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['org_id'], ['org.id']),
        sa.ForeignKeyConstraint(['cliente_id'], ['cliente.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_venta_org_id', 'venta', ['org_id'])
    op.create_index('ix_venta_cliente_id', 'venta', ['cliente_id'])
    op.create_index('ix_venta_numero', 'venta', ['numero'])
    op.create_index('ix_venta_org_created', 'venta', ['org_id', 'created_at'])

    op.create_table('venta_item',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('venta_id', sa.Integer(), nullable=False),
        sa.Column('producto_id', sa.Integer(), nullable=False),
        sa.Column('cantidad', sa.Integer(), nullable=False),
        sa.Column('precio_unitario', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('cantidad > 0', name='ck_venta_item_cantidad_positive'),
        sa.ForeignKeyConstraint(['venta_id'], ['venta.id']),
        sa.ForeignKeyConstraint(['producto_id'], ['producto.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_venta_item_venta_id', 'venta_item', ['venta_id'])
    op.create_index('ix_venta_item_producto_id', 'venta_item', ['producto_id'])


def downgrade():
    op.drop_table('venta_item')
    op.drop_table('venta')
    op.drop_table('producto')
    op.drop_table('cliente')
    op.drop_table('user_role')
    op.drop_table('org')
