"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2025-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


user_status = sa.Enum('PENDING', 'APPROVED', 'DEACTIVE', name='userstatus')
request_status = sa.Enum('REQUESTED', 'APPROVED', 'GIVEN', 'CANCELLED', name='requeststatus')


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('status', user_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    # Create medicines table
    op.create_table(
        'medicines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('recommended', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('stock >= 0', name='check_medicine_stock_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_medicines_name', 'medicines', ['name'], unique=False)

    # Create medicine categories and the join table
    op.create_table(
        'medicine_categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_table(
        'medicine_category_links',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('medicine_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['medicine_id'], ['medicines.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['medicine_categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('medicine_id', 'category_id', name='uq_medicine_category')
    )

    # Create medicine requests table
    op.create_table(
        'medicine_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', request_status, nullable=False),
        sa.Column('requested_at', sa.DateTime(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('given_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_medicine_requests_user_id', 'medicine_requests', ['user_id'], unique=False)
    op.create_index('ix_medicine_requests_status', 'medicine_requests', ['status'], unique=False)
    op.create_index('ix_medicine_requests_created_at', 'medicine_requests', ['created_at'], unique=False)

    # Create medicine request items table
    op.create_table(
        'medicine_request_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('medicine_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['request_id'], ['medicine_requests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['medicine_id'], ['medicines.id'], ),
        sa.CheckConstraint('quantity >= 0', name='check_request_item_quantity'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('request_id', 'medicine_id', name='uq_request_medicine')
    )


def downgrade() -> None:
    op.drop_table('medicine_request_items')
    op.drop_index('ix_medicine_requests_created_at', table_name='medicine_requests')
    op.drop_index('ix_medicine_requests_status', table_name='medicine_requests')
    op.drop_index('ix_medicine_requests_user_id', table_name='medicine_requests')
    op.drop_table('medicine_requests')
    op.drop_table('medicine_category_links')
    op.drop_table('medicine_categories')
    op.drop_index('ix_medicines_name', table_name='medicines')
    op.drop_table('medicines')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
    request_status.drop(op.get_bind(), checkfirst=True)
    user_status.drop(op.get_bind(), checkfirst=True)
