"""initial schema: users, roles, accounts, transactions

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

role_name_enum = sa.Enum('ADMIN', 'STAFF', 'CUSTOMER', name='role_name_enum', create_constraint=True)
account_type_enum = sa.Enum('SAVINGS', 'CURRENT', name='account_type_enum', create_constraint=True)
account_status_enum = sa.Enum(
    'PENDING_APPROVAL', 'ACTIVE', 'FROZEN', 'CLOSED',
    name='account_status_enum', create_constraint=True,
)
transaction_type_enum = sa.Enum(
    'DEPOSIT', 'WITHDRAWAL', 'TRANSFER',
    name='transaction_type_enum', create_constraint=True,
)


def upgrade() -> None:
    """Create the four tables and the user/role association."""
    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', role_name_enum, nullable=False, unique=True),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('account_non_locked', sa.Boolean(), nullable=False),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False),
        sa.Column('lock_time', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id'), primary_key=True),
    )

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('account_number', sa.String(length=10), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('account_type', account_type_enum, nullable=False),
        sa.Column('status', account_status_enum, nullable=False),
        sa.Column('balance', sa.Numeric(precision=19, scale=4), nullable=False),
        sa.Column('approved_by_staff', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_accounts_account_number', 'accounts', ['account_number'], unique=True)
    op.create_index('ix_accounts_user_id', 'accounts', ['user_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('transaction_type', transaction_type_enum, nullable=False),
        sa.Column('amount', sa.Numeric(precision=19, scale=4), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('reference_id', sa.String(length=36), nullable=False),
        sa.Column('source_account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('destination_account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
    )
    op.create_index('ix_transactions_timestamp', 'transactions', ['timestamp'])
    op.create_index('ix_transactions_reference_id', 'transactions', ['reference_id'])
    op.create_index('ix_transactions_source_account_id', 'transactions', ['source_account_id'])
    op.create_index('ix_transactions_destination_account_id', 'transactions', ['destination_account_id'])


def downgrade() -> None:
    """Drop everything in reverse dependency order."""
    op.drop_table('transactions')
    op.drop_index('ix_accounts_user_id', table_name='accounts')
    op.drop_index('ix_accounts_account_number', table_name='accounts')
    op.drop_table('accounts')
    op.drop_table('user_roles')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
    op.drop_table('roles')

    bind = op.get_bind()
    for enum_type in (transaction_type_enum, account_status_enum, account_type_enum, role_name_enum):
        enum_type.drop(bind, checkfirst=True)
