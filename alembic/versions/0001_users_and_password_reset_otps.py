"""Create users and password_reset_otps tables

Revision ID: 0001_users_and_password_reset_otps
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql as pg

# revision identifiers, used by Alembic.
revision = '0001_users_and_password_reset_otps'
down_revision = None
branch_labels = None
depends_on = None


user_type = pg.ENUM('customer', 'restaurant_owner', 'admin', name='user_type', create_type=False)


def upgrade() -> None:
    user_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', pg.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('user_type', user_type, nullable=False, server_default='customer'),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', pg.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', pg.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'password_reset_otps',
        sa.Column('id', pg.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('otp_hash', sa.String(length=64), nullable=False),
        sa.Column('expires_at', pg.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', pg.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_password_reset_otps'),
    )
    op.create_index('ix_password_reset_otps_email', 'password_reset_otps', ['email'])


def downgrade() -> None:
    op.drop_index('ix_password_reset_otps_email', table_name='password_reset_otps')
    op.drop_table('password_reset_otps')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    user_type.drop(op.get_bind(), checkfirst=True)
