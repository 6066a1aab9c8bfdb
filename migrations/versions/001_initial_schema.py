"""initial schema: users, friend requests, friendships

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('full_name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('profile_pic', sa.String(length=512), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('native_language', sa.String(length=64), nullable=True),
        sa.Column('learning_language', sa.String(length=64), nullable=True),
        sa.Column('location', sa.String(length=128), nullable=True),
        sa.Column('is_onboarded', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('idx_users_onboarded_created', 'users', ['is_onboarded', 'created_at'], unique=False)

    # --- friend_requests ---
    op.create_table(
        'friend_requests',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('sender_id', sa.String(length=64), nullable=False),
        sa.Column('recipient_id', sa.String(length=64), nullable=False),
        sa.Column('user_low_id', sa.String(length=64), nullable=False),
        sa.Column('user_high_id', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), server_default='pending', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('sender_id <> recipient_id', name='chk_friend_requests_not_self'),
        sa.CheckConstraint("status IN ('pending', 'accepted')", name='chk_friend_requests_status'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], name='fk_friend_requests_sender'),
        sa.ForeignKeyConstraint(['recipient_id'], ['users.id'], name='fk_friend_requests_recipient'),
        sa.ForeignKeyConstraint(['user_low_id'], ['users.id'], name='fk_friend_requests_user_low'),
        sa.ForeignKeyConstraint(['user_high_id'], ['users.id'], name='fk_friend_requests_user_high'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_low_id', 'user_high_id', name='uq_friend_requests_pair')
    )
    op.create_index('idx_friend_requests_recipient', 'friend_requests', ['recipient_id', 'created_at'], unique=False)
    op.create_index('idx_friend_requests_sender', 'friend_requests', ['sender_id', 'status'], unique=False)

    # --- user_friendships ---
    op.create_table(
        'user_friendships',
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('friend_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('user_id <> friend_id', name='chk_user_friendships_not_self'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_user_friendships_user'),
        sa.ForeignKeyConstraint(['friend_id'], ['users.id'], name='fk_user_friendships_friend'),
        sa.PrimaryKeyConstraint('user_id', 'friend_id')
    )
    op.create_index('idx_user_friendships_user_created', 'user_friendships', ['user_id', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_table('user_friendships')
    op.drop_table('friend_requests')
    op.drop_table('users')
