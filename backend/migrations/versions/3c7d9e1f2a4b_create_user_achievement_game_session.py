"""create user, achievement and game_session tables

Revision ID: 3c7d9e1f2a4b
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7d9e1f2a4b'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('email', sa.String(length=120), nullable=True),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('preferred_difficulty', sa.String(length=32), nullable=False, server_default='beginner'),
            sa.Column('total_games_played', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_time_spent', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('average_score', sa.Float(), nullable=False, server_default='0'),
            sa.Column('average_confidence', sa.Float(), nullable=False, server_default='0'),
            sa.Column('best_scores_json', sa.Text(), nullable=True),
            sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('longest_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('last_played_on', sa.Date(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('last_active', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('email'),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'achievement' not in existing_tables:
        op.create_table(
            'achievement',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('achievement_type', sa.String(length=64), nullable=False),
            sa.Column('description', sa.String(length=256), nullable=True),
            sa.Column('unlocked_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['user.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'achievement_type', name='uq_achievement_user_type'),
        )
        op.create_index('ix_achievement_user_id', 'achievement', ['user_id'])

    if 'game_session' not in existing_tables:
        op.create_table(
            'game_session',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('game_type', sa.String(length=32), nullable=False),
            sa.Column('difficulty', sa.String(length=32), nullable=False, server_default='beginner'),
            sa.Column('start_time', sa.DateTime(), nullable=False),
            sa.Column('end_time', sa.DateTime(), nullable=True),
            sa.Column('duration', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('accuracy', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('speed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('energy_consistency', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('word_integration', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_prompts', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('completed_prompts', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('game_specific_data', sa.Text(), nullable=True),
            sa.Column('ai_analysis', sa.Text(), nullable=True),
            sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.ForeignKeyConstraint(['user_id'], ['user.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_game_session_user_id', 'game_session', ['user_id'])
        op.create_index('ix_game_session_start_time', 'game_session', ['start_time'])
        op.create_index('ix_game_session_user_type', 'game_session', ['user_id', 'game_type'])


def downgrade():
    op.drop_index('ix_game_session_user_type', table_name='game_session')
    op.drop_index('ix_game_session_start_time', table_name='game_session')
    op.drop_index('ix_game_session_user_id', table_name='game_session')
    op.drop_table('game_session')
    op.drop_index('ix_achievement_user_id', table_name='achievement')
    op.drop_table('achievement')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
