"""create user, catalog, game_session and player tables

Revision ID: 5c2e9a7d41b0
Revises:
Create Date: 2025-09-14 10:20:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d41b0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('level_experience', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_experience', sa.Integer(), nullable=False, server_default='0'),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)
    else:
        # Accounts created before progression existed start at level 1.
        user_cols = {c['name'] for c in insp.get_columns('user')}
        with op.batch_alter_table('user') as batch_op:
            if 'level' not in user_cols:
                batch_op.add_column(sa.Column('level', sa.Integer(), nullable=False, server_default='1'))
            if 'level_experience' not in user_cols:
                batch_op.add_column(sa.Column('level_experience', sa.Integer(), nullable=False, server_default='0'))
            if 'total_experience' not in user_cols:
                batch_op.add_column(sa.Column('total_experience', sa.Integer(), nullable=False, server_default='0'))

    op.create_table(
        'song',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('title', sa.String(length=256), nullable=False),
        sa.Column('artist', sa.String(length=256), nullable=True),
        sa.Column('preview_url', sa.String(length=512), nullable=True),
    )
    op.create_table(
        'playlist',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
    )
    op.create_table(
        'playlist_song',
        sa.Column('playlist_id', sa.Integer(), sa.ForeignKey('playlist.id'), primary_key=True),
        sa.Column('song_id', sa.String(length=64), sa.ForeignKey('song.id'), primary_key=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_table(
        'game_session',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='WAITING'),
        sa.Column('playlist_id', sa.Integer(), sa.ForeignKey('playlist.id'), nullable=False),
        sa.Column('host_player_id', sa.Integer(), nullable=True),
        sa.Column('first_finisher_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_game_session_code', 'game_session', ['code'])
    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('game_session.id'), nullable=False),
        sa.Column('nickname', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_guesses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('attempts', sa.Text(), nullable=True),
        sa.Column('completion_time', sa.Integer(), nullable=True),
        sa.Column('finish_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('bonus_points', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_player_session_id', 'player', ['session_id'])


def downgrade():
    op.drop_index('ix_player_session_id', table_name='player')
    op.drop_table('player')
    op.drop_index('ix_game_session_code', table_name='game_session')
    op.drop_table('game_session')
    op.drop_table('playlist_song')
    op.drop_table('playlist')
    op.drop_table('song')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
