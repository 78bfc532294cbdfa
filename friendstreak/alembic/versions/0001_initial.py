"""students, friend requests, friendships and attendance

Revision ID: 0001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('students',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_table('friend_requests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('sender_id', sa.String(64), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('receiver_id', sa.String(64), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pair_low', sa.String(64), nullable=False),
        sa.Column('pair_high', sa.String(64), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index('ix_friend_requests_sender_id', 'friend_requests', ['sender_id'])
    op.create_index('ix_friend_requests_receiver_id', 'friend_requests', ['receiver_id'])
    op.create_index('uix_pending_request_pair', 'friend_requests', ['pair_low', 'pair_high'], unique=True,
                    postgresql_where=sa.text("status = 'pending'"))
    op.create_table('friendships',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student1_id', sa.String(64), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student2_id', sa.String(64), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('last_attendance_date', sa.Date(), nullable=True),
        sa.Column('streak_count', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('student1_id', 'student2_id', name='uix_friend_pair')
    )
    op.create_index('ix_friendships_student1_id', 'friendships', ['student1_id'])
    op.create_index('ix_friendships_student2_id', 'friendships', ['student2_id'])
    op.create_table('attendance_events',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('friendship_id', sa.String(36), sa.ForeignKey('friendships.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student1_id', sa.String(64), nullable=False),
        sa.Column('student2_id', sa.String(64), nullable=False),
        sa.Column('attended_on', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('friendship_id', 'attended_on', name='uix_attendance_day')
    )
    op.create_index('ix_attendance_events_friendship_id', 'attendance_events', ['friendship_id'])
    op.create_index('ix_attendance_events_attended_on', 'attendance_events', ['attended_on'])

def downgrade():
    op.drop_table('attendance_events')
    op.drop_table('friendships')
    op.drop_table('friend_requests')
    op.drop_table('students')
