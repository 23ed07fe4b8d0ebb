"""Initial migration - create tracking tables

Revision ID: 001_initial
Revises:
Create Date: 2026-05-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create hike_records table
    op.create_table(
        'hike_records',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('account_id', sa.String(36), nullable=False, index=True),
        sa.Column('trail_id', sa.String(36), nullable=True, index=True),
        sa.Column('trail_name', sa.String(255), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('is_completed', sa.Boolean(), default=False),
        sa.Column('total_distance', sa.Float(), default=0.0),
        sa.Column('total_duration', sa.Float(), default=0.0),
        sa.Column('average_speed', sa.Float(), default=0.0),
        sa.Column('max_speed', sa.Float(), default=0.0),
        sa.Column('elevation_gain', sa.Float(), default=0.0),
        sa.Column('elevation_loss', sa.Float(), default=0.0),
        sa.Column('min_altitude', sa.Float(), default=0.0),
        sa.Column('max_altitude', sa.Float(), default=0.0),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Create hike_track_points table
    op.create_table(
        'hike_track_points',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'record_id',
            sa.String(36),
            sa.ForeignKey('hike_records.id', ondelete='CASCADE'),
            nullable=False,
            index=True,
        ),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('altitude', sa.Float(), nullable=False),
        sa.Column('speed', sa.Float(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('horizontal_accuracy', sa.Float(), default=0.0),
        sa.Column('vertical_accuracy', sa.Float(), default=0.0),
    )

    # Create share_sessions table
    op.create_table(
        'share_sessions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('account_id', sa.String(36), nullable=False, index=True),
        sa.Column('is_active', sa.Boolean(), default=False, index=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('last_location_update', sa.DateTime(), nullable=True),
        sa.Column('last_latitude', sa.Float(), nullable=True),
        sa.Column('last_longitude', sa.Float(), nullable=True),
        sa.Column('share_link', sa.String(500), nullable=True),
    )

    # Create emergency_contacts table
    op.create_table(
        'emergency_contacts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('account_id', sa.String(36), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('phone_number', sa.String(40), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('is_primary', sa.Boolean(), default=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('emergency_contacts')
    op.drop_table('share_sessions')
    op.drop_table('hike_track_points')
    op.drop_table('hike_records')
