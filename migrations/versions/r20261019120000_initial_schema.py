"""initial schema: users, competitions, participations, activity

Revision ID: r20261019120000
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'r20261019120000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing = set(inspector.get_table_names())

    if 'user' not in existing:
        op.create_table(
            'user',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('email', sa.String(length=120), nullable=False),
            sa.Column('password_hash', sa.String(length=256)),
            sa.Column('role', sa.String(length=20), nullable=False, server_default='COMPETITOR'),
            sa.Column('created_at', sa.DateTime()),
            sa.UniqueConstraint('email', name='uq_user_email')
        )

    if 'competition' not in existing:
        op.create_table(
            'competition',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('slug', sa.String(length=250), nullable=False),
            sa.Column('display_name', sa.String(length=200)),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('date', sa.DateTime(), nullable=False),
            sa.Column('location', sa.String(length=200), nullable=False),
            sa.Column('latitude', sa.Float()),
            sa.Column('longitude', sa.Float()),
            sa.Column('max_participants', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='OPEN'),
            sa.Column('modality', sa.String(length=20), nullable=False, server_default='ONE_VS_ONE'),
            sa.Column('image', sa.String(length=200)),
            sa.Column('rating', sa.Float()),
            sa.Column('price', sa.String(length=50)),
            sa.Column('prize', sa.String(length=200)),
            sa.Column('judges', sa.Text()),
            sa.Column('hosts', sa.Text()),
            sa.Column('dj', sa.String(length=100)),
            sa.Column('producer', sa.String(length=100)),
            sa.Column('organizer_id', sa.String(length=36), sa.ForeignKey('user.id'), nullable=False),
            sa.Column('created_at', sa.DateTime()),
            sa.Column('updated_at', sa.DateTime()),
        )
        op.create_index('ix_competition_slug', 'competition', ['slug'], unique=True)

    if 'participation' not in existing:
        op.create_table(
            'participation',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('user_id', sa.String(length=36), sa.ForeignKey('user.id'), nullable=False),
            sa.Column('competition_id', sa.String(length=36), sa.ForeignKey('competition.id'), nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
            sa.Column('created_at', sa.DateTime()),
            sa.UniqueConstraint('user_id', 'competition_id', name='_user_competition_uc')
        )

    if 'activity' not in existing:
        op.create_table(
            'activity',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('type', sa.String(length=40), nullable=False),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('description', sa.Text()),
            sa.Column('user_id', sa.String(length=36), sa.ForeignKey('user.id')),
            sa.Column('competition_id', sa.String(length=36), sa.ForeignKey('competition.id')),
            sa.Column('created_at', sa.DateTime()),
        )
        op.create_index('ix_activity_created_at', 'activity', ['created_at'])


def downgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing = set(inspector.get_table_names())

    for table in ['activity', 'participation', 'competition', 'user']:
        if table in existing:
            op.drop_table(table)
