"""sand and mechanical property stages, trial recycle bin"""

from alembic import op
import sqlalchemy as sa
from typing import Sequence, Union

revision: str = '20261018_02'
down_revision: Union[str, Sequence[str], None] = '20261018_01'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _stage_columns():
    return [
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'trial_id',
            sa.String(length=30),
            sa.ForeignKey('trial_cards.trial_id'),
            nullable=False,
            unique=True,
        ),
    ]


def upgrade() -> None:
    with op.batch_alter_table('trial_cards') as batch:
        batch.add_column(sa.Column('deleted_by', sa.String(length=50), nullable=True))

    op.create_table(
        'sand_properties',
        *_stage_columns(),
        sa.Column('inspection_date', sa.Date()),
        *[
            sa.Column(name, sa.Float())
            for name in ('t_clay', 'a_clay', 'vcm', 'loi', 'afs', 'gcs', 'moi', 'compactability', 'permeability')
        ],
        sa.Column('remarks', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'mechanical_properties',
        *_stage_columns(),
        sa.Column('tensile_strength', sa.String(length=50)),
        sa.Column('yield_strength', sa.String(length=50)),
        sa.Column('elongation', sa.String(length=50)),
        sa.Column('impact_strength_cold', sa.String(length=50)),
        sa.Column('impact_strength_room', sa.String(length=50)),
        sa.Column('hardness_surface', sa.String(length=50)),
        sa.Column('hardness_core', sa.String(length=50)),
        sa.Column('x_ray_inspection', sa.String(length=100)),
        sa.Column('mpi', sa.String(length=100)),
        sa.Column('remarks', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('mechanical_properties')
    op.drop_table('sand_properties')
    with op.batch_alter_table('trial_cards') as batch:
        batch.drop_column('deleted_by')
