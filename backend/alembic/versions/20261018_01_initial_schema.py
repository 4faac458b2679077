"""initial trial card schema"""

from alembic import op
import sqlalchemy as sa
from typing import Sequence, Union

revision: str = '20261018_01'
down_revision: Union[str, Sequence[str], None] = None
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


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'departments',
        sa.Column('department_id', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('department_name', sa.String(length=100), nullable=False, unique=True),
    )
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(length=50), nullable=False, unique=True),
        sa.Column('full_name', sa.String(length=150)),
        sa.Column('email', sa.String(length=255)),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=30), nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.department_id')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('needs_password_change', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('machine_shop_user_type', sa.String(length=10)),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_table(
        'trial_cards',
        sa.Column('trial_id', sa.String(length=30), primary_key=True),
        sa.Column('part_name', sa.String(length=200), nullable=False),
        sa.Column('pattern_code', sa.String(length=150), nullable=False),
        sa.Column('material_grade', sa.String(length=100)),
        sa.Column('initiated_by', sa.String(length=100)),
        sa.Column('date_of_sampling', sa.Date()),
        sa.Column('no_of_moulds', sa.Integer()),
        sa.Column('plan_moulds', sa.Integer()),
        sa.Column('actual_moulds', sa.Integer()),
        sa.Column('reason_for_sampling', sa.Text()),
        sa.Column('disa', sa.String(length=50)),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='OPEN'),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'master_card',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('pattern_code', sa.String(length=150), nullable=False, unique=True),
        sa.Column('part_name', sa.String(length=200), nullable=False),
        sa.Column('material_grade', sa.String(length=100)),
        sa.Column('chemical_composition', sa.JSON()),
        sa.Column('micro_structure', sa.Text()),
        *[
            sa.Column(name, sa.String(length=50))
            for name in (
                'tensile', 'yield', 'elongation', 'impact_cold', 'impact_room',
                'hardness_surface', 'hardness_core',
            )
        ],
        sa.Column('xray', sa.String(length=100)),
        sa.Column('mpi', sa.String(length=100)),
        sa.Column('number_of_cavity', sa.String(length=20)),
        sa.Column('cavity_identification', sa.String(length=100)),
        sa.Column('pattern_material', sa.String(length=100)),
        *[
            sa.Column(name, sa.String(length=50))
            for name in (
                'core_weight', 'core_mask_thickness', 'estimated_casting_weight',
                'estimated_bunch_weight', 'pattern_plate_thickness_sp', 'pattern_plate_weight_sp',
                'core_mask_weight_sp', 'crush_pin_height_sp', 'pattern_plate_thickness_pp',
                'pattern_plate_weight_pp', 'crush_pin_height_pp', 'yield_label',
            )
        ],
        sa.Column('remarks', sa.Text()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_table(
        'machine_shop',
        *_stage_columns(),
        sa.Column('inspection_date', sa.Date()),
        sa.Column('cavities', sa.JSON()),
        sa.Column('rows', sa.JSON()),
        sa.Column('remarks', sa.Text()),
        sa.Column('dimensional_report_remarks', sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        'material_correction',
        *_stage_columns(),
        sa.Column('chemical_composition', sa.JSON()),
        sa.Column('process_parameters', sa.JSON()),
        sa.Column('remarks', sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        'metallurgical_inspection',
        *_stage_columns(),
        sa.Column('inspection_date', sa.Date()),
        sa.Column('micro_rows', sa.JSON()),
        sa.Column('mech_rows', sa.JSON()),
        sa.Column('impact_rows', sa.JSON()),
        sa.Column('hard_rows', sa.JSON()),
        sa.Column('remarks', sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        'visual_inspection',
        *_stage_columns(),
        sa.Column('inspection_date', sa.Date()),
        sa.Column('cols', sa.JSON()),
        sa.Column('rows', sa.JSON()),
        sa.Column('ok', sa.Boolean()),
        sa.Column('remarks', sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        'department_progress',
        sa.Column('progress_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('trial_id', sa.String(length=30), sa.ForeignKey('trial_cards.trial_id'), nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.department_id'), nullable=False),
        sa.Column('username', sa.String(length=50), sa.ForeignKey('users.username'), nullable=False),
        sa.Column('completed_at', sa.DateTime()),
        sa.Column('approval_status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('remarks', sa.Text()),
    )
    op.create_table(
        'audit_log',
        sa.Column('audit_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.user_id')),
        sa.Column('department_id', sa.Integer()),
        sa.Column('trial_id', sa.String(length=30)),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('remarks', sa.Text()),
        sa.Column('action_timestamp', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_audit_log_trial_id', 'audit_log', ['trial_id'])


def downgrade() -> None:
    op.drop_index('ix_audit_log_trial_id', table_name='audit_log')
    for table in (
        'audit_log',
        'department_progress',
        'visual_inspection',
        'metallurgical_inspection',
        'material_correction',
        'machine_shop',
        'master_card',
        'trial_cards',
        'users',
        'departments',
    ):
        op.drop_table(table)
