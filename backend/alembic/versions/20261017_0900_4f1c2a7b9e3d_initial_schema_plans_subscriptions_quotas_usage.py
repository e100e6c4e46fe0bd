"""Initial schema: users, resource types, plans, subscriptions, quotas, usage, add-ons

Revision ID: 4f1c2a7b9e3d
Revises: 
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4f1c2a7b9e3d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('last_modified_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    ]


def _modified_by() -> list[sa.Column]:
    return [
        sa.Column('created_by', sa.String(), nullable=False),
        sa.Column('last_modified_by', sa.String(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables for subscription accounting."""
    op.execute("CREATE TYPE updateoperation AS ENUM ('ADD', 'SET')")

    # 1. Users (no dependencies)
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column('username', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    # 2. Resource types (no dependencies)
    op.create_table(
        'resource_types',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('consumable', sa.Boolean(), nullable=False, server_default='false'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'unit', name='uq_resource_types_name_unit')
    )
    op.create_index(op.f('ix_resource_types_name'), 'resource_types', ['name'])

    # 3. Plans and their effective-dated rates and quota defaults
    op.create_table(
        'plans',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False, server_default=''),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_plans_name'), 'plans', ['name'], unique=True)

    op.create_table(
        'plan_rates',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column('plan_id', sa.UUID(), nullable=False),
        sa.Column('effective_date', sa.DateTime(), nullable=False),
        sa.Column('rate', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_plan_rates_plan_id'), 'plan_rates', ['plan_id'])
    op.create_index(op.f('ix_plan_rates_effective_date'), 'plan_rates', ['effective_date'])

    op.create_table(
        'plan_quota_defaults',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column('plan_id', sa.UUID(), nullable=False),
        sa.Column('resource_type_id', sa.UUID(), nullable=False),
        sa.Column('quota_value', sa.Float(), nullable=False),
        sa.Column('effective_date', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_type_id'], ['resource_types.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_plan_quota_defaults_plan_id'), 'plan_quota_defaults', ['plan_id'])
    op.create_index(op.f('ix_plan_quota_defaults_resource_type_id'), 'plan_quota_defaults', ['resource_type_id'])

    # 4. Subscriptions (depends on users, plans, plan_rates)
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        *_modified_by(),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('plan_id', sa.UUID(), nullable=False),
        sa.Column('plan_rate_id', sa.UUID(), nullable=False),
        sa.Column('effective_start_date', sa.DateTime(), nullable=False),
        sa.Column('effective_end_date', sa.DateTime(), nullable=True),
        sa.Column('paid', sa.Boolean(), nullable=False, server_default='false'),
        sa.CheckConstraint(
            'effective_end_date IS NULL OR effective_end_date >= effective_start_date',
            name='ck_subscriptions_period',
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id']),
        sa.ForeignKeyConstraint(['plan_rate_id'], ['plan_rates.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_subscriptions_user_id'), 'subscriptions', ['user_id'])
    op.create_index(op.f('ix_subscriptions_plan_id'), 'subscriptions', ['plan_id'])
    op.create_index(op.f('ix_subscriptions_effective_start_date'), 'subscriptions', ['effective_start_date'])
    op.create_index(op.f('ix_subscriptions_effective_end_date'), 'subscriptions', ['effective_end_date'])

    # 5. Quotas and usages, one row per (subscription, resource type)
    op.create_table(
        'quotas',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        *_modified_by(),
        sa.Column('subscription_id', sa.UUID(), nullable=False),
        sa.Column('resource_type_id', sa.UUID(), nullable=False),
        sa.Column('quota_value', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_type_id'], ['resource_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subscription_id', 'resource_type_id', name='uq_quotas_subscription_resource_type')
    )
    op.create_index(op.f('ix_quotas_subscription_id'), 'quotas', ['subscription_id'])

    op.create_table(
        'usages',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        *_modified_by(),
        sa.Column('subscription_id', sa.UUID(), nullable=False),
        sa.Column('resource_type_id', sa.UUID(), nullable=False),
        sa.Column('usage_value', sa.Float(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_type_id'], ['resource_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subscription_id', 'resource_type_id', name='uq_usages_subscription_resource_type')
    )
    op.create_index(op.f('ix_usages_subscription_id'), 'usages', ['subscription_id'])

    op.create_table(
        'usage_updates',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column('subscription_id', sa.UUID(), nullable=False),
        sa.Column('resource_type_id', sa.UUID(), nullable=False),
        sa.Column('operation', postgresql.ENUM('ADD', 'SET', name='updateoperation', create_type=False), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('effective_date', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_type_id'], ['resource_types.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_usage_updates_subscription_id'), 'usage_updates', ['subscription_id'])
    op.create_index(op.f('ix_usage_updates_effective_date'), 'usage_updates', ['effective_date'])

    # 6. Add-on catalogue and attachments
    op.create_table(
        'addons',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('resource_type_id', sa.UUID(), nullable=False),
        sa.Column('default_amount', sa.Float(), nullable=False),
        sa.Column('paid', sa.Boolean(), nullable=False, server_default='true'),
        sa.ForeignKeyConstraint(['resource_type_id'], ['resource_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index(op.f('ix_addons_resource_type_id'), 'addons', ['resource_type_id'])

    op.create_table(
        'subscription_addons',
        sa.Column('id', sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column('subscription_id', sa.UUID(), nullable=False),
        sa.Column('addon_id', sa.UUID(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['addon_id'], ['addons.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_subscription_addons_subscription_id'), 'subscription_addons', ['subscription_id'])
    op.create_index(op.f('ix_subscription_addons_addon_id'), 'subscription_addons', ['addon_id'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('subscription_addons')
    op.drop_table('addons')
    op.drop_table('usage_updates')
    op.drop_table('usages')
    op.drop_table('quotas')
    op.drop_table('subscriptions')
    op.drop_table('plan_quota_defaults')
    op.drop_table('plan_rates')
    op.drop_table('plans')
    op.drop_table('resource_types')
    op.drop_table('users')

    op.execute("DROP TYPE IF EXISTS updateoperation")
