"""Initial schema - portal tables

Revision ID: 001
Revises:
Create Date: 2026-10-18

WHY: Creates every table of the portal in dependency order: accounts and
tenants first, then projects, then what projects own (files, CMS content,
quotes, invoices, extra costs and the agenda), then bookkeeping for sequences and failed tasks.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    'user_role': ('admin', 'user'),
    'member_role': ('owner', 'admin', 'member'),
    'file_content_type': ('file', 'url', 'text', 'folder'),
    'document_language': ('en', 'nl'),
    'quote_status': ('draft', 'sent', 'accepted', 'rejected', 'expired'),
    'invoice_status': ('draft', 'sent', 'paid', 'overdue', 'cancelled'),
    'agenda_item_type': ('meeting', 'deliverable', 'cancelled', 'other'),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade() -> None:
    """
    Create enum types, then tables with their indexes.

    WHY: PostgreSQL ENUMs provide type safety at the database level; the
    models declare them with create_type=False so only this migration
    creates them.
    """
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # ------------------------------------------------------------------
    # Accounts and tenants
    # ------------------------------------------------------------------
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('role', _enum('user_role'), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('logo', sa.String(length=1024), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_organizations'),
    )
    op.create_index('ix_organizations_id', 'organizations', ['id'])
    op.create_index('ix_organizations_name', 'organizations', ['name'])
    op.create_index('ix_organizations_slug', 'organizations', ['slug'], unique=True)

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', _enum('member_role'), nullable=False, server_default='member'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_members'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_members_organization_id_organizations', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_members_user_id_users', ondelete='CASCADE',
        ),
        sa.UniqueConstraint('organization_id', 'user_id', name='uq_members_organization_user'),
    )
    op.create_index('ix_members_id', 'members', ['id'])
    op.create_index('ix_members_organization_id', 'members', ['organization_id'])
    op.create_index('ix_members_user_id', 'members', ['user_id'])

    op.create_table(
        'contact_information',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('organization_name', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('address', sa.String(length=1024), nullable=False, server_default=''),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_contact_information'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_contact_information_organization_id_organizations', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_contact_information_user_id_users', ondelete='SET NULL',
        ),
    )
    op.create_index('ix_contact_information_id', 'contact_information', ['id'])
    op.create_index('ix_contact_information_organization_id', 'contact_information', ['organization_id'])

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('url', sa.String(length=1024), nullable=True),
        sa.Column('cms_key', sa.String(length=255), nullable=True),
        sa.Column('cms_is_listening', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('selected_languages', sa.JSON(), nullable=True),
        sa.Column('enable_cms', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('smart_objects_key', sa.String(length=255), nullable=True),
        sa.Column('smart_objects_url', sa.String(length=1024), nullable=True),
        sa.Column('enable_smart_objects', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('phase', sa.String(length=64), nullable=False, server_default='planning'),
        sa.Column('contact_information_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_projects'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_projects_organization_id_organizations', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['contact_information_id'], ['contact_information.id'],
            name='fk_projects_contact_information_id_contact_information', ondelete='SET NULL',
        ),
        sa.UniqueConstraint('cms_key', name='uq_projects_cms_key'),
    )
    op.create_index('ix_projects_id', 'projects', ['id'])
    op.create_index('ix_projects_organization_id', 'projects', ['organization_id'])
    op.create_index('ix_projects_name', 'projects', ['name'])

    # ------------------------------------------------------------------
    # File manager
    # ------------------------------------------------------------------
    op.create_table(
        'files',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=1024), nullable=False),
        sa.Column('content_type', _enum('file_content_type'), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('url', sa.String(length=2048), nullable=True),
        sa.Column('storage_id', sa.String(length=255), nullable=True),
        sa.Column('user_can_edit', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('user_can_delete', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('project_id', sa.Integer(), nullable=True),
        sa.Column('organization_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_files'),
        sa.ForeignKeyConstraint(
            ['project_id'], ['projects.id'],
            name='fk_files_project_id_projects', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_files_organization_id_organizations', ondelete='CASCADE',
        ),
    )
    op.create_index('ix_files_id', 'files', ['id'])
    op.create_index('ix_files_name', 'files', ['name'])
    op.create_index('ix_files_content_type', 'files', ['content_type'])
    op.create_index('ix_files_url', 'files', ['url'])
    op.create_index('ix_files_project_id', 'files', ['project_id'])
    op.create_index('ix_files_organization_id', 'files', ['organization_id'])

    # ------------------------------------------------------------------
    # Headless CMS
    # ------------------------------------------------------------------
    op.create_table(
        'cms_pages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('listening_mode', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_cms_pages'),
        sa.ForeignKeyConstraint(
            ['project_id'], ['projects.id'],
            name='fk_cms_pages_project_id_projects', ondelete='CASCADE',
        ),
    )
    op.create_index('ix_cms_pages_id', 'cms_pages', ['id'])
    op.create_index('ix_cms_pages_slug', 'cms_pages', ['slug'])
    op.create_index('ix_cms_pages_project_id', 'cms_pages', ['project_id'])

    op.create_table(
        'cms_fields',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cms_page_id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('default_value', sa.Text(), nullable=False, server_default=''),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_cms_fields'),
        sa.ForeignKeyConstraint(
            ['cms_page_id'], ['cms_pages.id'],
            name='fk_cms_fields_cms_page_id_cms_pages', ondelete='CASCADE',
        ),
        sa.UniqueConstraint('cms_page_id', 'key', name='uq_cms_fields_page_key'),
    )
    op.create_index('ix_cms_fields_id', 'cms_fields', ['id'])
    op.create_index('ix_cms_fields_cms_page_id', 'cms_fields', ['cms_page_id'])

    op.create_table(
        'cms_splits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('split', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_cms_splits'),
        sa.ForeignKeyConstraint(
            ['project_id'], ['projects.id'],
            name='fk_cms_splits_project_id_projects', ondelete='CASCADE',
        ),
    )
    op.create_index('ix_cms_splits_id', 'cms_splits', ['id'])
    op.create_index('ix_cms_splits_project_id', 'cms_splits', ['project_id'])

    op.create_table(
        'cms_field_values',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cms_field_id', sa.Integer(), nullable=False),
        sa.Column('page_id', sa.Integer(), nullable=False),
        sa.Column('split_id', sa.Integer(), nullable=True),
        sa.Column('value', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_cms_field_values'),
        sa.ForeignKeyConstraint(
            ['cms_field_id'], ['cms_fields.id'],
            name='fk_cms_field_values_cms_field_id_cms_fields', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['page_id'], ['cms_pages.id'],
            name='fk_cms_field_values_page_id_cms_pages', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['split_id'], ['cms_splits.id'],
            name='fk_cms_field_values_split_id_cms_splits', ondelete='CASCADE',
        ),
        sa.UniqueConstraint(
            'cms_field_id', 'page_id', 'split_id',
            name='uq_cms_field_values_field_page_split',
        ),
    )
    op.create_index('ix_cms_field_values_id', 'cms_field_values', ['id'])
    op.create_index('ix_cms_field_values_cms_field_id', 'cms_field_values', ['cms_field_id'])
    op.create_index('ix_cms_field_values_page_id', 'cms_field_values', ['page_id'])
    op.create_index('ix_cms_field_values_split_id', 'cms_field_values', ['split_id'])
    op.create_index(
        'uq_cms_field_values_field_page_default',
        'cms_field_values',
        ['cms_field_id', 'page_id'],
        unique=True,
        postgresql_where=sa.text('split_id IS NULL'),
        sqlite_where=sa.text('split_id IS NULL'),
    )

    # ------------------------------------------------------------------
    # Billing
    # ------------------------------------------------------------------
    for table, prefix, status_enum, date_col, deadline_col in (
        ('quotes', 'quote', 'quote_status', 'quote_date', 'quote_valid_until'),
        ('invoices', 'invoice', 'invoice_status', 'invoice_date', 'invoice_due_date'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('project_id', sa.Integer(), nullable=False),
            sa.Column('organization_id', sa.Integer(), nullable=False),
            sa.Column(f'{prefix}_number', sa.Integer(), nullable=False),
            sa.Column(f'{prefix}_identifier', sa.String(length=32), nullable=False),
            sa.Column(f'{prefix}_file_url', sa.String(length=2048), nullable=True),
            sa.Column('language', _enum('document_language'), nullable=False, server_default='en'),
            sa.Column(date_col, sa.DateTime(), nullable=True),
            sa.Column(deadline_col, sa.DateTime(), nullable=True),
            sa.Column('items', sa.JSON(), nullable=False),
            sa.Column('status', _enum(status_enum), nullable=False, server_default='draft'),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id', name=f'pk_{table}'),
            sa.ForeignKeyConstraint(
                ['project_id'], ['projects.id'],
                name=f'fk_{table}_project_id_projects', ondelete='CASCADE',
            ),
            sa.ForeignKeyConstraint(
                ['organization_id'], ['organizations.id'],
                name=f'fk_{table}_organization_id_organizations', ondelete='CASCADE',
            ),
            sa.UniqueConstraint(f'{prefix}_number', name=f'uq_{table}_{prefix}_number'),
        )
        op.create_index(f'ix_{table}_id', table, ['id'])
        op.create_index(f'ix_{table}_project_id', table, ['project_id'])
        op.create_index(f'ix_{table}_organization_id', table, ['organization_id'])
        op.create_index(f'ix_{table}_{prefix}_identifier', table, [f'{prefix}_identifier'])
        op.create_index(f'ix_{table}_status', table, ['status'])

    op.create_table(
        'extra_costs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('price_excl_tax', sa.Float(), nullable=False),
        sa.Column('tax', sa.Integer(), nullable=False),
        sa.Column('invoiced_date', sa.DateTime(), nullable=True),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.Column('voided', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('show_separately_on_invoice', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_extra_costs'),
        sa.ForeignKeyConstraint(
            ['project_id'], ['projects.id'],
            name='fk_extra_costs_project_id_projects', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_extra_costs_organization_id_organizations', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['invoice_id'], ['invoices.id'],
            name='fk_extra_costs_invoice_id_invoices', ondelete='SET NULL',
        ),
        sa.CheckConstraint('tax IN (0, 9, 21)', name='ck_extra_costs_tax'),
    )
    op.create_index('ix_extra_costs_id', 'extra_costs', ['id'])
    for column in ('project_id', 'organization_id', 'invoiced_date', 'invoice_id'):
        op.create_index(f'ix_extra_costs_{column}', 'extra_costs', [column])

    # ------------------------------------------------------------------
    # Project agenda
    # ------------------------------------------------------------------
    op.create_table(
        'project_agenda_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('created_by_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('location', sa.String(length=512), nullable=True),
        sa.Column('teams_link', sa.String(length=2048), nullable=True),
        sa.Column('type', _enum('agenda_item_type'), nullable=False, server_default='other'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_project_agenda_items'),
        sa.ForeignKeyConstraint(
            ['project_id'], ['projects.id'],
            name='fk_project_agenda_items_project_id_projects', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'],
            name='fk_project_agenda_items_organization_id_organizations', ondelete='CASCADE',
        ),
    )
    op.create_index('ix_project_agenda_items_id', 'project_agenda_items', ['id'])
    op.create_index('ix_project_agenda_items_project_id', 'project_agenda_items', ['project_id'])
    op.create_index('ix_project_agenda_items_organization_id', 'project_agenda_items', ['organization_id'])

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------
    op.create_table(
        'sequence_counters',
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('name', name='pk_sequence_counters'),
    )

    op.create_table(
        'dead_letter_tasks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('task_name', sa.String(length=255), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('error', sa.Text(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_dead_letter_tasks'),
    )
    op.create_index('ix_dead_letter_tasks_id', 'dead_letter_tasks', ['id'])
    op.create_index('ix_dead_letter_tasks_task_name', 'dead_letter_tasks', ['task_name'])


def downgrade() -> None:
    """
    Drop every table in reverse dependency order, then the enum types.

    WHY: Downgrade allows rollback if issues are discovered after deployment.
    """
    for table in (
        'dead_letter_tasks',
        'sequence_counters',
        'project_agenda_items',
        'extra_costs',
        'invoices',
        'quotes',
        'cms_field_values',
        'cms_splits',
        'cms_fields',
        'cms_pages',
        'files',
        'projects',
        'contact_information',
        'members',
        'organizations',
        'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
