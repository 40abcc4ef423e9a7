"""Initial schema for line-check system

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create form_groups table
    op.create_table(
        'form_groups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False, comment='Form title shown to staff'),
        sa.Column('assigned_locations', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='Locations this form is assigned to'),
        sa.Column('source_filename', sa.String(length=255), nullable=True,
                  comment='Original Excel filename if imported'),
        sa.Column('source_file_hash', sa.String(length=64), nullable=True,
                  comment='SHA256 hash of the imported workbook'),
        sa.Column('source_path', sa.String(length=512), nullable=True,
                  comment='Path to stored copy of the imported workbook'),
        sa.Column('created_by', sa.String(length=255), nullable=True,
                  comment='User or API key that created the form'),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'),
                  nullable=False, comment='Creation timestamp'),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'),
                  nullable=False, comment='Last modification timestamp'),
        sa.PrimaryKeyConstraint('id'),
        comment='Line-check form templates'
    )
    op.create_index('idx_form_groups_created_at', 'form_groups', ['created_at'])
    op.create_index('idx_form_groups_hash', 'form_groups', ['source_file_hash'])

    # Create form_lines table
    op.create_table(
        'form_lines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('form_group_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False,
                  comment='1-based order shared by sections and fields'),
        sa.Column('line_type', sa.String(length=20), nullable=False,
                  comment='Type: section, temperature, date'),
        sa.Column('label', sa.String(length=255), nullable=False, comment='Field label or section title'),
        sa.Column('description', sa.Text(), nullable=False, comment='Optional free-text description'),
        sa.Column('min_value', sa.Float(), nullable=True, comment='Minimum acceptable temperature'),
        sa.Column('max_value', sa.Float(), nullable=True, comment='Maximum acceptable temperature'),
        sa.CheckConstraint("line_type IN ('section', 'temperature', 'date')",
                           name='form_lines_line_type_check'),
        sa.ForeignKeyConstraint(['form_group_id'], ['form_groups.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('form_group_id', 'position', name='uq_form_lines_position'),
        comment='Ordered lines of a form template'
    )
    op.create_index('idx_form_lines_form_group', 'form_lines', ['form_group_id'])

    # Create location_forms table
    op.create_table(
        'location_forms',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False, comment='Location name'),
        sa.Column('form_group_id', sa.Integer(), nullable=False),
        sa.Column('customizations', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='Per-location overrides'),
        sa.ForeignKeyConstraint(['form_group_id'], ['form_groups.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('location', 'form_group_id', name='uq_location_forms'),
        comment='Forms available at each location'
    )
    op.create_index('idx_location_forms_location', 'location_forms', ['location'])

    # Create submissions table
    op.create_table(
        'submissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('submission_key', sa.String(length=512), nullable=False,
                  comment='Readable key: date-location-title with (n) suffix for repeats'),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('form_group_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False, comment='Form title at submission time'),
        sa.Column('submitted_by', sa.String(length=255), nullable=True),
        sa.Column('submitted_at', sa.TIMESTAMP(), nullable=False, comment='Submission timestamp (UTC)'),
        sa.ForeignKeyConstraint(['form_group_id'], ['form_groups.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('location', 'submission_key', name='uq_submissions_key'),
        comment='Completed line checks'
    )
    op.create_index('idx_submissions_location', 'submissions', ['location'])
    op.create_index('idx_submissions_submitted_at', 'submissions', ['submitted_at'])

    # Create submission_entries table
    op.create_table(
        'submission_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('submission_id', sa.Integer(), nullable=False),
        sa.Column('field_id', sa.Integer(), nullable=True, comment='Form line the value was recorded for'),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('entry_type', sa.String(length=20), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('value_number', sa.Float(), nullable=True, comment='Temperature reading'),
        sa.Column('value_text', sa.String(length=20), nullable=True, comment='Date value as MM-DD'),
        sa.Column('min_value', sa.Float(), nullable=True),
        sa.Column('max_value', sa.Float(), nullable=True),
        sa.CheckConstraint("entry_type IN ('temperature', 'date')", name='submission_entries_type_check'),
        sa.ForeignKeyConstraint(['submission_id'], ['submissions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        comment='Recorded values of completed line checks'
    )
    op.create_index('idx_submission_entries_submission', 'submission_entries', ['submission_id'])


def downgrade() -> None:
    op.drop_index('idx_submission_entries_submission', table_name='submission_entries')
    op.drop_table('submission_entries')

    op.drop_index('idx_submissions_submitted_at', table_name='submissions')
    op.drop_index('idx_submissions_location', table_name='submissions')
    op.drop_table('submissions')

    op.drop_index('idx_location_forms_location', table_name='location_forms')
    op.drop_table('location_forms')

    op.drop_index('idx_form_lines_form_group', table_name='form_lines')
    op.drop_table('form_lines')

    op.drop_index('idx_form_groups_hash', table_name='form_groups')
    op.drop_index('idx_form_groups_created_at', table_name='form_groups')
    op.drop_table('form_groups')
