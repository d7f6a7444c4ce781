"""create property survey, image and audit tables

Revision ID: 5c1e7a2b9d40
Revises:
Create Date: 2026-10-18 10:12:04.118230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5c1e7a2b9d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'property_surveys',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.String(length=100), nullable=False),
        sa.Column('survey_number', sa.String(length=100), nullable=True),
        sa.Column('old_mc_property_number', sa.String(length=100), nullable=True),
        sa.Column('register_no', sa.String(length=100), nullable=True),
        sa.Column('owner_name', sa.String(length=255), nullable=True),
        sa.Column('owner_father_name', sa.String(length=255), nullable=True),
        sa.Column('owner_phone', sa.String(length=32), nullable=True),
        sa.Column('owner_email', sa.String(length=255), nullable=True),
        sa.Column('aadhar_number', sa.String(length=14), nullable=True),
        sa.Column('house_number', sa.String(length=64), nullable=True),
        sa.Column('street_name', sa.String(length=255), nullable=True),
        sa.Column('locality', sa.String(length=255), nullable=True),
        sa.Column('ward_number', sa.Integer(), nullable=True),
        sa.Column('pincode', sa.String(length=6), nullable=True),
        sa.Column('zone', sa.String(length=1), nullable=True),
        sa.Column('property_type', sa.String(length=32), nullable=True),
        sa.Column('construction_type', sa.String(length=32), nullable=True),
        sa.Column('construction_year', sa.Integer(), nullable=True),
        sa.Column('number_of_floors', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('building_permission', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('bp_number', sa.String(length=100), nullable=True),
        sa.Column('bp_date', sa.Date(), nullable=True),
        sa.Column('plot_area', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('built_up_area', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('carpet_area', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('property_use_details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('water_connection', sa.Integer(), nullable=True),
        sa.Column('water_connection_number', sa.String(length=100), nullable=True),
        sa.Column('water_connection_date', sa.Date(), nullable=True),
        sa.Column('electricity_connection', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('electricity_connection_number', sa.String(length=100), nullable=True),
        sa.Column('sewage_connection', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('solar_panel', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('rain_water_harvesting', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('latitude', sa.Numeric(precision=10, scale=8), nullable=True),
        sa.Column('longitude', sa.Numeric(precision=11, scale=8), nullable=True),
        sa.Column('assessment_year', sa.Integer(), nullable=True),
        sa.Column('estimated_tax', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('survey_status', sa.String(length=16), server_default=sa.text("'draft'"), nullable=False),
        sa.Column('approval_status', sa.String(length=24), nullable=True),
        sa.Column('surveyed_by', sa.String(length=64), nullable=False),
        sa.Column('survey_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reviewed_by', sa.String(length=64), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('review_remarks', sa.Text(), nullable=True),
        sa.Column('approved_by', sa.String(length=64), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('edit_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('last_edit_comment', sa.Text(), nullable=True),
        sa.Column('last_edit_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_edit_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id'),
        sa.UniqueConstraint('survey_number'),
    )
    op.create_index('ix_property_surveys_surveyed_by', 'property_surveys', ['surveyed_by'], unique=False)
    op.create_index('ix_property_surveys_status', 'property_surveys', ['survey_status', 'approval_status'], unique=False)
    op.create_index('ix_property_surveys_zone_type', 'property_surveys', ['zone', 'property_type'], unique=False)
    op.create_index('ix_property_surveys_created_at', 'property_surveys', ['created_at'], unique=False)

    op.create_table(
        'property_images',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.String(length=100), nullable=False),
        sa.Column('image_type', sa.String(length=32), nullable=False),
        sa.Column('remote_path', sa.String(length=512), nullable=False),
        sa.Column('remote_url', sa.String(length=1024), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(length=64), nullable=False),
        sa.Column('uploaded_by', sa.String(length=64), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'image_type', name='uq_property_images_slot'),
    )
    op.create_index(op.f('ix_property_images_property_id'), 'property_images', ['property_id'], unique=False)

    op.create_table(
        'survey_audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.String(length=100), nullable=False),
        sa.Column('actor_user_id', sa.String(length=64), nullable=True),
        sa.Column('actor_role', sa.String(length=32), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('request_id', sa.String(length=128), nullable=True),
        sa.Column('details_json', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_survey_audit_property', 'survey_audit_logs', ['property_id', 'created_at'], unique=False)
    op.create_index('ix_survey_audit_action', 'survey_audit_logs', ['action'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_survey_audit_action', table_name='survey_audit_logs')
    op.drop_index('ix_survey_audit_property', table_name='survey_audit_logs')
    op.drop_table('survey_audit_logs')
    op.drop_index(op.f('ix_property_images_property_id'), table_name='property_images')
    op.drop_table('property_images')
    op.drop_index('ix_property_surveys_created_at', table_name='property_surveys')
    op.drop_index('ix_property_surveys_zone_type', table_name='property_surveys')
    op.drop_index('ix_property_surveys_status', table_name='property_surveys')
    op.drop_index('ix_property_surveys_surveyed_by', table_name='property_surveys')
    op.drop_table('property_surveys')
