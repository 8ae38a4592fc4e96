"""initial scan tracking schema

Revision ID: 001_initial_scan_tracking
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_scan_tracking'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create users table
    op.create_table('users',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('full_name', sa.String(length=255), nullable=True),
    sa.Column('meta_pixel_id', sa.String(length=32), nullable=True),
    sa.Column('meta_encrypted_access_token', sa.Text(), nullable=True),
    sa.Column('meta_encryption_iv', sa.String(length=32), nullable=True),
    sa.Column('meta_encryption_version', sa.Integer(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Create campaigns table
    op.create_table('campaigns',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('user_id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('destination_url', sa.Text(), nullable=False),
    sa.Column('tracking_code', sa.String(length=32), nullable=False),
    sa.Column('slug', sa.String(length=64), nullable=True),
    sa.Column('cookie_duration_days', sa.Integer(), nullable=False, server_default='30'),
    sa.Column('bridge_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column('bridge_duration_ms', sa.Integer(), nullable=False, server_default='800'),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
    sa.Column('meta_pixel_id', sa.String(length=32), nullable=True),
    sa.Column('meta_access_token', sa.Text(), nullable=True),
    sa.Column('meta_encrypted_access_token', sa.Text(), nullable=True),
    sa.Column('meta_encryption_iv', sa.String(length=32), nullable=True),
    sa.Column('meta_encryption_version', sa.Integer(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.CheckConstraint('cookie_duration_days IN (30, 60, 90)', name='valid_cookie_duration'),
    sa.CheckConstraint("status IN ('active', 'paused', 'archived')", name='valid_campaign_status'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_campaigns_user_id'), 'campaigns', ['user_id'], unique=False)
    op.create_index(op.f('ix_campaigns_tracking_code'), 'campaigns', ['tracking_code'], unique=True)
    op.create_index(op.f('ix_campaigns_slug'), 'campaigns', ['slug'], unique=True)
    op.create_index(op.f('ix_campaigns_status'), 'campaigns', ['status'], unique=False)

    # Create scans table
    op.create_table('scans',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('campaign_id', sa.Integer(), nullable=False),
    sa.Column('visitor_id', sa.String(length=64), nullable=False),
    sa.Column('ip_address_hash', sa.String(length=64), nullable=True),
    sa.Column('locality_name', sa.String(length=255), nullable=True),
    sa.Column('suburb', sa.String(length=255), nullable=True),
    sa.Column('city', sa.String(length=255), nullable=True),
    sa.Column('postcode', sa.String(length=10), nullable=True),
    sa.Column('state', sa.String(length=100), nullable=True),
    sa.Column('state_code', sa.String(length=10), nullable=True),
    sa.Column('country', sa.String(length=100), nullable=True),
    sa.Column('country_code', sa.String(length=2), nullable=True),
    sa.Column('latitude', sa.Float(), nullable=True),
    sa.Column('longitude', sa.Float(), nullable=True),
    sa.Column('confidence_radius_km', sa.Float(), nullable=True),
    sa.Column('geo_source', sa.String(length=20), nullable=False, server_default='fallback'),
    sa.Column('isp_name', sa.String(length=255), nullable=True),
    sa.Column('network_type', sa.String(length=50), nullable=True),
    sa.Column('connection_type', sa.String(length=50), nullable=True),
    sa.Column('is_vpn', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('is_proxy', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('is_tor', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('user_agent', sa.Text(), nullable=True),
    sa.Column('device_type', sa.String(length=20), nullable=True),
    sa.Column('browser', sa.String(length=100), nullable=True),
    sa.Column('os', sa.String(length=100), nullable=True),
    sa.Column('screen_width', sa.Integer(), nullable=True),
    sa.Column('screen_height', sa.Integer(), nullable=True),
    sa.Column('referrer', sa.Text(), nullable=True),
    sa.Column('cookie_expires_at', sa.DateTime(), nullable=True),
    sa.Column('is_first_scan', sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column('meta_event_id', sa.String(length=32), nullable=True),
    sa.Column('scanned_at', sa.DateTime(), nullable=False),
    sa.CheckConstraint("device_type IN ('mobile', 'tablet', 'desktop') OR device_type IS NULL", name='valid_device_type'),
    sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_scans_campaign_id'), 'scans', ['campaign_id'], unique=False)
    op.create_index(op.f('ix_scans_visitor_id'), 'scans', ['visitor_id'], unique=False)
    op.create_index(op.f('ix_scans_locality_name'), 'scans', ['locality_name'], unique=False)
    op.create_index(op.f('ix_scans_postcode'), 'scans', ['postcode'], unique=False)
    op.create_index(op.f('ix_scans_geo_source'), 'scans', ['geo_source'], unique=False)
    op.create_index(op.f('ix_scans_meta_event_id'), 'scans', ['meta_event_id'], unique=False)
    op.create_index(op.f('ix_scans_scanned_at'), 'scans', ['scanned_at'], unique=False)

    # Create scan_aggregates table (hourly rollup, '' for unknown key parts)
    op.create_table('scan_aggregates',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('campaign_id', sa.Integer(), nullable=False),
    sa.Column('date', sa.Date(), nullable=False),
    sa.Column('hour', sa.Integer(), nullable=False),
    sa.Column('locality_name', sa.String(length=255), nullable=False, server_default=''),
    sa.Column('postcode', sa.String(length=10), nullable=False, server_default=''),
    sa.Column('state', sa.String(length=100), nullable=False, server_default=''),
    sa.Column('suburb', sa.String(length=255), nullable=True),
    sa.Column('confidence_level', sa.String(length=20), nullable=True),
    sa.Column('total_scans', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('unique_visitors', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('mobile_scans', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('desktop_scans', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('tablet_scans', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('campaign_id', 'date', 'hour', 'locality_name', 'postcode', 'state', name='scan_aggregates_unique_key')
    )
    op.create_index('ix_scan_aggregates_campaign_date', 'scan_aggregates', ['campaign_id', 'date'], unique=False)

    # Create localities reference table
    op.create_table('localities',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('locality_name', sa.String(length=255), nullable=False),
    sa.Column('postcode', sa.String(length=10), nullable=True),
    sa.Column('state', sa.String(length=100), nullable=True),
    sa.Column('state_code', sa.String(length=10), nullable=True),
    sa.Column('latitude', sa.Float(), nullable=True),
    sa.Column('longitude', sa.Float(), nullable=True),
    sa.Column('population', sa.Integer(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('locality_name', 'postcode', 'state_code', name='localities_unique')
    )
    op.create_index(op.f('ix_localities_locality_name'), 'localities', ['locality_name'], unique=False)
    op.create_index(op.f('ix_localities_postcode'), 'localities', ['postcode'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_localities_postcode'), table_name='localities')
    op.drop_index(op.f('ix_localities_locality_name'), table_name='localities')
    op.drop_table('localities')
    op.drop_index('ix_scan_aggregates_campaign_date', table_name='scan_aggregates')
    op.drop_table('scan_aggregates')
    op.drop_index(op.f('ix_scans_scanned_at'), table_name='scans')
    op.drop_index(op.f('ix_scans_meta_event_id'), table_name='scans')
    op.drop_index(op.f('ix_scans_geo_source'), table_name='scans')
    op.drop_index(op.f('ix_scans_postcode'), table_name='scans')
    op.drop_index(op.f('ix_scans_locality_name'), table_name='scans')
    op.drop_index(op.f('ix_scans_visitor_id'), table_name='scans')
    op.drop_index(op.f('ix_scans_campaign_id'), table_name='scans')
    op.drop_table('scans')
    op.drop_index(op.f('ix_campaigns_status'), table_name='campaigns')
    op.drop_index(op.f('ix_campaigns_slug'), table_name='campaigns')
    op.drop_index(op.f('ix_campaigns_tracking_code'), table_name='campaigns')
    op.drop_index(op.f('ix_campaigns_user_id'), table_name='campaigns')
    op.drop_table('campaigns')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
