"""baseline_migration

Revision ID: a1c3e5f7b9d1
Revises:
Create Date: 2026-10-17 10:12:44.118204

Production-safe migration: only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d1'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True)


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('full_name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('role', sa.String(), nullable=False),
            created_at(),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    if not table_exists('profiles'):
        op.create_table('profiles',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('display_name', sa.String(), nullable=False),
            sa.Column('gender', sa.String(), nullable=True),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('headline', sa.String(), nullable=True),
            created_at(),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )
        op.create_index(op.f('ix_profiles_id'), 'profiles', ['id'], unique=False)

    if not table_exists('photos'):
        op.create_table('photos',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('profile_id', sa.Integer(), nullable=False),
            sa.Column('object_key', sa.String(), nullable=False),
            sa.Column('privacy_level', sa.String(), nullable=False),
            sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
            created_at(),
            sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_photos_id'), 'photos', ['id'], unique=False)
        op.create_index(op.f('ix_photos_profile_id'), 'photos', ['profile_id'], unique=False)

    if not table_exists('blocks'):
        op.create_table('blocks',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('blocker_user_id', sa.Integer(), nullable=False),
            sa.Column('blocked_user_id', sa.Integer(), nullable=False),
            sa.Column('reason', sa.String(length=500), nullable=True),
            created_at(),
            sa.ForeignKeyConstraint(['blocker_user_id'], ['users.id'], ),
            sa.ForeignKeyConstraint(['blocked_user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('blocker_user_id', 'blocked_user_id', name='uq_block_pair')
        )
        op.create_index(op.f('ix_blocks_id'), 'blocks', ['id'], unique=False)
        op.create_index(op.f('ix_blocks_blocker_user_id'), 'blocks', ['blocker_user_id'], unique=False)
        op.create_index(op.f('ix_blocks_blocked_user_id'), 'blocks', ['blocked_user_id'], unique=False)

    if not table_exists('reports'):
        op.create_table('reports',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('reporter_user_id', sa.Integer(), nullable=False),
            sa.Column('reported_profile_id', sa.Integer(), nullable=False),
            sa.Column('reason', sa.String(), nullable=False),
            sa.Column('details', sa.Text(), nullable=True),
            sa.Column('screenshot_url', sa.String(), nullable=True),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('admin_notes', sa.Text(), nullable=True),
            sa.Column('reviewed_by', sa.Integer(), nullable=True),
            sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
            created_at(),
            sa.ForeignKeyConstraint(['reporter_user_id'], ['users.id'], ),
            sa.ForeignKeyConstraint(['reported_profile_id'], ['profiles.id'], ),
            sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_reports_id'), 'reports', ['id'], unique=False)
        op.create_index(op.f('ix_reports_reporter_user_id'), 'reports', ['reporter_user_id'], unique=False)
        op.create_index(op.f('ix_reports_reported_profile_id'), 'reports', ['reported_profile_id'], unique=False)
        op.create_index('idx_report_reporter_profile', 'reports', ['reporter_user_id', 'reported_profile_id'], unique=False)

    if not table_exists('plans'):
        op.create_table('plans',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('code', sa.String(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('price', sa.Float(), nullable=False),
            sa.Column('currency', sa.String(length=3), nullable=False),
            sa.Column('duration_days', sa.Integer(), nullable=False),
            sa.Column('category', sa.String(), nullable=False),
            sa.Column('discount_amount', sa.Float(), nullable=True),
            sa.Column('discount_percent', sa.Float(), nullable=True),
            sa.Column('coupon_code', sa.String(), nullable=True),
            sa.Column('coupon_valid_until', sa.DateTime(timezone=True), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('is_invite_only', sa.Boolean(), nullable=False),
            sa.Column('features', sa.JSON(), nullable=True),
            created_at(),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_plans_id'), 'plans', ['id'], unique=False)
        op.create_index(op.f('ix_plans_code'), 'plans', ['code'], unique=True)
        op.create_index(op.f('ix_plans_category'), 'plans', ['category'], unique=False)

    if not table_exists('vendors'):
        op.create_table('vendors',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('business_name', sa.String(), nullable=False),
            sa.Column('owner_name', sa.String(), nullable=False),
            sa.Column('phone_number', sa.String(), nullable=True),
            sa.Column('is_verified', sa.Boolean(), nullable=False),
            sa.Column('onboarding_status', sa.String(), nullable=False),
            sa.Column('plan_id', sa.Integer(), nullable=True),
            sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('approved_by', sa.Integer(), nullable=True),
            sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('rejection_reason', sa.String(length=500), nullable=True),
            created_at(),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ),
            sa.ForeignKeyConstraint(['approved_by'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_vendors_id'), 'vendors', ['id'], unique=False)
        op.create_index(op.f('ix_vendors_email'), 'vendors', ['email'], unique=True)
        op.create_index(op.f('ix_vendors_onboarding_status'), 'vendors', ['onboarding_status'], unique=False)

    if not table_exists('vendor_profiles'):
        op.create_table('vendor_profiles',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('vendor_id', sa.Integer(), nullable=False),
            sa.Column('tagline', sa.String(), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('logo', sa.String(), nullable=True),
            sa.Column('cover_image', sa.String(), nullable=True),
            sa.Column('images', sa.JSON(), nullable=True),
            sa.Column('address', sa.String(length=500), nullable=True),
            sa.Column('city', sa.String(length=100), nullable=True),
            sa.Column('state', sa.String(length=100), nullable=True),
            sa.Column('country', sa.String(length=100), nullable=True),
            sa.Column('pincode', sa.String(length=20), nullable=True),
            sa.Column('years_in_business', sa.Integer(), nullable=True),
            sa.Column('team_size', sa.Integer(), nullable=True),
            sa.Column('website', sa.String(length=500), nullable=True),
            sa.Column('social_links', sa.JSON(), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('vendor_id')
        )
        op.create_index(op.f('ix_vendor_profiles_id'), 'vendor_profiles', ['id'], unique=False)

    if not table_exists('subscriptions'):
        op.create_table('subscriptions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('vendor_id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('last_event', sa.String(), nullable=False),
            sa.Column('price_paid', sa.Float(), nullable=True),
            sa.Column('currency', sa.String(length=3), nullable=True),
            sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
            created_at(),
            sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
            sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_subscriptions_id'), 'subscriptions', ['id'], unique=False)
        op.create_index(op.f('ix_subscriptions_vendor_id'), 'subscriptions', ['vendor_id'], unique=False)
        op.create_index(
            'uq_subscriptions_one_active_per_vendor', 'subscriptions', ['vendor_id'], unique=True,
            postgresql_where=sa.text("status = 'active'"),
            sqlite_where=sa.text("status = 'active'"),
        )

    if not table_exists('payments'):
        op.create_table('payments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('vendor_id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.Integer(), nullable=False),
            sa.Column('amount', sa.Float(), nullable=False),
            sa.Column('currency', sa.String(length=3), nullable=False),
            sa.Column('gateway', sa.String(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('correlation_id', sa.String(), nullable=True),
            sa.Column('raw_response', sa.JSON(), nullable=True),
            sa.Column('subscription_id', sa.Integer(), nullable=True),
            created_at(),
            sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
            sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ),
            sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_payments_id'), 'payments', ['id'], unique=False)
        op.create_index(op.f('ix_payments_vendor_id'), 'payments', ['vendor_id'], unique=False)
        op.create_index(op.f('ix_payments_status'), 'payments', ['status'], unique=False)
        op.create_index(op.f('ix_payments_correlation_id'), 'payments', ['correlation_id'], unique=True)

    if not table_exists('vendor_services'):
        op.create_table('vendor_services',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('vendor_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('base_price', sa.Float(), nullable=False),
            sa.Column('currency', sa.String(length=3), nullable=False),
            sa.Column('price_unit', sa.String(), nullable=False),
            sa.Column('min_capacity', sa.Integer(), nullable=True),
            sa.Column('max_capacity', sa.Integer(), nullable=True),
            sa.Column('is_available', sa.Boolean(), nullable=False),
            created_at(),
            sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_vendor_services_id'), 'vendor_services', ['id'], unique=False)
        op.create_index(op.f('ix_vendor_services_vendor_id'), 'vendor_services', ['vendor_id'], unique=False)

    if not table_exists('bookings'):
        op.create_table('bookings',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('service_id', sa.Integer(), nullable=False),
            sa.Column('vendor_id', sa.Integer(), nullable=False),
            sa.Column('event_date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('event_location', sa.String(length=500), nullable=True),
            sa.Column('guest_count', sa.Integer(), nullable=True),
            sa.Column('requirements', sa.Text(), nullable=True),
            sa.Column('user_notes', sa.Text(), nullable=True),
            sa.Column('vendor_notes', sa.Text(), nullable=True),
            sa.Column('total_amount', sa.Float(), nullable=True),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('cancel_reason', sa.String(length=500), nullable=True),
            sa.Column('cancelled_by', sa.String(), nullable=True),
            created_at(),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.ForeignKeyConstraint(['service_id'], ['vendor_services.id'], ),
            sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_bookings_id'), 'bookings', ['id'], unique=False)
        op.create_index(op.f('ix_bookings_user_id'), 'bookings', ['user_id'], unique=False)
        op.create_index(op.f('ix_bookings_vendor_id'), 'bookings', ['vendor_id'], unique=False)
        op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)

    if not table_exists('reviews'):
        op.create_table('reviews',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('booking_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('vendor_id', sa.Integer(), nullable=False),
            sa.Column('service_id', sa.Integer(), nullable=False),
            sa.Column('rating', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=200), nullable=True),
            sa.Column('comment', sa.Text(), nullable=True),
            sa.Column('vendor_reply', sa.Text(), nullable=True),
            sa.Column('replied_at', sa.DateTime(timezone=True), nullable=True),
            created_at(),
            sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range'),
            sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
            sa.ForeignKeyConstraint(['service_id'], ['vendor_services.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('booking_id')
        )
        op.create_index(op.f('ix_reviews_id'), 'reviews', ['id'], unique=False)
        op.create_index(op.f('ix_reviews_vendor_id'), 'reviews', ['vendor_id'], unique=False)
        op.create_index(op.f('ix_reviews_service_id'), 'reviews', ['service_id'], unique=False)

    if not table_exists('notifications'):
        op.create_table('notifications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('recipient_type', sa.String(), nullable=False),
            sa.Column('recipient_id', sa.Integer(), nullable=False),
            sa.Column('type', sa.String(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('body', sa.Text(), nullable=False),
            sa.Column('priority', sa.String(), nullable=False),
            sa.Column('metadata', sa.JSON(), nullable=True),
            sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
            created_at(),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'], unique=False)
        op.create_index('idx_notification_recipient', 'notifications', ['recipient_type', 'recipient_id', 'created_at'], unique=False)


def downgrade() -> None:
    for table_name in (
        'notifications', 'reviews', 'bookings', 'vendor_services', 'payments', 'subscriptions',
        'vendor_profiles', 'vendors', 'plans', 'reports', 'blocks', 'photos', 'profiles', 'users',
    ):
        if table_exists(table_name):
            op.drop_table(table_name)
