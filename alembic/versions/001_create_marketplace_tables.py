"""Create marketplace tables

Revision ID: 001_create_marketplace_tables
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_marketplace_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create users, job_postings, job_bids, completed_jobs and reviews."""
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='client'),
        sa.Column('profile_picture', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
    )

    op.create_table(
        'job_postings',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('client_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('urgency', sa.String(length=50), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('min_budget', sa.Numeric(12, 2), nullable=True),
        sa.Column('max_budget', sa.Numeric(12, 2), nullable=True),
        sa.Column('notify', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('images', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='open'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['client_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            'min_budget IS NULL OR max_budget IS NULL OR min_budget <= max_budget',
            name='ck_job_postings_budget_order',
        ),
    )
    op.create_index('ix_job_postings_client_id', 'job_postings', ['client_id'])
    op.create_index('ix_job_postings_status', 'job_postings', ['status'])
    op.create_index('idx_job_postings_client_status', 'job_postings', ['client_id', 'status'])
    op.create_index('idx_job_postings_created', 'job_postings', ['created_at'])

    op.create_table(
        'job_bids',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('job_posting_id', sa.BigInteger(), nullable=False),
        sa.Column('fixer_id', sa.BigInteger(), nullable=False),
        sa.Column('bid_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['job_posting_id'], ['job_postings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['fixer_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('job_posting_id', 'fixer_id', name='uq_job_bids_job_fixer'),
        sa.CheckConstraint('bid_amount > 0', name='ck_job_bids_amount_positive'),
    )
    op.create_index('ix_job_bids_job_posting_id', 'job_bids', ['job_posting_id'])
    op.create_index('ix_job_bids_fixer_id', 'job_bids', ['fixer_id'])
    op.create_index('idx_job_bids_fixer_created', 'job_bids', ['fixer_id', 'created_at'])
    # At most one accepted bid per job posting
    op.create_index(
        'uq_job_bids_one_accepted',
        'job_bids',
        ['job_posting_id'],
        unique=True,
        postgresql_where=sa.text("status = 'accepted'"),
    )

    op.create_table(
        'completed_jobs',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('job_posting_id', sa.BigInteger(), nullable=False),
        sa.Column('fixer_id', sa.BigInteger(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['job_posting_id'], ['job_postings.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['fixer_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('job_posting_id', 'fixer_id', name='uq_completed_jobs_job_fixer'),
    )
    op.create_index('ix_completed_jobs_fixer_id', 'completed_jobs', ['fixer_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('client_id', sa.BigInteger(), nullable=False),
        sa.Column('fixer_id', sa.BigInteger(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['client_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['fixer_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('client_id', 'fixer_id', name='uq_reviews_client_fixer'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_fixer_id', 'reviews', ['fixer_id'])


def downgrade() -> None:
    """Drop marketplace tables in reverse dependency order."""
    op.drop_index('ix_reviews_fixer_id', table_name='reviews')
    op.drop_table('reviews')
    op.drop_index('ix_completed_jobs_fixer_id', table_name='completed_jobs')
    op.drop_table('completed_jobs')
    op.drop_index('uq_job_bids_one_accepted', table_name='job_bids')
    op.drop_index('idx_job_bids_fixer_created', table_name='job_bids')
    op.drop_index('ix_job_bids_fixer_id', table_name='job_bids')
    op.drop_index('ix_job_bids_job_posting_id', table_name='job_bids')
    op.drop_table('job_bids')
    op.drop_index('idx_job_postings_created', table_name='job_postings')
    op.drop_index('idx_job_postings_client_status', table_name='job_postings')
    op.drop_index('ix_job_postings_status', table_name='job_postings')
    op.drop_index('ix_job_postings_client_id', table_name='job_postings')
    op.drop_table('job_postings')
    op.drop_table('users')
