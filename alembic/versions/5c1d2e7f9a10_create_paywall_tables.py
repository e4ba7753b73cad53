"""create profiles, files, file_collections, transactions

Revision ID: 5c1d2e7f9a10
Revises:
Create Date: 2026-10-19 09:12:41.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1d2e7f9a10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("is_creator", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("stripe_account_id", sa.String(), nullable=True),
        sa.Column("stripe_onboarding_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("total_earnings_cents", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_sales_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"], unique=True)
    op.create_index("ix_profiles_username", "profiles", ["username"])
    op.create_index("ix_profiles_stripe_account_id", "profiles", ["stripe_account_id"], unique=True)

    op.create_table(
        "file_collections",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("creator_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("price_cents >= 0", name="ck_file_collections_price_non_negative"),
    )
    op.create_index("ix_file_collections_creator_id", "file_collections", ["creator_id"])
    op.create_index("ix_file_collections_slug", "file_collections", ["slug"], unique=True)

    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("creator_id", sa.String(), nullable=False),
        sa.Column("collection_id", sa.Integer(), sa.ForeignKey("file_collections.id"), nullable=True),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("file_name", sa.String(), nullable=False),
        sa.Column("storage_key", sa.String(), nullable=False),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("content_type", sa.String(), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(), nullable=False, server_default="usd"),
        sa.Column("stripe_product_id", sa.String(), nullable=True),
        sa.Column("stripe_price_id", sa.String(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("access_duration_days", sa.Integer(), nullable=True),
        sa.Column("max_downloads", sa.Integer(), nullable=True),
        sa.Column("download_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("purchase_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_revenue_cents", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("screenshot_protection", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("price_cents >= 0", name="ck_files_price_non_negative"),
    )
    op.create_index("ix_files_creator_id", "files", ["creator_id"])
    op.create_index("ix_files_slug", "files", ["slug"], unique=True)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_number", sa.String(), nullable=False),
        sa.Column("file_id", sa.Integer(), sa.ForeignKey("files.id"), nullable=False),
        sa.Column("buyer_id", sa.String(), nullable=True),
        sa.Column("buyer_email", sa.String(), nullable=True),
        sa.Column("seller_id", sa.String(), nullable=False),
        sa.Column("stripe_session_id", sa.String(), nullable=False),
        sa.Column("stripe_payment_intent_id", sa.String(), nullable=True),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(), nullable=False, server_default="usd"),
        sa.Column("platform_fee_cents", sa.Integer(), nullable=False),
        sa.Column("seller_earnings_cents", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("access_expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        sa.CheckConstraint(
            "platform_fee_cents >= 0 AND platform_fee_cents <= amount_cents",
            name="ck_transactions_fee_within_amount",
        ),
        sa.CheckConstraint(
            "seller_earnings_cents + platform_fee_cents = amount_cents",
            name="ck_transactions_split_balances",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'refunded')",
            name="ck_transactions_status",
        ),
    )
    op.create_index("ix_transactions_transaction_number", "transactions", ["transaction_number"], unique=True)
    op.create_index("ix_transactions_stripe_session_id", "transactions", ["stripe_session_id"], unique=True)
    op.create_index("ix_transactions_file_id", "transactions", ["file_id"])
    op.create_index("ix_transactions_buyer_id", "transactions", ["buyer_id"])
    op.create_index("ix_transactions_seller_id", "transactions", ["seller_id"])
    op.create_index("ix_transactions_status", "transactions", ["status"])
    op.create_index(
        "ix_transactions_access_lookup",
        "transactions",
        ["file_id", "buyer_id", "status", "completed_at"],
    )


def downgrade():
    op.drop_table("transactions")
    op.drop_table("files")
    op.drop_table("file_collections")
    op.drop_table("profiles")
