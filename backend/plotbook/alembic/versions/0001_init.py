"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-01
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ---- geography ----
    op.create_table(
        "states",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=80), nullable=False),
        sa.Column("code", sa.String(length=2), nullable=False),
        sa.Column("region", sa.String(length=40), nullable=True),
        sa.UniqueConstraint("name", name="uq_states_name"),
        sa.UniqueConstraint("code", name="uq_states_code"),
    )
    op.create_index("ix_states_code", "states", ["code"])

    op.create_table(
        "counties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("state_id", sa.Integer(), sa.ForeignKey("states.id"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("fips_code", sa.String(length=5), nullable=True),
        sa.Column("population", sa.Integer(), nullable=True),
        sa.Column("median_income", sa.Float(), nullable=True),
        sa.UniqueConstraint("fips_code", name="uq_counties_fips_code"),
    )
    op.create_index("ix_counties_state_id", "counties", ["state_id"])

    op.create_table(
        "cities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("state_id", sa.Integer(), sa.ForeignKey("states.id"), nullable=False),
        sa.Column("county_id", sa.Integer(), sa.ForeignKey("counties.id"), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("population", sa.Integer(), nullable=True),
        sa.Column("median_income", sa.Float(), nullable=True),
        sa.Column("zip_codes_json", sa.Text(), nullable=True),
    )
    op.create_index("ix_cities_state_id", "cities", ["state_id"])
    op.create_index("ix_cities_county_id", "cities", ["county_id"])
    op.create_index("ix_cities_name", "cities", ["name"])

    # ---- properties / owners ----
    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("state_id", sa.Integer(), sa.ForeignKey("states.id"), nullable=False),
        sa.Column("county_id", sa.Integer(), sa.ForeignKey("counties.id"), nullable=True),
        sa.Column("city_id", sa.Integer(), sa.ForeignKey("cities.id"), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("street_number", sa.String(length=20), nullable=True),
        sa.Column("street_name", sa.String(length=160), nullable=True),
        sa.Column("unit", sa.String(length=20), nullable=True),
        sa.Column("zip_code", sa.String(length=10), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("property_type", sa.String(length=60), nullable=False, server_default="residential"),
        sa.Column("building_type", sa.String(length=60), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("square_footage", sa.Integer(), nullable=True),
        sa.Column("lot_size", sa.Float(), nullable=True),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Float(), nullable=True),
        sa.Column("stories", sa.Integer(), nullable=True),
        sa.Column("current_value", sa.Float(), nullable=True),
        sa.Column("assessed_value", sa.Float(), nullable=True),
        sa.Column("tax_amount", sa.Float(), nullable=True),
        sa.Column("last_sale_price", sa.Float(), nullable=True),
        sa.Column("last_sale_date", sa.Date(), nullable=True),
        sa.Column("data_source", sa.String(length=60), nullable=True),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_properties_state_id", "properties", ["state_id"])
    op.create_index("ix_properties_county_id", "properties", ["county_id"])
    op.create_index("ix_properties_city_id", "properties", ["city_id"])
    op.create_index("ix_properties_current_value", "properties", ["current_value"])

    op.create_table(
        "owners",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="individual"),
        sa.Column("first_name", sa.String(length=80), nullable=True),
        sa.Column("last_name", sa.String(length=80), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("occupation", sa.String(length=120), nullable=True),
        sa.Column("employer", sa.String(length=160), nullable=True),
        sa.Column("industry", sa.String(length=120), nullable=True),
        sa.Column("entity_name", sa.String(length=200), nullable=True),
        sa.Column("entity_type", sa.String(length=40), nullable=True),
        sa.Column("estimated_net_worth", sa.Float(), nullable=True),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("mailing_address", sa.String(length=255), nullable=True),
        sa.Column("data_source", sa.String(length=60), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "property_ownerships",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("owners.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ownership_type", sa.String(length=40), nullable=True),
        sa.Column("ownership_percent", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("start_date", sa.Date(), nullable=True),
    )
    op.create_index("ix_property_ownerships_property_id", "property_ownerships", ["property_id"])
    op.create_index("ix_property_ownerships_owner_id", "property_ownerships", ["owner_id"])

    op.create_table(
        "property_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("buyer_id", sa.Integer(), sa.ForeignKey("owners.id", ondelete="SET NULL"), nullable=True),
        sa.Column("seller_id", sa.Integer(), sa.ForeignKey("owners.id", ondelete="SET NULL"), nullable=True),
        sa.Column("transaction_type", sa.String(length=30), nullable=False, server_default="sale"),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("document_type", sa.String(length=40), nullable=True),
        sa.Column("recording_date", sa.Date(), nullable=True),
    )
    op.create_index("ix_property_transactions_property_id", "property_transactions", ["property_id"])

    # ---- tenancy ----
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False, server_default=""),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("can_access_dashboard", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("can_access_saved_properties", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("can_access_team_management", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_company_id", "users", ["company_id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "invitations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("expires", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("invited_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_invitations_email", "invitations", ["email"], unique=True)
    op.create_index("ix_invitations_token", "invitations", ["token"], unique=True)
    op.create_index("ix_invitations_company_id", "invitations", ["company_id"])

    op.create_table(
        "saved_properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("tags_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "property_id", name="uq_saved_properties_user_property"),
    )
    op.create_index("ix_saved_properties_user_id", "saved_properties", ["user_id"])
    op.create_index("ix_saved_properties_property_id", "saved_properties", ["property_id"])

    op.create_table(
        "activity_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("action_type", sa.String(length=20), nullable=False),
        sa.Column("icon", sa.String(length=40), nullable=True),
        sa.Column("entity_type", sa.String(length=80), nullable=True),
        sa.Column("entity_id", sa.String(length=80), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_activity_events_company_created", "activity_events", ["company_id", "created_at"])


def downgrade():
    op.drop_index("ix_activity_events_company_created", table_name="activity_events")
    op.drop_table("activity_events")
    op.drop_table("saved_properties")
    op.drop_table("invitations")
    op.drop_table("users")
    op.drop_table("companies")
    op.drop_table("property_transactions")
    op.drop_table("property_ownerships")
    op.drop_table("owners")
    op.drop_table("properties")
    op.drop_table("cities")
    op.drop_table("counties")
    op.drop_table("states")
