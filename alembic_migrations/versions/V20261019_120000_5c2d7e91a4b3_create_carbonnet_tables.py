"""create_carbonnet_tables

Revision ID: 5c2d7e91a4b3
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "5c2d7e91a4b3"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "emission_factors",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "category",
            sa.String(length=50),
            nullable=False,
            comment="Activity category (transportation, electricity, ...)",
        ),
        sa.Column(
            "subcategory_key",
            sa.String(length=100),
            nullable=False,
            comment="Lookup key within the category (e.g. 'car_petrol', 'grid')",
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "factor_value",
            sa.Numeric(precision=12, scale=6),
            nullable=False,
            comment="kg CO2e per unit",
        ),
        sa.Column(
            "unit",
            sa.String(length=50),
            nullable=False,
            comment="Unit of activity (km, kWh, meal, kg, liter)",
        ),
        sa.Column("emission_unit", sa.String(length=50), nullable=False),
        sa.Column(
            "scope", sa.Integer(), nullable=False, comment="GHG Protocol scope (1, 2, or 3)"
        ),
        sa.Column(
            "source",
            sa.String(length=30),
            nullable=False,
            comment="Publisher (DEFRA, IPCC, GHG_PROTOCOL, EPA, CUSTOM, OTHER)",
        ),
        sa.Column("source_year", sa.Integer(), nullable=True),
        sa.Column("region", sa.String(length=20), nullable=False),
        sa.Column("version", sa.String(length=50), nullable=True),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_until", sa.Date(), nullable=True),
        sa.Column(
            "institution_id",
            sa.Uuid(),
            nullable=True,
            comment="Owning institution; null for global factors",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        comment="Emission factors with institution and validity scoping",
    )
    op.create_index(
        "ix_emission_factors_lookup",
        "emission_factors",
        ["category", "subcategory_key", "institution_id", "is_active"],
        unique=False,
    )
    op.create_index(
        "ix_emission_factors_valid_from", "emission_factors", ["valid_from"], unique=False
    )

    op.create_table(
        "activities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("institution_id", sa.Uuid(), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("subcategory", sa.String(length=100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "activity_date",
            sa.Date(),
            nullable=False,
            comment="Date when the activity occurred",
        ),
        sa.Column("transportation", sa.JSON(), nullable=True),
        sa.Column("electricity", sa.JSON(), nullable=True),
        sa.Column("food", sa.JSON(), nullable=True),
        sa.Column("waste", sa.JSON(), nullable=True),
        sa.Column("water", sa.JSON(), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=14, scale=3), nullable=True),
        sa.Column("unit", sa.String(length=50), nullable=True),
        sa.Column(
            "carbon_emission_kg",
            sa.Numeric(precision=14, scale=3),
            nullable=False,
            comment="Derived emissions in kg CO2e",
        ),
        sa.Column(
            "emission_factor_provenance",
            sa.JSON(),
            nullable=True,
            comment="Factor value, source, version, tier and fallback reason",
        ),
        sa.Column("data_source", sa.String(length=30), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        comment="Activities with derived carbon emissions",
    )
    op.create_index(op.f("ix_activities_user_id"), "activities", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_activities_institution_id"), "activities", ["institution_id"], unique=False
    )
    op.create_index(op.f("ix_activities_category"), "activities", ["category"], unique=False)
    op.create_index(
        op.f("ix_activities_activity_date"), "activities", ["activity_date"], unique=False
    )
    op.create_index(
        "ix_activities_user_date", "activities", ["user_id", "activity_date"], unique=False
    )
    op.create_index(
        "ix_activities_institution_date",
        "activities",
        ["institution_id", "activity_date"],
        unique=False,
    )

    op.create_table(
        "reports",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("format", sa.String(length=10), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("scope", sa.String(length=20), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("institution_id", sa.Uuid(), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column(
            "data", sa.JSON(), nullable=True, comment="Aggregated report payload"
        ),
        sa.Column("statistics", sa.JSON(), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_path", sa.String(length=500), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("generated_by", sa.Uuid(), nullable=False),
        sa.Column("download_count", sa.Integer(), nullable=False),
        sa.Column("last_downloaded", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        comment="Generated emission reports",
    )
    op.create_index(op.f("ix_reports_user_id"), "reports", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_reports_institution_id"), "reports", ["institution_id"], unique=False
    )
    op.create_index(op.f("ix_reports_status"), "reports", ["status"], unique=False)
    op.create_index(op.f("ix_reports_expires_at"), "reports", ["expires_at"], unique=False)
    op.create_index(
        "ix_reports_generated_by_created",
        "reports",
        ["generated_by", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_reports_generated_by_created", table_name="reports")
    op.drop_index(op.f("ix_reports_expires_at"), table_name="reports")
    op.drop_index(op.f("ix_reports_status"), table_name="reports")
    op.drop_index(op.f("ix_reports_institution_id"), table_name="reports")
    op.drop_index(op.f("ix_reports_user_id"), table_name="reports")
    op.drop_table("reports")

    op.drop_index("ix_activities_institution_date", table_name="activities")
    op.drop_index("ix_activities_user_date", table_name="activities")
    op.drop_index(op.f("ix_activities_activity_date"), table_name="activities")
    op.drop_index(op.f("ix_activities_category"), table_name="activities")
    op.drop_index(op.f("ix_activities_institution_id"), table_name="activities")
    op.drop_index(op.f("ix_activities_user_id"), table_name="activities")
    op.drop_table("activities")

    op.drop_index("ix_emission_factors_valid_from", table_name="emission_factors")
    op.drop_index("ix_emission_factors_lookup", table_name="emission_factors")
    op.drop_table("emission_factors")
