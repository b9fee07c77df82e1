"""Initial schema: identity, reference data, trading entities, audit trail.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _fk(name: str, target: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.String(36), sa.ForeignKey(f"{target}.id"), nullable=nullable)


def _index(table: str, *columns: str, unique: bool = False) -> None:
    op.create_index(f"ix_{table}_{'_'.join(columns)}", table, list(columns), unique=unique)


def _agreement_columns() -> list[sa.Column]:
    """Commercial terms shared by contracts and recap managers."""
    return [
        sa.Column("contract_type", sa.String(30), nullable=False),
        sa.Column("status", sa.String(20)),
        sa.Column("approval_status", sa.String(30)),
        _fk("owner_id", "companies"),
        _fk("charterer_id", "companies", nullable=False),
        _fk("broker_id", "companies"),
        _fk("vessel_id", "vessels"),
        _fk("load_port_id", "ports"),
        _fk("discharge_port_id", "ports"),
        sa.Column("load_delivery_type", sa.String(100)),
        sa.Column("discharge_redelivery_type", sa.String(100)),
        sa.Column("laycan_start", sa.DateTime()),
        sa.Column("laycan_end", sa.DateTime()),
        _fk("cargo_type_id", "cargo_types"),
        sa.Column("quantity", sa.Float()),
        sa.Column("quantity_unit", sa.String(20)),
        sa.Column("freight_rate", sa.String(100)),
        sa.Column("freight_rate_type", sa.String(20)),
        sa.Column("demurrage_rate", sa.String(100)),
        sa.Column("despatch_rate", sa.String(100)),
    ]


def _party_columns() -> list[sa.Column]:
    return [
        sa.Column("party_role", sa.String(20), nullable=False),
        _fk("company_id", "companies", nullable=False),
        sa.Column("status", sa.String(20)),
    ]


def upgrade() -> None:
    # ── Identity ─────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255)),
        sa.Column("avatar_storage_id", sa.String(255)),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("users", "email", unique=True)

    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("plan", sa.String(50)),
        sa.Column("avatar_storage_id", sa.String(255)),
        sa.Column("created_at", sa.DateTime()),
    )

    op.create_table(
        "memberships",
        _id(),
        _fk("user_id", "users", nullable=False),
        _fk("organization_id", "organizations", nullable=False),
        sa.Column(
            "role",
            sa.Enum("ADMIN", "TRADER", "BROKER", "VIEWER", name="memberrole"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime()),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_membership_user_org"),
    )
    _index("memberships", "user_id")
    _index("memberships", "organization_id")

    op.create_table(
        "invitations",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        _fk("organization_id", "organizations", nullable=False),
        sa.Column("role", sa.String(20)),
        _fk("invited_by_user_id", "users", nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("status", sa.String(20)),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("accepted_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime()),
    )
    _index("invitations", "email")
    _index("invitations", "organization_id")
    _index("invitations", "token", unique=True)
    _index("invitations", "status")

    op.create_table(
        "password_reset_tokens",
        _id(),
        _fk("user_id", "users", nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
    )
    _index("password_reset_tokens", "user_id")
    _index("password_reset_tokens", "token", unique=True)

    # ── Reference data ───────────────────────────────────────
    op.create_table(
        "companies",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255)),
        sa.Column("company_type", sa.String(30), nullable=False),
        sa.Column("roles", sa.JSON()),
        sa.Column("contact", sa.JSON()),
        sa.Column("avatar_storage_id", sa.String(255)),
        sa.Column("is_verified", sa.Boolean()),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("companies", "name", unique=True)

    op.create_table(
        "vessels",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("imo_number", sa.String(20)),
        sa.Column("callsign", sa.String(20)),
        sa.Column("mmsi", sa.String(20)),
        sa.Column("dwt", sa.Float()),
        sa.Column("grt", sa.Float()),
        sa.Column("draft", sa.Float()),
        sa.Column("loa", sa.Float()),
        sa.Column("beam", sa.Float()),
        sa.Column("max_height", sa.Float()),
        sa.Column("flag", sa.String(100)),
        sa.Column("vessel_class", sa.String(100)),
        sa.Column("speed_knots", sa.Float()),
        sa.Column("consumption_per_day", sa.Float()),
        sa.Column("built_date", sa.String(20)),
        _fk("current_owner_id", "companies"),
        sa.Column("is_verified", sa.Boolean()),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("vessels", "name")
    _index("vessels", "imo_number", unique=True)
    _index("vessels", "current_owner_id")

    op.create_table(
        "ports",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unlocode", sa.String(10)),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("country_code", sa.String(2), nullable=False),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        sa.Column("timezone", sa.String(64)),
        sa.Column("is_verified", sa.Boolean()),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("ports", "name")
    _index("ports", "unlocode", unique=True)
    _index("ports", "country_code")

    op.create_table(
        "cargo_types",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("unit_type", sa.String(10), nullable=False),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("cargo_types", "name", unique=True)
    _index("cargo_types", "category")

    # ── Trading ──────────────────────────────────────────────
    op.create_table(
        "orders",
        _id(),
        sa.Column("order_number", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255)),
        sa.Column("description", sa.Text()),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("stage", sa.String(20)),
        sa.Column("status", sa.String(20)),
        _fk("cargo_type_id", "cargo_types"),
        sa.Column("quantity", sa.Float()),
        sa.Column("quantity_unit", sa.String(20)),
        sa.Column("laycan_start", sa.DateTime()),
        sa.Column("laycan_end", sa.DateTime()),
        _fk("load_port_id", "ports"),
        _fk("discharge_port_id", "ports"),
        sa.Column("freight_rate", sa.String(100)),
        sa.Column("freight_rate_type", sa.String(20)),
        sa.Column("demurrage_rate", sa.String(100)),
        sa.Column("despatch_rate", sa.String(100)),
        sa.Column("tce", sa.String(100)),
        sa.Column("validity_hours", sa.Integer()),
        _fk("charterer_id", "companies"),
        _fk("owner_id", "companies"),
        _fk("broker_id", "companies"),
        _fk("organization_id", "organizations", nullable=False),
        _fk("created_by_user_id", "users"),
        sa.Column("approval_status", sa.String(30)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
        sa.Column("distributed_at", sa.DateTime()),
        sa.Column("withdrawn_at", sa.DateTime()),
    )
    _index("orders", "order_number", unique=True)
    _index("orders", "stage")
    _index("orders", "status")
    _index("orders", "organization_id")

    analytics = [
        sa.Column(f"{extreme}_{measure}_{window}", sa.Float())
        for measure in ("freight_rate", "demurrage")
        for window in ("indication", "last_day")
        for extreme in ("highest", "lowest", "first")
    ]
    op.create_table(
        "negotiations",
        _id(),
        sa.Column("negotiation_number", sa.String(20), nullable=False),
        _fk("order_id", "orders", nullable=False),
        _fk("counterparty_id", "companies", nullable=False),
        _fk("broker_id", "companies"),
        _fk("vessel_id", "vessels"),
        _fk("person_in_charge_id", "users"),
        _fk("deal_capture_user_id", "users"),
        _fk("created_by_user_id", "users"),
        sa.Column("status", sa.String(30)),
        sa.Column("bid_price", sa.String(100)),
        sa.Column("offer_price", sa.String(100)),
        sa.Column("freight_rate", sa.String(100)),
        sa.Column("demurrage_rate", sa.String(100)),
        sa.Column("tce", sa.String(100)),
        sa.Column("validity", sa.String(100)),
        sa.Column("load_delivery_type", sa.String(100)),
        sa.Column("discharge_redelivery_type", sa.String(100)),
        sa.Column("laycan_start", sa.DateTime()),
        sa.Column("laycan_end", sa.DateTime()),
        sa.Column("quantity", sa.Float()),
        sa.Column("market_index", sa.Float()),
        sa.Column("market_index_name", sa.String(100)),
        sa.Column("address_commission_percent", sa.Float()),
        sa.Column("address_commission_total", sa.Float()),
        sa.Column("broker_commission_percent", sa.Float()),
        sa.Column("broker_commission_total", sa.Float()),
        sa.Column("gross_freight", sa.Float()),
        *analytics,
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("negotiations", "negotiation_number", unique=True)
    _index("negotiations", "order_id")
    _index("negotiations", "counterparty_id")
    _index("negotiations", "status")

    op.create_table(
        "fixtures",
        _id(),
        sa.Column("fixture_number", sa.String(20), nullable=False),
        _fk("order_id", "orders"),
        sa.Column("title", sa.String(255)),
        _fk("organization_id", "organizations", nullable=False),
        sa.Column("status", sa.String(20)),
        sa.Column("last_updated", sa.DateTime()),
        sa.Column("search_text", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("fixtures", "fixture_number", unique=True)
    _index("fixtures", "order_id")
    _index("fixtures", "organization_id")
    _index("fixtures", "status")
    _index("fixtures", "last_updated")
    _index("fixtures", "created_at")

    op.create_table(
        "contracts",
        _id(),
        sa.Column("contract_number", sa.String(20), nullable=False),
        _fk("fixture_id", "fixtures"),
        _fk("order_id", "orders"),
        _fk("negotiation_id", "negotiations"),
        _fk("parent_contract_id", "contracts"),
        *_agreement_columns(),
        sa.Column("address_commission", sa.String(50)),
        sa.Column("broker_commission", sa.String(50)),
        sa.Column("full_cp_chain_storage_id", sa.String(255)),
        sa.Column("itinerary_storage_id", sa.String(255)),
        sa.Column("cp_url", sa.String(500)),
        sa.Column("working_copy_date", sa.DateTime()),
        sa.Column("final_date", sa.DateTime()),
        sa.Column("fully_signed_date", sa.DateTime()),
        sa.Column("signed_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("contracts", "contract_number", unique=True)
    for column in ("fixture_id", "order_id", "negotiation_id", "parent_contract_id", "status"):
        _index("contracts", column)

    op.create_table(
        "recap_managers",
        _id(),
        sa.Column("recap_number", sa.String(20), nullable=False),
        _fk("fixture_id", "fixtures"),
        _fk("order_id", "orders"),
        _fk("negotiation_id", "negotiations"),
        _fk("parent_recap_id", "recap_managers"),
        *_agreement_columns(),
        sa.Column("fixed_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("recap_managers", "recap_number", unique=True)
    for column in ("fixture_id", "order_id", "negotiation_id", "parent_recap_id", "status"):
        _index("recap_managers", column)

    for table, parent_key, parent in (
        ("contract_addenda", "contract_id", "contracts"),
        ("recap_addenda", "recap_manager_id", "recap_managers"),
    ):
        op.create_table(
            table,
            _id(),
            sa.Column("addendum_number", sa.String(20), nullable=False, unique=True),
            _fk(parent_key, parent, nullable=False),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("description", sa.Text()),
            sa.Column("status", sa.String(20)),
            _fk("created_by_user_id", "users"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime()),
        )
        _index(table, parent_key)

    # ── Approvals & signatures ───────────────────────────────
    op.create_table(
        "contract_approvals",
        _id(),
        _fk("contract_id", "contracts", nullable=False),
        *_party_columns(),
        _fk("approved_by", "users"),
        sa.Column("approved_at", sa.DateTime()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("contract_approvals", "contract_id")

    op.create_table(
        "addenda_approvals",
        _id(),
        sa.Column("addenda_id", sa.String(36), nullable=False),
        sa.Column("addenda_type", sa.String(20), nullable=False),
        *_party_columns(),
        _fk("approved_by", "users"),
        sa.Column("approved_at", sa.DateTime()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    _index("addenda_approvals", "addenda_id")

    signature_columns = lambda: [  # noqa: E731
        _fk("signed_by", "users"),
        sa.Column("signed_at", sa.DateTime()),
        sa.Column("signing_method", sa.String(50)),
        sa.Column("document_storage_id", sa.String(255)),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    ]
    op.create_table(
        "contract_signatures",
        _id(),
        _fk("contract_id", "contracts", nullable=False),
        *_party_columns(),
        *signature_columns(),
    )
    _index("contract_signatures", "contract_id")

    op.create_table(
        "addenda_signatures",
        _id(),
        sa.Column("addenda_id", sa.String(36), nullable=False),
        sa.Column("addenda_type", sa.String(20), nullable=False),
        *_party_columns(),
        *signature_columns(),
    )
    _index("addenda_signatures", "addenda_id")

    # ── Audit trail ──────────────────────────────────────────
    op.create_table(
        "field_changes",
        _id(),
        sa.Column("entity_type", sa.String(30), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("field_name", sa.String(100), nullable=False),
        sa.Column("old_value", sa.Text()),
        sa.Column("new_value", sa.Text()),
        sa.Column("change_reason", sa.Text()),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_field_changes_entity", "field_changes", ["entity_type", "entity_id"])
    _index("field_changes", "user_id")
    _index("field_changes", "timestamp")

    op.create_table(
        "activity_logs",
        _id(),
        sa.Column("entity_type", sa.String(30), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.JSON()),
        sa.Column("metadata", sa.JSON()),
        sa.Column("expandable", sa.JSON()),
        sa.Column("user_id", sa.String(36)),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_activity_logs_entity", "activity_logs", ["entity_type", "entity_id"])
    _index("activity_logs", "action")
    _index("activity_logs", "user_id")
    _index("activity_logs", "timestamp")


def downgrade() -> None:
    for table in (
        "activity_logs",
        "field_changes",
        "addenda_signatures",
        "contract_signatures",
        "addenda_approvals",
        "contract_approvals",
        "recap_addenda",
        "contract_addenda",
        "recap_managers",
        "contracts",
        "fixtures",
        "negotiations",
        "orders",
        "cargo_types",
        "ports",
        "vessels",
        "companies",
        "password_reset_tokens",
        "invitations",
        "memberships",
        "organizations",
        "users",
    ):
        op.drop_table(table)
    sa.Enum(name="memberrole").drop(op.get_bind(), checkfirst=True)
