"""Initial schema: users, inventory, usage logs and audit history.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-18

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    # ── Accounts ─────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255)),
        sa.Column("auth_provider", sa.String(20), server_default="password"),
        sa.Column(
            "role",
            sa.Enum("USER", "ADMIN", "SUPER_ADMIN", name="userrole"),
            server_default="USER",
        ),
        sa.Column("verified", sa.Boolean(), server_default=sa.false()),
        sa.Column("active", sa.Boolean(), server_default=sa.true()),
        sa.Column("last_login", sa.DateTime()),
        sa.Column("marked_for_deletion", sa.Boolean(), server_default=sa.false()),
        sa.Column("deletion_requested_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_email", "users", ["email"])

    # ── Inventory ────────────────────────────────────────────

    op.create_table(
        "chemicals",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("batch_number", sa.String(100)),
        sa.Column("brand", sa.String(255)),
        sa.Column("physical_state", sa.String(20), server_default="liquid"),
        sa.Column("unit", sa.String(30)),
        sa.Column("volume_per_unit", sa.Float()),
        sa.Column("initial_quantity", sa.Float(), nullable=False),
        sa.Column("current_quantity", sa.Float(), nullable=False),
        sa.Column("expiration_date", sa.Date()),
        sa.Column("date_of_arrival", sa.Date()),
        sa.Column("safety_class", sa.String(20), server_default="moderate"),
        sa.Column("ghs_symbols", sa.JSON(), server_default="[]"),
        sa.Column("location", sa.String(255)),
        sa.Column("opened", sa.Boolean(), server_default=sa.false()),
        sa.Column("remaining_amount", sa.Float()),
        sa.Column(
            "parent_chemical_id", sa.String(36),
            sa.ForeignKey("chemicals.id", ondelete="SET NULL"),
        ),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("current_quantity >= 0", name="ck_chemicals_quantity_non_negative"),
    )
    op.create_index("ix_chemicals_name", "chemicals", ["name"])
    op.create_index("ix_chemicals_batch_number", "chemicals", ["batch_number"])
    op.create_index("ix_chemicals_expiration_date", "chemicals", ["expiration_date"])
    op.create_index("ix_chemicals_safety_class", "chemicals", ["safety_class"])
    op.create_index("ix_chemicals_parent_chemical_id", "chemicals", ["parent_chemical_id"])
    op.create_index("ix_chemicals_created_at", "chemicals", ["created_at"])

    op.create_table(
        "equipment",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("model", sa.String(255)),
        sa.Column("serial_id", sa.String(100), nullable=False),
        sa.Column("status", sa.String(30), server_default="Available"),
        sa.Column("location", sa.String(255)),
        sa.Column("purchase_date", sa.Date()),
        sa.Column("warranty_expiration", sa.Date()),
        sa.Column("last_maintenance", sa.Date()),
        sa.Column("next_maintenance", sa.Date()),
        sa.Column("condition", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_equipment_name", "equipment", ["name"])
    op.create_index("ix_equipment_serial_id", "equipment", ["serial_id"])
    op.create_index("ix_equipment_status", "equipment", ["status"])
    op.create_index("ix_equipment_created_at", "equipment", ["created_at"])

    # ── Usage logs ───────────────────────────────────────────

    op.create_table(
        "usage_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36)),
        sa.Column("user_name", sa.String(200), nullable=False),
        sa.Column("date", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("notes", sa.Text()),
        sa.Column("location", sa.String(255)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_usage_logs_user_id", "usage_logs", ["user_id"])
    op.create_index("ix_usage_logs_date", "usage_logs", ["date"])

    op.create_table(
        "chemical_usage",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "usage_log_id", sa.String(36),
            sa.ForeignKey("usage_logs.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "chemical_id", sa.String(36),
            sa.ForeignKey("chemicals.id", ondelete="SET NULL"),
        ),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(30)),
        sa.Column("opened", sa.Boolean(), server_default=sa.false()),
        sa.Column("remaining_amount", sa.Float()),
        sa.Column(
            "opened_chemical_id", sa.String(36),
            sa.ForeignKey("chemicals.id", ondelete="SET NULL"),
        ),
    )
    op.create_index("ix_chemical_usage_usage_log_id", "chemical_usage", ["usage_log_id"])
    op.create_index("ix_chemical_usage_chemical_id", "chemical_usage", ["chemical_id"])

    op.create_table(
        "usage_log_equipment",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "usage_log_id", sa.String(36),
            sa.ForeignKey("usage_logs.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "equipment_id", sa.String(36),
            sa.ForeignKey("equipment.id", ondelete="SET NULL"),
        ),
    )
    op.create_index("ix_usage_log_equipment_usage_log_id", "usage_log_equipment", ["usage_log_id"])
    op.create_index("ix_usage_log_equipment_equipment_id", "usage_log_equipment", ["equipment_id"])

    # ── Audit ────────────────────────────────────────────────

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("user_id", sa.String(36)),
        sa.Column("user_name", sa.String(200), nullable=False),
        sa.Column("user_role", sa.String(20), nullable=False),
        sa.Column("item_name", sa.String(255)),
        sa.Column("details", sa.JSON()),
        sa.Column("timestamp", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_type", "audit_logs", ["type"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("usage_log_equipment")
    op.drop_table("chemical_usage")
    op.drop_table("usage_logs")
    op.drop_table("equipment")
    op.drop_table("chemicals")
    op.drop_table("users")
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
