"""initial warehouse schema

clients / resources / units (archivable reference data),
receipt and shipment documents with their items, and balances.

Revision ID: w0001_initial
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "w0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QUANTITY = sa.Numeric(18, 3)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def _archive_columns():
    return [
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("archived_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    # ── reference data ──────────────────────────────────────────────────────
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        *_timestamps(),
        *_archive_columns(),
    )
    op.create_table(
        "resources",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        *_archive_columns(),
    )
    op.create_table(
        "units",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(64), nullable=False),
        *_timestamps(),
        *_archive_columns(),
    )
    for table in ("clients", "resources", "units"):
        op.create_index(f"ix_{table}_is_archived", table, ["is_archived"])
        op.create_index(f"uq_{table}_name_ci", table, [sa.text("lower(name)")], unique=True)

    # ── receipts ────────────────────────────────────────────────────────────
    op.create_table(
        "receipt_documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("number", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
    )
    op.create_index("uq_receipt_documents_number_ci", "receipt_documents",
                    [sa.text("lower(number)")], unique=True)
    op.create_index("idx_receipt_documents_date", "receipt_documents", ["date"])

    op.create_table(
        "receipt_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("document_id", sa.Integer(),
                  sa.ForeignKey("receipt_documents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("resource_id", sa.Integer(),
                  sa.ForeignKey("resources.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("unit_id", sa.Integer(),
                  sa.ForeignKey("units.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", QUANTITY, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_receipt_items_document_id", "receipt_items", ["document_id"])
    op.create_index("idx_receipt_items_resource_unit", "receipt_items", ["resource_id", "unit_id"])

    # ── shipments ───────────────────────────────────────────────────────────
    op.create_table(
        "shipment_documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("number", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("client_id", sa.Integer(),
                  sa.ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="Draft"),
        *_timestamps(),
    )
    op.create_index("uq_shipment_documents_number_ci", "shipment_documents",
                    [sa.text("lower(number)")], unique=True)
    op.create_index("idx_shipment_documents_date", "shipment_documents", ["date"])
    op.create_index("idx_shipment_documents_status", "shipment_documents", ["status"])
    op.create_index("ix_shipment_documents_client_id", "shipment_documents", ["client_id"])

    op.create_table(
        "shipment_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("document_id", sa.Integer(),
                  sa.ForeignKey("shipment_documents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("resource_id", sa.Integer(),
                  sa.ForeignKey("resources.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("unit_id", sa.Integer(),
                  sa.ForeignKey("units.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", QUANTITY, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_shipment_items_document_id", "shipment_items", ["document_id"])
    op.create_index("idx_shipment_items_resource_unit", "shipment_items", ["resource_id", "unit_id"])

    # ── balances ────────────────────────────────────────────────────────────
    op.create_table(
        "balances",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("resource_id", sa.Integer(),
                  sa.ForeignKey("resources.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("unit_id", sa.Integer(),
                  sa.ForeignKey("units.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", QUANTITY, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("resource_id", "unit_id", name="uq_balances_resource_unit"),
    )
    op.create_index("ix_balances_unit_id", "balances", ["unit_id"])


def downgrade() -> None:
    op.drop_table("balances")
    op.drop_table("shipment_items")
    op.drop_table("shipment_documents")
    op.drop_table("receipt_items")
    op.drop_table("receipt_documents")
    for table in ("units", "resources", "clients"):
        op.drop_table(table)
