"""002: create orders and order_items tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(32)     PRIMARY KEY,
            order_number        VARCHAR(20)     NOT NULL,
            owner_id            VARCHAR(64)     NOT NULL,
            customer_name       VARCHAR(255)    NOT NULL,
            customer_email      VARCHAR(255)    NOT NULL,
            customer_phone      VARCHAR(32),
            shipping_address    JSONB           NOT NULL,
            billing_address     JSONB           NOT NULL,
            subtotal            NUMERIC(14, 4)  NOT NULL,
            discount            NUMERIC(14, 4)  NOT NULL DEFAULT 0,
            tax                 NUMERIC(14, 4)  NOT NULL,
            shipping            NUMERIC(14, 4)  NOT NULL,
            total               NUMERIC(14, 4)  NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'pending',
            notes               TEXT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_order_number   UNIQUE (order_number),
            CONSTRAINT ck_orders_subtotal       CHECK (subtotal >= 0),
            CONSTRAINT ck_orders_discount       CHECK (discount >= 0),
            CONSTRAINT ck_orders_status         CHECK (
                status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled')
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_owner_status ON orders (owner_id, status, created_at DESC);")
    op.execute("CREATE INDEX idx_orders_created_at ON orders (created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE order_items (
            id              VARCHAR(32)     PRIMARY KEY,
            order_id        VARCHAR(32)     NOT NULL REFERENCES orders (id) ON DELETE CASCADE,
            position        INT             NOT NULL,
            product_id      VARCHAR(64)     NOT NULL,
            name            VARCHAR(255)    NOT NULL,
            quantity        INT             NOT NULL,
            unit_price      NUMERIC(14, 2)  NOT NULL,
            line_total      NUMERIC(14, 2)  NOT NULL,
            CONSTRAINT uq_order_items_position  UNIQUE (order_id, position),
            CONSTRAINT ck_order_items_quantity  CHECK (quantity >= 1),
            CONSTRAINT ck_order_items_price     CHECK (unit_price >= 0),
            CONSTRAINT ck_order_items_total     CHECK (line_total = quantity * unit_price)
        );
    """)
    op.execute("COMMENT ON TABLE orders IS 'Orders; financials fixed at creation, status via state machine';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_items CASCADE;")
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
