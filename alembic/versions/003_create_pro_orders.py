"""003: create pro_orders table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE pro_orders (
            id              VARCHAR(32)     PRIMARY KEY,
            product_id      VARCHAR(64)     NOT NULL
                REFERENCES product_market_states (product_id),
            buyer_id        VARCHAR(64)     NOT NULL,
            order_type      VARCHAR(20)     NOT NULL DEFAULT 'buy_request',
            quantity        INT             NOT NULL,
            unit_price      NUMERIC(14, 4)  NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'pending',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_pro_orders_type       CHECK (order_type IN ('buy_request')),
            CONSTRAINT ck_pro_orders_quantity   CHECK (quantity > 0),
            CONSTRAINT ck_pro_orders_unit_price CHECK (unit_price > 0),
            CONSTRAINT ck_pro_orders_status     CHECK (status IN ('pending', 'matched', 'cancelled'))
        );
    """)
    op.execute("CREATE INDEX idx_pro_orders_product_status ON pro_orders (product_id, status);")
    op.execute("CREATE INDEX idx_pro_orders_buyer ON pro_orders (buyer_id, id DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS pro_orders CASCADE;")
