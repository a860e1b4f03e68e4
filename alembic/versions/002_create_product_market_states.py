"""002: create product_market_states table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE product_market_states (
            product_id          VARCHAR(64)     PRIMARY KEY,
            product_name        VARCHAR(200)    NOT NULL,
            base_price          NUMERIC(14, 4)  NOT NULL,
            dynamic_price       NUMERIC(14, 4)  NOT NULL,
            stock_available     INT             NOT NULL DEFAULT 0,
            total_pro_demand    INT             NOT NULL DEFAULT 0,
            last_update_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_pms_base_price_gt_0   CHECK (base_price > 0),
            CONSTRAINT ck_pms_stock_gte_0       CHECK (stock_available >= 0),
            CONSTRAINT ck_pms_demand_gte_0      CHECK (total_pro_demand >= 0),
            CONSTRAINT ck_pms_price_bounds      CHECK (
                dynamic_price >= base_price * 0.7 AND dynamic_price <= base_price * 1.3
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_pms_updated_at
            BEFORE UPDATE ON product_market_states
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS product_market_states CASCADE;")
