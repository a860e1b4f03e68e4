"""Pure reductions over one store snapshot."""

from collections import Counter

from src.bourse_common.enums import OrderStatus
from src.bourse_market.domain.models import ProductMarketState
from src.bourse_market.domain.repository import StoreSnapshot
from src.bourse_order.domain.models import Order
from src.bourse_stats.domain.models import BourseStats, DemandLeader, VariationLeader

TOP_N = 3


def count_by_status(orders: list[Order]) -> dict[OrderStatus, int]:
    """One pass over the ledger; every status present in the result, zero if unused."""
    counts = Counter(o.status for o in orders)
    return {status: counts.get(status, 0) for status in OrderStatus}


def top_demand(states: list[ProductMarketState], n: int = TOP_N) -> list[DemandLeader]:
    """Highest total_pro_demand first, ties by product_id ascending; idle products skipped."""
    ranked = sorted(
        (s for s in states if s.total_pro_demand > 0),
        key=lambda s: (-s.total_pro_demand, s.product_id),
    )
    return [
        DemandLeader(
            product_id=s.product_id,
            product_name=s.product_name,
            total_demand=s.total_pro_demand,
        )
        for s in ranked[:n]
    ]


def top_variation(states: list[ProductMarketState], n: int = TOP_N) -> list[VariationLeader]:
    """Largest |variation_percent| first (sign kept), ties by product_id ascending."""
    ranked = sorted(
        (s for s in states if s.variation_percent != 0),
        key=lambda s: (-abs(s.variation_percent), s.product_id),
    )
    return [
        VariationLeader(
            product_id=s.product_id,
            product_name=s.product_name,
            variation_percent=s.variation_percent,
        )
        for s in ranked[:n]
    ]


def compute_stats(snapshot: StoreSnapshot, n: int = TOP_N) -> BourseStats:
    counts = count_by_status(snapshot.orders)
    return BourseStats(
        total_orders=len(snapshot.orders),
        pending_orders=counts[OrderStatus.PENDING],
        matched_orders=counts[OrderStatus.MATCHED],
        cancelled_orders=counts[OrderStatus.CANCELLED],
        top_demand_products=top_demand(snapshot.market_states, n),
        top_variation_products=top_variation(snapshot.market_states, n),
        computed_at=snapshot.taken_at,
    )


def demand_invariant_violations(snapshot: StoreSnapshot) -> list[str]:
    """total_pro_demand must equal the summed quantity of the product's pending orders."""
    pending: Counter[str] = Counter()
    for order in snapshot.orders:
        if order.is_pending:
            pending[order.product_id] += order.quantity
    violations = []
    for state in snapshot.market_states:
        expected = pending.pop(state.product_id, 0)
        if state.total_pro_demand != expected:
            violations.append(
                f"{state.product_id}: total_pro_demand={state.total_pro_demand} "
                f"!= pending quantity {expected}"
            )
        if not (state.min_price <= state.dynamic_price <= state.max_price):
            violations.append(f"{state.product_id}: dynamic_price outside bounds")
    for product_id, qty in sorted(pending.items()):
        violations.append(f"{product_id}: {qty} pending units for an unknown product")
    return violations
