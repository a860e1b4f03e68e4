"""StatsAggregator — read-only; every call reduces a fresh consistent snapshot.

Nothing is cached, so a status transition is visible on the very next call.
"""

import logging

from src.bourse_common.retry import with_store_retry
from src.bourse_market.domain.repository import BourseStoreProtocol
from src.bourse_stats.domain.aggregation import compute_stats, demand_invariant_violations
from src.bourse_stats.domain.models import BourseStats

logger = logging.getLogger(__name__)


class StatsAggregator:
    def __init__(self, store: BourseStoreProtocol) -> None:
        self._store = store

    async def get_stats(self) -> BourseStats:
        snapshot = await with_store_retry(self._store.snapshot, name="get_stats")
        return compute_stats(snapshot)

    async def verify_invariants(self) -> dict[str, object]:
        """Demand/bounds invariant check across every product."""
        snapshot = await with_store_retry(self._store.snapshot, name="verify_invariants")
        violations = demand_invariant_violations(snapshot)
        if violations:
            logger.error("Invariant violations: %s", violations)
        return {"ok": not violations, "violations": violations}
