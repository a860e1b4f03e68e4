"""Per-product asyncio locks shared by every writer in this process.

The store primitives are already atomic; holding the product lock around
"commit + publish" additionally keeps change notifications for one product in
commit order.
"""

import asyncio
from collections import defaultdict


class ProductLocks:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def for_product(self, product_id: str) -> asyncio.Lock:
        return self._locks[product_id]
